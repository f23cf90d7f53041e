NAMESPACE_XFORMS = "http://www.w3.org/2002/xforms"
NAMESPACE_XHTML = "http://www.w3.org/1999/xhtml"
NAMESPACE_JAVAROSA = "http://openrosa.org/javarosa"
NAMESPACE_ODK = "http://www.opendatakit.org/xforms"
NAMESPACE_OPENROSA = "http://openrosa.org/xforms"
NAMESPACE_XSD = "http://www.w3.org/2001/XMLSchema"
NAMESPACE_EVENTS = "http://www.w3.org/2001/xml-events"

NAMESPACE_PREFIXES = {
    "h": NAMESPACE_XHTML,
    "jr": NAMESPACE_JAVAROSA,
    "odk": NAMESPACE_ODK,
    "orx": NAMESPACE_OPENROSA,
    "xsd": NAMESPACE_XSD,
    "ev": NAMESPACE_EVENTS,
}

FORM_ID_ATTRIBUTE_NAME = "id"
VERSION_ATTRIBUTE_NAME = "version"
FORWARD_SLASH = "/"
FORWARD_SLASH_SUBSTITUTION = "&#47;"

BASE64_RSA_PUBLIC_KEY = "base64RsaPublicKey"

# bind attribute selecting the node a <bind> applies to
NODESET_ATTR = "nodeset"
TYPE_ATTR = "type"

# Bind attributes that can change without touching the storage shape.
# Lower case, namespaced entries as "<namespace-uri>:<name>".
CHANGEABLE_BIND_ATTRIBUTES = frozenset(
    {
        "relevant",
        "constraint",
        "readonly",
        "required",
        "calculate",
        NAMESPACE_JAVAROSA.lower() + ":constraintmsg",
        NAMESPACE_JAVAROSA.lower() + ":preload",
        NAMESPACE_JAVAROSA.lower() + ":preloadparams",
        "appearance",
    }
)

# Instance attributes that cannot change without touching the storage shape.
NONCHANGEABLE_INSTANCE_ATTRIBUTES = frozenset({"id"})

# bind types that may be swapped for each other
INTERCHANGEABLE_BIND_TYPES = frozenset({"string", "select1"})

GEOPOINT_SUFFIXES = ("Latitude", "Longitude", "Altitude", "Accuracy")

REPEAT_GROUP_PREFIX = "SET-OF-"

ENCRYPTED_FORM_DEFINITION = (
    '<?xml version="1.0"?>'
    '<h:html xmlns="http://www.w3.org/2002/xforms" xmlns:h="http://www.w3.org/1999/xhtml"'
    ' xmlns:ev="http://www.w3.org/2001/xml-events" xmlns:xsd="http://www.w3.org/2001/XMLSchema"'
    ' xmlns:odk="' + NAMESPACE_ODK + '" xmlns:jr="http://openrosa.org/javarosa">'
    "<h:head>"
    "<h:title>Encrypted Form</h:title>"
    "<model>"
    "<instance>"
    '<data id="encrypted" xmlns="http://www.opendatakit.org/xforms/encrypted"'
    ' xmlns:orx="http://openrosa.org/xforms">'
    "<base64EncryptedKey/>"
    "<orx:meta>"
    "<orx:instanceID/>"
    "</orx:meta>"
    "<media>"
    "<file/>"
    "</media>"
    "<encryptedXmlFile/>"
    "<base64EncryptedElementSignature/>"
    "</data>"
    "</instance>"
    '<bind nodeset="/data/base64EncryptedKey" type="string" odk:length="2048" />'
    '<bind nodeset="/data/meta/instanceID" type="string"/>'
    '<bind nodeset="/data/media/file" type="binary"/>'
    '<bind nodeset="/data/encryptedXmlFile" type="binary"/>'
    '<bind nodeset="/data/base64EncryptedElementSignature" type="string" odk:length="2048" />'
    "</model>"
    "</h:head>"
    "<h:body>"
    '<input ref="base64EncryptedKey"><label>Encrypted Symmetric Key</label></input>'
    '<input ref="meta/instanceID"><label>InstanceID</label></input>'
    '<repeat nodeset="/data/media">'
    '<upload ref="file" mediatype="image/*"><label>media file</label></upload>'
    "</repeat>"
    '<upload ref="encryptedXmlFile" mediatype="image/*"><label>submission</label></upload>'
    '<input ref="base64EncryptedElementSignature"><label>Encrypted Element Signature</label></input>'
    "</h:body>"
    "</h:html>"
)
