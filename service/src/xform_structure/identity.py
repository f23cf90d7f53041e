import logging

from .consts import (
    FORM_ID_ATTRIBUTE_NAME,
    FORWARD_SLASH,
    FORWARD_SLASH_SUBSTITUTION,
    VERSION_ATTRIBUTE_NAME,
)
from .data.field import FieldNode
from .errors import IncompleteSubmissionData, Reason
from .model.identity import FormIdentity

logger = logging.getLogger(__name__)


def escape_slashes(value: str) -> str:
    return value.replace(FORWARD_SLASH, FORWARD_SLASH_SUBSTITUTION)


def is_well_formed_schema(schema: str) -> bool:
    """A namespace like ``http://example.org/form`` is usable as a form id.

    It must contain a colon and its first slash must come after that colon;
    ``urn:form`` (no slash) and ``a/b:c`` are both malformed.
    """
    colon = schema.find(":")
    if colon == -1:
        return False
    return schema.find("/") > colon


def default_form_id(schema: str | None, allow_legacy: bool) -> tuple[str | None, bool]:
    """Derive the fallback form id from the instance namespace.

    Returns:
        The slash escaped fallback id (or None) and whether the namespace
        was malformed.
    """
    if schema is None:
        return None, False
    if is_well_formed_schema(schema):
        return escape_slashes(schema), False
    logger.debug("instance namespace '%s' is not a well-formed form id", schema)
    return (escape_slashes(schema) if allow_legacy else None), True


def extract_identity(root: FieldNode, default_id: str | None) -> FormIdentity | None:
    form_id = root.attribute(None, FORM_ID_ATTRIBUTE_NAME)
    if form_id is not None:
        form_id = escape_slashes(form_id)
    else:
        form_id = default_id
    if form_id is None:
        return None
    return FormIdentity(form_id=form_id, model_version=root.attribute(None, VERSION_ATTRIBUTE_NAME))


def extract_root_identity(root: FieldNode, schema: str | None, allow_legacy: bool = False) -> FormIdentity:
    """Read (formId, version) from the root of a form instance.

    Raises:
        IncompleteSubmissionData: ID_MALFORMED if only a malformed namespace
            was available, ID_MISSING if there was nothing at all.
    """
    fallback, malformed = default_form_id(schema, allow_legacy)
    identity = extract_identity(root, fallback)
    if identity is not None:
        return identity
    if malformed:
        raise IncompleteSubmissionData(
            Reason.ID_MALFORMED,
            f"xmlns attribute for the data model is not well-formed: '{schema}' should be of the "
            'form xmlns="http://your.domain.org/formId". Consider defining the formId using the '
            "'id' attribute instead of the 'xmlns' attribute (id=\"formId\")",
        )
    raise IncompleteSubmissionData(
        Reason.ID_MISSING,
        'The data model does not have an id or xmlns attribute. Add an id="your.domain.org:formId" '
        "attribute to the top-level instance data element of your form.",
    )
