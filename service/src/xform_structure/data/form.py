import logging
import re

from ..consts import BASE64_RSA_PUBLIC_KEY, ENCRYPTED_FORM_DEFINITION, NODESET_ATTR
from ..errors import IncompleteSubmissionData, Reason
from ..identity import default_form_id, extract_identity, extract_root_identity
from ..model.identity import FormIdentity
from ..xform.parser import ParsedForm, SubmissionProfile, parse_xform
from .field import AttributeKey, FieldNode

logger = logging.getLogger(__name__)

ILLEGAL_TITLE_CHARS = re.compile(r'[\x00-\x1f\x7f<>:"/\\|?*]')


def strip_illegal_chars(value: str) -> str:
    return ILLEGAL_TITLE_CHARS.sub("", value)


class FormDefinition:
    """A parsed and validated XForm definition.

    Holds the raw text, the parsed field tree and everything derived from
    its root: identity, submission scope, encryption and title.
    """

    def __init__(self, xml: str | None, existing_title: str | None = None, allow_legacy: bool = False) -> None:
        if xml is None:
            raise IncompleteSubmissionData(Reason.MISSING_XML)

        self.__xml = xml
        self.__parsed = parse_xform(xml)

        root = self.__parsed.root
        self.__is_invalid_form_xmlns = False
        self.__identity = self.__extract_root_identity(root, allow_legacy)

        submission = self.__parsed.submission
        self.__true_submission_element = root
        submission_identity = self.__identity
        if submission is not None and submission.ref is not None:
            scoped = self.__parsed.resolve_reference(submission.ref)
            if scoped is not None:
                self.__true_submission_element = scoped
                submission_identity = extract_identity(scoped, None)
                if submission_identity is None:
                    raise IncompleteSubmissionData(
                        Reason.ID_MISSING,
                        "The non-root submission element in the data model does not have an id attribute. "
                        'Add an id="your.domain.org:formId" attribute to the submission element of your form.',
                    )

        self.__is_not_uploadable = submission is not None and (
            not (submission.action or "").startswith("http") or submission.method != "form-data-post"
        )
        if self.__is_not_uploadable:
            logger.debug(
                "Form %s is not uploadable (submission method is not form-data-post or does not have an "
                "http: or https: url)",
                submission_identity.form_id,
            )

        if submission_identity != self.__identity:
            raise IncompleteSubmissionData(
                Reason.MISMATCHED_SUBMISSION_ELEMENT,
                "submission element and root element differ in their values for: formId or version.",
            )

        public_key = submission.attribute(BASE64_RSA_PUBLIC_KEY) if submission is not None else None
        self.__public_key = public_key or None
        self.__encrypted: ParsedForm | None = None
        if self.__public_key is not None:
            self.__encrypted = parse_xform(ENCRYPTED_FORM_DEFINITION)

        title = self.__parsed.title
        if title is None:
            if existing_title is None:
                raise IncompleteSubmissionData(Reason.TITLE_MISSING)
            title = existing_title
        self.__title = strip_illegal_chars(title)

    def __extract_root_identity(self, root: FieldNode, allow_legacy: bool) -> FormIdentity:
        _, self.__is_invalid_form_xmlns = default_form_id(self.__parsed.schema, allow_legacy)
        return extract_root_identity(root, self.__parsed.schema, allow_legacy)

    def __str__(self) -> str:
        return f"(form_id={self.form_id}, version={self.version}, title={self.title})"

    def __repr__(self) -> str:
        return str(self)

    @property
    def xml(self) -> str:
        return self.__xml

    @property
    def parsed(self) -> ParsedForm:
        return self.__parsed

    @property
    def root(self) -> FieldNode:
        return self.__parsed.root

    @property
    def identity(self) -> FormIdentity:
        return self.__identity

    @property
    def form_id(self) -> str:
        return self.__identity.form_id

    @property
    def version(self) -> str | None:
        return self.__identity.model_version

    @property
    def title(self) -> str:
        return self.__title

    @property
    def submission_profile(self) -> SubmissionProfile | None:
        return self.__parsed.submission

    @property
    def true_submission_element(self) -> FieldNode:
        return self.__true_submission_element

    @property
    def submission_element(self) -> FieldNode:
        """Root of the storage shape; the encrypted envelope for encrypted forms."""
        if self.__encrypted is not None:
            return self.__encrypted.root
        return self.__true_submission_element

    @property
    def public_key(self) -> str | None:
        return self.__public_key

    @property
    def is_file_encrypted(self) -> bool:
        return self.__public_key is not None

    @property
    def is_not_uploadable(self) -> bool:
        return self.__is_not_uploadable

    @property
    def is_invalid_form_xmlns(self) -> bool:
        return self.__is_invalid_form_xmlns

    def resolve_reference(self, ref: str | None) -> FieldNode | None:
        return self.__parsed.resolve_reference(ref)

    def bindings_for(self, node: FieldNode) -> list[dict[AttributeKey, str]]:
        nodeset = node.path.lower()
        return [
            b for b in self.__parsed.bindings
            if (b.get((None, NODESET_ATTR)) or "").lower() == nodeset
        ]
