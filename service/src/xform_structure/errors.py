from enum import StrEnum


class Reason(StrEnum):
    MISSING_XML = "missing_xml"
    BAD_PARSE = "bad_parse"
    ID_MALFORMED = "id_malformed"
    ID_MISSING = "id_missing"
    MISMATCHED_SUBMISSION_ELEMENT = "mismatched_submission_element"
    TITLE_MISSING = "title_missing"


class IncompleteSubmissionData(Exception):
    """The form definition cannot be used.

    Raised for every definition that is missing, unparseable or carries an
    unusable identity. Never retryable: the caller has to reject the
    definition and report it.
    """

    def __init__(self, reason: Reason, message: str | None = None) -> None:
        self.reason = reason
        self.message = message
        super().__init__(f"{reason}: {message}" if message else str(reason))


class InitializationError(Exception):
    pass
