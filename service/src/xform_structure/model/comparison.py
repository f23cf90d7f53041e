from enum import IntEnum, StrEnum

from pydantic import BaseModel

from .identity import FormIdentity


class DifferenceResult(StrEnum):
    IDENTICAL = "identical"  # raw definitions are byte-identical
    SHARE_INSTANCE = "share_instance"  # instance and bindings identical, body differs
    SHARE_SCHEMA = "share_schema"  # instances differ but share the storage shape
    DIFFERENT = "different"  # storage shape or encryption differs
    MISSING_VERSION = "missing_version"
    EARLIER_VERSION = "earlier_version"

    @property
    def accepts_update(self) -> bool:
        return self in (
            DifferenceResult.IDENTICAL,
            DifferenceResult.SHARE_INSTANCE,
            DifferenceResult.SHARE_SCHEMA,
        )


class Severity(IntEnum):
    NONE = 0
    SMALL = 1
    BIG = 2


class DifferenceKind(StrEnum):
    VERSION = "version"
    ENCRYPTION = "encryption"
    SUBMISSION_SCOPE = "submission_scope"
    NAME = "name"
    INSTANCE_ATTRIBUTE = "instance_attribute"
    BIND_ATTRIBUTE = "bind_attribute"
    DUPLICATE_CHILD = "duplicate_child"
    CHILD_COUNT = "child_count"
    MISSING_CHILD = "missing_child"


class StructuralDifference(BaseModel):
    path: str
    kind: DifferenceKind
    severity: Severity
    detail: str | None = None


class ComparisonReport(BaseModel):
    result: DifferenceResult
    incoming: FormIdentity | None = None
    existing: FormIdentity | None = None
    differences: list[StructuralDifference] = []
