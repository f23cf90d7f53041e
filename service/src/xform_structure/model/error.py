from pydantic import BaseModel

from ..errors import IncompleteSubmissionData


class Error(BaseModel):
    error: str
    reason: str | None = None

    @staticmethod
    def from_except(e: Exception) -> "Error":
        if isinstance(e, IncompleteSubmissionData):
            return Error(error=str(e), reason=str(e.reason))
        return Error(error=str(e))
