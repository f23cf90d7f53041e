"""XForm definition parsing."""

from .parser import ParsedForm, ParserRuntime, SubmissionProfile, parse_xform

__all__ = [
    "ParsedForm",
    "ParserRuntime",
    "SubmissionProfile",
    "parse_xform",
]
