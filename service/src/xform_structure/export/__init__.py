"""Export column names and submission values."""

from .field_mapper import map_repeat, map_submission, map_value, mapper_for
from .model import FieldModel, export_headers, repeat_header

__all__ = [
    "FieldModel",
    "export_headers",
    "map_repeat",
    "map_submission",
    "map_value",
    "mapper_for",
    "repeat_header",
]
