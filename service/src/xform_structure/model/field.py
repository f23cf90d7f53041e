from enum import StrEnum

from pydantic import BaseModel


class DataType(StrEnum):
    NULL = "null"
    TEXT = "text"
    INTEGER = "integer"
    DECIMAL = "decimal"
    DATE = "date"
    DATETIME = "datetime"
    TIME = "time"
    GEOPOINT = "geopoint"
    GEOSHAPE = "geoshape"
    GEOTRACE = "geotrace"
    CHOICE_SINGLE = "choice_single"
    CHOICE_LIST = "choice_list"
    BINARY = "binary"
    BARCODE = "barcode"


# multiplicity of the structural placeholder of a repeat group
INDEX_TEMPLATE = -2


class FieldHeader(BaseModel):
    """Column names of one export table."""

    table: str
    columns: list[str]
