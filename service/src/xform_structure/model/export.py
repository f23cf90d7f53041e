from pathlib import Path

from pydantic import BaseModel


class MediaContext(BaseModel):
    """Where submission media lives and where exported media goes."""

    working_dir: Path = Path(".")
    export_media: bool = False
    export_media_dir: Path | None = None
    local_id: str | None = None

    @property
    def media_dir(self) -> Path:
        return self.export_media_dir if self.export_media_dir is not None else self.working_dir / "media"


class ExportRow(BaseModel):
    table: str
    values: list[tuple[str, str]]
    # key of this row, joined by child rows through parent_key
    key: str | None = None
    parent_key: str | None = None
