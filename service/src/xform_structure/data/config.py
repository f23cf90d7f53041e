import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ValidationError

from ..errors import InitializationError
from ..model.export import MediaContext

logger = logging.getLogger(__name__)


class ExportConfig(BaseModel):
    working_dir: Path = Path(".")
    export_media: bool = False
    export_media_dir: Path | None = None

    def media_context(self, local_id: str | None = None) -> MediaContext:
        return MediaContext(
            working_dir=self.working_dir,
            export_media=self.export_media,
            export_media_dir=self.export_media_dir,
            local_id=local_id,
        )


class CompareConfig(BaseModel):
    allow_legacy: bool = False
    existing_title: str | None = None


class ToolConfig(BaseModel):
    log_level: str = "INFO"
    export: ExportConfig = ExportConfig()
    compare: CompareConfig = CompareConfig()

    @staticmethod
    def from_file(file: str | Path) -> "ToolConfig":
        file = Path(file)

        try:
            content = file.read_text(encoding="utf-8")
            suffix = file.suffix.lower()
            if suffix == ".json":
                config = ToolConfig.model_validate_json(content)
            elif suffix in (".yaml", ".yml"):
                data = yaml.safe_load(content)  # empty file -> None
                config = ToolConfig.model_validate(data if isinstance(data, dict) else {})
            else:
                raise InitializationError(f"unsupported config format '{file.suffix}'")

        except (OSError, yaml.YAMLError) as e:
            msg = f"failed to read config from {str(file)}"
            logger.error(msg)
            logger.exception(e)
            raise InitializationError(msg) from e

        except ValidationError as e:
            msg = f"failed to load config from {str(file)}"
            logger.error(msg)
            logger.error(e.errors())
            raise InitializationError(msg) from e

        else:
            # relative paths are relative to the config file
            export = config.export
            if not export.working_dir.is_absolute():
                export.working_dir = file.parent / export.working_dir
            if export.export_media_dir is not None and not export.export_media_dir.is_absolute():
                export.export_media_dir = file.parent / export.export_media_dir
            return config
