import argparse
import logging
import sys
from pathlib import Path

from .comparator import compare_forms
from .data.config import ToolConfig
from .data.form import FormDefinition
from .data.submission import parse_submission
from .errors import IncompleteSubmissionData, InitializationError
from .export.field_mapper import map_repeat, map_submission
from .export.model import FieldModel, export_headers
from .model.error import Error as ErrorModel

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="xform_structure",
        description="Export column names and structural comparison of XForm definitions",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="JSON or YAML configuration file",
    )

    subparsers = parser.add_subparsers(dest="cmd", required=True)

    parser_header = subparsers.add_parser("header", help="print the export headers of a form")
    parser_header.add_argument("form", type=Path, help="The XForm definition")

    parser_compare = subparsers.add_parser("compare", help="compare two versions of a form")
    parser_compare.add_argument("incoming", type=Path, help="The updated XForm definition")
    parser_compare.add_argument("existing", type=Path, help="The stored XForm definition")
    parser_compare.add_argument("--title", default=None, help="Title to use if the stored definition has none")
    parser_compare.add_argument(
        "--allow-legacy",
        action="store_true",
        help="Accept a malformed instance namespace as form id",
    )
    parser_compare.add_argument(
        "--details",
        action="store_true",
        help="Print the full comparison report as JSON",
    )

    parser_export = subparsers.add_parser("export", help="print the export rows of submissions")
    parser_export.add_argument("form", type=Path, help="The XForm definition")
    parser_export.add_argument("submissions", type=Path, nargs="+", help="Submission instance files")
    parser_export.add_argument(
        "--export-media",
        action="store_true",
        help="Copy media files next to the export",
    )

    return parser


def _header(args, config: ToolConfig) -> int:
    form = FormDefinition(args.form.read_text(encoding="utf-8"), config.compare.existing_title)
    for header in export_headers(FieldModel.of(form)):
        print(header.model_dump_json())
    return 0


def _compare(args, config: ToolConfig) -> int:
    report = compare_forms(
        args.incoming.read_text(encoding="utf-8"),
        args.existing.read_text(encoding="utf-8"),
        existing_title=args.title or config.compare.existing_title,
        allow_legacy=args.allow_legacy or config.compare.allow_legacy,
    )
    if args.details:
        print(report.model_dump_json(indent=2))
    else:
        print(report.result)
    return 0 if report.result.accepts_update else 1


def _export(args, config: ToolConfig) -> int:
    form = FormDefinition(args.form.read_text(encoding="utf-8"), config.compare.existing_title)
    root = FieldModel.of(form)
    export_config = config.export
    if args.export_media:
        export_config = export_config.model_copy(update={"export_media": True})

    for path in args.submissions:
        submission = parse_submission(path.read_bytes())
        context = export_config.media_context(submission.local_id)
        if context.working_dir == Path("."):
            context = context.model_copy(update={"working_dir": path.parent})
        rows = [map_submission(root, submission, context)]
        for repeat in root.repeatable_fields():
            rows.extend(map_repeat(repeat, submission, context))
        for row in rows:
            print(row.model_dump_json())
    return 0


COMMANDS = {
    "header": _header,
    "compare": _compare,
    "export": _export,
}


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = ToolConfig.from_file(args.config) if args.config else ToolConfig()
        logging.basicConfig(
            level=config.log_level.upper(),
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )
        return COMMANDS[args.cmd](args, config)

    except (IncompleteSubmissionData, InitializationError, OSError) as e:
        logger.debug("command %s failed", args.cmd, exc_info=True)
        print(ErrorModel.from_except(e).model_dump_json())
        return 2


if __name__ == "__main__":
    sys.exit(main())
