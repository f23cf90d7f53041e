"""Submission values for export, aligned with :meth:`FieldModel.names`.

Every mapper returns exactly as many ``(name, value)`` pairs as the field
has column names, whether or not the submission carries the field.
"""

import logging
import shutil
from typing import Callable

from ..data.submission import SubmissionElement
from ..model.export import ExportRow, MediaContext
from ..model.field import DataType
from .model import FieldModel

logger = logging.getLogger(__name__)

Pair = tuple[str, str]
FieldMapper = Callable[[FieldModel, SubmissionElement | None, MediaContext, int], list[Pair]]
ValueTransform = Callable[[SubmissionElement], str]


def text_value(element: SubmissionElement) -> str:
    return element.value


DEFAULT_TRANSFORMS: dict[DataType, ValueTransform] = {data_type: text_value for data_type in DataType}


def empty(model: FieldModel, shift: int = 0) -> list[Pair]:
    return [(name, "") for name in model.names(shift)]


def child_key(parent_key: str | None, segment: str) -> str:
    return "/".join(p for p in (parent_key, segment) if p)


def simple_mapper(transform: ValueTransform) -> FieldMapper:
    def mapper(model, element, context, shift=0):
        if element is None:
            return empty(model, shift)
        return [(model.fqn(shift), transform(element))]

    return mapper


def choice_mapper() -> FieldMapper:
    def mapper(model, element, context, shift=0):
        base_name = model.fqn(shift)
        raw = element.value if element is not None else ""
        selections = set(raw.split()) if element is not None else {""}
        pairs = [(base_name, raw)]
        for choice in model.choices:
            pairs.append((f"{base_name}/{choice}", "1" if choice in selections else "0"))
        return pairs

    return mapper


def geopoint_mapper() -> FieldMapper:
    def mapper(model, element, context, shift=0):
        if element is None:
            return empty(model, shift)
        parts = element.value.split()
        names = model.names(shift)
        return [(name, parts[i] if i < len(parts) else "") for i, name in enumerate(names)]

    return mapper


def binary_mapper() -> FieldMapper:
    def mapper(model, element, context, shift=0):
        name = model.fqn(shift)
        if element is None or not element.value:
            return [(name, "")]
        file_name = element.value
        if not context.export_media:
            return [(name, file_name)]
        source = context.working_dir / file_name
        if not source.is_file():
            logger.warning("media file %s of field %s not found in %s", file_name, name, context.working_dir)
            return [(name, file_name)]

        target_dir = context.media_dir
        target = target_dir / file_name
        if not target.exists() or target.stat().st_size != source.stat().st_size:
            target_dir.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, target)
            logger.debug("copied %s to %s", source, target)
        return [(name, f"{target_dir.name}/{file_name}")]

    return mapper


def repeat_mapper() -> FieldMapper:
    def mapper(model, element, context, shift=0):
        name = model.names(shift)[0]
        if element is None:
            return [(name, "")]
        return [(name, child_key(context.local_id, model.fqn()))]

    return mapper


def group_mapper(transforms: dict[DataType, ValueTransform] | None = None) -> FieldMapper:
    def mapper(model, element, context, shift=0):
        def map_child(child: FieldModel) -> list[Pair]:
            child_element = element.find_element(child.name) if element is not None else None
            return map_value(child, child_element, context, shift, transforms)

        return model.flat_map(map_child)

    return mapper


def mapper_for(model: FieldModel, transforms: dict[DataType, ValueTransform] | None = None) -> FieldMapper:
    match model.data_type:
        case DataType.GEOPOINT:
            return geopoint_mapper()
        case DataType.CHOICE_LIST:
            return choice_mapper()
        case DataType.BINARY:
            return binary_mapper()
        case DataType.NULL if model.is_repeatable:
            return repeat_mapper()
        case DataType.NULL if not model.is_empty:
            return group_mapper(transforms)
        case (
            DataType.NULL
            | DataType.TEXT
            | DataType.INTEGER
            | DataType.DECIMAL
            | DataType.DATE
            | DataType.DATETIME
            | DataType.TIME
            | DataType.GEOSHAPE
            | DataType.GEOTRACE
            | DataType.CHOICE_SINGLE
            | DataType.BARCODE
        ):
            transform = (transforms or {}).get(model.data_type) or DEFAULT_TRANSFORMS[model.data_type]
            return simple_mapper(transform)


def map_value(
    model: FieldModel,
    element: SubmissionElement | None,
    context: MediaContext,
    shift: int = 0,
    transforms: dict[DataType, ValueTransform] | None = None,
) -> list[Pair]:
    return mapper_for(model, transforms)(model, element, context, shift)


def map_submission(
    root: FieldModel,
    submission: SubmissionElement,
    context: MediaContext,
    transforms: dict[DataType, ValueTransform] | None = None,
) -> ExportRow:
    """Main table row of one submission."""
    if context.local_id is None:
        context = context.model_copy(update={"local_id": submission.local_id})
    return ExportRow(
        table=root.name,
        key=context.local_id,
        values=map_value(root, submission, context, 0, transforms),
    )


Occurrence = tuple[SubmissionElement, str | None, str | None]


def _occurrences(model: FieldModel, submission: SubmissionElement, root_key: str | None) -> list[Occurrence]:
    """Submission elements of a field as (element, key, parent key).

    Every repeat occurrence extends the key of the occurrence it sits in, so
    keys stay unique across nested repeats.
    """
    parent = model.parent
    if parent is None or parent.is_root():
        scopes: list[Occurrence] = [(submission, root_key, None)]
    else:
        scopes = _occurrences(parent, submission, root_key)

    found: list[Occurrence] = []
    for element, key, parent_key in scopes:
        if model.is_repeatable:
            for index, occurrence in enumerate(element.find_elements(model.name), start=1):
                found.append((occurrence, child_key(key, f"{model.fqn()}[{index}]"), key))
        else:
            child = element.find_element(model.name)
            if child is not None:
                found.append((child, key, parent_key))
    return found


def map_repeat(
    repeat: FieldModel,
    submission: SubmissionElement,
    context: MediaContext,
    transforms: dict[DataType, ValueTransform] | None = None,
) -> list[ExportRow]:
    """One row per occurrence of a repeat group within a submission.

    A row's ``parent_key`` is the key of the row holding its
    ``SET-OF-`` column, whose value is ``{parent_key}/{fqn}``.
    """
    shift = repeat.count_ancestors()
    rows = []
    for occurrence, key, parent_key in _occurrences(repeat, submission, context.local_id or submission.local_id):
        row_context = context.model_copy(update={"local_id": key})

        def map_child(child: FieldModel) -> list[Pair]:
            return map_value(child, occurrence.find_element(child.name), row_context, shift, transforms)

        rows.append(
            ExportRow(
                table=repeat.fqn(),
                key=key,
                parent_key=parent_key,
                values=repeat.flat_map(map_child),
            )
        )
    return rows
