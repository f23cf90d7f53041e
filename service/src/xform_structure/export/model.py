"""Export naming over a form's field tree."""

from typing import Callable, Iterator, TypeVar

from ..consts import GEOPOINT_SUFFIXES, REPEAT_GROUP_PREFIX
from ..data.field import FieldNode
from ..model.field import DataType, FieldHeader

T = TypeVar("T")


def _top(node: FieldNode) -> FieldNode:
    for ancestor in node.ancestors():
        node = ancestor
    return node


class FieldModel:
    """One level of a form's model, the root or any of its fields.

    Column names are derived from the fully qualified name (FQN): the names
    of the node and its ancestors below the declared instance root, joined
    with ``-``.

    Without an owner the model holds on to the topmost node still reachable
    from ``node``. :meth:`of` keeps the parsed form itself alive.
    """

    def __init__(self, node: FieldNode, owner: object = None) -> None:
        self.__node = node
        # parent links are weak; the owner keeps the whole tree alive
        self.__owner = owner if owner is not None else _top(node)

    @classmethod
    def of(cls, form) -> "FieldModel":
        """Model of the root of a parsed form or form definition."""
        return cls(form.root, owner=form)

    def __str__(self) -> str:
        return f"(fqn={self.fqn()}, type={self.data_type}, repeatable={self.is_repeatable})"

    def __repr__(self) -> str:
        return str(self)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, FieldModel) and other.node is self.node

    def __hash__(self) -> int:
        return id(self.__node)

    @property
    def node(self) -> FieldNode:
        return self.__node

    @property
    def name(self) -> str:
        return self.__node.name

    @property
    def data_type(self) -> DataType:
        return self.__node.data_type

    @property
    def is_repeatable(self) -> bool:
        return self.__node.repeatable

    @property
    def is_empty(self) -> bool:
        return len(self.__node.children) == 0

    @property
    def choices(self) -> list[str]:
        return list(self.__node.choices or [])

    @property
    def parent(self) -> "FieldModel | None":
        parent = self.__node.parent
        return FieldModel(parent, self.__owner) if parent is not None else None

    def fqn(self, shift: int = 0) -> str:
        names = []
        current = self.__node
        # the synthetic wrapper has no name, the declared root stops the walk
        while current.parent is not None and current.parent.name is not None:
            names.append(current.name)
            current = current.parent
        names.reverse()
        return "-".join(names[shift:])

    def names(self, shift: int = 0) -> list[str]:
        """Export column names of this field, in column order."""
        fqn = self.fqn(shift)
        match self.data_type:
            case DataType.GEOPOINT:
                return [f"{fqn}-{suffix}" for suffix in GEOPOINT_SUFFIXES]
            case DataType.CHOICE_LIST:
                return [fqn] + [f"{fqn}/{choice}" for choice in self.choices]
            case DataType.NULL if self.is_repeatable:
                return [REPEAT_GROUP_PREFIX + fqn]
            case DataType.NULL if not self.is_empty:
                return self.flat_map(lambda child: child.names(shift))
            case _:
                return [fqn]

    def children(self) -> list["FieldModel"]:
        """Children without duplicates, first occurrence of every FQN wins.

        Repeat groups appear twice in the tree (template and numbered
        instance); this keeps only the template, which comes first.
        """
        seen: set[str] = set()
        children = []
        for node in self.__node.children:
            child = FieldModel(node, self.__owner)
            fqn = child.fqn()
            if fqn not in seen:
                seen.add(fqn)
                children.append(child)
        return children

    def flat_map(self, mapper: Callable[["FieldModel"], list[T]]) -> list[T]:
        result: list[T] = []
        for child in self.children():
            result.extend(mapper(child))
        return result

    def for_each(self, consumer: Callable[["FieldModel"], None]) -> None:
        for child in self.children():
            consumer(child)

    def _flatten(self) -> Iterator["FieldModel"]:
        for child in self.children():
            yield child
            if not child.is_empty:
                yield from child._flatten()

    def repeatable_fields(self) -> list["FieldModel"]:
        """All repeat groups below this field, depth-first pre-order."""
        return [
            f for f in self._flatten()
            if f.data_type == DataType.NULL and f.is_repeatable
        ]

    def count_ancestors(self) -> int:
        # the unnamed wrapper above the declared root does not count
        return sum(1 for a in self.__node.ancestors() if a.name is not None)

    def is_root(self) -> bool:
        return self.name is not None and self.count_ancestors() == 0


def repeat_header(repeat: FieldModel) -> list[str]:
    """Column names of a repeat group's own export table."""
    shift = repeat.count_ancestors()
    return repeat.flat_map(lambda child: child.names(shift))


def export_headers(root: FieldModel) -> list[FieldHeader]:
    """Main table header followed by one header per repeat group."""
    headers = [FieldHeader(table=root.name, columns=root.names())]
    for repeat in root.repeatable_fields():
        headers.append(FieldHeader(table=repeat.fqn(), columns=repeat_header(repeat)))
    return headers
