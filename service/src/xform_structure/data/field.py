import weakref
from typing import Iterator

from ..model.field import INDEX_TEMPLATE, DataType

AttributeKey = tuple[str | None, str]


class FieldNode:
    """One element of a parsed form instance.

    Children are owned by their parent; the parent link is a weak
    reference so that the tree has a single owner and no cycles.
    """

    def __init__(
        self,
        name: str | None,
        data_type: DataType = DataType.NULL,
        repeatable: bool = False,
        multiplicity: int = 0,
        choices: list[str] | None = None,
        instance_attributes: dict[AttributeKey, str] | None = None,
    ) -> None:
        self.__name = name
        self.__data_type = data_type
        self.__repeatable = repeatable
        self.__multiplicity = multiplicity
        self.__choices = tuple(choices) if choices is not None else None
        self.__instance_attributes = dict(instance_attributes or {})
        self.__children: list[FieldNode] = []
        self.__parent: weakref.ref | None = None

    def __str__(self) -> str:
        return f"(name={self.name}, type={self.data_type}, repeatable={self.repeatable}, mult={self.multiplicity})"

    def __repr__(self) -> str:
        return str(self)

    @property
    def name(self) -> str | None:
        return self.__name

    @property
    def data_type(self) -> DataType:
        return self.__data_type

    @property
    def repeatable(self) -> bool:
        return self.__repeatable

    @property
    def multiplicity(self) -> int:
        return self.__multiplicity

    @property
    def is_template(self) -> bool:
        return self.__multiplicity == INDEX_TEMPLATE

    @property
    def choices(self) -> tuple[str, ...] | None:
        return self.__choices

    @property
    def instance_attributes(self) -> dict[AttributeKey, str]:
        return dict(self.__instance_attributes)

    def attribute(self, namespace: str | None, name: str) -> str | None:
        return self.__instance_attributes.get((namespace or None, name))

    @property
    def children(self) -> tuple["FieldNode", ...]:
        return tuple(self.__children)

    @property
    def parent(self) -> "FieldNode | None":
        return self.__parent() if self.__parent is not None else None

    def add_child(self, child: "FieldNode") -> "FieldNode":
        child.__parent = weakref.ref(self)
        self.__children.append(child)
        return child

    def children_named(self, name: str) -> list["FieldNode"]:
        return [c for c in self.__children if c.name == name]

    def ancestors(self) -> Iterator["FieldNode"]:
        current = self.parent
        while current is not None:
            yield current
            current = current.parent

    @property
    def path(self) -> str:
        """Absolute instance path, e.g. ``/data/group/field``."""
        names = [self.name] + [a.name for a in self.ancestors() if a.name is not None]
        return "/" + "/".join(reversed(names))
