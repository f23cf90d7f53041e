"""XForm definition parser.

Builds the field tree the export and comparison code consume. Only the
parts of an XForm that affect storage are read: the primary instance, the
bind declarations, the body controls (for repeats, choices and control
driven types), the title and the submission profile.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Iterator

from lxml import etree

from ..consts import NAMESPACE_JAVAROSA, NAMESPACE_PREFIXES, NODESET_ATTR, TYPE_ATTR
from ..data.field import AttributeKey, FieldNode
from ..errors import IncompleteSubmissionData, Reason
from ..model.field import INDEX_TEMPLATE, DataType

logger = logging.getLogger(__name__)

BIND_TYPES = {
    "string": DataType.TEXT,
    "int": DataType.INTEGER,
    "integer": DataType.INTEGER,
    "long": DataType.INTEGER,
    "decimal": DataType.DECIMAL,
    "date": DataType.DATE,
    "datetime": DataType.DATETIME,
    "time": DataType.TIME,
    "geopoint": DataType.GEOPOINT,
    "geoshape": DataType.GEOSHAPE,
    "geotrace": DataType.GEOTRACE,
    "select1": DataType.CHOICE_SINGLE,
    "select": DataType.CHOICE_LIST,
    "binary": DataType.BINARY,
    "barcode": DataType.BARCODE,
}

CONTROL_TYPES = {
    "select": DataType.CHOICE_LIST,
    "select1": DataType.CHOICE_SINGLE,
    "upload": DataType.BINARY,
}

CONTROLS = {"input", "select", "select1", "upload", "trigger", "range", "rank", "secret"}


class ParserRuntime:
    """Process wide parser state.

    Creating the runtime registers the XForm namespace prefixes with lxml.
    That registration mutates global lxml state, so it happens exactly once,
    under a lock, the first time :meth:`get` is called.
    """

    _instance: "ParserRuntime | None" = None
    _lock = threading.Lock()

    def __init__(self) -> None:
        for prefix, uri in NAMESPACE_PREFIXES.items():
            etree.register_namespace(prefix, uri)
        self.__bind_types = dict(BIND_TYPES)
        logger.debug("registered %d XForm namespaces", len(NAMESPACE_PREFIXES))

    @classmethod
    def get(cls) -> "ParserRuntime":
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    def new_parser(self) -> etree.XMLParser:
        # lxml parsers must not be shared between threads
        return etree.XMLParser(
            resolve_entities=False, no_network=True, remove_comments=True
        )

    def data_type(self, bind_type: str | None) -> DataType | None:
        if not bind_type:
            return None
        return self.__bind_types.get(bind_type.split(":")[-1].strip().lower())


@dataclass(frozen=True)
class SubmissionProfile:
    action: str | None
    method: str | None
    ref: str | None
    attributes: dict[str, str] = field(default_factory=dict)

    def attribute(self, name: str) -> str | None:
        return self.attributes.get(name)


@dataclass
class ParsedForm:
    base: FieldNode
    bindings: list[dict[AttributeKey, str]]
    title: str | None
    schema: str | None
    submission: SubmissionProfile | None

    @property
    def root(self) -> FieldNode:
        return self.base.children[0]

    def resolve_reference(self, ref: str | None) -> FieldNode | None:
        """Resolve an absolute instance reference like ``/data/group``."""
        if not ref:
            return None
        current = self.base
        for step in _path_steps(ref):
            matches = current.children_named(step)
            if not matches:
                return None
            current = matches[0]
        return current if current is not self.base else None


def _local(element) -> str:
    return etree.QName(element).localname


def _elements(parent) -> Iterator:
    for child in parent:
        if isinstance(child.tag, str):
            yield child


def _first(parent, localname: str):
    for child in _elements(parent):
        if _local(child) == localname:
            return child
    return None


def _attribute_key(qualified: str) -> AttributeKey:
    qname = etree.QName(qualified)
    return (qname.namespace or None, qname.localname)


def _path_steps(path: str) -> list[str]:
    steps = []
    for step in path.split("/"):
        step = step.split("[", 1)[0].strip()
        if not step or step == ".":
            continue
        if step == "..":
            if steps:
                steps.pop()
            continue
        # instance paths ignore namespace prefixes
        steps.append(step.split(":")[-1])
    return steps


def _resolve(ref: str, context: str) -> str:
    ref = ref.strip()
    base = "" if ref.startswith("/") else context
    return "/" + "/".join(_path_steps(base + "/" + ref))


class _Body:
    """Repeat paths and control information collected from the form body."""

    def __init__(self, bind_ids: dict[str, str]) -> None:
        self.bind_ids = bind_ids
        self.repeats: set[str] = set()
        self.controls: dict[str, tuple[str, list[str] | None]] = {}

    def _ref(self, element, *names: str) -> str | None:
        for name in names:
            value = element.get(name)
            if value:
                return value
        bind_id = element.get("bind")
        if bind_id:
            return self.bind_ids.get(bind_id)
        return None

    def walk(self, element, context: str) -> None:
        for child in _elements(element):
            localname = _local(child)
            if localname in ("group", "repeat"):
                ref = self._ref(child, NODESET_ATTR, "ref")
                path = _resolve(ref, context) if ref else context
                if localname == "repeat":
                    self.repeats.add(path.lower())
                self.walk(child, path)
            elif localname in CONTROLS:
                ref = self._ref(child, "ref")
                if ref:
                    path = _resolve(ref, context)
                    self.controls.setdefault(path.lower(), (localname, self._choices(child)))

    @staticmethod
    def _choices(control) -> list[str] | None:
        if _local(control) not in ("select", "select1"):
            return None
        choices = []
        for item in _elements(control):
            if _local(item) != "item":
                continue
            value = _first(item, "value")
            if value is not None and value.text is not None:
                choices.append(value.text.strip())
        return choices


class _TreeBuilder:
    def __init__(self, runtime: ParserRuntime, bind_types: dict[str, str], body: _Body) -> None:
        self.runtime = runtime
        self.bind_types = bind_types
        self.body = body

    @staticmethod
    def _is_template(element) -> bool:
        return element.get(f"{{{NAMESPACE_JAVAROSA}}}template") is not None

    def _data_type(self, element, path: str) -> DataType:
        if next(_elements(element), None) is not None:
            return DataType.NULL
        bound = self.runtime.data_type(self.bind_types.get(path.lower()))
        if bound is not None:
            return bound
        control = self.body.controls.get(path.lower())
        if control is not None and control[0] in CONTROL_TYPES:
            return CONTROL_TYPES[control[0]]
        return DataType.TEXT

    def build(self, element, parent: FieldNode, parent_path: str, repeatable: bool, multiplicity: int) -> FieldNode:
        name = _local(element)
        path = f"{parent_path}/{name}"
        data_type = self._data_type(element, path)

        choices = None
        if data_type in (DataType.CHOICE_SINGLE, DataType.CHOICE_LIST):
            control = self.body.controls.get(path.lower())
            choices = (control[1] if control else None) or []

        attributes = {}
        for qualified, value in element.attrib.items():
            key = _attribute_key(qualified)
            if key == (NAMESPACE_JAVAROSA, "template"):
                continue
            attributes[key] = value

        node = parent.add_child(
            FieldNode(
                name,
                data_type=data_type,
                repeatable=repeatable,
                multiplicity=multiplicity,
                choices=choices,
                instance_attributes=attributes,
            )
        )
        self.build_children(element, node, path)
        return node

    def build_children(self, element, node: FieldNode, path: str) -> None:
        children = list(_elements(element))
        seen: dict[str, int] = {}
        handled_repeats: set[str] = set()
        for child in children:
            name = _local(child)
            child_path = f"{path}/{name}"
            same_name = [c for c in children if _local(c) == name]
            repeatable = child_path.lower() in self.body.repeats or any(
                self._is_template(c) for c in same_name
            )
            if not repeatable:
                self.build(child, node, path, False, seen.get(name, 0))
                seen[name] = seen.get(name, 0) + 1
                continue
            if name in handled_repeats:
                continue
            handled_repeats.add(name)

            # template first, then one numbered copy per real occurrence
            template = next((c for c in same_name if self._is_template(c)), same_name[0])
            self.build(template, node, path, True, INDEX_TEMPLATE)
            occurrences = [c for c in same_name if not self._is_template(c)]
            for index, occurrence in enumerate(occurrences):
                self.build(occurrence, node, path, True, index)


def _bind_attributes(bind) -> dict[AttributeKey, str]:
    return {_attribute_key(q): v for q, v in bind.attrib.items()}


def _submission(model, bind_ids: dict[str, str]) -> SubmissionProfile | None:
    element = _first(model, "submission")
    if element is None:
        return None
    attributes = {etree.QName(q).localname: v for q, v in element.attrib.items()}
    ref = attributes.get("ref")
    if not ref and attributes.get("bind"):
        ref = bind_ids.get(attributes["bind"])
    return SubmissionProfile(
        action=attributes.get("action"),
        method=attributes.get("method"),
        ref=_resolve(ref, "") if ref else None,
        attributes=attributes,
    )


def parse_xform(xml: str | bytes) -> ParsedForm:
    """Parse the text of an XForm definition.

    Raises:
        IncompleteSubmissionData: BAD_PARSE when the text is not XML or
            lacks a usable model/instance.
    """
    runtime = ParserRuntime.get()
    data = xml.encode("utf-8") if isinstance(xml, str) else xml
    try:
        document = etree.fromstring(data, parser=runtime.new_parser())
    except (etree.XMLSyntaxError, ValueError) as e:
        logger.error("failed to parse form definition: %s", e)
        raise IncompleteSubmissionData(Reason.BAD_PARSE, str(e)) from e

    head = _first(document, "head")
    model = _first(head, "model") if head is not None else None
    if model is None:
        model = next((e for e in document.iter() if isinstance(e.tag, str) and _local(e) == "model"), None)
    if model is None:
        raise IncompleteSubmissionData(Reason.BAD_PARSE, "form definition has no model")

    instance = next(
        (e for e in _elements(model) if _local(e) == "instance" and e.get("id") is None),
        None,
    )
    root_element = next(_elements(instance), None) if instance is not None else None
    if root_element is None:
        raise IncompleteSubmissionData(Reason.BAD_PARSE, "form definition has no primary instance")

    bindings = []
    bind_ids: dict[str, str] = {}
    bind_types: dict[str, str] = {}
    for bind in (e for e in _elements(model) if _local(e) == "bind"):
        attributes = _bind_attributes(bind)
        bindings.append(attributes)
        nodeset = bind.get(NODESET_ATTR)
        if not nodeset:
            continue
        nodeset = _resolve(nodeset, "")
        if bind.get("id"):
            bind_ids[bind.get("id")] = nodeset
        if bind.get(TYPE_ATTR) and nodeset.lower() not in bind_types:
            bind_types[nodeset.lower()] = bind.get(TYPE_ATTR)

    body = _Body(bind_ids)
    body_element = _first(document, "body")
    if body_element is not None:
        body.walk(body_element, "/" + _local(root_element))

    base = FieldNode(None)
    _TreeBuilder(runtime, bind_types, body).build(root_element, base, "", False, 0)

    title_element = _first(head, "title") if head is not None else None
    title = title_element.text.strip() if title_element is not None and title_element.text else None

    return ParsedForm(
        base=base,
        bindings=bindings,
        title=title,
        schema=etree.QName(root_element).namespace,
        submission=_submission(model, bind_ids),
    )
