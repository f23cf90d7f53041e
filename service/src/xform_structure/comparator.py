"""Structural comparison of two versions of a form definition.

Decides whether an updated definition can keep using the storage of the
existing one. Differences are classified as small (storage shape kept) or
big (storage shape changes); big wins.
"""

import logging
from dataclasses import dataclass

from .consts import (
    BASE64_RSA_PUBLIC_KEY,
    CHANGEABLE_BIND_ATTRIBUTES,
    INTERCHANGEABLE_BIND_TYPES,
    NODESET_ATTR,
    NONCHANGEABLE_INSTANCE_ATTRIBUTES,
    TYPE_ATTR,
)
from .data.field import AttributeKey, FieldNode
from .data.form import FormDefinition
from .errors import IncompleteSubmissionData, Reason
from .model.comparison import (
    ComparisonReport,
    DifferenceKind,
    DifferenceResult,
    Severity,
    StructuralDifference,
)

logger = logging.getLogger(__name__)

Bindings = list[dict[AttributeKey, str]]


@dataclass(frozen=True)
class NodeComparison:
    """Outcome of comparing one pair of nodes."""

    severity: Severity = Severity.NONE
    differences: tuple[StructuralDifference, ...] = ()

    @staticmethod
    def of(path: str, kind: DifferenceKind, severity: Severity, detail: str | None = None) -> "NodeComparison":
        difference = StructuralDifference(path=path, kind=kind, severity=severity, detail=detail)
        return NodeComparison(severity, (difference,))

    def merge(self, other: "NodeComparison") -> "NodeComparison":
        return NodeComparison(max(self.severity, other.severity), self.differences + other.differences)

    @property
    def result(self) -> DifferenceResult:
        if self.severity == Severity.BIG:
            return DifferenceResult.DIFFERENT
        if self.severity == Severity.SMALL:
            return DifferenceResult.SHARE_SCHEMA
        return DifferenceResult.SHARE_INSTANCE


def qualified_name(key: AttributeKey) -> str:
    namespace, name = key
    return f"{namespace}:{name}" if namespace else name


def _merge_all(comparisons) -> NodeComparison:
    merged = NodeComparison()
    for comparison in comparisons:
        merged = merged.merge(comparison)
    return merged


def _instance_attribute_severity(key: AttributeKey) -> Severity:
    # instance attributes may change unless listed
    if qualified_name(key).lower() in NONCHANGEABLE_INSTANCE_ATTRIBUTES:
        return Severity.BIG
    return Severity.SMALL


def _bind_attribute_severity(key: AttributeKey) -> Severity:
    # bind attributes may not change unless listed
    if qualified_name(key).lower() in CHANGEABLE_BIND_ATTRIBUTES:
        return Severity.SMALL
    return Severity.BIG


def compare_instance_attributes(node1: FieldNode, node2: FieldNode) -> NodeComparison:
    comparisons = []
    for key, value1 in node1.instance_attributes.items():
        value2 = node2.attribute(*key)
        if value1 != value2:
            comparisons.append(
                NodeComparison.of(
                    node1.path,
                    DifferenceKind.INSTANCE_ATTRIBUTE,
                    _instance_attribute_severity(key),
                    f"{qualified_name(key)}: {value1!r} -> {value2!r}",
                )
            )
    for key, value2 in node2.instance_attributes.items():
        if node1.attribute(*key) is None:
            comparisons.append(
                NodeComparison.of(
                    node1.path,
                    DifferenceKind.INSTANCE_ATTRIBUTE,
                    _instance_attribute_severity(key),
                    f"{qualified_name(key)}: None -> {value2!r}",
                )
            )
    return _merge_all(comparisons)


def _binding_value(bindings: Bindings, key: AttributeKey) -> str | None:
    for binding in bindings:
        value = binding.get(key)
        if value is not None:
            return value
    return None


def _is_interchangeable_type(key: AttributeKey, value1: str, value2: str | None) -> bool:
    if qualified_name(key).lower() != TYPE_ATTR or value2 is None:
        return False
    return {value1.lower(), value2.lower()} == INTERCHANGEABLE_BIND_TYPES


def compare_bindings(path: str, bindings1: Bindings, bindings2: Bindings) -> NodeComparison:
    comparisons = []
    for binding in bindings1:
        for key, value1 in binding.items():
            if qualified_name(key).lower() == NODESET_ATTR:
                continue
            value2 = _binding_value(bindings2, key)
            if value1 == value2:
                continue
            if _is_interchangeable_type(key, value1, value2):
                severity = Severity.SMALL
            else:
                severity = _bind_attribute_severity(key)
            comparisons.append(
                NodeComparison.of(
                    path,
                    DifferenceKind.BIND_ATTRIBUTE,
                    severity,
                    f"{qualified_name(key)}: {value1!r} -> {value2!r}",
                )
            )
    for binding in bindings2:
        for key, value2 in binding.items():
            if qualified_name(key).lower() == NODESET_ATTR:
                continue
            if _binding_value(bindings1, key) is None:
                comparisons.append(
                    NodeComparison.of(
                        path,
                        DifferenceKind.BIND_ATTRIBUTE,
                        _bind_attribute_severity(key),
                        f"{qualified_name(key)}: None -> {value2!r}",
                    )
                )
    return _merge_all(comparisons)


def _without_repeat_instances(node: FieldNode, side: str) -> list[FieldNode]:
    # a repeat without jr:template is present as instance [0] and as template
    children = []
    for child in node.children:
        if child.repeatable:
            if not child.is_template:
                logger.debug("%s: dropping %s", side, child.name)
                continue
            logger.debug("%s: retaining %s", side, child.name)
        children.append(child)
    return children


def compare_children(node1: FieldNode, form1: FormDefinition, node2: FieldNode, form2: FormDefinition) -> NodeComparison:
    comparisons = []
    children1 = _without_repeat_instances(node1, "incoming")

    # only the existing side is checked for ambiguous names
    children2: dict[str, FieldNode] = {}
    for child in _without_repeat_instances(node2, "existing"):
        if child.name in children2:
            comparisons.append(
                NodeComparison.of(child.path, DifferenceKind.DUPLICATE_CHILD, Severity.BIG, child.name)
            )
        children2[child.name] = child

    if len(children1) != len(children2):
        comparisons.append(
            NodeComparison.of(
                node1.path,
                DifferenceKind.CHILD_COUNT,
                Severity.BIG,
                f"{len(children1)} != {len(children2)}",
            )
        )
        return _merge_all(comparisons)

    for child1 in children1:
        child2 = children2.get(child1.name)
        if child2 is None:
            comparisons.append(
                NodeComparison.of(child1.path, DifferenceKind.MISSING_CHILD, Severity.BIG, child1.name)
            )
            continue
        child = compare_nodes(child1, form1, child2, form2)
        match child.result:
            case DifferenceResult.SHARE_SCHEMA:
                severity = Severity.SMALL
            case DifferenceResult.DIFFERENT:
                severity = Severity.BIG
            case _:
                severity = Severity.NONE
        comparisons.append(NodeComparison(severity, child.differences))
    return _merge_all(comparisons)


def compare_nodes(node1: FieldNode, form1: FormDefinition, node2: FieldNode, form2: FormDefinition) -> NodeComparison:
    """Compare two instance nodes together with their bindings and children.

    Returns:
        NodeComparison whose ``result`` is SHARE_INSTANCE, SHARE_SCHEMA or
        DIFFERENT for this pair of subtrees.
    """
    comparisons = []
    if node1.name != node2.name:
        comparisons.append(
            NodeComparison.of(node1.path, DifferenceKind.NAME, Severity.BIG, f"{node1.name} != {node2.name}")
        )
    comparisons.append(compare_instance_attributes(node1, node2))
    comparisons.append(compare_bindings(node1.path, form1.bindings_for(node1), form2.bindings_for(node2)))
    comparisons.append(compare_children(node1, form1, node2, form2))
    return _merge_all(comparisons)


def is_earlier_version(incoming: str, existing: str | None) -> bool:
    """Whether ``incoming`` fails to advance past ``existing``.

    An existing definition without a version accepts any version. Purely
    numeric versions compare by value, and the same value may only gain
    leading zeros (``"1"`` -> ``"01"``). Anything else compares as text:
    equal is accepted, otherwise the incoming version must sort later.

    OpenRosa versions are string based and the recommended format is
    ``yyyymmddnn``, which sorts the same either way. Numeric tokens do not
    follow text order, under which ``"2"`` -> ``"10"`` would be rejected.
    """
    if existing is None:
        return False
    if incoming.isdecimal() and existing.isdecimal():
        if int(incoming) == int(existing):
            return len(incoming) < len(existing)
        return int(incoming) < int(existing)
    if incoming == existing:
        return False
    return incoming < existing


def _scope_chain(node: FieldNode | None) -> list[str | None]:
    chain = []
    while node is not None:
        chain.append(node.name)
        node = node.parent
    return chain


def compare_submission_scope(incoming: FormDefinition, existing: FormDefinition) -> StructuralDifference | None:
    """Encryption and submitted subtree must agree on both sides."""
    profile1 = incoming.submission_profile
    profile2 = existing.submission_profile

    def different(kind: DifferenceKind, detail: str) -> StructuralDifference:
        return StructuralDifference(path=incoming.root.path, kind=kind, severity=Severity.BIG, detail=detail)

    if profile1 is not None and profile2 is not None:
        key1 = profile1.attribute(BASE64_RSA_PUBLIC_KEY)
        key2 = profile2.attribute(BASE64_RSA_PUBLIC_KEY)
        if key1 is not None and key2 is not None:
            if key1 != key2:
                return different(DifferenceKind.ENCRYPTION, "encryption keys differ")
        elif key1 is not None or key2 is not None:
            return different(DifferenceKind.ENCRYPTION, "only one definition is encrypted")

        scoped1 = incoming.resolve_reference(profile1.ref)
        scoped2 = existing.resolve_reference(profile2.ref)
        if scoped1 is not None and scoped2 is not None:
            # namespaces are ignored, node names are local names
            if _scope_chain(scoped1) != _scope_chain(scoped2):
                return different(DifferenceKind.SUBMISSION_SCOPE, f"{scoped1.path} != {scoped2.path}")
        elif scoped1 is not None or scoped2 is not None:
            return different(DifferenceKind.SUBMISSION_SCOPE, "only one definition submits a subtree")
        return None

    for form, profile in ((incoming, profile1), (existing, profile2)):
        if profile is None:
            continue
        if profile.attribute(BASE64_RSA_PUBLIC_KEY) is not None:
            return different(DifferenceKind.ENCRYPTION, "only one definition is encrypted")
        if form.resolve_reference(profile.ref) is not None:
            return different(DifferenceKind.SUBMISSION_SCOPE, "only one definition submits a subtree")
    return None


def compare_definitions(
    incoming: FormDefinition,
    existing_xml: str | None,
    existing_title: str | None = None,
) -> ComparisonReport:
    """Compare an already parsed incoming definition with the stored one.

    Raises:
        IncompleteSubmissionData: if either definition is missing or cannot
            be parsed. A stored definition was accepted before, so a failure
            to parse it is not treated as a difference.
    """
    if incoming is None or existing_xml is None:
        raise IncompleteSubmissionData(Reason.MISSING_XML)

    if incoming.xml == existing_xml:
        return ComparisonReport(result=DifferenceResult.IDENTICAL, incoming=incoming.identity)

    existing = FormDefinition(existing_xml, existing_title, allow_legacy=True)
    report = ComparisonReport(
        result=DifferenceResult.SHARE_INSTANCE,
        incoming=incoming.identity,
        existing=existing.identity,
    )

    if incoming.version is None:
        report.result = DifferenceResult.MISSING_VERSION
        return _finish(report)

    earlier = is_earlier_version(incoming.version, existing.version)
    if earlier:
        report.differences.append(
            StructuralDifference(
                path=incoming.root.path,
                kind=DifferenceKind.VERSION,
                severity=Severity.SMALL,
                detail=f"{incoming.version!r} does not follow {existing.version!r}",
            )
        )

    scope_difference = compare_submission_scope(incoming, existing)
    if scope_difference is not None:
        report.result = DifferenceResult.DIFFERENT
        report.differences.append(scope_difference)
        return _finish(report)

    nodes = compare_nodes(incoming.root, incoming, existing.root, existing)
    report.differences.extend(nodes.differences)
    if nodes.result == DifferenceResult.DIFFERENT:
        report.result = nodes.result
    elif earlier:
        report.result = DifferenceResult.EARLIER_VERSION
    else:
        report.result = nodes.result
    return _finish(report)


def _finish(report: ComparisonReport) -> ComparisonReport:
    logger.info(
        "compared %s against %s: %s",
        report.incoming.form_id if report.incoming else None,
        report.existing.form_id if report.existing else None,
        report.result,
    )
    return report


def compare_forms(
    incoming_xml: str | None,
    existing_xml: str | None,
    existing_title: str | None = None,
    allow_legacy: bool = False,
    incoming_title: str | None = None,
) -> ComparisonReport:
    if incoming_xml is None or existing_xml is None:
        raise IncompleteSubmissionData(Reason.MISSING_XML)
    if incoming_xml == existing_xml:
        logger.info("form definitions are identical")
        return ComparisonReport(result=DifferenceResult.IDENTICAL)
    incoming = FormDefinition(incoming_xml, incoming_title or existing_title, allow_legacy)
    return compare_definitions(incoming, existing_xml, existing_title)


def compare_xml(
    incoming_xml: str | None,
    existing_xml: str | None,
    existing_title: str | None = None,
    allow_legacy: bool = False,
) -> DifferenceResult:
    """Verdict on replacing ``existing_xml`` with ``incoming_xml``."""
    return compare_forms(incoming_xml, existing_xml, existing_title, allow_legacy).result
