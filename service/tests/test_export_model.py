"""Tests for export column naming."""

import gc

from xform_structure.data.field import FieldNode
from xform_structure.export.model import FieldModel, export_headers, repeat_header
from xform_structure.model.field import INDEX_TEMPLATE, DataType
from xform_structure.xform.parser import parse_xform


def _model(form: str) -> FieldModel:
    return FieldModel.of(parse_xform(form))


def _find(model: FieldModel, name: str) -> FieldModel:
    return next(f for f in model._flatten() if f.name == name)


SAMPLE_NAMES = [
    "name",
    "age",
    "location-Latitude",
    "location-Longitude",
    "location-Altitude",
    "location-Accuracy",
    "colors",
    "colors/red",
    "colors/green",
    "colors/blue",
    "fruit",
    "photo",
    "household-head",
    "SET-OF-household-members",
    "meta-instanceID",
]


def test_root_names(sample_form):
    assert _model(sample_form).names() == SAMPLE_NAMES


def test_root_is_root(sample_form):
    root = _model(sample_form)

    assert root.is_root()
    assert root.fqn() == ""
    assert not _find(root, "household").is_root()


def test_fqn_excludes_declared_root(sample_form):
    member_name = _find(_model(sample_form), "member_name")

    assert member_name.fqn() == "household-members-member_name"
    assert member_name.fqn(2) == "member_name"


def test_geopoint_names(sample_form):
    location = _find(_model(sample_form), "location")

    assert location.names() == [
        "location-Latitude",
        "location-Longitude",
        "location-Altitude",
        "location-Accuracy",
    ]


def test_choice_list_without_choices():
    root = FieldNode(None)
    data = root.add_child(FieldNode("data"))
    data.add_child(FieldNode("pick", data_type=DataType.CHOICE_LIST, choices=[]))

    assert FieldModel(data).names() == ["pick"]


def test_repeat_contributes_once(sample_form):
    root = _model(sample_form)

    assert SAMPLE_NAMES.count("SET-OF-household-members") == 1
    assert [r.fqn() for r in root.repeatable_fields()] == ["household-members"]


def test_children_keep_template(sample_form):
    household = _find(_model(sample_form), "household")
    children = household.children()

    assert [c.name for c in children] == ["head", "members"]
    assert children[1].node.multiplicity == INDEX_TEMPLATE


def test_nested_repeats_in_pre_order():
    form_root = FieldNode(None)
    data = form_root.add_child(FieldNode("data"))
    outer = data.add_child(FieldNode("outer", repeatable=True, multiplicity=INDEX_TEMPLATE))
    outer.add_child(FieldNode("inner", repeatable=True, multiplicity=INDEX_TEMPLATE)).add_child(
        FieldNode("leaf", data_type=DataType.TEXT)
    )
    outer.add_child(FieldNode("inner", repeatable=True, multiplicity=0)).add_child(
        FieldNode("leaf", data_type=DataType.TEXT)
    )
    second = data.add_child(FieldNode("second", repeatable=True, multiplicity=INDEX_TEMPLATE))
    second.add_child(FieldNode("x", data_type=DataType.TEXT))

    repeats = FieldModel(data).repeatable_fields()

    assert [r.fqn() for r in repeats] == ["outer", "outer-inner", "second"]
    assert repeat_header(repeats[0]) == ["SET-OF-inner"]
    assert repeat_header(repeats[1]) == ["leaf"]


def test_count_ancestors(sample_form):
    root = _model(sample_form)

    assert root.count_ancestors() == 0
    assert _find(root, "household").count_ancestors() == 1
    assert _find(root, "members").count_ancestors() == 2


def test_repeat_header(sample_form):
    members = _find(_model(sample_form), "members")

    assert repeat_header(members) == ["member_name", "member_age"]


def test_export_headers(sample_form):
    headers = export_headers(_model(sample_form))

    assert [h.table for h in headers] == ["data", "household-members"]
    assert headers[0].columns == SAMPLE_NAMES
    assert headers[1].columns == ["member_name", "member_age"]


def test_empty_group_is_single_column():
    form_root = FieldNode(None)
    data = form_root.add_child(FieldNode("data"))
    data.add_child(FieldNode("note"))

    assert FieldModel(data).names() == ["note"]


def test_flat_map_and_for_each(sample_form):
    household = _find(_model(sample_form), "household")
    visited = []

    household.for_each(lambda child: visited.append(child.name))

    assert visited == ["head", "members"]
    assert household.flat_map(lambda child: [child.fqn()]) == ["household-head", "household-members"]


def test_model_of_bare_root(sample_form):
    root = FieldModel(parse_xform(sample_form).root)
    gc.collect()

    assert root.is_root()
    assert root.count_ancestors() == 0
    assert root.names() == SAMPLE_NAMES
    assert _find(root, "members").count_ancestors() == 2


def test_model_of_inner_node_keeps_tree(sample_form):
    form_root = parse_xform(sample_form).root
    household = FieldModel(form_root.children_named("household")[0])
    del form_root
    gc.collect()

    assert household.fqn() == "household"
    assert household.parent.is_root()
