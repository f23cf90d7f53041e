"""Tests for form id and version extraction."""

import pytest

from xform_structure.data.field import FieldNode
from xform_structure.errors import IncompleteSubmissionData, Reason
from xform_structure.identity import (
    default_form_id,
    extract_identity,
    extract_root_identity,
    is_well_formed_schema,
)
from xform_structure.model.identity import FormIdentity


def _root(**attributes):
    return FieldNode("data", instance_attributes={(None, k): v for k, v in attributes.items()})


@pytest.mark.parametrize(
    "schema, expected",
    [
        ("http://example.org/form", True),
        ("urn:form", False),
        ("example.org/form:x", False),
        ("plainform", False),
    ],
)
def test_is_well_formed_schema(schema, expected):
    assert is_well_formed_schema(schema) is expected


def test_default_form_id_escapes_slashes():
    assert default_form_id("http://example.org/form", False) == ("http:&#47;&#47;example.org&#47;form", False)


def test_default_form_id_malformed_without_legacy():
    assert default_form_id("urn:form", False) == (None, True)


def test_default_form_id_malformed_with_legacy():
    assert default_form_id("a/b", True) == ("a&#47;b", True)


def test_id_attribute_wins_over_schema():
    identity = extract_root_identity(_root(id="my/form", version="3"), "http://example.org/other")

    assert identity == FormIdentity(form_id="my&#47;form", model_version="3")


def test_schema_fallback_without_id():
    identity = extract_root_identity(_root(version="3"), "http://example.org/form")

    assert identity.form_id == "http:&#47;&#47;example.org&#47;form"
    assert identity.model_version == "3"


def test_missing_version_is_none():
    assert extract_identity(_root(id="f"), None).model_version is None


def test_malformed_schema_without_id():
    with pytest.raises(IncompleteSubmissionData) as e:
        extract_root_identity(_root(), "urn:form")

    assert e.value.reason == Reason.ID_MALFORMED


def test_malformed_schema_allowed_as_legacy():
    identity = extract_root_identity(_root(), "urn:form", allow_legacy=True)

    assert identity.form_id == "urn:form"


def test_no_id_and_no_schema():
    with pytest.raises(IncompleteSubmissionData) as e:
        extract_root_identity(_root(), None)

    assert e.value.reason == Reason.ID_MISSING


def test_identity_equality_includes_missing_version():
    assert FormIdentity(form_id="f") != FormIdentity(form_id="f", model_version="1")
    assert FormIdentity(form_id="f", model_version="1") == FormIdentity(form_id="f", model_version="1")
