"""Tests for FormDefinition validation."""

import pytest

from xform_structure.data.form import FormDefinition, strip_illegal_chars
from xform_structure.errors import IncompleteSubmissionData, Reason

SCOPED_INSTANCE = """
          <name/>
          <part {attributes}>
            <inner/>
          </part>
"""

SCOPED_BINDS = '<bind nodeset="/data/name" type="string"/><bind nodeset="/data/part/inner" type="string"/>'


def test_missing_xml():
    with pytest.raises(IncompleteSubmissionData) as e:
        FormDefinition(None)

    assert e.value.reason == Reason.MISSING_XML


def test_identity_and_title(sample_form):
    form = FormDefinition(sample_form)

    assert form.form_id == "sample"
    assert form.version == "1"
    assert form.title == "Sample Form"
    assert form.submission_element is form.root
    assert not form.is_file_encrypted
    assert not form.is_not_uploadable


def test_title_missing(make_form):
    with pytest.raises(IncompleteSubmissionData) as e:
        FormDefinition(make_form(title=None))

    assert e.value.reason == Reason.TITLE_MISSING


def test_existing_title_used_when_missing(make_form):
    form = FormDefinition(make_form(title=None), existing_title="Stored: title")

    assert form.title == "Stored title"


def test_strip_illegal_chars():
    assert strip_illegal_chars('a<b>c:"d/e\\f|g?h*i\tj') == "abcdefghij"


def test_submission_scope_with_matching_identity(make_form):
    form = FormDefinition(
        make_form(
            instance=SCOPED_INSTANCE.format(attributes='id="sample" version="1"'),
            binds=SCOPED_BINDS,
            body="",
            submission='<submission ref="/data/part" method="form-data-post" action="http://example.org"/>',
        )
    )

    assert form.true_submission_element.name == "part"
    assert form.submission_element.name == "part"


def test_submission_scope_without_id(make_form):
    with pytest.raises(IncompleteSubmissionData) as e:
        FormDefinition(
            make_form(
                instance=SCOPED_INSTANCE.format(attributes=""),
                binds=SCOPED_BINDS,
                body="",
                submission='<submission ref="/data/part"/>',
            )
        )

    assert e.value.reason == Reason.ID_MISSING


def test_submission_scope_with_other_version(make_form):
    with pytest.raises(IncompleteSubmissionData) as e:
        FormDefinition(
            make_form(
                instance=SCOPED_INSTANCE.format(attributes='id="sample" version="2"'),
                binds=SCOPED_BINDS,
                body="",
                submission='<submission ref="/data/part"/>',
            )
        )

    assert e.value.reason == Reason.MISMATCHED_SUBMISSION_ELEMENT


def test_not_uploadable_submission(make_form):
    form = FormDefinition(make_form(submission='<submission action="mailto:x" method="post"/>'))

    assert form.is_not_uploadable


def test_encrypted_form_uses_envelope(make_form):
    form = FormDefinition(
        make_form(
            submission='<submission action="https://example.org" method="form-data-post" '
            'base64RsaPublicKey="KEY"/>'
        )
    )

    assert form.is_file_encrypted
    assert form.public_key == "KEY"
    assert [c.name for c in form.submission_element.children] == [
        "base64EncryptedKey",
        "meta",
        "media",
        "media",
        "encryptedXmlFile",
        "base64EncryptedElementSignature",
    ]


def test_bindings_for_node(sample_form):
    form = FormDefinition(sample_form)
    age = form.root.children_named("age")[0]

    bindings = form.bindings_for(age)

    assert len(bindings) == 1
    assert bindings[0][(None, "type")] == "int"


def test_bad_definition_is_bad_parse():
    with pytest.raises(IncompleteSubmissionData) as e:
        FormDefinition("this is not xml")

    assert e.value.reason == Reason.BAD_PARSE


def test_legacy_namespace_is_flagged(make_form):
    form = FormDefinition(make_form(form_id=None).replace("<data ", '<data xmlns="urn:legacy" ', 1), allow_legacy=True)

    assert form.form_id == "urn:legacy"
    assert form.is_invalid_form_xmlns
    assert not FormDefinition(make_form()).is_invalid_form_xmlns
