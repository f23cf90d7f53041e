import pytest

XFORM_TEMPLATE = """<?xml version="1.0"?>
<h:html xmlns="http://www.w3.org/2002/xforms"
        xmlns:h="http://www.w3.org/1999/xhtml"
        xmlns:jr="http://openrosa.org/javarosa"
        xmlns:orx="http://openrosa.org/xforms">
  <h:head>
    {title}
    <model>
      <instance>
        <data {root_attributes}>
{instance}
        </data>
      </instance>
{binds}
{submission}
    </model>
  </h:head>
  <h:body>
{body}
  </h:body>
</h:html>
"""

SAMPLE_INSTANCE = """
          <name/>
          <age/>
          <location/>
          <colors/>
          <fruit/>
          <photo/>
          <household>
            <head/>
            <members>
              <member_name/>
              <member_age/>
            </members>
          </household>
          <meta>
            <instanceID/>
          </meta>
"""

SAMPLE_BINDS = """
      <bind nodeset="/data/name" type="string" required="true()"/>
      <bind nodeset="/data/age" type="int" constraint=". &gt; 0" jr:constraintMsg="too young"/>
      <bind nodeset="/data/location" type="geopoint"/>
      <bind nodeset="/data/colors" type="select"/>
      <bind nodeset="/data/fruit" type="select1" appearance="minimal"/>
      <bind nodeset="/data/photo" type="binary"/>
      <bind nodeset="/data/household/members/member_name" type="string"/>
      <bind nodeset="/data/household/members/member_age" type="int"/>
      <bind nodeset="/data/meta/instanceID" type="string" readonly="true()" jr:preload="uid"/>
"""

SAMPLE_BODY = """
    <input ref="/data/name"><label>Name</label></input>
    <input ref="/data/age"><label>Age</label></input>
    <input ref="/data/location"><label>Location</label></input>
    <select ref="/data/colors">
      <label>Colors</label>
      <item><label>Red</label><value>red</value></item>
      <item><label>Green</label><value>green</value></item>
      <item><label>Blue</label><value>blue</value></item>
    </select>
    <select1 ref="/data/fruit">
      <label>Fruit</label>
      <item><label>Apple</label><value>apple</value></item>
      <item><label>Banana</label><value>banana</value></item>
    </select1>
    <upload ref="/data/photo" mediatype="image/*"><label>Photo</label></upload>
    <group ref="/data/household">
      <input ref="head"><label>Head</label></input>
      <repeat nodeset="/data/household/members">
        <input ref="member_name"><label>Member</label></input>
        <input ref="member_age"><label>Member age</label></input>
      </repeat>
    </group>
"""


def build_form(
    instance: str = SAMPLE_INSTANCE,
    binds: str = SAMPLE_BINDS,
    body: str = SAMPLE_BODY,
    title: str | None = "Sample Form",
    form_id: str | None = "sample",
    version: str | None = "1",
    root_attributes: str = "",
    submission: str = "",
) -> str:
    attributes = []
    if form_id is not None:
        attributes.append(f'id="{form_id}"')
    if version is not None:
        attributes.append(f'version="{version}"')
    if root_attributes:
        attributes.append(root_attributes)
    return XFORM_TEMPLATE.format(
        title=f"<h:title>{title}</h:title>" if title is not None else "",
        root_attributes=" ".join(attributes),
        instance=instance,
        binds=binds,
        submission=submission,
        body=body,
    )


@pytest.fixture
def make_form():
    return build_form


@pytest.fixture
def sample_form() -> str:
    return build_form()
