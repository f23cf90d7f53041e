import logging

from lxml import etree

from ..errors import IncompleteSubmissionData, Reason
from ..xform.parser import ParserRuntime

logger = logging.getLogger(__name__)


class SubmissionElement:
    """Read-only view on one element of a submission instance."""

    def __init__(self, element) -> None:
        self.__element = element

    def __str__(self) -> str:
        return f"(name={self.name}, value={self.value!r})"

    def __repr__(self) -> str:
        return str(self)

    @property
    def name(self) -> str:
        return etree.QName(self.__element).localname

    @property
    def value(self) -> str:
        text = self.__element.text
        return text.strip() if text else ""

    def attribute(self, name: str) -> str | None:
        return self.__element.get(name)

    def __children(self):
        return (c for c in self.__element if isinstance(c.tag, str))

    def find_element(self, name: str) -> "SubmissionElement | None":
        for child in self.__children():
            if etree.QName(child).localname == name:
                return SubmissionElement(child)
        return None

    def find_elements(self, name: str) -> list["SubmissionElement"]:
        return [
            SubmissionElement(c) for c in self.__children()
            if etree.QName(c).localname == name
        ]

    @property
    def children(self) -> list["SubmissionElement"]:
        return [SubmissionElement(c) for c in self.__children()]

    @property
    def local_id(self) -> str | None:
        """The submission's instance id, from ``meta/instanceID`` or the root attribute."""
        meta = self.find_element("meta")
        if meta is not None:
            instance_id = meta.find_element("instanceID")
            if instance_id is not None and instance_id.value:
                return instance_id.value
        return self.attribute("instanceID")


def parse_submission(xml: str | bytes) -> SubmissionElement:
    runtime = ParserRuntime.get()
    data = xml.encode("utf-8") if isinstance(xml, str) else xml
    try:
        root = etree.fromstring(data, parser=runtime.new_parser())
    except (etree.XMLSyntaxError, ValueError) as e:
        logger.error("failed to parse submission: %s", e)
        raise IncompleteSubmissionData(Reason.BAD_PARSE, str(e)) from e
    return SubmissionElement(root)
