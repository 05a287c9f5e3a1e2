"""SpreadsheetML part names, namespaces and element helpers."""

from enum import Enum
import xml.etree.ElementTree as ET


class XlsxPaths(Enum):
    """Fixed part names inside an xlsx container."""

    WORKBOOK = "xl/workbook.xml"
    SHARED_STRINGS = "xl/sharedStrings.xml"
    WORKBOOK_RELS = "xl/_rels/workbook.xml.rels"


class XlsxNamespaces(Enum):
    """XML namespace URIs used by xlsx parts."""

    MAIN = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"
    REL = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
    PACKAGE_REL = "http://schemas.openxmlformats.org/package/2006/relationships"


def local_name(tag: str) -> str:
    """Strip the ``{namespace}`` prefix ElementTree puts on tags."""
    return tag.rsplit("}", 1)[-1] if "}" in tag else tag


def find_child(elem: ET.Element, name: str) -> ET.Element | None:
    for child in elem:
        if local_name(child.tag) == name:
            return child
    return None


def rich_text(elem: ET.Element) -> str:
    """
    Text of a shared-string item (``si``) or inline string (``is``).

    A direct ``t`` child is taken verbatim; otherwise the ``t`` of every
    ``r`` run is concatenated in document order. Phonetic runs are skipped.
    """
    text = find_child(elem, "t")
    if text is not None:
        return text.text or ""

    parts = []
    for child in elem:
        if local_name(child.tag) == "r":
            run_text = find_child(child, "t")
            if run_text is not None and run_text.text:
                parts.append(run_text.text)
    return "".join(parts)
