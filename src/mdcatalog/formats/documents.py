"""
mdcatalog.formats.documents

Parsing/serialization helpers and the namespace map used by XPath lookups.
"""

from __future__ import annotations

from lxml import etree

NAMESPACES: dict[str, str] = {
    "gmd": "http://www.isotc211.org/2005/gmd",
    "gco": "http://www.isotc211.org/2005/gco",
    "srv": "http://www.isotc211.org/2005/srv",
    "gmx": "http://www.isotc211.org/2005/gmx",
    "xlink": "http://www.w3.org/1999/xlink",
    "xsi": "http://www.w3.org/2001/XMLSchema-instance",
    "dc": "http://purl.org/dc/elements/1.1/",
    "dct": "http://purl.org/dc/terms/",
}

XSI_SCHEMA_LOCATION = "{%s}schemaLocation" % NAMESPACES["xsi"]

# Entities and network access are never needed for stored records.
_PARSER = etree.XMLParser(resolve_entities=False, no_network=True, remove_blank_text=True)


def parse(data: str | bytes) -> etree._Element:
    if isinstance(data, str):
        data = data.encode("utf-8")
    return etree.fromstring(data, _PARSER)


def to_bytes(root: etree._Element, *, pretty: bool = True) -> bytes:
    return etree.tostring(root, xml_declaration=True, encoding="UTF-8", pretty_print=pretty)


def text_of(root: etree._Element, xpath: str) -> str | None:
    for value in root.xpath(xpath, namespaces=NAMESPACES):
        text = value if isinstance(value, str) else value.text
        if text and text.strip():
            return text.strip()
    return None
