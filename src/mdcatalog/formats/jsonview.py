"""
mdcatalog.formats.jsonview

XML to JSON conversion for the record formatter.

Mapping rules:
- an element becomes an object keyed by its qualified name (`gmd:title`);
- attributes become `@name` keys, text becomes `#text`;
- an element with text and no attributes/children becomes a bare string;
- repeated sibling names collapse into an array, in document order;
- namespace declarations become `@xmlns:prefix` keys on the element declaring them.
"""

from __future__ import annotations

from typing import Any

from lxml import etree


def _qname(el: etree._Element, tag: str) -> str:
    q = etree.QName(tag)
    if q.namespace is None:
        return q.localname
    for prefix, uri in el.nsmap.items():
        if uri == q.namespace and prefix:
            return f"{prefix}:{q.localname}"
    return q.localname


def _declared_namespaces(el: etree._Element) -> dict[str | None, str]:
    parent = el.getparent()
    inherited = parent.nsmap if parent is not None else {}
    return {p: u for p, u in el.nsmap.items() if inherited.get(p) != u}


def element_to_json(el: etree._Element) -> Any:
    obj: dict[str, Any] = {}
    for prefix, uri in _declared_namespaces(el).items():
        obj["@xmlns" if prefix is None else f"@xmlns:{prefix}"] = uri
    for name, value in el.attrib.items():
        obj["@" + _qname(el, name)] = value

    for child in el:
        if not isinstance(child.tag, str):
            # comments / processing instructions
            continue
        key = _qname(child, child.tag)
        value = element_to_json(child)
        if key in obj:
            existing = obj[key]
            if isinstance(existing, list):
                existing.append(value)
            else:
                obj[key] = [existing, value]
        else:
            obj[key] = value

    text = (el.text or "").strip()
    if not obj:
        return text
    if text:
        obj["#text"] = text
    return obj


def xml_to_json(root: etree._Element) -> dict[str, Any]:
    return {_qname(root, root.tag): element_to_json(root)}
