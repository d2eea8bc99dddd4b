"""
mdcatalog.formats.xlink

Removal of XLink attributes from records before export.
"""

from __future__ import annotations

from lxml import etree

from mdcatalog.formats.documents import NAMESPACES

_XLINK_PREFIX = "{%s}" % NAMESPACES["xlink"]


def strip_xlink_attributes(root: etree._Element) -> int:
    removed = 0
    for el in root.iter():
        if not isinstance(el.tag, str):
            continue
        for name in [a for a in el.attrib if a.startswith(_XLINK_PREFIX)]:
            del el.attrib[name]
            removed += 1
    return removed
