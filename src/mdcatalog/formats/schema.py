"""
mdcatalog.formats.schema

Adds the configured xsi:schemaLocation to exported records.
"""

from __future__ import annotations

from lxml import etree

from mdcatalog.formats.documents import XSI_SCHEMA_LOCATION


def add_schema_location(root: etree._Element, location: str | None) -> bool:
    """
    Set `xsi:schemaLocation` on the root unless it already carries one.

    Returns True when the attribute was added. lxml declares the `xsi` prefix on
    the element when the namespace is not already in scope.
    """

    if not location or root.get(XSI_SCHEMA_LOCATION) is not None:
        return False
    root.set(XSI_SCHEMA_LOCATION, location)
    return True
