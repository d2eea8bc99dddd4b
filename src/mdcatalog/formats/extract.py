"""
mdcatalog.formats.extract

Field and link extraction from record documents.

Responsibilities:
- Pull the indexed fields (title, parent, resource type, operatesOn) out of a record.
- List online resources and thumbnails for the related-resources API.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from lxml import etree

from mdcatalog.formats.documents import NAMESPACES, text_of

_ISO_TITLE = (
    "gmd:identificationInfo/*/gmd:citation/gmd:CI_Citation/gmd:title/gco:CharacterString"
    " | gmd:identificationInfo/*/gmd:citation/gmd:CI_Citation/gmd:title/gmx:Anchor"
)
_ISO_PARENT = "gmd:parentIdentifier/gco:CharacterString | gmd:parentIdentifier/gmx:Anchor"
_ISO_TYPE = "gmd:hierarchyLevel/gmd:MD_ScopeCode/@codeListValue"
_ISO_OPERATES_ON = "gmd:identificationInfo/srv:SV_ServiceIdentification/srv:operatesOn/@uuidref"
_ISO_ONLINE = (
    "gmd:distributionInfo//gmd:transferOptions//gmd:onLine/gmd:CI_OnlineResource"
)
_ISO_THUMBNAIL = "gmd:identificationInfo/*/gmd:graphicOverview/gmd:MD_BrowseGraphic"


@dataclass(slots=True)
class IndexedFields:
    title: str | None = None
    parent_uuid: str | None = None
    resource_type: str | None = None
    operates_on: list[str] = field(default_factory=list)


def index_fields(root: etree._Element, schema_id: str) -> IndexedFields:
    if schema_id == "dublin-core":
        return IndexedFields(
            title=text_of(root, ".//dc:title"),
            parent_uuid=text_of(root, ".//dct:isPartOf"),
            resource_type=text_of(root, ".//dc:type") or "dataset",
        )

    operates_on: list[str] = []
    for ref in root.xpath(_ISO_OPERATES_ON, namespaces=NAMESPACES):
        ref = str(ref).strip()
        if ref and ref not in operates_on:
            operates_on.append(ref)
    return IndexedFields(
        title=text_of(root, _ISO_TITLE),
        parent_uuid=text_of(root, _ISO_PARENT),
        resource_type=text_of(root, _ISO_TYPE) or "dataset",
        operates_on=operates_on,
    )


def online_resources(root: etree._Element) -> list[dict[str, str | None]]:
    items = []
    for res in root.xpath(_ISO_ONLINE, namespaces=NAMESPACES):
        url = text_of(res, "gmd:linkage/gmd:URL")
        if not url:
            continue
        items.append(
            {
                "url": url,
                "protocol": text_of(res, "gmd:protocol/gco:CharacterString"),
                "name": text_of(res, "gmd:name/gco:CharacterString"),
                "description": text_of(res, "gmd:description/gco:CharacterString"),
            }
        )
    return items


def thumbnails(root: etree._Element) -> list[dict[str, str | None]]:
    items = []
    for graphic in root.xpath(_ISO_THUMBNAIL, namespaces=NAMESPACES):
        url = text_of(graphic, "gmd:fileName/gco:CharacterString")
        if not url:
            continue
        items.append(
            {
                "url": url,
                "title": text_of(graphic, "gmd:fileDescription/gco:CharacterString"),
            }
        )
    return items
