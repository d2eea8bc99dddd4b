"""
mdcatalog.api.routers.records

Record retrieval and export endpoints.

Responsibilities:
- Redirect `GET /{uuid}` to the formatter matching the Accept header.
- Serve records as XML or JSON, and as MEF ZIP archives.
- List related resources of a record.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Header, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response
from lxml import etree
from sqlalchemy.ext.asyncio import AsyncSession

from mdcatalog.api.deps import access_manager, db_session, settings_dep
from mdcatalog.formats.documents import to_bytes
from mdcatalog.formats.jsonview import xml_to_json
from mdcatalog.mef.package import MEF_V1_ACCEPT_TYPE, MEF_V2_ACCEPT_TYPE, MefFormat, MefVersion
from mdcatalog.services.access import AccessManager
from mdcatalog.services.records import RecordService, RelatedItemType
from mdcatalog.settings import Settings

router = APIRouter(tags=["records"])

DEFAULT_FORMATTER = "xsl-view"
XML = "application/xml"
JSON = "application/json"
XHTML = "application/xhtml+xml"


def _media_types(accept: str) -> list[str]:
    # "text/html;q=0.9, application/xml" -> ["text/html", "application/xml"]
    return [part.split(";", 1)[0].strip() for part in accept.split(",") if part.strip()]


def _service(session: AsyncSession, settings: Settings, access: AccessManager) -> RecordService:
    return RecordService(session=session, settings=settings, access=access)


@router.get("/{metadata_uuid}", status_code=302)
async def get_record(
    request: Request,
    metadata_uuid: str,
    accept: str = Header(default=XML),
    access: AccessManager = Depends(access_manager),
) -> RedirectResponse:
    await access.can_view_record(metadata_uuid)

    accepted = _media_types(accept)
    base = request.url.path.rstrip("/") + "/formatters/"
    headers: dict[str, str] = {}
    if {"text/html", XHTML, "application/pdf"} & set(accepted):
        target = DEFAULT_FORMATTER
    elif {XML, JSON} & set(accepted):
        target = "xml"
    elif {"application/zip", MEF_V1_ACCEPT_TYPE, MEF_V2_ACCEPT_TYPE} & set(accepted):
        target = "zip"
        headers["Accept"] = MEF_V2_ACCEPT_TYPE
    else:
        target = DEFAULT_FORMATTER
        headers["Accept"] = XHTML
    return RedirectResponse(url=base + target, status_code=302, headers=headers)


@router.get("/{metadata_uuid}/formatters/xml")
@router.get("/{metadata_uuid}/formatters/json")
async def get_record_as_xml(
    request: Request,
    metadata_uuid: str,
    add_schema_location: bool = Query(True, alias="addSchemaLocation"),
    increase_popularity: bool = Query(True, alias="increasePopularity"),
    accept: str = Header(default=XML),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
    access: AccessManager = Depends(access_manager),
) -> Response:
    md, root = await _service(session, settings, access).get_document(
        metadata_uuid,
        add_schema_loc=add_schema_location,
        increase_popularity=increase_popularity,
    )

    is_json = request.url.path.endswith("/json") or JSON in accept
    disposition = f'inline; filename="{md.uuid}.{"json" if is_json else "xml"}"'
    if is_json:
        return JSONResponse(content=xml_to_json(root), headers={"Content-Disposition": disposition})
    return Response(
        content=to_bytes(root),
        media_type=XML,
        headers={"Content-Disposition": disposition},
    )


@router.get("/{metadata_uuid}/formatters/zip")
async def get_record_as_zip(
    metadata_uuid: str,
    format: MefFormat = Query(MefFormat.full),
    with_related: bool = Query(True, alias="withRelated"),
    with_xlink_attribute: bool = Query(False, alias="withXLinkAttribute"),
    accept: str = Header(default=MEF_V2_ACCEPT_TYPE),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
    access: AccessManager = Depends(access_manager),
) -> Response:
    export = await _service(session, settings, access).export_mef(
        metadata_uuid,
        version=MefVersion.find(accept),
        fmt=format,
        with_related=with_related,
        with_xlink_attribute=with_xlink_attribute,
    )
    return Response(
        content=export.content,
        media_type="application/zip",
        headers={
            "Content-Disposition": f'inline; filename="{export.record.uuid}.zip"',
            "Content-Length": str(len(export.content)),
        },
    )


@router.get("/{metadata_uuid}/related")
async def get_related(
    metadata_uuid: str,
    type: list[RelatedItemType] | None = Query(None),
    start: int = Query(1, ge=1),
    rows: int = Query(100, ge=0),
    accept: str = Header(default=JSON),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
    access: AccessManager = Depends(access_manager),
) -> Response:
    related = await _service(session, settings, access).related(
        metadata_uuid, types=type, start=start, rows=rows
    )
    accepted = _media_types(accept)
    if XML in accepted and JSON not in accepted:
        return Response(content=to_bytes(_related_xml(related)), media_type=XML)
    return JSONResponse(content=related)


def _related_xml(related: dict[str, list[dict[str, Any]]]) -> etree._Element:
    root = etree.Element("related")
    for kind, items in related.items():
        section = etree.SubElement(root, kind)
        for item in items:
            el = etree.SubElement(section, "item")
            for key, value in item.items():
                if value is not None:
                    etree.SubElement(el, key).text = str(value)
    return root


# --- Module Notes -----------------------------------------------------------
# HTML/PDF views (the `xsl-view` formatter) are rendered by a separate formatter
# service; this router only issues the redirect.
