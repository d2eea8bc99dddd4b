"""
mdcatalog.services.records

Record retrieval and export.

Responsibilities:
- Load a viewable record as an XML document (optional schemaLocation, popularity bump).
- Assemble MEF exports, with children and services for v2 archives.
- List related resources (parent, children, services, datasets, links, thumbnails).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from lxml import etree
from sqlalchemy.ext.asyncio import AsyncSession

from mdcatalog.db.models import Metadata, operation_names
from mdcatalog.db.repositories.groups import GroupRepo
from mdcatalog.db.repositories.metadata import MetadataRepo
from mdcatalog.db.repositories.operations import OperationAllowedRepo
from mdcatalog.errors import NotAllowed
from mdcatalog.formats.documents import parse
from mdcatalog.formats.extract import online_resources, thumbnails
from mdcatalog.formats.schema import add_schema_location
from mdcatalog.formats.xlink import strip_xlink_attributes
from mdcatalog.mef.package import (
    MefFormat,
    MefRecord,
    MefVersion,
    list_files,
    resource_dir,
    write_mef,
)
from mdcatalog.observability.logging import get_logger
from mdcatalog.services.access import AccessManager
from mdcatalog.services.data_manager import DataManager
from mdcatalog.settings import Settings

log = get_logger(__name__)


class RelatedItemType(enum.StrEnum):
    parent = "parent"
    children = "children"
    services = "services"
    datasets = "datasets"
    onlines = "onlines"
    thumbnails = "thumbnails"


_RECORD_TYPES = (
    RelatedItemType.parent,
    RelatedItemType.children,
    RelatedItemType.services,
    RelatedItemType.datasets,
)


@dataclass(slots=True)
class MefExport:
    record: Metadata
    content: bytes
    record_count: int


class RecordService:
    def __init__(self, *, session: AsyncSession, settings: Settings, access: AccessManager) -> None:
        self._session = session
        self._settings = settings
        self._access = access
        self._records = MetadataRepo(session)
        self._grants = OperationAllowedRepo(session)
        self._groups = GroupRepo(session)
        self._data = DataManager(session=session, access=access)

    async def get_document(
        self,
        uuid: str,
        *,
        add_schema_loc: bool = True,
        increase_popularity: bool = True,
    ) -> tuple[Metadata, etree._Element]:
        md = await self._access.record_or_404(uuid)
        if not await self._access.can_view(md):
            raise NotAllowed(f"Metadata with UUID '{uuid}' is not shared with you.")

        if increase_popularity:
            await self._data.increase_popularity(md)
            await self._session.commit()

        root = parse(md.data)
        if add_schema_loc:
            add_schema_location(root, self._settings.schema_locations.get(md.schema_id))
        return md, root

    async def export_mef(
        self,
        uuid: str,
        *,
        version: MefVersion,
        fmt: MefFormat = MefFormat.full,
        with_related: bool = True,
        with_xlink_attribute: bool = False,
    ) -> MefExport:
        md = await self._access.can_view_record(uuid)

        records = [md]
        if version is MefVersion.v2 and with_related:
            records.extend(await self._related_for_export(md))

        log.info("mef.build", version=version.name, records=len(records), format=fmt.value)
        entries = [
            await self._mef_record(r, fmt=fmt, with_xlink_attribute=with_xlink_attribute)
            for r in records
        ]
        content = write_mef(
            entries,
            version=version,
            fmt=fmt,
            site_id=self._settings.site_id,
            site_name=self._settings.site_name,
        )
        return MefExport(record=md, content=content, record_count=len(records))

    async def related(
        self,
        uuid: str,
        *,
        types: list[RelatedItemType] | None = None,
        start: int = 1,
        rows: int = 100,
    ) -> dict[str, list[dict[str, Any]]]:
        md = await self._access.can_view_record(uuid)
        wanted = types or list(RelatedItemType)
        # `start` is 1-based, matching the paging of the search API.
        offset = max(start, 1) - 1
        limit = max(rows, 0)

        result: dict[str, list[dict[str, Any]]] = {}
        for t in wanted:
            if t in _RECORD_TYPES:
                found = await self._viewable(await self._related_records(md, t))
                result[t.value] = [_record_item(r) for r in found[offset : offset + limit]]
            elif t is RelatedItemType.onlines:
                result[t.value] = online_resources(parse(md.data))
            elif t is RelatedItemType.thumbnails:
                result[t.value] = thumbnails(parse(md.data))
        return result

    async def _related_records(self, md: Metadata, t: RelatedItemType) -> list[Metadata]:
        if t is RelatedItemType.parent:
            if not md.parent_uuid:
                return []
            parent = await self._records.get_by_uuid(md.parent_uuid)
            return [parent] if parent is not None else []
        if t is RelatedItemType.children:
            return await self._records.children(md.uuid)
        if t is RelatedItemType.services:
            return await self._records.services_operating_on(md.uuid)
        if t is RelatedItemType.datasets:
            return await self._records.list_by_uuids(md.operates_on or [])
        return []

    async def _related_for_export(self, md: Metadata) -> list[Metadata]:
        children = await self._viewable_children(
            md.uuid, cap=self._settings.mef_related_max_children
        )
        services = await self._viewable(await self._records.services_operating_on(md.uuid))
        seen = {md.uuid}
        extra: list[Metadata] = []
        for r in children + services:
            if r.uuid not in seen:
                seen.add(r.uuid)
                extra.append(r)
        return extra

    async def _viewable_children(self, parent_uuid: str, *, cap: int) -> list[Metadata]:
        # The cap counts viewable children only; hidden ones must not use it up.
        found: list[Metadata] = []
        offset = 0
        page_size = max(cap, 1)
        while len(found) < cap:
            page = await self._records.children(parent_uuid, limit=page_size, offset=offset)
            if not page:
                break
            found.extend(await self._viewable(page))
            offset += len(page)
        return found[:cap]

    async def _viewable(self, records: list[Metadata]) -> list[Metadata]:
        return [r for r in records if await self._access.can_view(r)]

    async def _mef_record(
        self, md: Metadata, *, fmt: MefFormat, with_xlink_attribute: bool
    ) -> MefRecord:
        root = parse(md.data)
        if not with_xlink_attribute:
            strip_xlink_attributes(root)

        base = resource_dir(self._settings.data_dir, md.id)
        public_files = list_files(base / "public") if fmt.with_public else []
        private_files: list[Path] = []
        if fmt.with_private and await self._access.can_download(md):
            private_files = list_files(base / "private")

        return MefRecord(
            uuid=md.uuid,
            local_id=md.id,
            schema_id=md.schema_id,
            is_template=md.is_template,
            xml=root,
            created_at=md.created_at,
            updated_at=md.updated_at,
            popularity=md.popularity,
            rating=md.rating,
            privileges=await self._privileges_by_group_name(md),
            public_files=public_files,
            private_files=private_files,
        )

    async def _privileges_by_group_name(self, md: Metadata) -> dict[str, list[str]]:
        grants = await self._grants.list_for_metadata(md.id)
        names = await self._groups.names_by_id({g.group_id for g in grants})
        ops = operation_names()
        privileges: dict[str, list[str]] = {}
        for g in grants:
            group_name = names.get(g.group_id)
            if group_name is None:
                continue
            op_name = ops.get(g.operation_id, str(g.operation_id))
            privileges.setdefault(group_name, []).append(op_name)
        return privileges


def _record_item(md: Metadata) -> dict[str, Any]:
    return {
        "id": md.uuid,
        "title": md.title,
        "type": md.resource_type,
    }

