"""
mdcatalog.db.repositories.metadata

Repository for `Metadata` records.

Responsibilities:
- Create and fetch records by numeric id or UUID.
- Look up related records through the indexed parent/operatesOn fields.
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from mdcatalog.db.models import Metadata, utcnow


class MetadataRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        uuid: str,
        data: str,
        owner: int,
        group_owner: int | None = None,
        schema_id: str = "iso19139",
        is_template: str = "n",
        source: str | None = None,
    ) -> Metadata:
        md = Metadata(
            uuid=uuid,
            data=data,
            owner=owner,
            group_owner=group_owner,
            schema_id=schema_id,
            is_template=is_template,
            source=source,
            popularity=0,
            rating=0,
            operates_on=[],
        )
        self._session.add(md)
        await self._session.flush()
        return md

    async def get_by_uuid(self, uuid: str) -> Metadata | None:
        stmt = select(Metadata).where(Metadata.uuid == uuid)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_by_uuids(self, uuids: Iterable[str]) -> list[Metadata]:
        stmt = select(Metadata).where(Metadata.uuid.in_(list(uuids))).order_by(Metadata.id)
        return list((await self._session.execute(stmt)).scalars().all())

    async def children(
        self, parent_uuid: str, *, limit: int | None = None, offset: int = 0
    ) -> list[Metadata]:
        stmt = select(Metadata).where(Metadata.parent_uuid == parent_uuid).order_by(Metadata.id)
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list((await self._session.execute(stmt)).scalars().all())

    async def services_operating_on(self, uuid: str) -> list[Metadata]:
        # operatesOn is a JSON list; filter in Python to stay portable across backends.
        stmt = (
            select(Metadata)
            .where(Metadata.resource_type == "service")
            .order_by(Metadata.id)
        )
        services = (await self._session.execute(stmt)).scalars().all()
        return [s for s in services if uuid in (s.operates_on or [])]

    async def set_group_owner(self, md: Metadata, group_id: int) -> None:
        md.group_owner = group_id
        md.updated_at = utcnow()
        await self._session.flush()

    async def set_owner(self, md: Metadata, *, owner: int, group_owner: int | None) -> None:
        md.owner = owner
        md.group_owner = group_owner
        md.updated_at = utcnow()
        await self._session.flush()

    async def increase_popularity(self, md: Metadata) -> None:
        # Popularity is not an edit: keep updated_at (the record change date) untouched.
        stmt = (
            update(Metadata)
            .where(Metadata.id == md.id)
            .values(popularity=Metadata.popularity + 1, updated_at=Metadata.updated_at)
            .execution_options(synchronize_session=False)
        )
        await self._session.execute(stmt)
        set_committed_value(md, "popularity", (md.popularity or 0) + 1)


# --- Module Notes -----------------------------------------------------------
# Derived columns (title, parent_uuid, resource_type, operates_on) are written by
# `DataManager.index_metadata`, never by callers of this repository.
