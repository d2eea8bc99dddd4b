"""
mdcatalog.db.repositories.selections

Repository for per-user record selections ("buckets" of UUIDs).
"""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from mdcatalog.db.models import Selection


class SelectionRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_uuids(self, *, user_id: int, bucket: str) -> list[str]:
        stmt = (
            select(Selection.uuid)
            .where(Selection.user_id == user_id, Selection.bucket == bucket)
            .order_by(Selection.created_at, Selection.uuid)
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def add(self, *, user_id: int, bucket: str, uuids: list[str]) -> int:
        existing = set(await self.list_uuids(user_id=user_id, bucket=bucket))
        added = 0
        for uuid in dict.fromkeys(uuids):
            if uuid in existing:
                continue
            self._session.add(Selection(user_id=user_id, bucket=bucket, uuid=uuid))
            added += 1
        await self._session.flush()
        return added

    async def remove(self, *, user_id: int, bucket: str, uuids: list[str] | None = None) -> int:
        stmt = delete(Selection).where(Selection.user_id == user_id, Selection.bucket == bucket)
        if uuids:
            stmt = stmt.where(Selection.uuid.in_(uuids))
        result = await self._session.execute(stmt)
        return result.rowcount or 0
