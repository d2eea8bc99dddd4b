"""
mdcatalog.db.repositories.operations

Repository for `OperationAllowed` grants and the `Operation` catalog.

Responsibilities:
- Read, add and delete privilege grants for a record.
- Resolve the grants owned through a record owner (privilege migration).
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from mdcatalog.db.models import Metadata, Operation, OperationAllowed, ReservedGroup


class OperationAllowedRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(
        self, *, metadata_id: int, group_id: int, operation_id: int
    ) -> OperationAllowed | None:
        return await self._session.get(OperationAllowed, (metadata_id, group_id, operation_id))

    async def add(self, *, metadata_id: int, group_id: int, operation_id: int) -> OperationAllowed:
        grant = OperationAllowed(
            metadata_id=metadata_id, group_id=group_id, operation_id=operation_id
        )
        self._session.add(grant)
        await self._session.flush()
        return grant

    async def remove(self, grant: OperationAllowed) -> None:
        await self._session.delete(grant)
        await self._session.flush()

    async def delete_for_metadata(self, metadata_id: int, *, skip_reserved: bool = False) -> int:
        stmt = delete(OperationAllowed).where(OperationAllowed.metadata_id == metadata_id)
        if skip_reserved:
            stmt = stmt.where(OperationAllowed.group_id.not_in([g.value for g in ReservedGroup]))
        result = await self._session.execute(stmt.execution_options(synchronize_session="fetch"))
        return result.rowcount or 0

    async def list_for_metadata(self, metadata_id: int) -> list[OperationAllowed]:
        stmt = (
            select(OperationAllowed)
            .where(OperationAllowed.metadata_id == metadata_id)
            .order_by(OperationAllowed.group_id, OperationAllowed.operation_id)
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def operation_ids_for_groups(
        self, metadata_id: int, group_ids: Iterable[int]
    ) -> set[int]:
        stmt = select(OperationAllowed.operation_id).where(
            OperationAllowed.metadata_id == metadata_id,
            OperationAllowed.group_id.in_(list(group_ids)),
        )
        return set((await self._session.execute(stmt)).scalars().all())

    async def find_all_with_owner(
        self, *, owner: int, metadata_id: int, group_id: int | None = None
    ) -> list[OperationAllowed]:
        # Grants of a record owned by `owner`, optionally restricted to one group.
        stmt = (
            select(OperationAllowed)
            .join(Metadata, Metadata.id == OperationAllowed.metadata_id)
            .where(Metadata.owner == owner, OperationAllowed.metadata_id == metadata_id)
            .order_by(OperationAllowed.group_id, OperationAllowed.operation_id)
        )
        if group_id is not None:
            stmt = stmt.where(OperationAllowed.group_id == group_id)
        return list((await self._session.execute(stmt)).scalars().all())


class OperationRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, operation_id: int) -> Operation | None:
        return await self._session.get(Operation, operation_id)
