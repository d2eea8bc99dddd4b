"""
mdcatalog.services.data_manager

Privilege and ownership mutations on records, plus field indexing.

Responsibilities:
- Add/remove privilege grants with permission checks on new grants.
- Clear a record's grants, optionally preserving reserved-group grants.
- Copy default privileges to a group, update ownership, bump popularity.
- Re-extract indexed fields from the stored XML.
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from mdcatalog.db.models import Metadata, ReservedOperation, utcnow
from mdcatalog.db.repositories.groups import GroupRepo
from mdcatalog.db.repositories.metadata import MetadataRepo
from mdcatalog.db.repositories.operations import OperationAllowedRepo, OperationRepo
from mdcatalog.errors import ResourceNotFound
from mdcatalog.formats.documents import parse
from mdcatalog.formats.extract import index_fields
from mdcatalog.observability.logging import get_logger
from mdcatalog.services.access import AccessManager

log = get_logger(__name__)


class DataManager:
    def __init__(self, *, session: AsyncSession, access: AccessManager) -> None:
        self._session = session
        self._access = access
        self._records = MetadataRepo(session)
        self._grants = OperationAllowedRepo(session)
        self._operations = OperationRepo(session)
        self._groups = GroupRepo(session)

    async def set_operation(self, md: Metadata, group_id: int, operation_id: int) -> bool:
        """
        Grant `operation_id` on `md` to `group_id`. Returns False when already granted.

        Only new grants are permission-checked, so re-sending an existing privilege
        never fails.
        """

        existing = await self._grants.get(
            metadata_id=md.id, group_id=group_id, operation_id=operation_id
        )
        if existing is not None:
            return False
        if await self._groups.get(group_id) is None:
            raise ResourceNotFound(f"Group with identifier '{group_id}' not found.")
        if await self._operations.get(operation_id) is None:
            raise ResourceNotFound(f"Operation with identifier '{operation_id}' not found.")
        await self._access.check_operation_permission(group_id)
        await self._grants.add(metadata_id=md.id, group_id=group_id, operation_id=operation_id)
        return True

    async def unset_operation(self, md: Metadata, group_id: int, operation_id: int) -> bool:
        existing = await self._grants.get(
            metadata_id=md.id, group_id=group_id, operation_id=operation_id
        )
        if existing is None:
            return False
        await self._grants.remove(existing)
        return True

    async def delete_metadata_oper(self, md: Metadata, *, skip_all_reserved: bool) -> int:
        return await self._grants.delete_for_metadata(md.id, skip_reserved=skip_all_reserved)

    async def copy_default_priv_for_group(
        self, md: Metadata, group_id: int, *, full_rights: bool = False
    ) -> None:
        operations = (
            list(ReservedOperation)
            if full_rights
            else [ReservedOperation.view, ReservedOperation.notify]
        )
        for op in operations:
            await self.set_operation(md, group_id, op.value)

    async def update_metadata_owner(self, md: Metadata, *, owner: int, group_owner: int) -> None:
        await self._records.set_owner(md, owner=owner, group_owner=group_owner)

    async def increase_popularity(self, md: Metadata) -> None:
        await self._records.increase_popularity(md)

    async def index_metadata(self, records: Iterable[Metadata]) -> int:
        count = 0
        for md in records:
            fields = index_fields(parse(md.data), md.schema_id)
            md.title = fields.title
            md.parent_uuid = fields.parent_uuid
            md.resource_type = fields.resource_type
            md.operates_on = fields.operates_on
            md.indexed_at = utcnow()
            count += 1
        await self._session.flush()
        if count:
            log.debug("records.indexed", count=count)
        return count


# --- Module Notes -----------------------------------------------------------
# Nothing here commits; request handlers and bulk services own the transaction.
