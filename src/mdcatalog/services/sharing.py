"""
mdcatalog.services.sharing

Record sharing and ownership management.

Responsibilities:
- Apply a set of privilege changes to one record (with optional clear-first).
- Reassign a record's owning group.
- Bulk-reassign owner and group, migrating the old group's privileges to the new one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from mdcatalog.db.models import Metadata, Profile, ReservedGroup, ReservedOperation, operation_names
from mdcatalog.db.repositories.groups import GroupRepo
from mdcatalog.db.repositories.metadata import MetadataRepo
from mdcatalog.db.repositories.operations import OperationAllowedRepo
from mdcatalog.db.repositories.selections import SelectionRepo
from mdcatalog.db.repositories.users import UserRepo
from mdcatalog.errors import BadParameter, CatalogError, ResourceNotFound
from mdcatalog.observability.logging import get_logger
from mdcatalog.services.access import AccessManager
from mdcatalog.services.data_manager import DataManager
from mdcatalog.services.report import MetadataProcessingReport

log = get_logger(__name__)

SELECTION_BUCKET = "metadata"


@dataclass(frozen=True, slots=True)
class PrivilegeChange:
    group: int
    operation: int
    published: bool


class SharingService:
    def __init__(self, *, session: AsyncSession, access: AccessManager) -> None:
        self._session = session
        self._access = access
        self._data = DataManager(session=session, access=access)
        self._records = MetadataRepo(session)
        self._grants = OperationAllowedRepo(session)
        self._groups = GroupRepo(session)
        self._users = UserRepo(session)
        self._selections = SelectionRepo(session)

    async def share(self, uuid: str, *, clear: bool, privileges: list[PrivilegeChange]) -> None:
        md = await self._access.can_edit_record(uuid)
        principal = self._access.principal

        # Owners without admin/reviewer rights never see the reserved-group privileges in
        # the sharing form, so a clear must not wipe them.
        skip = (
            principal.user_id == md.owner
            and principal.profile not in (Profile.administrator, Profile.reviewer)
        )

        if clear:
            await self._data.delete_metadata_oper(md, skip_all_reserved=skip)

        for p in privileges:
            if p.operation == ReservedOperation.editing and ReservedGroup.is_reserved(p.group):
                continue
            if p.published:
                await self._data.set_operation(md, p.group, p.operation)
            elif not clear:
                await self._data.unset_operation(md, p.group, p.operation)

        await self._data.index_metadata([md])
        await self._session.commit()
        log.info("sharing.updated", uuid=uuid, clear=clear, privileges=len(privileges))

    async def sharing(self, uuid: str) -> list[dict[str, Any]]:
        md = await self._access.can_edit_record(uuid)
        grants = await self._grants.list_for_metadata(md.id)
        by_group: dict[int, set[int]] = {}
        for g in grants:
            by_group.setdefault(g.group_id, set()).add(g.operation_id)

        names = await self._groups.names_by_id(by_group)
        ops = operation_names()
        return [
            {
                "group": group_id,
                "name": names.get(group_id),
                "reserved": ReservedGroup.is_reserved(group_id),
                "operations": {name: op_id in granted for op_id, name in ops.items()},
            }
            for group_id, granted in sorted(by_group.items())
        ]

    async def set_group(self, uuid: str, group_id: int) -> None:
        md = await self._access.can_edit_record(uuid)
        if await self._groups.get(group_id) is None:
            raise ResourceNotFound(f"Group with identifier '{group_id}' not found.")
        await self._records.set_group_owner(md, group_id)
        await self._data.index_metadata([md])
        await self._session.commit()
        log.info("record.group_changed", uuid=uuid, group=group_id)

    async def set_group_and_owner(
        self,
        *,
        uuids: list[str] | None,
        group_id: int,
        user_id: int,
    ) -> MetadataProcessingReport:
        report = MetadataProcessingReport()
        try:
            records = await self._resolve_uuids(uuids)
            report.total_records = len(records)

            if await self._groups.get(group_id) is None:
                raise ResourceNotFound(f"Group with identifier '{group_id}' not found.")
            if await self._users.get(user_id) is None:
                raise ResourceNotFound(f"User with identifier '{user_id}' not found.")

            updated: list[Metadata] = []
            for uuid in records:
                md = await self._records.get_by_uuid(uuid)
                if md is None:
                    report.increment_null_records()
                elif not await self._access.can_edit(md):
                    report.add_not_editable_metadata_id(md.id)
                else:
                    md_id = md.id
                    try:
                        # A refused record is rolled back alone; the batch goes on.
                        async with self._session.begin_nested():
                            info = await self._transfer(md, group_id=group_id, user_id=user_id)
                    except CatalogError as e:
                        report.add_metadata_error(md_id, e)
                        continue
                    if info:
                        report.add_metadata_info(md_id, info)
                    updated.append(md)
                    report.add_metadata_id(md_id)
                    report.increment_processed_records()

            await self._data.index_metadata(updated)
            await self._session.commit()
        except CatalogError as e:
            await self._abort(report, e)
        except Exception as e:
            log.exception("records.group_and_owner_failed")
            await self._abort(report, e)
        finally:
            report.close()

        log.info(
            "records.group_and_owner",
            total=report.total_records,
            processed=report.processed_records,
            not_editable=len(report.not_editable_records),
            missing=report.null_records,
            errors=len(report.errors) + report.number_of_records_with_errors,
        )
        return report

    async def _abort(self, report: MetadataProcessingReport, exc: Exception) -> None:
        # Nothing of the batch is committed; the report must not claim otherwise.
        await self._session.rollback()
        report.processed_records = 0
        report.metadata.clear()
        report.metadata_infos.clear()
        report.add_error(exc)

    async def _transfer(self, md: Metadata, *, group_id: int, user_id: int) -> str | None:
        """
        Move `md` to a new owner and group, returning an info message when defaults were
        applied. Only grants that do not exist yet are permission-checked.
        """

        # Owners hold no explicit privileges; their group does. Migrate the grants of the
        # current owning group to the new group.
        source_user = md.owner
        source_group = md.group_owner
        source_privs = await self._grants.find_all_with_owner(
            owner=source_user, metadata_id=md.id, group_id=source_group
        )

        info = None
        if not source_privs:
            await self._data.copy_default_priv_for_group(md, group_id, full_rights=False)
            info = (
                f"No privileges for user '{source_user}' on metadata '{md.uuid}', "
                "so setting default privileges"
            )
        elif source_group != group_id:
            for op in [p.operation_id for p in source_privs]:
                if source_group is not None:
                    await self._data.unset_operation(md, source_group, op)
                await self._data.set_operation(md, group_id, op)

        await self._data.update_metadata_owner(md, owner=user_id, group_owner=group_id)
        return info

    async def _resolve_uuids(self, uuids: list[str] | None) -> list[str]:
        if uuids:
            return list(dict.fromkeys(uuids))
        principal = self._access.principal
        if not principal.is_authenticated:
            raise BadParameter("Parameter uuids is required when no selection is available.")
        selected = await self._selections.list_uuids(
            user_id=principal.user_id, bucket=SELECTION_BUCKET
        )
        if not selected:
            raise BadParameter("Parameter uuids or a non-empty record selection is required.")
        return selected


# --- Module Notes -----------------------------------------------------------
# Bulk operations never raise to the caller: failures land in the returned report.
