"""
mdcatalog.services.access

Record-level authorization.

Responsibilities:
- Compute the groups a caller acts through (reserved network groups + memberships).
- Decide ownership, edit and view rights from stored grants.
- Check whether a caller may grant an operation to a group.
"""

from __future__ import annotations

import ipaddress
from functools import cached_property

from sqlalchemy.ext.asyncio import AsyncSession

from mdcatalog.auth.models import Principal
from mdcatalog.db.models import Metadata, Profile, ReservedGroup, ReservedOperation
from mdcatalog.db.repositories.groups import GroupRepo, UserGroupRepo
from mdcatalog.db.repositories.metadata import MetadataRepo
from mdcatalog.db.repositories.operations import OperationAllowedRepo
from mdcatalog.errors import NotAllowed, OperationNotAllowed, ResourceNotFound
from mdcatalog.settings import Settings

ALL_OPERATIONS: frozenset[int] = frozenset(op.value for op in ReservedOperation)


class AccessManager:
    def __init__(self, *, session: AsyncSession, settings: Settings, principal: Principal) -> None:
        self._settings = settings
        self._principal = principal
        self._groups = GroupRepo(session)
        self._memberships = UserGroupRepo(session)
        self._grants = OperationAllowedRepo(session)
        self._records = MetadataRepo(session)

    @property
    def principal(self) -> Principal:
        return self._principal

    @cached_property
    def _intranet(self) -> list[ipaddress.IPv4Network | ipaddress.IPv6Network]:
        return [ipaddress.ip_network(n, strict=False) for n in self._settings.intranet_networks]

    def is_intranet(self, ip: str | None) -> bool:
        if not ip:
            return False
        try:
            addr = ipaddress.ip_address(ip)
        except ValueError:
            return False
        return any(addr in net for net in self._intranet)

    async def user_groups(self, *, editing_only: bool = False) -> set[int]:
        p = self._principal
        groups: set[int] = set()
        if not editing_only:
            groups.add(ReservedGroup.all.value)
            if self.is_intranet(p.ip):
                groups.add(ReservedGroup.intranet.value)
        if not p.is_authenticated:
            return groups

        if p.is_admin:
            return groups | await self._groups.all_ids()
        if editing_only:
            return groups | await self._memberships.group_ids(p.user_id, profiles=[Profile.editor])
        groups.add(ReservedGroup.guest.value)
        return groups | await self._memberships.group_ids(p.user_id)

    async def is_owner(self, md: Metadata) -> bool:
        p = self._principal
        if not p.is_authenticated:
            return False
        if p.is_admin or md.owner == p.user_id:
            return True
        if md.group_owner is None:
            return False
        # Reviewers and user admins own the records of groups they hold that profile in.
        if p.profile in (Profile.user_admin, Profile.reviewer):
            managed = await self._memberships.group_ids(
                p.user_id, profiles=[Profile.user_admin, Profile.reviewer]
            )
            return md.group_owner in managed
        return False

    async def has_edit_permission(self, md: Metadata) -> bool:
        if not self._principal.is_authenticated:
            return False
        editing_groups = await self.user_groups(editing_only=True)
        if not editing_groups:
            return False
        granted = await self._grants.operation_ids_for_groups(md.id, editing_groups)
        return ReservedOperation.editing.value in granted

    async def can_edit(self, md: Metadata) -> bool:
        return await self.is_owner(md) or await self.has_edit_permission(md)

    async def operations(self, md: Metadata) -> set[int]:
        if await self.is_owner(md) or await self.has_edit_permission(md):
            return set(ALL_OPERATIONS)
        return await self._grants.operation_ids_for_groups(md.id, await self.user_groups())

    async def can_view(self, md: Metadata) -> bool:
        return ReservedOperation.view.value in await self.operations(md)

    async def can_download(self, md: Metadata) -> bool:
        return ReservedOperation.download.value in await self.operations(md)

    async def can_view_record(self, uuid: str) -> Metadata:
        md = await self.record_or_404(uuid)
        if not await self.can_view(md):
            raise NotAllowed("You can't view record with UUID " + uuid)
        return md

    async def can_edit_record(self, uuid: str) -> Metadata:
        md = await self.record_or_404(uuid)
        if not await self.can_edit(md):
            raise NotAllowed("You can't edit record with UUID " + uuid)
        return md

    async def check_operation_permission(self, group_id: int) -> None:
        p = self._principal
        if p.is_admin or p.profile == Profile.user_admin:
            return
        if not p.is_authenticated:
            raise OperationNotAllowed(
                f"User can't set operation for group {group_id} because the user is not logged in."
            )
        if ReservedGroup.is_reserved(group_id):
            reviewer_of = await self._memberships.group_ids(p.user_id, profiles=[Profile.reviewer])
            if not reviewer_of:
                raise OperationNotAllowed(
                    f"User can't set operation for group {group_id} because the user "
                    "is not a Reviewer of any group."
                )
        elif self._settings.metadata_privs_user_group_only:
            if not await self._memberships.is_member(user_id=p.user_id, group_id=group_id):
                raise OperationNotAllowed(
                    f"User can't set operation for group {group_id} because the user "
                    "is not a member of this group."
                )

    async def record_or_404(self, uuid: str) -> Metadata:
        md = await self._records.get_by_uuid(uuid)
        if md is None:
            raise ResourceNotFound(f"Record with UUID '{uuid}' not found in this catalog")
        return md


# --- Module Notes -----------------------------------------------------------
# Group membership is read on every check; callers that loop over many records
# construct one AccessManager per request and accept the per-record queries.
