"""
mdcatalog.db.repositories.groups

Repositories for `Group` and `UserGroup` membership rows.
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mdcatalog.db.models import Group, Profile, UserGroup


class GroupRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, name: str, description: str | None = None) -> Group:
        grp = Group(name=name, description=description)
        self._session.add(grp)
        await self._session.flush()
        return grp

    async def get(self, group_id: int) -> Group | None:
        return await self._session.get(Group, group_id)

    async def all_ids(self) -> set[int]:
        return set((await self._session.execute(select(Group.id))).scalars().all())

    async def names_by_id(self, group_ids: Iterable[int]) -> dict[int, str]:
        stmt = select(Group.id, Group.name).where(Group.id.in_(list(group_ids)))
        return {gid: name for gid, name in (await self._session.execute(stmt)).all()}


class UserGroupRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, *, user_id: int, group_id: int, profile: Profile) -> UserGroup:
        ug = UserGroup(user_id=user_id, group_id=group_id, profile=profile)
        self._session.add(ug)
        await self._session.flush()
        return ug

    async def group_ids(self, user_id: int, *, profiles: Iterable[Profile] | None = None) -> set[int]:
        stmt = select(UserGroup.group_id).where(UserGroup.user_id == user_id)
        if profiles is not None:
            stmt = stmt.where(UserGroup.profile.in_(list(profiles)))
        return set((await self._session.execute(stmt)).scalars().all())

    async def is_member(self, *, user_id: int, group_id: int) -> bool:
        stmt = (
            select(UserGroup.group_id)
            .where(UserGroup.user_id == user_id, UserGroup.group_id == group_id)
            .limit(1)
        )
        return (await self._session.execute(stmt)).first() is not None
