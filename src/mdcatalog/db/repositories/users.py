from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from mdcatalog.db.models import Profile, User


class UserRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self, *, username: str, profile: Profile = Profile.registered_user, name: str | None = None
    ) -> User:
        user = User(username=username, profile=profile, name=name)
        self._session.add(user)
        await self._session.flush()
        return user

    async def get(self, user_id: int) -> User | None:
        return await self._session.get(User, user_id)
