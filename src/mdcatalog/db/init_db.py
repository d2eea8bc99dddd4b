"""
mdcatalog.db.init_db

DB initialization helpers (dev/test convenience).

Responsibilities:
- Create tables for local development and tests.
- Seed the reserved groups and operations every catalog relies on.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from mdcatalog.db.base import Base
from mdcatalog.db.models import Group, Operation, ReservedGroup, ReservedOperation


async def init_db(engine: AsyncEngine) -> None:
    """
    Dev/test bootstrap: create tables if they don't exist, then seed reserved rows.
    Production should rely on Alembic migrations.
    """

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(bind=engine, expire_on_commit=False)
    async with session_factory() as session:
        await seed_reserved(session)
        await session.commit()


async def seed_reserved(session: AsyncSession) -> None:
    existing_ops = set((await session.execute(select(Operation.id))).scalars().all())
    for op in ReservedOperation:
        if op.value not in existing_ops:
            session.add(Operation(id=op.value, name=op.name))

    existing_groups = set((await session.execute(select(Group.id))).scalars().all())
    for grp in ReservedGroup:
        if grp.value not in existing_groups:
            session.add(Group(id=grp.value, name=grp.name, description=f"Reserved group {grp.name}"))
    await session.flush()


# --- Module Notes -----------------------------------------------------------
# Reserved ids are part of the privilege model: grants to `all` make a record public.
