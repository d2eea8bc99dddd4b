"""
mdcatalog.api.routers.health

Health and readiness endpoints.

Responsibilities:
- Provide liveness probe (`/healthz`).
- Provide readiness probe (`/readyz`): DB reachable and reserved rows seeded.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_503_SERVICE_UNAVAILABLE

from mdcatalog.api.deps import db_session
from mdcatalog.db.models import Operation, ReservedOperation

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(session: AsyncSession = Depends(db_session)) -> dict[str, str]:
    # Privilege checks are meaningless without the reserved operations in place.
    count = (await session.execute(select(func.count()).select_from(Operation))).scalar_one()
    if count < len(ReservedOperation):
        raise HTTPException(status_code=HTTP_503_SERVICE_UNAVAILABLE, detail="Catalog not seeded")
    return {"status": "ready"}
