"""
mdcatalog.api.routers.selections

Per-user record selections, used as the default input of bulk operations.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from mdcatalog.api.deps import db_session
from mdcatalog.auth.deps import require_authenticated
from mdcatalog.auth.models import Principal
from mdcatalog.db.repositories.selections import SelectionRepo

router = APIRouter(prefix="/api/selections", tags=["selections"])


class SelectionResponse(BaseModel):
    bucket: str
    uuids: list[str]


class SelectionChange(BaseModel):
    bucket: str
    changed: int


@router.get("/{bucket}", response_model=SelectionResponse)
async def get_selection(
    bucket: str,
    principal: Principal = Depends(require_authenticated),
    session: AsyncSession = Depends(db_session),
) -> SelectionResponse:
    uuids = await SelectionRepo(session).list_uuids(user_id=principal.user_id, bucket=bucket)
    return SelectionResponse(bucket=bucket, uuids=uuids)


@router.put("/{bucket}", response_model=SelectionChange, status_code=201)
async def add_to_selection(
    bucket: str,
    uuid: list[str] = Query(...),
    principal: Principal = Depends(require_authenticated),
    session: AsyncSession = Depends(db_session),
) -> SelectionChange:
    added = await SelectionRepo(session).add(user_id=principal.user_id, bucket=bucket, uuids=uuid)
    await session.commit()
    return SelectionChange(bucket=bucket, changed=added)


@router.delete("/{bucket}", response_model=SelectionChange)
async def remove_from_selection(
    bucket: str,
    uuid: list[str] | None = Query(None),
    principal: Principal = Depends(require_authenticated),
    session: AsyncSession = Depends(db_session),
) -> SelectionChange:
    removed = await SelectionRepo(session).remove(
        user_id=principal.user_id, bucket=bucket, uuids=uuid
    )
    await session.commit()
    return SelectionChange(bucket=bucket, changed=removed)
