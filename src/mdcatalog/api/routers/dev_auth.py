"""
mdcatalog.api.routers.dev_auth

Token minting for local development and tests (disabled in prod).
"""

from __future__ import annotations

from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_404_NOT_FOUND

from mdcatalog.api.deps import db_session, settings_dep
from mdcatalog.auth.jwt import JwtConfig, issue_token
from mdcatalog.db.repositories.users import UserRepo
from mdcatalog.settings import Settings

router = APIRouter(prefix="/api/dev", tags=["dev"])


class DevTokenRequest(BaseModel):
    user_id: int
    ttl_minutes: int = Field(default=60, ge=1, le=24 * 60)


class DevTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    profile: str


@router.post("/token", response_model=DevTokenResponse)
async def mint_dev_token(
    body: DevTokenRequest,
    settings: Settings = Depends(settings_dep),
    session: AsyncSession = Depends(db_session),
) -> DevTokenResponse:
    if settings.env == "prod":
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Not found")

    # The profile claim is taken from the stored user, never from the request.
    user = await UserRepo(session).get(body.user_id)
    if user is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="User not found")

    token = issue_token(
        cfg=JwtConfig.from_settings(settings),
        user_id=user.id,
        username=user.username,
        profile=user.profile.value,
        ttl=timedelta(minutes=body.ttl_minutes),
    )
    return DevTokenResponse(access_token=token, profile=user.profile.value)
