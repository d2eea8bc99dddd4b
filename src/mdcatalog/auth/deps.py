"""
mdcatalog.auth.deps

FastAPI dependency functions for authentication.

Responsibilities:
- Convert an optional bearer token into a typed `Principal` (anonymous when absent).
- Guard write endpoints with an authenticated-only dependency.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.status import HTTP_401_UNAUTHORIZED

from mdcatalog.auth.jwt import JwtConfig, JwtValidationError, decode_and_validate
from mdcatalog.auth.models import Principal
from mdcatalog.db.models import Profile
from mdcatalog.settings import Settings, get_settings

_bearer = HTTPBearer(auto_error=False)


def app_settings(request: Request) -> Settings:
    # Prefer the settings the app was built with (tests pass their own).
    return getattr(request.app.state, "settings", None) or get_settings()


def get_principal(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
    settings: Settings = Depends(app_settings),
) -> Principal:
    ip = request.client.host if request.client else None
    # Catalog reads are open to anonymous callers; privileges decide what they see.
    if creds is None or not creds.credentials:
        return Principal.anonymous(ip=ip)

    try:
        payload = decode_and_validate(cfg=JwtConfig.from_settings(settings), token=creds.credentials)
    except JwtValidationError as e:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail=f"Invalid token: {e}") from e

    try:
        user_id = int(payload["sub"])
        profile = Profile(str(payload.get("profile", Profile.registered_user.value)))
    except ValueError as e:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid token claims") from e

    return Principal(
        user_id=user_id,
        username=str(payload.get("username", payload["sub"])),
        profile=profile,
        ip=ip,
    )


def require_authenticated(principal: Principal = Depends(get_principal)) -> Principal:
    if not principal.is_authenticated:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return principal


# --- Module Notes -----------------------------------------------------------
# Record-level authorization (view/edit/owner) lives in `services.access`, since it
# depends on stored grants rather than on token claims.
