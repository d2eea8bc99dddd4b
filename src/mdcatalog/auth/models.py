"""
mdcatalog.auth.models

Auth domain models.

Responsibilities:
- Define the caller identity type (`Principal`) injected into endpoints.
"""

from __future__ import annotations

from dataclasses import dataclass

from mdcatalog.db.models import Profile


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Caller identity. Anonymous callers have no user id and the Guest profile.
    """

    user_id: int | None
    username: str
    profile: Profile
    # Client address, used for intranet group membership.
    ip: str | None = None

    @classmethod
    def anonymous(cls, ip: str | None = None) -> Principal:
        return cls(user_id=None, username="anonymous", profile=Profile.guest, ip=ip)

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def is_admin(self) -> bool:
        return self.is_authenticated and self.profile == Profile.administrator


# --- Module Notes -----------------------------------------------------------
# Group memberships are not carried in the token; `services.access` reads them from
# the database so revocations apply immediately.
