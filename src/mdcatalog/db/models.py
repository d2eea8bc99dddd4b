"""
mdcatalog.db.models

Core persistence schema for the catalog.

Responsibilities:
- Define ORM models for the catalog domain:
  - User / Group / UserGroup: identities and per-group profiles
  - Operation: privilege kinds (view, download, editing, ...)
  - Metadata: a catalog record (XML document + ownership + indexed fields)
  - OperationAllowed: one privilege grant (record, group, operation)
  - Selection: a user's saved set of record UUIDs
- Define the reserved operation/group identifiers and the profile hierarchy.
"""

from __future__ import annotations

import enum
from datetime import UTC, datetime

from sqlalchemy import JSON, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from mdcatalog.db.base import Base


def utcnow() -> datetime:
    # Naive UTC timestamps; SQLite has no timezone-aware column type.
    return datetime.now(tz=UTC).replace(tzinfo=None)


class Profile(enum.StrEnum):
    administrator = "Administrator"
    user_admin = "UserAdmin"
    reviewer = "Reviewer"
    editor = "Editor"
    registered_user = "RegisteredUser"
    guest = "Guest"
    monitor = "Monitor"


class ReservedOperation(enum.IntEnum):
    # Ids are stored in operation_allowed rows; treat as stable API contract.
    view = 0
    download = 1
    editing = 2
    notify = 3
    dynamic = 5
    featured = 6


class ReservedGroup(enum.IntEnum):
    guest = -1
    intranet = 0
    all = 1

    @classmethod
    def is_reserved(cls, group_id: int) -> bool:
        return group_id in cls._value2member_map_


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(256), nullable=False, unique=True)
    name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    profile: Mapped[Profile] = mapped_column(
        Enum(Profile), nullable=False, default=Profile.registered_user
    )


class Group(Base):
    __tablename__ = "groups"

    # Reserved groups use fixed ids (-1, 0, 1); others are assigned by the database.
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class UserGroup(Base):
    __tablename__ = "user_groups"

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), primary_key=True)
    group_id: Mapped[int] = mapped_column(ForeignKey("groups.id"), primary_key=True)
    profile: Mapped[Profile] = mapped_column(Enum(Profile), primary_key=True)


class Operation(Base):
    __tablename__ = "operations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)


class Metadata(Base):
    __tablename__ = "metadata"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    uuid: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)

    data: Mapped[str] = mapped_column(Text, nullable=False)
    schema_id: Mapped[str] = mapped_column(String(64), nullable=False, default="iso19139")
    # 'n' record, 'y' template, 's' subtemplate
    is_template: Mapped[str] = mapped_column(String(1), nullable=False, default="n")
    source: Mapped[str | None] = mapped_column(String(255), nullable=True)

    owner: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    group_owner: Mapped[int | None] = mapped_column(
        ForeignKey("groups.id"), nullable=True, index=True
    )

    popularity: Mapped[int] = mapped_column(nullable=False, default=0)
    rating: Mapped[int] = mapped_column(nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)

    # Fields extracted from `data` by `DataManager.index_metadata`.
    title: Mapped[str | None] = mapped_column(Text, nullable=True)
    parent_uuid: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    resource_type: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    operates_on: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    indexed_at: Mapped[datetime | None] = mapped_column(nullable=True)


class OperationAllowed(Base):
    __tablename__ = "operation_allowed"

    metadata_id: Mapped[int] = mapped_column(ForeignKey("metadata.id"), primary_key=True)
    group_id: Mapped[int] = mapped_column(ForeignKey("groups.id"), primary_key=True)
    operation_id: Mapped[int] = mapped_column(ForeignKey("operations.id"), primary_key=True)

    __table_args__ = (Index("ix_operation_allowed_group", "group_id", "operation_id"),)


class Selection(Base):
    __tablename__ = "selections"

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), primary_key=True)
    bucket: Mapped[str] = mapped_column(String(64), primary_key=True)
    uuid: Mapped[str] = mapped_column(String(255), primary_key=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)


def operation_names() -> dict[int, str]:
    return {op.value: op.name for op in ReservedOperation}


# --- Module Notes -----------------------------------------------------------
# Grants and memberships are queried explicitly through repositories rather than
# ORM relationships, which keeps async sessions free of implicit lazy loads.
