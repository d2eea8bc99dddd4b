"""
mdcatalog.api.routers.sharing

Record sharing and ownership endpoints.

Responsibilities:
- Set and read the privileges of a record.
- Change the owning group of a record.
- Bulk-change owner and group of records, returning a processing report.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import Response
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from mdcatalog.api.deps import access_manager, db_session
from mdcatalog.auth.deps import require_authenticated
from mdcatalog.services.access import AccessManager
from mdcatalog.services.report import MetadataProcessingReport
from mdcatalog.services.sharing import PrivilegeChange, SharingService

router = APIRouter(tags=["records"], dependencies=[Depends(require_authenticated)])
bulk_router = APIRouter(tags=["records"], dependencies=[Depends(require_authenticated)])


class PrivilegeParameter(BaseModel):
    group: int
    operation: int
    published: bool = True


class SharingParameter(BaseModel):
    # When true, existing privileges are removed before the new ones are applied.
    clear: bool = False
    privileges: list[PrivilegeParameter] | None = None


@router.put("/{metadata_uuid}/sharing", status_code=HTTP_201_CREATED)
async def share(
    metadata_uuid: str,
    sharing: SharingParameter,
    session: AsyncSession = Depends(db_session),
    access: AccessManager = Depends(access_manager),
) -> Response:
    await SharingService(session=session, access=access).share(
        metadata_uuid,
        clear=sharing.clear,
        privileges=[
            PrivilegeChange(group=p.group, operation=p.operation, published=p.published)
            for p in sharing.privileges or []
        ],
    )
    return Response(status_code=HTTP_201_CREATED)


@router.get("/{metadata_uuid}/sharing")
async def get_sharing(
    metadata_uuid: str,
    session: AsyncSession = Depends(db_session),
    access: AccessManager = Depends(access_manager),
) -> dict[str, Any]:
    privileges = await SharingService(session=session, access=access).sharing(metadata_uuid)
    return {"uuid": metadata_uuid, "privileges": privileges}


@router.put("/{metadata_uuid}/group", status_code=HTTP_201_CREATED)
async def set_record_group(
    metadata_uuid: str,
    group_identifier: int = Body(...),
    session: AsyncSession = Depends(db_session),
    access: AccessManager = Depends(access_manager),
) -> Response:
    await SharingService(session=session, access=access).set_group(metadata_uuid, group_identifier)
    return Response(status_code=HTTP_201_CREATED)


@bulk_router.put(
    "/group-and-owner",
    status_code=HTTP_201_CREATED,
    response_model=MetadataProcessingReport,
)
async def set_group_and_owner(
    uuids: list[str] | None = Query(None),
    group_identifier: int = Query(..., alias="groupIdentifier"),
    user_identifier: int = Query(..., alias="userIdentifier"),
    session: AsyncSession = Depends(db_session),
    access: AccessManager = Depends(access_manager),
) -> MetadataProcessingReport:
    return await SharingService(session=session, access=access).set_group_and_owner(
        uuids=uuids, group_id=group_identifier, user_id=user_identifier
    )


# --- Module Notes -----------------------------------------------------------
# `bulk_router` is mounted both under /api/records and directly under /api.
