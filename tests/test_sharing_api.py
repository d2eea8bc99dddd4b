"""
tests.test_sharing_api

Sharing and ownership endpoints: privilege updates, owning-group changes and the bulk
owner/group transfer report.
"""

from __future__ import annotations

import httpx
import pytest
from fastapi import FastAPI

from mdcatalog.db.models import ReservedGroup, ReservedOperation
from mdcatalog.db.repositories.metadata import MetadataRepo
from mdcatalog.db.repositories.operations import OperationAllowedRepo

VIEW = ReservedOperation.view.value
DOWNLOAD = ReservedOperation.download.value
EDITING = ReservedOperation.editing.value
NOTIFY = ReservedOperation.notify.value
FEATURED = ReservedOperation.featured.value
ALL = ReservedGroup.all.value


async def _grants(app: FastAPI, uuid: str) -> set[tuple[int, int]]:
    async with app.state.sessionmaker() as s:
        md = await MetadataRepo(s).get_by_uuid(uuid)
        assert md is not None
        return {(g.group_id, g.operation_id) for g in await OperationAllowedRepo(s).list_for_metadata(md.id)}


async def _ownership(app: FastAPI, uuid: str) -> tuple[int, int | None]:
    async with app.state.sessionmaker() as s:
        md = await MetadataRepo(s).get_by_uuid(uuid)
        assert md is not None
        return md.owner, md.group_owner


@pytest.mark.asyncio
async def test_sharing_requires_authentication(client: httpx.AsyncClient, catalog) -> None:
    r = await client.put("/api/records/ds-1/sharing", json={"privileges": []})
    assert r.status_code == 401

    r = await client.put("/api/records/ds-1/group", json=catalog.other_group)
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_sharing_requires_edit_rights(client: httpx.AsyncClient, catalog, auth) -> None:
    r = await client.put(
        "/api/records/ds-1/sharing",
        json={"privileges": [{"group": catalog.other_group, "operation": VIEW}]},
        headers=auth(catalog.other),
    )
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_share_adds_and_removes_privileges(
    app: FastAPI, client: httpx.AsyncClient, catalog, auth
) -> None:
    r = await client.put(
        "/api/records/ds-1/sharing",
        json={
            "privileges": [
                {"group": catalog.sample_group, "operation": DOWNLOAD, "published": True},
                {"group": catalog.sample_group, "operation": NOTIFY, "published": False},
            ]
        },
        headers=auth(catalog.editor),
    )
    assert r.status_code == 201
    assert await _grants(app, "ds-1") == {
        (ALL, VIEW),
        (ALL, DOWNLOAD),
        (catalog.sample_group, VIEW),
        (catalog.sample_group, DOWNLOAD),
    }


@pytest.mark.asyncio
async def test_clear_by_plain_owner_keeps_reserved_groups(
    app: FastAPI, client: httpx.AsyncClient, catalog, auth
) -> None:
    r = await client.put(
        "/api/records/ds-1/sharing",
        json={
            "clear": True,
            "privileges": [{"group": catalog.other_group, "operation": VIEW}],
        },
        headers=auth(catalog.editor),
    )
    assert r.status_code == 201
    assert await _grants(app, "ds-1") == {
        (ALL, VIEW),
        (ALL, DOWNLOAD),
        (catalog.other_group, VIEW),
    }


@pytest.mark.asyncio
async def test_clear_by_admin_removes_everything(
    app: FastAPI, client: httpx.AsyncClient, catalog, auth
) -> None:
    r = await client.put(
        "/api/records/ds-1/sharing",
        json={"clear": True, "privileges": [{"group": ALL, "operation": FEATURED}]},
        headers=auth(catalog.admin),
    )
    assert r.status_code == 201
    assert await _grants(app, "ds-1") == {(ALL, FEATURED)}


@pytest.mark.asyncio
async def test_clear_without_privilege_list(
    app: FastAPI, client: httpx.AsyncClient, catalog, auth
) -> None:
    r = await client.put(
        "/api/records/ds-1/sharing",
        json={"clear": True, "privileges": None},
        headers=auth(catalog.admin),
    )
    assert r.status_code == 201
    assert await _grants(app, "ds-1") == set()


@pytest.mark.asyncio
async def test_editing_is_never_granted_to_reserved_groups(
    app: FastAPI, client: httpx.AsyncClient, catalog, auth
) -> None:
    r = await client.put(
        "/api/records/ds-1/sharing",
        json={
            "privileges": [
                {"group": ALL, "operation": EDITING},
                {"group": catalog.sample_group, "operation": EDITING},
            ]
        },
        headers=auth(catalog.admin),
    )
    assert r.status_code == 201
    grants = await _grants(app, "ds-1")
    assert (ALL, EDITING) not in grants
    assert (catalog.sample_group, EDITING) in grants


@pytest.mark.asyncio
async def test_publishing_needs_a_reviewer(
    app: FastAPI, client: httpx.AsyncClient, catalog, auth
) -> None:
    before = await _grants(app, "ds-private")
    r = await client.put(
        "/api/records/ds-private/sharing",
        json={
            "privileges": [
                {"group": catalog.sample_group, "operation": DOWNLOAD},
                {"group": ALL, "operation": VIEW},
            ]
        },
        headers=auth(catalog.editor),
    )
    assert r.status_code == 403
    assert r.json()["error"] == "operation_not_allowed"
    # Nothing of the rejected request is kept.
    assert await _grants(app, "ds-private") == before

    r = await client.put(
        "/api/records/ds-private/sharing",
        json={"privileges": [{"group": ALL, "operation": VIEW}]},
        headers=auth(catalog.reviewer),
    )
    assert r.status_code == 201
    assert (ALL, VIEW) in await _grants(app, "ds-private")


@pytest.mark.asyncio
async def test_existing_reserved_grant_is_not_rechecked(
    client: httpx.AsyncClient, catalog, auth
) -> None:
    r = await client.put(
        "/api/records/ds-1/sharing",
        json={"privileges": [{"group": ALL, "operation": VIEW}]},
        headers=auth(catalog.editor),
    )
    assert r.status_code == 201


@pytest.mark.asyncio
async def test_share_with_unknown_group_is_404(client: httpx.AsyncClient, catalog, auth) -> None:
    r = await client.put(
        "/api/records/ds-1/sharing",
        json={"privileges": [{"group": 4242, "operation": VIEW}]},
        headers=auth(catalog.admin),
    )
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_get_sharing(client: httpx.AsyncClient, catalog, auth) -> None:
    r = await client.get("/api/records/ds-1/sharing", headers=auth(catalog.editor))
    assert r.status_code == 200
    body = r.json()
    assert body["uuid"] == "ds-1"
    by_group = {p["group"]: p for p in body["privileges"]}
    assert by_group[ALL]["name"] == "all"
    assert by_group[ALL]["reserved"] is True
    assert by_group[ALL]["operations"]["download"] is True
    assert by_group[ALL]["operations"]["editing"] is False
    sample = by_group[catalog.sample_group]
    assert sample["reserved"] is False
    assert sample["operations"]["notify"] is True


@pytest.mark.asyncio
async def test_set_group(app: FastAPI, client: httpx.AsyncClient, catalog, auth) -> None:
    r = await client.put(
        "/api/records/ds-1/group", json=catalog.other_group, headers=auth(catalog.editor)
    )
    assert r.status_code == 201
    assert await _ownership(app, "ds-1") == (catalog.editor.id, catalog.other_group)


@pytest.mark.asyncio
async def test_set_unknown_group_is_404(client: httpx.AsyncClient, catalog, auth) -> None:
    r = await client.put("/api/records/ds-1/group", json=4242, headers=auth(catalog.editor))
    assert r.status_code == 404
    assert r.json()["message"] == "Group with identifier '4242' not found."


@pytest.mark.asyncio
async def test_group_and_owner_migrates_group_privileges(
    app: FastAPI, client: httpx.AsyncClient, catalog, auth
) -> None:
    r = await client.put(
        "/api/records/group-and-owner",
        params={
            "uuids": ["ds-1", "srv-1", "missing"],
            "groupIdentifier": catalog.other_group,
            "userIdentifier": catalog.other.id,
        },
        headers=auth(catalog.admin),
    )
    assert r.status_code == 201
    report = r.json()
    assert report["total_records"] == 3
    assert report["processed_records"] == 2
    assert report["null_records"] == 1
    assert report["running"] is False
    assert report["end_iso_datetime"]
    assert sorted(report["metadata"]) == sorted(
        [catalog.records["ds-1"], catalog.records["srv-1"]]
    )

    # ds-1: the sample group's grants move to the new group; reserved grants stay.
    assert await _grants(app, "ds-1") == {
        (ALL, VIEW),
        (ALL, DOWNLOAD),
        (catalog.other_group, VIEW),
        (catalog.other_group, NOTIFY),
    }
    assert await _ownership(app, "ds-1") == (catalog.other.id, catalog.other_group)

    # srv-1 had no grants for its group: defaults are applied and reported.
    assert await _grants(app, "srv-1") == {
        (ALL, VIEW),
        (catalog.other_group, VIEW),
        (catalog.other_group, NOTIFY),
    }
    infos = report["metadata_infos"][str(catalog.records["srv-1"])]
    assert infos[0]["message"] == (
        f"No privileges for user '{catalog.editor.id}' on metadata 'srv-1', "
        "so setting default privileges"
    )


@pytest.mark.asyncio
async def test_group_and_owner_reports_not_editable_records(
    app: FastAPI, client: httpx.AsyncClient, catalog, auth
) -> None:
    r = await client.put(
        "/api/group-and-owner",
        params={
            "uuids": "ds-1",
            "groupIdentifier": catalog.other_group,
            "userIdentifier": catalog.other.id,
        },
        headers=auth(catalog.other),
    )
    assert r.status_code == 201
    report = r.json()
    assert report["processed_records"] == 0
    assert report["not_editable_records"] == [catalog.records["ds-1"]]
    assert await _ownership(app, "ds-1") == (catalog.editor.id, catalog.sample_group)


async def _grant(app: FastAPI, uuid: str, group_id: int, operation_id: int) -> None:
    async with app.state.sessionmaker() as s:
        md = await MetadataRepo(s).get_by_uuid(uuid)
        assert md is not None
        await OperationAllowedRepo(s).add(
            metadata_id=md.id, group_id=group_id, operation_id=operation_id
        )
        await s.commit()


def _only_own_groups(app: FastAPI) -> None:
    app.state.settings = app.state.settings.model_copy(
        update={"metadata_privs_user_group_only": True}
    )


@pytest.mark.asyncio
async def test_group_and_owner_existing_target_grants_need_no_permission(
    app: FastAPI, client: httpx.AsyncClient, catalog, auth
) -> None:
    _only_own_groups(app)
    await _grant(app, "srv-1", catalog.other_group, VIEW)
    await _grant(app, "srv-1", catalog.other_group, NOTIFY)

    r = await client.put(
        "/api/records/group-and-owner",
        params={
            "uuids": "srv-1",
            "groupIdentifier": catalog.other_group,
            "userIdentifier": catalog.other.id,
        },
        headers=auth(catalog.editor),
    )
    assert r.status_code == 201
    report = r.json()
    assert report["processed_records"] == 1
    assert report["metadata_errors"] == {}
    assert await _ownership(app, "srv-1") == (catalog.other.id, catalog.other_group)


@pytest.mark.asyncio
async def test_group_and_owner_failed_record_is_rolled_back_alone(
    app: FastAPI, client: httpx.AsyncClient, catalog, auth
) -> None:
    _only_own_groups(app)
    await _grant(app, "srv-1", catalog.other_group, VIEW)
    await _grant(app, "srv-1", catalog.other_group, NOTIFY)
    before = await _grants(app, "ds-1")

    r = await client.put(
        "/api/records/group-and-owner",
        params={
            "uuids": ["ds-1", "srv-1"],
            "groupIdentifier": catalog.other_group,
            "userIdentifier": catalog.other.id,
        },
        headers=auth(catalog.editor),
    )
    assert r.status_code == 201
    report = r.json()
    assert report["processed_records"] == 1
    assert report["metadata"] == [catalog.records["srv-1"]]
    errors = report["metadata_errors"][str(catalog.records["ds-1"])]
    assert errors[0]["type"] == "OperationNotAllowed"

    # ds-1 is untouched, including the grant removed before the refusal.
    assert await _grants(app, "ds-1") == before
    assert await _ownership(app, "ds-1") == (catalog.editor.id, catalog.sample_group)
    assert await _ownership(app, "srv-1") == (catalog.other.id, catalog.other_group)


@pytest.mark.asyncio
async def test_group_and_owner_unknown_target_group(
    app: FastAPI, client: httpx.AsyncClient, catalog, auth
) -> None:
    r = await client.put(
        "/api/records/group-and-owner",
        params={"uuids": "ds-1", "groupIdentifier": 4242, "userIdentifier": catalog.other.id},
        headers=auth(catalog.admin),
    )
    assert r.status_code == 201
    report = r.json()
    assert report["processed_records"] == 0
    assert report["errors"][0]["type"] == "ResourceNotFound"
    assert await _ownership(app, "ds-1") == (catalog.editor.id, catalog.sample_group)


@pytest.mark.asyncio
async def test_group_and_owner_uses_selection(
    app: FastAPI, client: httpx.AsyncClient, catalog, auth
) -> None:
    headers = auth(catalog.admin)

    r = await client.put(
        "/api/records/group-and-owner",
        params={"groupIdentifier": catalog.other_group, "userIdentifier": catalog.other.id},
        headers=headers,
    )
    assert r.status_code == 201
    assert r.json()["errors"][0]["type"] == "BadParameter"

    r = await client.put(
        "/api/selections/metadata", params={"uuid": ["ds-child", "ds-child"]}, headers=headers
    )
    assert r.status_code == 201
    assert r.json() == {"bucket": "metadata", "changed": 1}

    r = await client.put(
        "/api/records/group-and-owner",
        params={"groupIdentifier": catalog.other_group, "userIdentifier": catalog.other.id},
        headers=headers,
    )
    assert r.status_code == 201
    assert r.json()["metadata"] == [catalog.records["ds-child"]]
    assert await _ownership(app, "ds-child") == (catalog.other.id, catalog.other_group)


@pytest.mark.asyncio
async def test_selections_crud(client: httpx.AsyncClient, catalog, auth) -> None:
    headers = auth(catalog.editor)
    r = await client.get("/api/selections/metadata")
    assert r.status_code == 401

    await client.put("/api/selections/metadata", params={"uuid": ["ds-1", "srv-1"]}, headers=headers)
    r = await client.get("/api/selections/metadata", headers=headers)
    assert sorted(r.json()["uuids"]) == ["ds-1", "srv-1"]

    r = await client.delete("/api/selections/metadata", params={"uuid": "ds-1"}, headers=headers)
    assert r.json()["changed"] == 1
    r = await client.delete("/api/selections/metadata", headers=headers)
    assert r.json()["changed"] == 1
    r = await client.get("/api/selections/metadata", headers=headers)
    assert r.json()["uuids"] == []
