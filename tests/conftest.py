"""
tests.conftest

Shared fixtures: an app bound to a temporary SQLite database, an in-process HTTP
client, and a small seeded catalog (users, groups, records, privileges).
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass
from pathlib import Path

import httpx
import pytest
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession

from mdcatalog.api.app import create_app
from mdcatalog.auth.jwt import JwtConfig, issue_token
from mdcatalog.auth.models import Principal
from mdcatalog.db.models import Profile, ReservedGroup, ReservedOperation, User
from mdcatalog.db.repositories.groups import GroupRepo, UserGroupRepo
from mdcatalog.db.repositories.metadata import MetadataRepo
from mdcatalog.db.repositories.operations import OperationAllowedRepo
from mdcatalog.db.repositories.users import UserRepo
from mdcatalog.services.access import AccessManager
from mdcatalog.services.data_manager import DataManager
from mdcatalog.settings import Settings

GMD = "http://www.isotc211.org/2005/gmd"


def iso_record(
    uuid: str,
    title: str,
    *,
    level: str = "dataset",
    parent: str | None = None,
    operates_on: tuple[str, ...] = (),
    online: str | None = None,
    thumbnail: str | None = None,
) -> str:
    parent_xml = (
        f"<gmd:parentIdentifier><gco:CharacterString>{parent}</gco:CharacterString>"
        "</gmd:parentIdentifier>"
        if parent
        else ""
    )
    ident_tag = "srv:SV_ServiceIdentification" if level == "service" else "gmd:MD_DataIdentification"
    thumb_xml = (
        "<gmd:graphicOverview><gmd:MD_BrowseGraphic>"
        f"<gmd:fileName><gco:CharacterString>{thumbnail}</gco:CharacterString></gmd:fileName>"
        "<gmd:fileDescription><gco:CharacterString>large_thumbnail</gco:CharacterString>"
        "</gmd:fileDescription></gmd:MD_BrowseGraphic></gmd:graphicOverview>"
        if thumbnail
        else ""
    )
    operates_xml = "".join(f'<srv:operatesOn uuidref="{u}"/>' for u in operates_on)
    online_xml = (
        "<gmd:distributionInfo><gmd:MD_Distribution><gmd:transferOptions>"
        "<gmd:MD_DigitalTransferOptions><gmd:onLine><gmd:CI_OnlineResource>"
        f"<gmd:linkage><gmd:URL>{online}</gmd:URL></gmd:linkage>"
        "<gmd:protocol><gco:CharacterString>WWW:LINK</gco:CharacterString></gmd:protocol>"
        "<gmd:name><gco:CharacterString>Download page</gco:CharacterString></gmd:name>"
        "</gmd:CI_OnlineResource></gmd:onLine></gmd:MD_DigitalTransferOptions>"
        "</gmd:transferOptions></gmd:MD_Distribution></gmd:distributionInfo>"
        if online
        else ""
    )
    return (
        '<gmd:MD_Metadata xmlns:gmd="http://www.isotc211.org/2005/gmd" '
        'xmlns:gco="http://www.isotc211.org/2005/gco" '
        'xmlns:srv="http://www.isotc211.org/2005/srv" '
        'xmlns:xlink="http://www.w3.org/1999/xlink">'
        f"<gmd:fileIdentifier><gco:CharacterString>{uuid}</gco:CharacterString>"
        "</gmd:fileIdentifier>"
        f"{parent_xml}"
        "<gmd:hierarchyLevel><gmd:MD_ScopeCode "
        'codeList="http://standards.iso.org/iso/19139/resources/gmxCodelists.xml#MD_ScopeCode" '
        f'codeListValue="{level}"/></gmd:hierarchyLevel>'
        '<gmd:contact xlink:href="http://catalog.example.org/contacts/42"/>'
        f"<gmd:identificationInfo><{ident_tag}>"
        "<gmd:citation><gmd:CI_Citation>"
        f"<gmd:title><gco:CharacterString>{title}</gco:CharacterString></gmd:title>"
        "</gmd:CI_Citation></gmd:citation>"
        f"{thumb_xml}{operates_xml}"
        f"</{ident_tag}></gmd:identificationInfo>"
        f"{online_xml}"
        "</gmd:MD_Metadata>"
    )


@dataclass
class Catalog:
    admin: User
    reviewer: User
    editor: User
    other: User
    sample_group: int
    other_group: int
    # uuid -> metadata id
    records: dict[str, int]


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        env="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}",
        data_dir=tmp_path / "data",
        jwt_secret="test-secret",
        # The in-process client connects from 127.0.0.1; keep it outside the intranet.
        intranet_networks=["10.0.0.0/8"],
        log_level="WARNING",
    )


@pytest.fixture
async def app(settings: Settings) -> AsyncIterator[FastAPI]:
    app = create_app(settings=settings)
    # httpx ASGITransport does not manage lifespan automatically; do it explicitly.
    await app.router.startup()
    try:
        yield app
    finally:
        await app.router.shutdown()


@pytest.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
async def session(app: FastAPI) -> AsyncIterator[AsyncSession]:
    async with app.state.sessionmaker() as s:
        yield s


@pytest.fixture
async def catalog(app: FastAPI, settings: Settings) -> Catalog:
    async with app.state.sessionmaker() as s:
        users = UserRepo(s)
        admin = await users.create(username="admin", profile=Profile.administrator)
        reviewer = await users.create(username="reviewer", profile=Profile.reviewer)
        editor = await users.create(username="editor", profile=Profile.editor)
        other = await users.create(username="other", profile=Profile.registered_user)

        groups = GroupRepo(s)
        sample = await groups.create(name="sample")
        other_group = await groups.create(name="other")

        memberships = UserGroupRepo(s)
        await memberships.add(user_id=editor.id, group_id=sample.id, profile=Profile.editor)
        await memberships.add(user_id=reviewer.id, group_id=sample.id, profile=Profile.reviewer)

        records = MetadataRepo(s)
        grants = OperationAllowedRepo(s)
        specs = [
            (
                "ds-1",
                iso_record(
                    "ds-1",
                    "Coastal erosion 2020",
                    online="https://data.example.org/erosion.zip",
                    thumbnail="https://data.example.org/erosion.png",
                ),
                [
                    (ReservedGroup.all, ReservedOperation.view),
                    (ReservedGroup.all, ReservedOperation.download),
                    (sample.id, ReservedOperation.view),
                    (sample.id, ReservedOperation.notify),
                ],
            ),
            (
                "ds-child",
                iso_record("ds-child", "Coastal erosion 2020 - north", parent="ds-1"),
                [(ReservedGroup.all, ReservedOperation.view)],
            ),
            (
                "ds-child-hidden",
                iso_record("ds-child-hidden", "Coastal erosion 2020 - draft", parent="ds-1"),
                [],
            ),
            (
                "srv-1",
                iso_record("srv-1", "Erosion WMS", level="service", operates_on=("ds-1",)),
                [(ReservedGroup.all, ReservedOperation.view)],
            ),
            (
                "ds-private",
                iso_record("ds-private", "Internal survey"),
                [(sample.id, ReservedOperation.view)],
            ),
        ]
        ids: dict[str, int] = {}
        created = []
        for uuid, xml, privileges in specs:
            md = await records.create(uuid=uuid, data=xml, owner=editor.id, group_owner=sample.id)
            ids[uuid] = md.id
            created.append(md)
            for group_id, op in privileges:
                await grants.add(metadata_id=md.id, group_id=int(group_id), operation_id=op.value)

        access = AccessManager(
            session=s,
            settings=settings,
            principal=Principal(user_id=admin.id, username="admin", profile=Profile.administrator),
        )
        await DataManager(session=s, access=access).index_metadata(created)
        await s.commit()

    return Catalog(
        admin=admin,
        reviewer=reviewer,
        editor=editor,
        other=other,
        sample_group=sample.id,
        other_group=other_group.id,
        records=ids,
    )


@pytest.fixture
def auth(settings: Settings):
    cfg = JwtConfig.from_settings(settings)

    def _headers(user: User) -> dict[str, str]:
        token = issue_token(
            cfg=cfg, user_id=user.id, username=user.username, profile=user.profile.value
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers

