"""
mdcatalog.mef.package

MEF archive writer.

Layout:
- v1: `metadata.xml`, `info.xml`, `public/*`, `private/*` at the archive root (one record).
- v2: one directory per record UUID holding `metadata/metadata.xml`, `info.xml`,
  `public/*` and `private/*`.

`simple` exports carry no files, `partial` adds public files, `full` adds public and
private files (the caller decides which private files a user may receive).
"""

from __future__ import annotations

import enum
import io
import zipfile
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from lxml import etree

from mdcatalog.formats.documents import to_bytes

MEF_V1_ACCEPT_TYPE = "application/x-gn-mef-1-zip"
MEF_V2_ACCEPT_TYPE = "application/x-gn-mef-2-zip"
INFO_VERSION = "1.1"


class MefVersion(enum.Enum):
    v1 = 1
    v2 = 2

    @classmethod
    def find(cls, accept: str | None) -> MefVersion:
        if accept and MEF_V1_ACCEPT_TYPE in accept:
            return cls.v1
        return cls.v2


class MefFormat(enum.StrEnum):
    simple = "simple"
    partial = "partial"
    full = "full"

    @property
    def with_public(self) -> bool:
        return self in (MefFormat.partial, MefFormat.full)

    @property
    def with_private(self) -> bool:
        return self is MefFormat.full


@dataclass(slots=True)
class MefRecord:
    uuid: str
    local_id: int
    schema_id: str
    is_template: str
    xml: etree._Element
    created_at: datetime
    updated_at: datetime
    popularity: int = 0
    rating: int = 0
    # group name -> operation names
    privileges: dict[str, list[str]] = field(default_factory=dict)
    public_files: list[Path] = field(default_factory=list)
    private_files: list[Path] = field(default_factory=list)


def resource_dir(data_dir: Path, metadata_id: int) -> Path:
    """Data directory of a record: `metadata_data/<range>/<id>`, ranges of 100 ids."""

    low = (metadata_id // 100) * 100
    return data_dir / "metadata_data" / f"{low:05d}-{low + 99:05d}" / str(metadata_id)


def list_files(directory: Path) -> list[Path]:
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.iterdir() if p.is_file())


def build_info(record: MefRecord, *, fmt: MefFormat, site_id: str, site_name: str) -> bytes:
    info = etree.Element("info", version=INFO_VERSION)
    general = etree.SubElement(info, "general")
    for tag, value in (
        ("createDate", record.created_at.isoformat(timespec="seconds")),
        ("changeDate", record.updated_at.isoformat(timespec="seconds")),
        ("schema", record.schema_id),
        ("isTemplate", record.is_template),
        ("localId", str(record.local_id)),
        ("format", fmt.value),
        ("rating", str(record.rating)),
        ("popularity", str(record.popularity)),
        ("uuid", record.uuid),
        ("siteId", site_id),
        ("siteName", site_name),
    ):
        etree.SubElement(general, tag).text = value

    etree.SubElement(info, "categories")

    privileges = etree.SubElement(info, "privileges")
    for group_name in sorted(record.privileges):
        grp = etree.SubElement(privileges, "group", name=group_name)
        for op_name in record.privileges[group_name]:
            etree.SubElement(grp, "operation", name=op_name)

    public = etree.SubElement(info, "public")
    if fmt.with_public:
        _file_entries(public, record.public_files)
    private = etree.SubElement(info, "private")
    if fmt.with_private:
        _file_entries(private, record.private_files)

    return to_bytes(info)


def _file_entries(parent: etree._Element, files: list[Path]) -> None:
    for path in files:
        changed = datetime.fromtimestamp(path.stat().st_mtime, tz=UTC)
        etree.SubElement(
            parent, "file", name=path.name, changeDate=changed.isoformat(timespec="seconds")
        )


def write_mef(
    records: list[MefRecord],
    *,
    version: MefVersion,
    fmt: MefFormat,
    site_id: str,
    site_name: str,
) -> bytes:
    if not records:
        raise ValueError("MEF export needs at least one record")
    if version is MefVersion.v1 and len(records) != 1:
        raise ValueError("MEF v1 holds exactly one record")

    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as z:
        for record in records:
            base = "" if version is MefVersion.v1 else f"{record.uuid}/"
            md_path = "metadata.xml" if version is MefVersion.v1 else "metadata/metadata.xml"
            z.writestr(base + md_path, to_bytes(record.xml))
            z.writestr(
                base + "info.xml",
                build_info(record, fmt=fmt, site_id=site_id, site_name=site_name),
            )
            if fmt.with_public:
                for path in record.public_files:
                    z.write(path, f"{base}public/{path.name}")
            if fmt.with_private:
                for path in record.private_files:
                    z.write(path, f"{base}private/{path.name}")
    return buf.getvalue()
