"""
mdcatalog.services.report

Processing report returned by bulk record operations.

Responsibilities:
- Count total/processed/missing/not-editable records.
- Collect per-record infos and errors, and batch-level errors.
- Time the batch from creation to `close()`.
"""

from __future__ import annotations

import time
from datetime import UTC, datetime

from pydantic import BaseModel, Field, PrivateAttr, computed_field


class ReportMessage(BaseModel):
    message: str
    date: str = Field(default_factory=lambda: datetime.now(tz=UTC).isoformat())


class ReportError(ReportMessage):
    type: str = "Exception"


class MetadataProcessingReport(BaseModel):
    total_records: int = 0
    processed_records: int = 0
    null_records: int = 0
    not_editable_records: list[int] = Field(default_factory=list)
    metadata: list[int] = Field(default_factory=list)
    metadata_infos: dict[int, list[ReportMessage]] = Field(default_factory=dict)
    metadata_errors: dict[int, list[ReportError]] = Field(default_factory=dict)
    errors: list[ReportError] = Field(default_factory=list)
    start_iso_datetime: str = Field(default_factory=lambda: datetime.now(tz=UTC).isoformat())
    end_iso_datetime: str | None = None
    elapsed_seconds: float | None = None
    running: bool = True

    _started: float = PrivateAttr(default_factory=time.monotonic)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def number_of_records_with_errors(self) -> int:
        return len(self.metadata_errors)

    def increment_null_records(self) -> None:
        self.null_records += 1

    def increment_processed_records(self) -> None:
        self.processed_records += 1

    def add_not_editable_metadata_id(self, metadata_id: int) -> None:
        if metadata_id not in self.not_editable_records:
            self.not_editable_records.append(metadata_id)

    def add_metadata_id(self, metadata_id: int) -> None:
        if metadata_id not in self.metadata:
            self.metadata.append(metadata_id)

    def add_metadata_info(self, metadata_id: int, message: str) -> None:
        self.metadata_infos.setdefault(metadata_id, []).append(ReportMessage(message=message))

    def add_metadata_error(self, metadata_id: int, exc: Exception) -> None:
        self.metadata_errors.setdefault(metadata_id, []).append(_error(exc))

    def add_error(self, exc: Exception) -> None:
        self.errors.append(_error(exc))

    def close(self) -> MetadataProcessingReport:
        self.end_iso_datetime = datetime.now(tz=UTC).isoformat()
        self.elapsed_seconds = round(time.monotonic() - self._started, 3)
        self.running = False
        return self


def _error(exc: Exception) -> ReportError:
    message = getattr(exc, "message", None) or str(exc) or exc.__class__.__name__
    return ReportError(message=message, type=exc.__class__.__name__)
