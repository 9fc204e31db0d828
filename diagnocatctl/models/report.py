"""Models for analysis reports and their structured diagnoses."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field

from .base import BaseModel

STATUS_COMPLETE = "complete"
STATUS_ERROR = "error"


class Diagnosis(BaseModel):
    """Findings for a single tooth.

    ``attributes`` and ``periodontal_status`` are kept as raw JSON so that
    schema additions on the remote side do not break decoding.
    """

    tooth_number: int | None = None
    text_comment: str | None = None
    attributes: Any = None
    periodontal_status: Any = None


class DiagnosesResponse(BaseModel):
    diagnoses: list[Diagnosis] = Field(default_factory=list)


class ReportStatus(BaseModel):
    """Analysis status as returned by the analyses endpoint."""

    id: str = ""
    status: str = ""
    complete: bool = False
    pdf_url: str | None = None
    webpage_url: str | None = None
    preview_url: str | None = None
    error: Any = None
    diagnoses: list[Diagnosis] | None = None

    @property
    def is_complete(self) -> bool:
        return self.complete or self.status == STATUS_COMPLETE

    @property
    def is_failed(self) -> bool:
        return self.status == STATUS_ERROR

    @classmethod
    def table_columns(cls) -> list[str]:
        """Return columns for table output."""
        return ["id", "status", "complete", "pdf_url", "diagnoses_count"]

    def to_row(self, columns: list[str] | None = None) -> dict[str, Any]:
        """Convert to row for table output."""
        cols = columns or self.table_columns()
        data = self.to_dict()
        data["complete"] = self.is_complete
        data["diagnoses_count"] = len(self.diagnoses) if self.diagnoses is not None else "-"
        return {col: data.get(col, "") for col in cols}


class AnalysisSummary(BaseModel):
    """One row of a patient's analyses listing."""

    uid: str = ""
    study_uid: str | None = None
    patient_uid: str | None = None
    analysis_type: str | None = None
    complete: bool = False
    started: bool = False
    error: str | None = None
    pdf_url: str | None = None
    preview_url: str | None = None
    webpage_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def table_columns(cls) -> list[str]:
        return ["uid", "study_uid", "analysis_type", "complete", "created_at"]


class ReportExport(BaseModel):
    """Snapshot of a report and its diagnoses at a point in time."""

    fetched_at: datetime
    source: str
    report_id: str
    report: ReportStatus
    diagnoses: DiagnosesResponse | None = None
