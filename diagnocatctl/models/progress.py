"""Progress models for tracking the upload workflow.

Provides the workflow stage enum, transfer progress observations and the
summary returned when a workflow completes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from .study import AnalysisRequest


class WorkflowStage(Enum):
    """Stages of the study upload workflow."""

    CREATED = "created"
    SESSION_OPEN = "session_open"
    URLS_ISSUED = "urls_issued"
    UPLOADING = "uploading"
    SESSION_CLOSING = "session_closing"
    SESSION_CLOSED = "session_closed"
    ANALYSIS_REQUESTED = "analysis_requested"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (WorkflowStage.DONE, WorkflowStage.FAILED)


@dataclass
class UploadProgress:
    """One observation of a streamed transfer."""

    bytes_sent: int = 0
    total_bytes: int = 0
    file_path: str = ""

    @property
    def percent(self) -> float:
        """Calculate bytes completion percentage."""
        if self.total_bytes == 0:
            return 0.0
        return (self.bytes_sent / self.total_bytes) * 100

    @property
    def mb_sent(self) -> float:
        """Return megabytes sent."""
        return self.bytes_sent / (1024 * 1024)

    @property
    def total_mb(self) -> float:
        """Return total megabytes."""
        return self.total_bytes / (1024 * 1024)


@dataclass
class StudyUploadSummary:
    """Outcome of one successful upload workflow."""

    report_id: str
    study_uid: str
    session_id: str
    analysis: AnalysisRequest
    file_path: str = ""
    total_bytes: int = 0
    polls: int = 0
    duration: float = 0.0
    stages: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for output."""
        return {
            "report_id": self.report_id,
            "study_uid": self.study_uid,
            "session_id": self.session_id,
            "analysis_uid": self.analysis.uid,
            "analysis_id_v3": self.analysis.id_v3,
            "file": self.file_path,
            "size_mb": round(self.total_bytes / (1024 * 1024), 2),
            "polls": self.polls,
            "duration_s": round(self.duration, 2),
        }


@dataclass
class JobOutcome:
    """Result delivered to background job completion handlers."""

    job_id: str
    success: bool
    summary: Optional[StudyUploadSummary] = None
    error: Optional[BaseException] = None
