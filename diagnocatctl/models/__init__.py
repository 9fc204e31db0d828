"""Data models for diagnocatctl.

Provides Pydantic models for Diagnocat API payloads and dataclasses for
workflow progress tracking.
"""

from __future__ import annotations

from .base import BaseModel
from .progress import JobOutcome, StudyUploadSummary, UploadProgress, WorkflowStage
from .report import (
    AnalysisSummary,
    Diagnosis,
    DiagnosesResponse,
    ReportExport,
    ReportStatus,
)
from .study import (
    AnalysisRequest,
    RemoteStudy,
    SessionStatus,
    StudyCreateRequest,
    UploadSession,
    UploadURL,
)

__all__ = [
    # Base
    "BaseModel",
    # Studies and sessions
    "RemoteStudy",
    "StudyCreateRequest",
    "UploadSession",
    "SessionStatus",
    "UploadURL",
    "AnalysisRequest",
    # Reports
    "ReportStatus",
    "Diagnosis",
    "DiagnosesResponse",
    "AnalysisSummary",
    "ReportExport",
    # Progress
    "WorkflowStage",
    "UploadProgress",
    "StudyUploadSummary",
    "JobOutcome",
]
