"""Service layer for Diagnocat operations.

Provides service classes that encapsulate Diagnocat partner API operations.
"""

from __future__ import annotations

from .analyses import AnalysisService
from .base import BaseService
from .jobs import UploadJob, UploadJobRunner
from .studies import StudyService
from .upload_sessions import UploadSessionService
from .uploads import StudyUploadWorkflow, UploadService

__all__ = [
    "BaseService",
    "StudyService",
    "UploadSessionService",
    "AnalysisService",
    "UploadService",
    "StudyUploadWorkflow",
    "UploadJob",
    "UploadJobRunner",
]
