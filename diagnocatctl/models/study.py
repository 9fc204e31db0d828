"""Models for remote studies, upload sessions and analysis requests."""

from __future__ import annotations

from datetime import date
from enum import Enum

from pydantic import Field

from .base import BaseModel


class SessionStatus(str, Enum):
    """Upload session states reported by the remote pipeline."""

    STARTED = "started"
    CLOSING = "closing"
    CLOSED = "closed"
    ERROR = "error"


TERMINAL_SESSION_STATUSES = {SessionStatus.CLOSED.value, SessionStatus.ERROR.value}


class StudyCreateRequest(BaseModel):
    """Body of the create-study call."""

    study_name: str | None = None
    study_type: str = "CBCT"
    study_date: date | None = None


class RemoteStudy(BaseModel):
    """Remote container for an uploaded study.

    ``uid`` is the legacy study UID the upload endpoints expect; ``id_v3``
    is the newer identifier, kept for reference.
    """

    uid: str = ""
    id_v3: str | None = None


class UploadURL(BaseModel):
    """A pre-signed destination for one file key."""

    key: str = ""
    url: str = ""


class OpenSessionResponse(BaseModel):
    ok: bool = False
    session_id: str = ""
    hostname: str | None = None
    error: str | None = None


class UploadURLsResponse(BaseModel):
    ok: bool = False
    error: str | None = None
    upload_urls: list[UploadURL] = Field(default_factory=list)


class CloseSessionResponse(BaseModel):
    ok: bool = True
    error: str | None = None


class SessionInfo(BaseModel):
    status: str = ""
    error: str | None = None


class SessionInfoResponse(BaseModel):
    ok: bool = False
    error: str | None = None
    session_info: SessionInfo = Field(default_factory=SessionInfo)


class UploadSession(BaseModel):
    """Snapshot of a remote upload session."""

    id: str
    status: str = ""
    error: str | None = None

    @property
    def is_closed(self) -> bool:
        return self.status == SessionStatus.CLOSED.value

    @property
    def is_failed(self) -> bool:
        return self.status == SessionStatus.ERROR.value

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_SESSION_STATUSES


class AnalysisRequest(BaseModel):
    """Response of the request-analysis call."""

    uid: str | None = None
    id_v3: str | None = None
    status: str | None = None

    @property
    def report_id(self) -> str:
        """Durable handle for later status queries: uid, else id_v3."""
        return self.uid or self.id_v3 or ""
