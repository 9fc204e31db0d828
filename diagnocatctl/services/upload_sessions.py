"""Upload session service for the v1 upload endpoints."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from diagnocatctl.core.exceptions import RemoteError, ValidationError
from diagnocatctl.core.validation import validate_identifier
from diagnocatctl.models.study import (
    CloseSessionResponse,
    OpenSessionResponse,
    SessionInfoResponse,
    UploadSession,
    UploadURL,
    UploadURLsResponse,
)

from .base import BaseService

logger = logging.getLogger(__name__)


class UploadSessionService(BaseService):
    """Service for remote upload session operations."""

    def open_upload_session(self, study_uid: str) -> str:
        """Open an upload session for a study.

        Returns:
            Session ID.

        Raises:
            RemoteError: On non-200 status or empty session id.
            DecodeError: On malformed response body.
        """
        study_uid = validate_identifier(study_uid, "study_uid")
        result = self._post(
            "/v1/upload/open-session",
            operation="open session",
            json={"study_uid": study_uid},
            model=OpenSessionResponse,
        )
        if not result.session_id:
            raise RemoteError(
                "open session",
                200,
                reason=f"empty session_id (error={result.error or '-'})",
            )

        logger.info("Upload session opened: %s", result.session_id)
        return result.session_id

    def request_upload_urls(self, session_id: str, keys: Sequence[str]) -> list[UploadURL]:
        """Request pre-signed upload URLs, one per file key.

        Raises:
            ValidationError: If no keys are given.
            RemoteError: On non-200 status or an empty URL list.
            DecodeError: On malformed response body.
        """
        session_id = validate_identifier(session_id, "session_id")
        if not keys:
            raise ValidationError("at least one file key is required", field="keys")

        result = self._post(
            "/v1/upload/request-upload-urls",
            operation="request upload urls",
            json={"session_id": session_id, "keys": list(keys)},
            model=UploadURLsResponse,
        )
        urls = [u for u in result.upload_urls if u.url]
        if not urls:
            raise RemoteError(
                "request upload urls",
                200,
                reason=f"no upload_urls returned (error={result.error or '-'})",
            )

        logger.info("Received %d upload URL(s) for session %s", len(urls), session_id)
        return urls

    def close_session(self, session_id: str) -> None:
        """Start closing a session, which triggers server-side processing.

        Raises:
            RemoteError: On non-200 status or an explicit not-ok answer.
            DecodeError: On malformed response body.
        """
        session_id = validate_identifier(session_id, "session_id")
        resp = self.client.post(
            "/v1/upload/start-session-close",
            operation="close session",
            json={"session_id": session_id},
        )
        # Some deployments answer with an empty body
        if resp.content.strip():
            result = self._decode_model(resp, "close session", CloseSessionResponse)
            if not result.ok:
                raise RemoteError("close session", resp.status_code, reason=result.error or "not ok")

        logger.info("Upload session %s closing", session_id)

    def get_session_info(self, session_id: str) -> UploadSession:
        """Query the processing status of a session.

        Raises:
            NetworkError: On transport failure (the poll loop skips these).
            RemoteError: On non-200 status.
            DecodeError: On malformed response body.
        """
        session_id = validate_identifier(session_id, "session_id")
        result = self._get(
            "/v1/upload/session-info",
            operation="session info",
            params={"session_id": session_id},
            model=SessionInfoResponse,
        )
        return UploadSession(
            id=session_id,
            status=result.session_info.status,
            error=result.session_info.error or result.error,
        )
