"""Exception hierarchy for diagnocatctl.

Provides typed exceptions for different failure modes with clear error messages.
"""

from __future__ import annotations

from typing import Any

# Error bodies are truncated to this many characters when embedded in messages
MAX_BODY_CHARS = 2000


def _truncate(body: str | None) -> str:
    if not body:
        return ""
    if len(body) <= MAX_BODY_CHARS:
        return body
    return body[:MAX_BODY_CHARS] + "..."


class DiagnocatError(Exception):
    """Base exception for all diagnocatctl errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(DiagnocatError):
    """Error in configuration or required local inputs."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
    ):
        details = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = repr(value)
        super().__init__(message, details)
        self.field = field
        self.value = value


class ProfileNotFoundError(ConfigurationError):
    """Requested profile does not exist."""

    def __init__(self, profile: str):
        super().__init__(f"Profile not found: {profile}", field="profile", value=profile)
        self.profile = profile


class ValidationError(ConfigurationError):
    """Input validation failed (empty identifier, missing file, bad URL)."""


class InvalidURLError(ValidationError):
    """Invalid URL format."""

    def __init__(self, url: str, reason: str = ""):
        msg = f"Invalid URL: {url}"
        if reason:
            msg = f"{msg} - {reason}"
        super().__init__(msg, field="url", value=url)
        self.url = url
        self.reason = reason


class PathValidationError(ValidationError):
    """Path validation failed."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Invalid path: {path} - {reason}", field="path", value=path)
        self.path = path
        self.reason = reason


# =============================================================================
# Connection Errors
# =============================================================================


class ConnectionError(DiagnocatError):
    """Base class for connection-related errors."""

    def __init__(self, message: str, url: str | None = None):
        details = {"url": url} if url else {}
        super().__init__(message, details)
        self.url = url


class NetworkError(ConnectionError):
    """Network-level error (DNS, TCP, TLS, timeout)."""

    def __init__(self, url: str, cause: str | None = None):
        msg = f"Network error connecting to {url}"
        if cause:
            msg = f"{msg}: {cause}"
        super().__init__(msg, url)
        self.cause = cause


# =============================================================================
# Authentication Errors
# =============================================================================


class AuthenticationError(DiagnocatError):
    """No usable credentials, or the identity endpoint rejected them."""

    def __init__(self, url: str | None = None, reason: str = ""):
        msg = "Authentication failed"
        if url:
            msg = f"{msg} for {url}"
        if reason:
            msg = f"{msg}: {reason}"
        details = {"url": url} if url else {}
        super().__init__(msg, details)
        self.url = url
        self.reason = reason


# =============================================================================
# Remote API Errors
# =============================================================================


class RemoteError(DiagnocatError):
    """The diagnostic service answered with a non-success status."""

    def __init__(
        self,
        operation: str,
        status_code: int | None = None,
        body: str | None = None,
        reason: str = "",
    ):
        msg = f"{operation} failed"
        if status_code is not None:
            msg = f"{msg}: HTTP {status_code}"
        if reason:
            msg = f"{msg}: {reason}"
        details: dict[str, Any] = {"operation": operation}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(msg, details)
        self.operation = operation
        self.status_code = status_code
        self.body = _truncate(body)
        self.reason = reason


class DecodeError(DiagnocatError):
    """A response body could not be decoded into the expected shape."""

    def __init__(self, operation: str, reason: str = ""):
        msg = f"Failed to decode {operation} response"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg, {"operation": operation})
        self.operation = operation
        self.reason = reason


class TransferError(DiagnocatError):
    """Binary upload or download failed."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
        file_path: str | None = None,
    ):
        details: dict[str, Any] = {}
        if status_code is not None:
            details["status_code"] = status_code
        if file_path:
            details["file"] = file_path
        super().__init__(message, details)
        self.status_code = status_code
        self.body = _truncate(body)
        self.file_path = file_path


# =============================================================================
# Workflow Errors
# =============================================================================


class WorkflowError(DiagnocatError):
    """Error raised by the upload workflow itself."""


class SessionProcessingError(WorkflowError):
    """The remote upload session reported an error status."""

    def __init__(self, session_id: str, remote_error: str | None = None):
        msg = f"Upload session {session_id} failed during processing"
        if remote_error:
            msg = f"{msg}: {remote_error}"
        super().__init__(msg, {"session_id": session_id})
        self.session_id = session_id
        self.remote_error = remote_error


class SessionTimeoutError(WorkflowError):
    """The upload session never reached a terminal status within the poll budget."""

    def __init__(self, session_id: str, attempts: int, last_status: str | None = None):
        msg = f"Upload session {session_id} not closed after {attempts} polls"
        details: dict[str, Any] = {"session_id": session_id, "attempts": attempts}
        if last_status:
            details["last_status"] = last_status
        super().__init__(msg, details)
        self.session_id = session_id
        self.attempts = attempts
        self.last_status = last_status


class WorkflowCancelledError(WorkflowError):
    """The workflow was cancelled or ran past its deadline."""

    def __init__(self, reason: str = "cancelled"):
        super().__init__(f"Upload workflow {reason}", {"reason": reason})
        self.reason = reason


class UploadWorkflowError(WorkflowError):
    """A workflow stage failed; wraps the underlying error."""

    def __init__(self, stage: str, cause: BaseException):
        super().__init__(f"Upload failed at stage '{stage}': {cause}", {"stage": stage})
        self.stage = stage
        self.cause = cause
