"""Input validation helpers for diagnocatctl."""

from __future__ import annotations

import os
from pathlib import Path
from urllib.parse import urlparse

from diagnocatctl.core.exceptions import (
    InvalidURLError,
    PathValidationError,
    ValidationError,
)


def validate_server_url(url: str) -> str:
    """Validate and normalize a server base URL.

    Args:
        url: Server URL.

    Returns:
        URL without trailing slash.

    Raises:
        InvalidURLError: If the URL is empty or not http(s).
    """
    if not url or not url.strip():
        raise InvalidURLError(url or "", "URL is required")

    url = url.strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise InvalidURLError(url, "scheme must be http or https")
    if not parsed.netloc:
        raise InvalidURLError(url, "missing host")

    return url.rstrip("/")


def validate_identifier(value: str | None, field: str) -> str:
    """Validate a remote identifier (patient id, report id, session id).

    Raises:
        ValidationError: If the identifier is empty or contains a path separator.
    """
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} is required", field=field)
    value = str(value).strip()
    if "/" in value:
        raise ValidationError(f"{field} must not contain '/'", field=field, value=value)
    return value


def validate_upload_file(path: str | Path | None) -> Path:
    """Validate a local payload file before an upload starts.

    Returns:
        Resolved file path.

    Raises:
        ValidationError: If no path was given.
        PathValidationError: If the file is missing, not a regular file, or empty.
    """
    if path is None or not str(path).strip():
        raise ValidationError("file path is required", field="path")

    file_path = Path(path).expanduser()
    if not file_path.exists():
        raise PathValidationError(str(file_path), "does not exist")
    if not file_path.is_file():
        raise PathValidationError(str(file_path), "not a regular file")
    if file_path.stat().st_size == 0:
        raise PathValidationError(str(file_path), "file is empty")
    if not os.access(file_path, os.R_OK):
        raise PathValidationError(str(file_path), "not readable")

    return file_path.resolve()


def validate_output_path(path: str | Path | None) -> Path:
    """Validate a destination file path, creating parent directories.

    Raises:
        ValidationError: If no path was given.
        PathValidationError: If the path is a directory.
    """
    if path is None or not str(path).strip():
        raise ValidationError("output path is required", field="path")

    out = Path(path).expanduser()
    if out.is_dir():
        raise PathValidationError(str(out), "is a directory")
    out.parent.mkdir(parents=True, exist_ok=True)
    return out


def validate_timeout(timeout: int) -> int:
    """Validate a request timeout in seconds."""
    if timeout <= 0:
        raise ValidationError("timeout must be positive", field="timeout", value=timeout)
    return timeout
