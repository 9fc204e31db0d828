"""Upload transports for diagnocatctl.

These are internal implementation details. Use `UploadService` from
`diagnocatctl.services.uploads` as the public API.
"""

from diagnocatctl.uploaders.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_PROGRESS_INTERVAL,
    UPLOAD_CONTENT_TYPE,
)
from diagnocatctl.uploaders.streaming import StreamingUploader, log_progress

__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_PROGRESS_INTERVAL",
    "UPLOAD_CONTENT_TYPE",
    "StreamingUploader",
    "log_progress",
]
