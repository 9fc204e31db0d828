"""Shared constants for uploader modules."""

from diagnocatctl.core.timeouts import TRANSFER_TIMEOUT_SECONDS

# Source is read forward-only in chunks of this size
DEFAULT_CHUNK_SIZE = 1024 * 1024

# Minimum seconds between two progress observations
DEFAULT_PROGRESS_INTERVAL = 2.0

# No client-side timeout for the PUT itself
DEFAULT_TRANSFER_TIMEOUT = TRANSFER_TIMEOUT_SECONDS

# Response bodies kept on failed transfers
ERROR_BODY_LIMIT = 64 * 1024

UPLOAD_CONTENT_TYPE = "application/octet-stream"
