"""Timeout defaults shared across diagnocatctl."""

from __future__ import annotations

# Ordinary JSON API calls
DEFAULT_HTTP_TIMEOUT_SECONDS = 30

# Binary transfers to pre-signed URLs run without a client-side timeout
TRANSFER_TIMEOUT_SECONDS: float | None = None

# Upload session polling: ~6 minutes at a fixed 2 second cadence
SESSION_POLL_INTERVAL_SECONDS = 2.0
SESSION_POLL_MAX_ATTEMPTS = 180
