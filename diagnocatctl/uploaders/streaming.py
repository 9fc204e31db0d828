"""Streaming uploader for pre-signed object storage URLs.

Sends one file as a single PUT with a declared Content-Length, reading it
forward-only in fixed-size chunks so memory use stays flat regardless of
file size.

This is an internal implementation detail. Use `UploadService` from
`diagnocatctl.services.uploads` as the public API.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import BinaryIO

import httpx

from diagnocatctl.core.exceptions import TransferError, WorkflowCancelledError
from diagnocatctl.models.progress import UploadProgress
from diagnocatctl.uploaders.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_PROGRESS_INTERVAL,
    DEFAULT_TRANSFER_TIMEOUT,
    ERROR_BODY_LIMIT,
    UPLOAD_CONTENT_TYPE,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[UploadProgress], None]


def log_progress(progress: UploadProgress) -> None:
    """Default progress callback: one INFO line per observation."""
    logger.info(
        "Uploading %s: %.1f%% (%.1f/%.1f MB)",
        progress.file_path or "payload",
        progress.percent,
        progress.mb_sent,
        progress.total_mb,
    )


def _source_size(source: BinaryIO) -> int | None:
    """Size of the file behind a stream, or None if it has no descriptor."""
    try:
        return os.fstat(source.fileno()).st_size
    except (AttributeError, OSError, ValueError):
        return None


class StreamingUploader:
    """Upload one payload to a pre-signed URL with a single PUT.

    Pre-signed URLs carry their own authorization, so no API credentials
    are sent.
    """

    def __init__(
        self,
        *,
        transport: httpx.BaseTransport | None = None,
        verify_ssl: bool = True,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        progress_interval: float = DEFAULT_PROGRESS_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.transport = transport
        self.verify_ssl = verify_ssl
        self.chunk_size = chunk_size
        self.progress_interval = progress_interval
        self.clock = clock

    def _iter_chunks(
        self,
        source: BinaryIO,
        total_bytes: int,
        progress: UploadProgress,
        progress_callback: ProgressCallback,
        deadline: float | None,
        cancel_event: threading.Event | None,
    ) -> Iterator[bytes]:
        last_report = self.clock()
        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise WorkflowCancelledError()
            if deadline is not None and self.clock() >= deadline:
                raise WorkflowCancelledError("deadline")

            chunk = source.read(self.chunk_size)
            if not chunk:
                break

            progress.bytes_sent += len(chunk)
            if progress.bytes_sent > total_bytes:
                raise TransferError(
                    f"Source yielded more than the declared {total_bytes} bytes",
                    file_path=progress.file_path or None,
                )
            yield chunk

            now = self.clock()
            if now - last_report >= self.progress_interval:
                last_report = now
                progress_callback(progress)

        if progress.bytes_sent != total_bytes:
            raise TransferError(
                f"Source ended after {progress.bytes_sent} of {total_bytes} declared bytes",
                file_path=progress.file_path or None,
            )

    def upload(
        self,
        source: BinaryIO,
        total_bytes: int | None,
        url: str,
        *,
        progress_callback: ProgressCallback | None = None,
        deadline: float | None = None,
        cancel_event: threading.Event | None = None,
        file_path: str = "",
    ) -> UploadProgress:
        """Stream a readable source to a pre-signed URL.

        Args:
            source: Readable binary stream positioned at the start.
            total_bytes: Declared payload length, sent as Content-Length.
            url: Pre-signed destination URL.
            progress_callback: Receives an UploadProgress at most once per
                progress interval. Defaults to logging at INFO.
            deadline: Absolute deadline on this uploader's clock.
            cancel_event: Aborts the transfer between chunks when set.
            file_path: Display name used in progress and errors.

        Returns:
            Final UploadProgress.

        Raises:
            TransferError: On a bad declared length, a stream that disagrees
                with it, a non-2xx response or a transport failure.
            WorkflowCancelledError: If cancelled or past the deadline.
        """
        if total_bytes is None or total_bytes < 0:
            raise TransferError(
                f"Invalid declared length: {total_bytes}",
                file_path=file_path or None,
            )

        actual = _source_size(source)
        if actual is not None and actual != total_bytes:
            raise TransferError(
                f"Declared length {total_bytes} does not match file size {actual}",
                file_path=file_path or None,
            )

        progress = UploadProgress(total_bytes=total_bytes, file_path=file_path)
        body = self._iter_chunks(
            source,
            total_bytes,
            progress,
            progress_callback or log_progress,
            deadline,
            cancel_event,
        )
        headers = {
            "Content-Type": UPLOAD_CONTENT_TYPE,
            "Content-Length": str(total_bytes),
        }

        start_time = self.clock()
        with httpx.Client(
            timeout=httpx.Timeout(DEFAULT_TRANSFER_TIMEOUT),
            verify=self.verify_ssl,
            transport=self.transport,
        ) as client:
            try:
                resp = client.put(url, content=body, headers=headers)
            except httpx.HTTPError as e:
                raise TransferError(
                    f"Upload transport failure: {e}",
                    file_path=file_path or None,
                ) from e

        if not resp.is_success:
            raise TransferError(
                f"Upload rejected: HTTP {resp.status_code}",
                status_code=resp.status_code,
                body=resp.text[:ERROR_BODY_LIMIT],
                file_path=file_path or None,
            )

        logger.info(
            "Uploaded %s (%.1f MB) in %.1fs",
            file_path or "payload",
            progress.total_mb,
            self.clock() - start_time,
        )
        return progress

    def upload_file(
        self,
        path: str | Path,
        url: str,
        **kwargs: object,
    ) -> UploadProgress:
        """Open a local file, stream it to ``url`` and close it on every path.

        Raises:
            TransferError: If the file cannot be opened, plus everything
                ``upload`` raises.
        """
        file_path = Path(path)
        try:
            f = file_path.open("rb")
        except OSError as e:
            raise TransferError(f"Cannot open {file_path}: {e}", file_path=str(file_path)) from e

        with f:
            size = os.fstat(f.fileno()).st_size
            kwargs.setdefault("file_path", file_path.name)
            return self.upload(f, size, url, **kwargs)  # type: ignore[arg-type]
