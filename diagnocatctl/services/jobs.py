"""Background execution of upload workflows.

Each submitted upload runs on a worker thread of a shared pool. Completion
handlers are attached with ``Future.add_done_callback`` so they run exactly
once per job, whether the workflow succeeded, failed or was cancelled.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from diagnocatctl.core.exceptions import WorkflowCancelledError
from diagnocatctl.models.progress import JobOutcome, StudyUploadSummary

from .uploads import UploadService

logger = logging.getLogger(__name__)

DEFAULT_JOB_WORKERS = 4

SuccessHandler = Callable[[StudyUploadSummary], None]
FailureHandler = Callable[[BaseException], None]
OutcomeHandler = Callable[[JobOutcome], None]


@dataclass
class UploadJob:
    """Handle for one background upload."""

    job_id: str
    patient_id: str
    file_path: str
    future: Future = field(repr=False)
    cancel_event: threading.Event = field(default_factory=threading.Event, repr=False)

    def cancel(self) -> None:
        """Request cancellation; a running workflow stops at its next checkpoint."""
        self.cancel_event.set()
        self.future.cancel()

    def done(self) -> bool:
        return self.future.done()

    def result(self, timeout: Optional[float] = None) -> StudyUploadSummary:
        return self.future.result(timeout=timeout)


class UploadJobRunner:
    """Run upload workflows on a thread pool and report their outcome."""

    def __init__(self, service: UploadService, max_workers: int = DEFAULT_JOB_WORKERS) -> None:
        self.service = service
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="diagnocat-upload",
        )
        self._jobs: dict[str, UploadJob] = {}
        self._lock = threading.Lock()

    def submit(
        self,
        patient_id: str,
        file_path: str | Path,
        *,
        on_success: Optional[SuccessHandler] = None,
        on_failure: Optional[FailureHandler] = None,
        on_complete: Optional[OutcomeHandler] = None,
        deadline: Optional[float] = None,
        **kwargs: Any,
    ) -> UploadJob:
        """Start an upload in the background.

        Args:
            patient_id: Remote patient ID.
            file_path: Local imaging file.
            on_success: Called with the summary when the workflow succeeds.
            on_failure: Called with the exception when it fails or is cancelled.
            on_complete: Called with a JobOutcome in either case.
            deadline: Absolute ``time.monotonic()`` deadline.
            **kwargs: Passed through to ``UploadService.upload_study``.

        Returns:
            UploadJob handle.
        """
        job_id = uuid.uuid4().hex[:12]
        cancel_event = threading.Event()
        future = self._executor.submit(
            self.service.upload_study,
            patient_id,
            file_path,
            cancel_event=cancel_event,
            deadline=deadline,
            **kwargs,
        )
        job = UploadJob(
            job_id=job_id,
            patient_id=patient_id,
            file_path=str(file_path),
            future=future,
            cancel_event=cancel_event,
        )
        with self._lock:
            self._jobs[job_id] = job

        logger.info("Upload job %s submitted (patient=%s, file=%s)", job_id, patient_id, file_path)
        future.add_done_callback(
            lambda f: self._on_done(job, f, on_success, on_failure, on_complete)
        )
        return job

    def _on_done(
        self,
        job: UploadJob,
        future: Future,
        on_success: Optional[SuccessHandler],
        on_failure: Optional[FailureHandler],
        on_complete: Optional[OutcomeHandler],
    ) -> None:
        with self._lock:
            self._jobs.pop(job.job_id, None)

        error: Optional[BaseException]
        summary: Optional[StudyUploadSummary] = None
        try:
            summary = future.result()
            error = None
        except CancelledError:
            error = WorkflowCancelledError()
        except Exception as e:
            error = e

        if error is None:
            logger.info("Upload job %s finished: report %s", job.job_id, summary.report_id if summary else "-")
            self._call_handler(job, on_success, summary)
        else:
            logger.warning("Upload job %s failed: %s", job.job_id, error)
            self._call_handler(job, on_failure, error)

        outcome = JobOutcome(job_id=job.job_id, success=error is None, summary=summary, error=error)
        self._call_handler(job, on_complete, outcome)

    def _call_handler(self, job: UploadJob, handler: Optional[Callable[[Any], None]], arg: Any) -> None:
        if handler is None:
            return
        try:
            handler(arg)
        except Exception:
            logger.exception("Completion handler for upload job %s raised", job.job_id)

    @property
    def active_jobs(self) -> list[UploadJob]:
        with self._lock:
            return list(self._jobs.values())

    def cancel_all(self) -> None:
        for job in self.active_jobs:
            job.cancel()

    def shutdown(self, wait: bool = True, cancel: bool = False) -> None:
        """Stop accepting jobs; optionally cancel the running ones."""
        if cancel:
            self.cancel_all()
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> UploadJobRunner:
        return self

    def __exit__(self, *args: Any) -> None:
        self.shutdown(wait=True)
