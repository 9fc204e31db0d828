"""Upload service: drives one imaging study from local file to requested analysis.

The workflow walks a fixed sequence of stages:

    created -> session_open -> urls_issued -> uploading -> session_closing
            -> session_closed -> analysis_requested -> done

Any failure moves it to ``failed`` and surfaces as an UploadWorkflowError
naming the stage that was being left. Nothing is retried apart from
skipping a session poll that hit a transport error.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from diagnocatctl.core.config import DEFAULT_ANALYSIS_TYPE, DEFAULT_STUDY_TYPE
from diagnocatctl.core.exceptions import (
    NetworkError,
    SessionProcessingError,
    SessionTimeoutError,
    UploadWorkflowError,
    WorkflowCancelledError,
)
from diagnocatctl.core.logging import AuditLogger, LogContext, get_audit_logger
from diagnocatctl.core.timeouts import (
    SESSION_POLL_INTERVAL_SECONDS,
    SESSION_POLL_MAX_ATTEMPTS,
)
from diagnocatctl.core.validation import validate_identifier, validate_upload_file
from diagnocatctl.models.progress import StudyUploadSummary, UploadProgress, WorkflowStage
from diagnocatctl.models.study import AnalysisRequest, RemoteStudy, UploadURL
from diagnocatctl.uploaders.streaming import StreamingUploader

from .base import BaseService
from .studies import StudyService
from .upload_sessions import UploadSessionService

if TYPE_CHECKING:
    from diagnocatctl.core.client import DiagnocatClient

logger = logging.getLogger(__name__)

StageCallback = Callable[[WorkflowStage], None]
ProgressCallback = Callable[[UploadProgress], None]


# =============================================================================
# Workflow
# =============================================================================


class StudyUploadWorkflow:
    """One run of the upload state machine for a single file.

    Instances are single-use. The current stage is readable from other
    threads through ``stage``; ``cancel_event`` aborts the run between
    stages, between upload chunks and during the poll wait.
    """

    def __init__(
        self,
        *,
        patient_id: str,
        file_path: Path,
        studies: StudyService,
        sessions: UploadSessionService,
        uploader: StreamingUploader,
        analysis_type: str = DEFAULT_ANALYSIS_TYPE,
        study_type: str = DEFAULT_STUDY_TYPE,
        poll_interval: float = SESSION_POLL_INTERVAL_SECONDS,
        max_polls: int = SESSION_POLL_MAX_ATTEMPTS,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
        deadline: Optional[float] = None,
        on_stage: Optional[StageCallback] = None,
        clock: Callable[[], float] = time.monotonic,
        audit: Optional[AuditLogger] = None,
    ) -> None:
        self.patient_id = patient_id
        self.file_path = file_path
        self.studies = studies
        self.sessions = sessions
        self.uploader = uploader
        self.analysis_type = analysis_type
        self.study_type = study_type
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self.progress_callback = progress_callback
        self.cancel_event = cancel_event if cancel_event is not None else threading.Event()
        self.deadline = deadline
        self.on_stage = on_stage
        self.clock = clock
        self.audit = audit or get_audit_logger()

        self._stage = WorkflowStage.CREATED
        self._history: list[WorkflowStage] = [WorkflowStage.CREATED]
        self._study: Optional[RemoteStudy] = None
        self._session_id: Optional[str] = None
        self._polls = 0
        self._ctx: Optional[LogContext] = None

    @property
    def stage(self) -> WorkflowStage:
        return self._stage

    @property
    def history(self) -> list[WorkflowStage]:
        return list(self._history)

    def _advance(self, stage: WorkflowStage) -> None:
        self._stage = stage
        self._history.append(stage)
        if self._ctx is not None:
            self._ctx.debug("stage -> %s", stage.value)
        if self.on_stage is not None:
            self.on_stage(stage)

    def _check_cancel(self) -> None:
        if self.cancel_event.is_set():
            raise WorkflowCancelledError()
        if self.deadline is not None and self.clock() >= self.deadline:
            raise WorkflowCancelledError("deadline")

    def _poll_wait(self) -> float:
        """Seconds to wait before the next poll, never past the deadline."""
        if self.deadline is None:
            return self.poll_interval
        return max(0.0, min(self.poll_interval, self.deadline - self.clock()))

    # =========================================================================
    # Stages
    # =========================================================================

    def _open_session(self) -> str:
        self._study = self.studies.create_study(self.patient_id, study_type=self.study_type)
        self._check_cancel()
        session_id = self.sessions.open_upload_session(self._study.uid)
        self._session_id = session_id
        return session_id

    def _issue_urls(self, session_id: str) -> UploadURL:
        urls = self.sessions.request_upload_urls(session_id, [self.file_path.name])
        return urls[0]

    def _transfer(self, target: UploadURL) -> None:
        self.uploader.upload_file(
            self.file_path,
            target.url,
            progress_callback=self.progress_callback,
            deadline=self.deadline,
            cancel_event=self.cancel_event,
            file_path=self.file_path.name,
        )

    def _wait_for_close(self, session_id: str) -> int:
        """Poll the session until it is closed.

        Polls first and waits between polls. Transport errors skip a tick.

        Returns:
            Number of polls made.
        """
        last_status: Optional[str] = None
        for attempt in range(1, self.max_polls + 1):
            self._check_cancel()
            self._polls = attempt
            try:
                session = self.sessions.get_session_info(session_id)
            except NetworkError as e:
                logger.warning("Session %s poll %d skipped: %s", session_id, attempt, e)
            else:
                last_status = session.status
                if session.is_closed:
                    return attempt
                if session.is_failed:
                    raise SessionProcessingError(session_id, session.error)
                logger.debug("Session %s poll %d: %s", session_id, attempt, session.status or "-")

            if attempt < self.max_polls and self.cancel_event.wait(self._poll_wait()):
                raise WorkflowCancelledError()

        raise SessionTimeoutError(session_id, self.max_polls, last_status)

    def _request_analysis(self) -> AnalysisRequest:
        assert self._study is not None
        return self.studies.request_analysis(self._study.uid, self.analysis_type)

    # =========================================================================
    # Run
    # =========================================================================

    def run(self) -> StudyUploadSummary:
        """Execute every stage in order.

        Returns:
            StudyUploadSummary with a non-empty report id.

        Raises:
            UploadWorkflowError: Wrapping the failure of any stage.
        """
        if self._stage is not WorkflowStage.CREATED or len(self._history) > 1:
            raise RuntimeError("StudyUploadWorkflow instances are single-use")

        start = self.clock()
        self._ctx = LogContext(
            "study upload",
            logger,
            patient=self.patient_id,
            file=self.file_path.name,
        )

        try:
            with self._ctx:
                total_bytes = self.file_path.stat().st_size
                self._check_cancel()
                session_id = self._open_session()
                self._advance(WorkflowStage.SESSION_OPEN)

                self._check_cancel()
                target = self._issue_urls(session_id)
                self._advance(WorkflowStage.URLS_ISSUED)

                self._check_cancel()
                self._advance(WorkflowStage.UPLOADING)
                self._transfer(target)

                self._check_cancel()
                self._advance(WorkflowStage.SESSION_CLOSING)
                self.sessions.close_session(session_id)
                polls = self._wait_for_close(session_id)
                self._advance(WorkflowStage.SESSION_CLOSED)

                self._check_cancel()
                analysis = self._request_analysis()
                self._advance(WorkflowStage.ANALYSIS_REQUESTED)
                self._advance(WorkflowStage.DONE)
        except Exception as e:
            failed_stage = self._stage
            self._advance(WorkflowStage.FAILED)
            self.audit.log_operation(
                "study_upload",
                patient=self.patient_id,
                study=self._study.uid if self._study else None,
                session=self._session_id,
                success=False,
                details={"stage": failed_stage.value, "error": str(e)},
            )
            raise UploadWorkflowError(failed_stage.value, e) from e

        assert self._study is not None
        summary = StudyUploadSummary(
            report_id=analysis.report_id,
            study_uid=self._study.uid,
            session_id=session_id,
            analysis=analysis,
            file_path=str(self.file_path),
            total_bytes=total_bytes,
            polls=polls,
            duration=self.clock() - start,
            stages=[s.value for s in self._history],
        )
        self.audit.log_operation(
            "study_upload",
            patient=self.patient_id,
            study=summary.study_uid,
            session=session_id,
            report=summary.report_id,
            success=True,
            details={"polls": polls, "bytes": total_bytes},
        )
        return summary


# =============================================================================
# Service
# =============================================================================


class UploadService(BaseService):
    """Service for uploading studies and requesting their analysis."""

    def __init__(
        self,
        client: "DiagnocatClient",
        *,
        analysis_type: str = DEFAULT_ANALYSIS_TYPE,
        study_type: str = DEFAULT_STUDY_TYPE,
        poll_interval: float = SESSION_POLL_INTERVAL_SECONDS,
        max_polls: int = SESSION_POLL_MAX_ATTEMPTS,
        uploader: Optional[StreamingUploader] = None,
    ) -> None:
        super().__init__(client)
        self.analysis_type = analysis_type
        self.study_type = study_type
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self.studies = StudyService(client)
        self.sessions = UploadSessionService(client)
        self.uploader = uploader or StreamingUploader(
            transport=client.transport,
            verify_ssl=client.verify_ssl,
        )

    def create_workflow(
        self,
        patient_id: str,
        file_path: str | Path,
        *,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
        deadline: Optional[float] = None,
        on_stage: Optional[StageCallback] = None,
    ) -> StudyUploadWorkflow:
        """Validate inputs and build a workflow without running it.

        Raises:
            ValidationError: For an empty patient id or a missing/empty file.
        """
        patient_id = validate_identifier(patient_id, "patient_id")
        path = validate_upload_file(file_path)
        return StudyUploadWorkflow(
            patient_id=patient_id,
            file_path=path,
            studies=self.studies,
            sessions=self.sessions,
            uploader=self.uploader,
            analysis_type=self.analysis_type,
            study_type=self.study_type,
            poll_interval=self.poll_interval,
            max_polls=self.max_polls,
            progress_callback=progress_callback,
            cancel_event=cancel_event,
            deadline=deadline,
            on_stage=on_stage,
        )

    def upload_study(
        self,
        patient_id: str,
        file_path: str | Path,
        *,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
        deadline: Optional[float] = None,
        on_stage: Optional[StageCallback] = None,
    ) -> StudyUploadSummary:
        """Upload one imaging file and request its analysis.

        Args:
            patient_id: Remote patient ID.
            file_path: Local imaging file (e.g. a CBCT archive).
            progress_callback: Receives transfer observations.
            cancel_event: Aborts the workflow when set.
            deadline: Absolute ``time.monotonic()`` deadline for the whole run.
            on_stage: Called on every stage transition.

        Returns:
            StudyUploadSummary; ``report_id`` identifies the analysis.

        Raises:
            ValidationError: On invalid inputs, before any remote call.
            UploadWorkflowError: If any stage fails.
        """
        workflow = self.create_workflow(
            patient_id,
            file_path,
            progress_callback=progress_callback,
            cancel_event=cancel_event,
            deadline=deadline,
            on_stage=on_stage,
        )
        return workflow.run()
