"""Logging for upload workflows and partner API calls.

Workflow progress goes to ordinary module loggers through ``LogContext``,
which stamps every line with the workflow label and its study fields.
Each finished workflow, successful or failed, is additionally emitted as
one audit record on ``diagnocatctl.audit``.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from typing import Any, Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
AUDIT_LOGGER_NAME = "diagnocatctl.audit"

# Transport libraries log every request at INFO.
_QUIET_LIBRARIES = ("httpx", "httpcore")


def setup_logging(
    level: int = logging.INFO,
    *,
    quiet: bool = False,
    verbose: bool = False,
) -> None:
    """Route diagnocatctl logs to stderr so stdout stays machine readable.

    ``quiet`` wins over ``verbose``: a quiet run reports errors only.
    """
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=sys.stderr,
    )

    for name in _QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class LogContext:
    """Timed scope for one upload workflow run.

    Entering logs the start with the study fields, leaving logs the
    duration and, when an exception escapes, the failure. Messages logged
    through the context carry the workflow label and the same fields.

    Example:
        with LogContext("upload scan.zip", logger, patient="p-1") as ctx:
            ctx.info("session %s opened", session_id)
    """

    def __init__(
        self,
        operation: str,
        logger: Optional[logging.Logger] = None,
        **context: Any,
    ):
        self.operation = operation
        self.logger = logger or get_logger(__name__)
        self.context = context
        self.start_time: Optional[datetime] = None

    @property
    def elapsed(self) -> float:
        """Seconds since the workflow scope was entered."""
        if self.start_time is None:
            return 0.0
        return (datetime.now() - self.start_time).total_seconds()

    def _fields(self) -> str:
        return ", ".join(f"{k}={v}" for k, v in self.context.items())

    def __enter__(self) -> "LogContext":
        self.start_time = datetime.now()
        self.logger.info("Starting %s (%s)", self.operation, self._fields())
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if exc_type:
            self.logger.error("%s failed after %.2fs: %s", self.operation, self.elapsed, exc_val)
        else:
            self.logger.info("%s completed in %.2fs", self.operation, self.elapsed)

    def log(self, level: int, message: str, *args: Any) -> None:
        self.logger.log(level, f"[{self.operation}] {message} ({self._fields()})", *args)

    def info(self, message: str, *args: Any) -> None:
        self.log(logging.INFO, message, *args)

    def warning(self, message: str, *args: Any) -> None:
        self.log(logging.WARNING, message, *args)

    def error(self, message: str, *args: Any) -> None:
        self.log(logging.ERROR, message, *args)

    def debug(self, message: str, *args: Any) -> None:
        self.log(logging.DEBUG, message, *args)


class AuditLogger:
    """Emits one record per finished upload workflow."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(AUDIT_LOGGER_NAME)

    def log_operation(
        self,
        operation: str,
        *,
        patient: Optional[str] = None,
        study: Optional[str] = None,
        session: Optional[str] = None,
        report: Optional[str] = None,
        success: bool = True,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """Record the outcome of a workflow.

        Identifier fields are included only when known at that stage, so a
        workflow that fails before the study exists audits without ``study``.
        Failed operations are logged at WARNING.

        Args:
            operation: Record name, e.g. ``study_upload``.
            patient: Partner patient ID.
            study: Study UID created for the upload.
            session: Upload session ID.
            report: Analysis ID returned for the study.
            success: False when the workflow failed.
            details: Extra fields such as the failed stage or poll count.
        """
        record: dict[str, Any] = {
            "timestamp": datetime.now().isoformat(),
            "operation": operation,
            "success": success,
        }
        for key, value in (
            ("patient", patient),
            ("study", study),
            ("session", session),
            ("report", report),
            ("details", details),
        ):
            if value:
                record[key] = value

        level = logging.INFO if success else logging.WARNING
        self.logger.log(level, "AUDIT: %s", record)


def get_audit_logger() -> AuditLogger:
    return AuditLogger()
