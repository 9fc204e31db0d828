"""Analysis service for report status, diagnoses and PDF downloads."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError as SchemaError

from diagnocatctl.core.exceptions import DecodeError, DiagnocatError, TransferError
from diagnocatctl.core.validation import validate_identifier, validate_output_path
from diagnocatctl.models.report import (
    AnalysisSummary,
    DiagnosesResponse,
    ReportExport,
    ReportStatus,
)

from .base import BaseService

logger = logging.getLogger(__name__)

PDF_CHUNK_SIZE = 64 * 1024


class AnalysisService(BaseService):
    """Service for Diagnocat analysis (report) operations."""

    def get_analysis(self, report_id: str) -> ReportStatus:
        """Fetch the status record of one analysis.

        Raises:
            RemoteError: On non-200 status.
            DecodeError: On malformed response body.
        """
        report_id = validate_identifier(report_id, "report_id")
        status = self._get(
            self._build_path("v2", "analyses", report_id),
            operation="get analysis",
            model=ReportStatus,
        )
        if not status.id:
            status.id = report_id
        return status

    def get_diagnoses(self, report_id: str) -> DiagnosesResponse:
        """Fetch per-tooth diagnoses of a completed analysis."""
        report_id = validate_identifier(report_id, "report_id")
        return self._get(
            self._build_path("v2", "analyses", report_id, "diagnoses"),
            operation="get diagnoses",
            model=DiagnosesResponse,
        )

    def check_status(self, report_id: str) -> ReportStatus:
        """Report the current state of an analysis.

        Diagnoses are attached only when the analysis is complete. A failure
        while fetching them is logged and leaves ``diagnoses`` unset; the
        status itself is still returned.

        Args:
            report_id: Analysis ID returned by the upload workflow.

        Returns:
            ReportStatus, with diagnoses when complete.

        Raises:
            RemoteError: If the status call answers with a non-200 status.
            DecodeError: On malformed status body.
        """
        status = self.get_analysis(report_id)
        if not status.is_complete:
            logger.debug("Analysis %s not complete (status=%s)", report_id, status.status or "-")
            return status

        try:
            status.diagnoses = self.get_diagnoses(report_id).diagnoses
        except DiagnocatError as e:
            logger.warning("Diagnoses for analysis %s unavailable: %s", report_id, e)
        return status

    def export_report(self, report_id: str) -> ReportExport:
        """Snapshot an analysis and its diagnoses.

        Unlike check_status, a failed diagnoses call fails the export.
        """
        status = self.get_analysis(report_id)
        diagnoses = self.get_diagnoses(report_id) if status.is_complete else None
        if diagnoses is not None:
            status.diagnoses = diagnoses.diagnoses

        return ReportExport(
            fetched_at=datetime.now(timezone.utc),
            source=self.client.base_url,
            report_id=report_id,
            report=status,
            diagnoses=diagnoses,
        )

    def list_analyses(self, patient_uid: str) -> list[AnalysisSummary]:
        """List all analyses of a patient."""
        patient_uid = validate_identifier(patient_uid, "patient_uid")
        data = self._get(
            "/v2/analyses",
            operation="list analyses",
            params={"patient_uid": patient_uid},
        )
        if isinstance(data, dict):
            data = data.get("analyses", data.get("items"))
        if not isinstance(data, list):
            raise DecodeError("list analyses", "expected a JSON list")

        try:
            return [AnalysisSummary.model_validate(item) for item in data]
        except SchemaError as e:
            raise DecodeError("list analyses", str(e)) from e

    def download_report_pdf(self, report_id: str, destination: str | Path) -> Path:
        """Stream the PDF rendering of a report to a local file.

        Parent directories are created as needed. The body is written to a
        sibling ``.part`` file that replaces the destination only after the
        whole body arrived, so an existing file survives any failure.

        Args:
            report_id: Analysis ID.
            destination: Output file path.

        Returns:
            Path of the written file.

        Raises:
            RemoteError: If the PDF endpoint answers with a non-200 status.
            NetworkError: On transport failure.
            TransferError: If the file cannot be written.
        """
        report_id = validate_identifier(report_id, "report_id")
        out_path = validate_output_path(destination)
        part_path = out_path.with_name(out_path.name + ".part")

        total = 0
        try:
            with self.client.stream(
                "GET",
                self._build_path("v2", "analyses", report_id, "pdf"),
                operation="download report pdf",
                headers={"Accept": "application/pdf"},
            ) as resp:
                with open(part_path, "wb") as f:
                    for chunk in resp.iter_bytes(chunk_size=PDF_CHUNK_SIZE):
                        f.write(chunk)
                        total += len(chunk)
            part_path.replace(out_path)
        except OSError as e:
            part_path.unlink(missing_ok=True)
            raise TransferError(
                f"Cannot write report PDF: {e}",
                file_path=str(out_path),
            ) from e
        except DiagnocatError:
            part_path.unlink(missing_ok=True)
            raise

        logger.info("Report %s PDF saved to %s (%d bytes)", report_id, out_path, total)
        return out_path
