"""Tests for AnalysisService against a mocked partner API."""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest
from conftest import Recorder

from diagnocatctl.core.exceptions import DecodeError, RemoteError
from diagnocatctl.services.analyses import AnalysisService

COMPLETE_ANALYSIS = {
    "id": "an-1",
    "status": "complete",
    "complete": True,
    "pdf_url": "https://app2.diagnocat.ru/reports/an-1.pdf",
    "webpage_url": "https://app2.diagnocat.ru/reports/an-1",
}

DIAGNOSES = {
    "diagnoses": [
        {"tooth_number": 16, "text_comment": "Caries", "attributes": [{"id": 1}]},
        {"tooth_number": 36, "text_comment": "Filling", "periodontal_status": {"depth": 3}},
    ]
}


@pytest.fixture
def service(make_client) -> AnalysisService:
    return AnalysisService(make_client())


class TestCheckStatus:
    """Tests for AnalysisService.check_status."""

    def test_incomplete_skips_diagnoses(self, service: AnalysisService, recorder: Recorder) -> None:
        recorder.on("GET", "/v2/analyses/an-1", {"id": "an-1", "status": "in_progress", "complete": False})

        status = service.check_status("an-1")

        assert status.status == "in_progress"
        assert status.is_complete is False
        assert status.diagnoses is None
        assert recorder.calls("GET", "/v2/analyses/an-1/diagnoses") == []

    def test_complete_attaches_diagnoses(self, service: AnalysisService, recorder: Recorder) -> None:
        recorder.on("GET", "/v2/analyses/an-1", COMPLETE_ANALYSIS)
        recorder.on("GET", "/v2/analyses/an-1/diagnoses", DIAGNOSES)

        status = service.check_status("an-1")

        assert status.is_complete
        assert status.pdf_url == COMPLETE_ANALYSIS["pdf_url"]
        assert status.diagnoses is not None
        assert [d.tooth_number for d in status.diagnoses] == [16, 36]
        assert status.diagnoses[1].periodontal_status == {"depth": 3}

    def test_diagnoses_failure_keeps_status(self, service: AnalysisService, recorder: Recorder) -> None:
        recorder.on("GET", "/v2/analyses/an-1", COMPLETE_ANALYSIS)
        recorder.on("GET", "/v2/analyses/an-1/diagnoses", lambda r: httpx.Response(502, text="bad gateway"))

        status = service.check_status("an-1")

        assert status.is_complete
        assert status.webpage_url == COMPLETE_ANALYSIS["webpage_url"]
        assert status.diagnoses is None

    def test_status_failure_raises(self, service: AnalysisService, recorder: Recorder) -> None:
        recorder.on("GET", "/v2/analyses/an-1", lambda r: httpx.Response(404, text="not found"))

        with pytest.raises(RemoteError) as exc_info:
            service.check_status("an-1")
        assert exc_info.value.status_code == 404

    def test_malformed_status(self, service: AnalysisService, recorder: Recorder) -> None:
        recorder.on("GET", "/v2/analyses/an-1", lambda r: httpx.Response(200, text="not json"))

        with pytest.raises(DecodeError):
            service.check_status("an-1")

    def test_missing_id_filled_from_request(self, service: AnalysisService, recorder: Recorder) -> None:
        recorder.on("GET", "/v2/analyses/an-1", {"status": "queued"})

        assert service.check_status("an-1").id == "an-1"

    def test_idempotent(self, service: AnalysisService, recorder: Recorder) -> None:
        recorder.on("GET", "/v2/analyses/an-1", COMPLETE_ANALYSIS)
        recorder.on("GET", "/v2/analyses/an-1/diagnoses", DIAGNOSES)

        first = service.check_status("an-1")
        second = service.check_status("an-1")

        assert first == second
        assert len(recorder.calls("GET", "/v2/analyses/an-1")) == 2


class TestExportReport:
    def test_export_includes_diagnoses(self, service: AnalysisService, recorder: Recorder) -> None:
        recorder.on("GET", "/v2/analyses/an-1", COMPLETE_ANALYSIS)
        recorder.on("GET", "/v2/analyses/an-1/diagnoses", DIAGNOSES)

        export = service.export_report("an-1")

        assert export.report_id == "an-1"
        assert export.diagnoses is not None
        assert len(export.diagnoses.diagnoses) == 2
        assert export.to_dict()["report"]["status"] == "complete"

    def test_export_fails_on_diagnoses_error(self, service: AnalysisService, recorder: Recorder) -> None:
        recorder.on("GET", "/v2/analyses/an-1", COMPLETE_ANALYSIS)
        recorder.on("GET", "/v2/analyses/an-1/diagnoses", lambda r: httpx.Response(500, text="boom"))

        with pytest.raises(RemoteError):
            service.export_report("an-1")


class TestListAnalyses:
    def test_list(self, service: AnalysisService, recorder: Recorder) -> None:
        recorder.on(
            "GET",
            "/v2/analyses",
            [
                {"uid": "an-1", "study_uid": "study-1", "analysis_type": "GP", "complete": True},
                {"uid": "an-2", "study_uid": "study-2", "analysis_type": "GP"},
            ],
        )

        analyses = service.list_analyses("patient-1")

        assert [a.uid for a in analyses] == ["an-1", "an-2"]
        assert recorder.requests[0].url.params["patient_uid"] == "patient-1"

    def test_list_rejects_scalar(self, service: AnalysisService, recorder: Recorder) -> None:
        recorder.on("GET", "/v2/analyses", lambda r: httpx.Response(200, json="nope"))

        with pytest.raises(DecodeError):
            service.list_analyses("patient-1")


class TestDownloadReportPdf:
    def test_pdf_streamed_to_nested_path(self, service: AnalysisService, recorder: Recorder, temp_dir: Path) -> None:
        payload = b"%PDF-1.7\n" + b"0" * 200_000
        recorder.on("GET", "/v2/analyses/an-1/pdf", lambda r: httpx.Response(200, content=payload))

        out = service.download_report_pdf("an-1", temp_dir / "reports" / "an-1.pdf")

        assert out.read_bytes() == payload
        assert recorder.requests[0].headers["Accept"] == "application/pdf"

    def test_pdf_not_found(self, service: AnalysisService, recorder: Recorder, temp_dir: Path) -> None:
        recorder.on("GET", "/v2/analyses/an-1/pdf", lambda r: httpx.Response(404, text="not ready"))
        dest = temp_dir / "an-1.pdf"

        with pytest.raises(RemoteError):
            service.download_report_pdf("an-1", dest)
        assert not dest.exists()
        assert not (temp_dir / "an-1.pdf.part").exists()

    def test_existing_pdf_kept_on_remote_error(
        self, service: AnalysisService, recorder: Recorder, temp_dir: Path
    ) -> None:
        dest = temp_dir / "an-1.pdf"
        dest.write_bytes(b"previous good report")
        recorder.on("GET", "/v2/analyses/an-1/pdf", lambda r: httpx.Response(404, text="not ready"))

        with pytest.raises(RemoteError):
            service.download_report_pdf("an-1", dest)

        assert dest.read_bytes() == b"previous good report"
        assert not (temp_dir / "an-1.pdf.part").exists()

    def test_existing_pdf_replaced_on_success(
        self, service: AnalysisService, recorder: Recorder, temp_dir: Path
    ) -> None:
        dest = temp_dir / "an-1.pdf"
        dest.write_bytes(b"stale")
        recorder.on("GET", "/v2/analyses/an-1/pdf", lambda r: httpx.Response(200, content=b"%PDF-1.7 new"))

        service.download_report_pdf("an-1", dest)

        assert dest.read_bytes() == b"%PDF-1.7 new"
        assert not (temp_dir / "an-1.pdf.part").exists()
