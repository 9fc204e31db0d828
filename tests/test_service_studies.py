"""Unit tests for StudyService."""

from __future__ import annotations

from datetime import date
from unittest.mock import MagicMock

import httpx
import pytest

from diagnocatctl.core.exceptions import DecodeError, RemoteError, ValidationError
from diagnocatctl.services.studies import StudyService


@pytest.fixture
def mock_client() -> MagicMock:
    """Create a mock DiagnocatClient."""
    client = MagicMock()
    client.base_url = "https://diagnocat.example.org"
    return client


@pytest.fixture
def service(mock_client: MagicMock) -> StudyService:
    """Create StudyService with mock client."""
    return StudyService(mock_client)


def _make_response(json_data: object) -> MagicMock:
    """Build a mock httpx.Response."""
    resp = MagicMock(spec=httpx.Response)
    resp.json.return_value = json_data
    resp.status_code = 200
    return resp


class TestCreateStudy:
    """Tests for StudyService.create_study."""

    def test_returns_remote_study(self, service: StudyService, mock_client: MagicMock) -> None:
        mock_client.post.return_value = _make_response({"uid": "study-1", "id_v3": "v3-1"})

        study = service.create_study("12345", study_date=date(2026, 3, 1))

        assert study.uid == "study-1"
        assert study.id_v3 == "v3-1"
        path = mock_client.post.call_args.args[0]
        assert path == "/v2/patients/12345/studies"
        body = mock_client.post.call_args.kwargs["json"]
        assert body == {
            "study_name": "Upload from API",
            "study_type": "CBCT",
            "study_date": "2026-03-01",
        }

    def test_defaults_study_date_to_today(self, service: StudyService, mock_client: MagicMock) -> None:
        mock_client.post.return_value = _make_response({"uid": "study-1"})

        service.create_study("12345", study_type="PANORAMA")

        body = mock_client.post.call_args.kwargs["json"]
        assert body["study_type"] == "PANORAMA"
        assert len(body["study_date"]) == 10

    def test_empty_uid_is_remote_error(self, service: StudyService, mock_client: MagicMock) -> None:
        mock_client.post.return_value = _make_response({"uid": "", "id_v3": "v3-1"})

        with pytest.raises(RemoteError, match="uid"):
            service.create_study("12345")

    def test_malformed_body_is_decode_error(self, service: StudyService, mock_client: MagicMock) -> None:
        resp = MagicMock(spec=httpx.Response)
        resp.json.side_effect = ValueError("Expecting value")
        mock_client.post.return_value = resp

        with pytest.raises(DecodeError):
            service.create_study("12345")

    def test_non_object_body_is_decode_error(self, service: StudyService, mock_client: MagicMock) -> None:
        mock_client.post.return_value = _make_response(["study-1"])

        with pytest.raises(DecodeError):
            service.create_study("12345")

    def test_empty_patient_rejected(self, service: StudyService, mock_client: MagicMock) -> None:
        with pytest.raises(ValidationError):
            service.create_study("  ")
        mock_client.post.assert_not_called()

    def test_remote_error_propagates(self, service: StudyService, mock_client: MagicMock) -> None:
        mock_client.post.side_effect = RemoteError("create study", 404, "patient not found")

        with pytest.raises(RemoteError) as exc_info:
            service.create_study("12345")
        assert exc_info.value.status_code == 404


class TestRequestAnalysis:
    """Tests for StudyService.request_analysis."""

    def test_uid_is_report_id(self, service: StudyService, mock_client: MagicMock) -> None:
        mock_client.post.return_value = _make_response(
            {"uid": "an-1", "id_v3": "an-v3", "status": "queued"}
        )

        analysis = service.request_analysis("study-1")

        assert analysis.report_id == "an-1"
        assert mock_client.post.call_args.args[0] == "/v2/studies/study-1/analyses"
        assert mock_client.post.call_args.kwargs["json"] == {"analysis_type": "GP"}

    def test_falls_back_to_id_v3(self, service: StudyService, mock_client: MagicMock) -> None:
        mock_client.post.return_value = _make_response({"uid": "", "id_v3": "an-v3"})

        analysis = service.request_analysis("study-1", "CBCT_ORTHO")

        assert analysis.report_id == "an-v3"
        assert mock_client.post.call_args.kwargs["json"] == {"analysis_type": "CBCT_ORTHO"}

    def test_both_ids_empty_is_remote_error(self, service: StudyService, mock_client: MagicMock) -> None:
        mock_client.post.return_value = _make_response({"status": "queued"})

        with pytest.raises(RemoteError):
            service.request_analysis("study-1")
