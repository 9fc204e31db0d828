"""Study service for creating remote studies and requesting analyses."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Optional

from diagnocatctl.core.config import DEFAULT_ANALYSIS_TYPE, DEFAULT_STUDY_TYPE
from diagnocatctl.core.exceptions import RemoteError
from diagnocatctl.core.validation import validate_identifier
from diagnocatctl.models.study import AnalysisRequest, RemoteStudy, StudyCreateRequest

from .base import BaseService

logger = logging.getLogger(__name__)

DEFAULT_STUDY_NAME = "Upload from API"


class StudyService(BaseService):
    """Service for Diagnocat study operations."""

    def create_study(
        self,
        patient_id: str,
        *,
        study_type: str = DEFAULT_STUDY_TYPE,
        study_name: Optional[str] = DEFAULT_STUDY_NAME,
        study_date: Optional[date] = None,
    ) -> RemoteStudy:
        """Create a study for a patient.

        Args:
            patient_id: Remote patient ID.
            study_type: CBCT, PANORAMA, FMX or STL.
            study_name: Display name for the study.
            study_date: Acquisition date, defaults to today (UTC).

        Returns:
            Created RemoteStudy.

        Raises:
            RemoteError: On non-200 status or when the response has no uid.
            DecodeError: On malformed response body.
        """
        patient_id = validate_identifier(patient_id, "patient_id")
        body = StudyCreateRequest(
            study_name=study_name,
            study_type=study_type,
            study_date=study_date or datetime.now(timezone.utc).date(),
        )

        study = self._post(
            self._build_path("v2", "patients", patient_id, "studies"),
            operation="create study",
            json=body.to_dict(),
            model=RemoteStudy,
        )
        if not study.uid:
            raise RemoteError("create study", 200, reason="study uid missing in response")

        logger.info("Study created for patient %s: uid=%s", patient_id, study.uid)
        return study

    def request_analysis(
        self,
        study_uid: str,
        analysis_type: str = DEFAULT_ANALYSIS_TYPE,
    ) -> AnalysisRequest:
        """Request an AI analysis of an uploaded study.

        Args:
            study_uid: Legacy study UID.
            analysis_type: Analysis kind (GP, CBCT_ORTHO, ...).

        Returns:
            AnalysisRequest whose report_id is never empty.

        Raises:
            RemoteError: On non-200 status or when both ids are empty.
            DecodeError: On malformed response body.
        """
        study_uid = validate_identifier(study_uid, "study_uid")
        analysis = self._post(
            self._build_path("v2", "studies", study_uid, "analyses"),
            operation="request analysis",
            json={"analysis_type": analysis_type},
            model=AnalysisRequest,
        )
        if not analysis.report_id:
            raise RemoteError("request analysis", 200, reason="no analysis id in response")

        logger.info(
            "Analysis %s requested for study %s (uid=%s, id_v3=%s)",
            analysis_type,
            study_uid,
            analysis.uid,
            analysis.id_v3,
        )
        return analysis
