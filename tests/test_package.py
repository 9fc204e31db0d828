"""Tests for diagnocatctl package imports and exports."""

from __future__ import annotations


class TestPackageImports:
    """Tests for package imports."""

    def test_import_diagnocatctl(self):
        import diagnocatctl

        assert diagnocatctl.__version__ == "0.1.0"

    def test_import_core_modules(self):
        from diagnocatctl.core import auth, client, config, exceptions, logging, output, timeouts, validation

        for module in (auth, client, config, exceptions, logging, output, timeouts, validation):
            assert module is not None

    def test_import_models(self):
        from diagnocatctl.models import (
            AnalysisRequest,
            JobOutcome,
            ReportStatus,
            StudyUploadSummary,
            UploadSession,
            WorkflowStage,
        )

        assert WorkflowStage.DONE.is_terminal
        assert AnalysisRequest(id_v3="x").report_id == "x"
        assert UploadSession is not None
        assert ReportStatus is not None
        assert StudyUploadSummary is not None
        assert JobOutcome is not None

    def test_import_services(self):
        from diagnocatctl.services import (
            AnalysisService,
            StudyService,
            UploadJobRunner,
            UploadService,
            UploadSessionService,
        )

        assert all(
            cls is not None
            for cls in (AnalysisService, StudyService, UploadJobRunner, UploadService, UploadSessionService)
        )

    def test_import_uploaders(self):
        from diagnocatctl.uploaders import StreamingUploader

        assert StreamingUploader is not None

    def test_top_level_exports(self):
        import diagnocatctl

        for name in diagnocatctl.__all__:
            assert hasattr(diagnocatctl, name)

    def test_cli_entry_point(self):
        from diagnocatctl.cli.main import cli, main

        assert callable(main)
        assert "study" in cli.commands
