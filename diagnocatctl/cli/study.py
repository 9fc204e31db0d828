"""Study commands for diagnocatctl."""

from __future__ import annotations

import sys
import time
from pathlib import Path
from typing import Optional

import click

from diagnocatctl.cli.common import Context, ExitCode, global_options, handle_errors
from diagnocatctl.core.output import (
    OutputFormat,
    create_transfer_progress,
    print_output,
    print_success,
    print_warning,
)
from diagnocatctl.models.progress import StudyUploadSummary, UploadProgress, WorkflowStage
from diagnocatctl.services.analyses import AnalysisService
from diagnocatctl.services.uploads import UploadService

STAGE_LABELS = {
    WorkflowStage.SESSION_OPEN: "Session opened",
    WorkflowStage.URLS_ISSUED: "Upload URL issued",
    WorkflowStage.UPLOADING: "Uploading",
    WorkflowStage.SESSION_CLOSING: "Waiting for processing",
    WorkflowStage.SESSION_CLOSED: "Processed",
    WorkflowStage.ANALYSIS_REQUESTED: "Analysis requested",
    WorkflowStage.DONE: "Done",
    WorkflowStage.FAILED: "Failed",
}


@click.group()
def study() -> None:
    """Upload imaging studies."""
    pass


def _run_upload(
    ctx: Context,
    service: UploadService,
    patient_id: str,
    file_path: Path,
) -> StudyUploadSummary:
    show_progress = ctx.output_format == OutputFormat.TABLE and not ctx.quiet
    if not show_progress:
        return service.upload_study(patient_id, file_path)

    with create_transfer_progress() as progress:
        task_id = progress.add_task(f"Preparing {file_path.name}...", total=None)

        def progress_callback(p: UploadProgress) -> None:
            """Feed transfer observations into the progress bar."""
            progress.update(task_id, total=p.total_bytes, completed=p.bytes_sent)

        def on_stage(stage: WorkflowStage) -> None:
            """Show the current workflow stage as the task description."""
            label = STAGE_LABELS.get(stage, stage.value)
            if stage is WorkflowStage.SESSION_CLOSING:
                size = file_path.stat().st_size
                progress.update(task_id, total=size, completed=size)
            progress.update(task_id, description=f"{label} {file_path.name}")

        return service.upload_study(
            patient_id,
            file_path,
            progress_callback=progress_callback,
            on_stage=on_stage,
        )


def _wait_for_report(
    analyses: AnalysisService,
    report_id: str,
    interval: float,
    timeout: float,
) -> Optional[dict]:
    deadline = time.monotonic() + timeout
    while True:
        status = analyses.check_status(report_id)
        if status.is_complete or status.is_failed:
            return status.to_row()
        if time.monotonic() + interval > deadline:
            return None
        time.sleep(interval)


@study.command("upload")
@click.argument("patient_id")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--analysis-type", default=None, help="Analysis to request (default from profile, GP)")
@click.option("--study-type", default=None, help="Study type (default from profile, CBCT)")
@click.option("--wait", is_flag=True, help="Wait for the analysis to complete")
@click.option("--wait-interval", type=float, default=10.0, show_default=True, help="Seconds between status checks")
@click.option("--wait-timeout", type=float, default=1800.0, show_default=True, help="Give up waiting after this many seconds")
@global_options
@handle_errors
def study_upload(
    ctx: Context,
    patient_id: str,
    file: Path,
    analysis_type: Optional[str],
    study_type: Optional[str],
    wait: bool,
    wait_interval: float,
    wait_timeout: float,
) -> None:
    """Upload an imaging file for a patient and request its analysis.

    Prints the report ID used by the report commands.

    Example:
        diagnocatctl study upload 12345 scan.zip
        diagnocatctl study upload 12345 scan.zip --analysis-type GP --wait
        diagnocatctl study upload 12345 scan.zip -q  # report ID only
    """
    profile = ctx.get_profile()
    client = ctx.get_client()
    service = UploadService(
        client,
        analysis_type=analysis_type or profile.analysis_type,
        study_type=study_type or profile.study_type,
    )

    try:
        summary = _run_upload(ctx, service, patient_id, file)
    except KeyboardInterrupt:
        print_warning("Upload interrupted")
        sys.exit(ExitCode.USER_CANCELLED)

    result = summary.to_dict()
    if not ctx.quiet and ctx.output_format == OutputFormat.TABLE:
        print_success(f"Uploaded {file.name}; analysis {summary.report_id} requested")

    if wait:
        report = _wait_for_report(AnalysisService(client), summary.report_id, wait_interval, wait_timeout)
        if report is None:
            print_warning(f"Analysis {summary.report_id} not complete after {wait_timeout:.0f}s")
            result["analysis_status"] = "pending"
        else:
            result["analysis_status"] = report.get("status") or ("complete" if report.get("complete") else "-")

    print_output(
        result,
        format=ctx.output_format,
        column_labels={
            "report_id": "Report ID",
            "study_uid": "Study UID",
            "session_id": "Session",
            "analysis_uid": "Analysis UID",
            "analysis_id_v3": "Analysis ID (v3)",
            "file": "File",
            "size_mb": "Size (MB)",
            "polls": "Polls",
            "duration_s": "Duration (s)",
            "analysis_status": "Analysis Status",
        },
        quiet=ctx.quiet,
        id_field="report_id",
    )
