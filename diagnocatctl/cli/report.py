"""Report (analysis) commands for diagnocatctl."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from diagnocatctl.cli.common import Context, global_options, handle_errors
from diagnocatctl.core.output import (
    OutputFormat,
    print_json,
    print_output,
    print_success,
    print_table,
)
from diagnocatctl.core.validation import validate_output_path
from diagnocatctl.models.report import AnalysisSummary, ReportStatus
from diagnocatctl.services.analyses import AnalysisService


@click.group()
def report() -> None:
    """Check analyses and fetch their reports."""
    pass


@report.command("status")
@click.argument("report_id")
@click.option("--diagnoses", "show_diagnoses", is_flag=True, help="List per-tooth diagnoses when complete")
@global_options
@handle_errors
def report_status(ctx: Context, report_id: str, show_diagnoses: bool) -> None:
    """Show the status of an analysis.

    Example:
        diagnocatctl report status 7f3c...
        diagnocatctl report status 7f3c... --diagnoses -o json
    """
    service = AnalysisService(ctx.get_client())
    status = service.check_status(report_id)

    if ctx.output_format == OutputFormat.JSON:
        print_json(status.to_dict())
        return

    print_output(
        status.to_row(),
        format=ctx.output_format,
        columns=ReportStatus.table_columns(),
        column_labels={
            "id": "Report ID",
            "status": "Status",
            "complete": "Complete",
            "pdf_url": "PDF",
            "diagnoses_count": "Diagnoses",
        },
        quiet=ctx.quiet,
        id_field="status",
    )

    if show_diagnoses and status.diagnoses and not ctx.quiet:
        print_table(
            [d.to_dict() for d in status.diagnoses],
            ["tooth_number", "text_comment"],
            title="Diagnoses",
            column_labels={"tooth_number": "Tooth", "text_comment": "Comment"},
        )


@report.command("export")
@click.argument("report_id")
@click.option("--file", "-f", "out_file", type=click.Path(dir_okay=False, path_type=Path), help="Write JSON to file")
@global_options
@handle_errors
def report_export(ctx: Context, report_id: str, out_file: Optional[Path]) -> None:
    """Export an analysis with its diagnoses as JSON.

    Fails if the diagnoses of a completed analysis cannot be fetched.

    Example:
        diagnocatctl report export 7f3c... -f report.json
    """
    service = AnalysisService(ctx.get_client())
    export = service.export_report(report_id)

    if out_file is None:
        print_json(export.to_dict())
        return

    path = validate_output_path(out_file)
    path.write_text(export.model_dump_json(indent=2, exclude_none=True))
    if not ctx.quiet:
        print_success(f"Report {report_id} exported to {path}")


@report.command("pdf")
@click.argument("report_id")
@click.option(
    "--out",
    "-O",
    "out_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Destination file (default: <report_id>.pdf)",
)
@global_options
@handle_errors
def report_pdf(ctx: Context, report_id: str, out_file: Optional[Path]) -> None:
    """Download the PDF rendering of a report.

    Example:
        diagnocatctl report pdf 7f3c... --out reports/patient-12345.pdf
    """
    service = AnalysisService(ctx.get_client())
    path = service.download_report_pdf(report_id, out_file or Path(f"{report_id}.pdf"))

    if ctx.quiet:
        click.echo(str(path))
    elif ctx.output_format == OutputFormat.JSON:
        print_json({"report_id": report_id, "path": str(path), "size": path.stat().st_size})
    else:
        print_success(f"Saved {path}")


@report.command("list")
@click.argument("patient_uid")
@global_options
@handle_errors
def report_list(ctx: Context, patient_uid: str) -> None:
    """List analyses of a patient.

    Example:
        diagnocatctl report list 6a1e...
        diagnocatctl report list 6a1e... -q  # IDs only
    """
    service = AnalysisService(ctx.get_client())
    analyses = service.list_analyses(patient_uid)

    print_output(
        [a.to_dict() for a in analyses],
        format=ctx.output_format,
        columns=AnalysisSummary.table_columns(),
        column_labels={
            "uid": "UID",
            "study_uid": "Study",
            "analysis_type": "Type",
            "complete": "Complete",
            "created_at": "Created",
        },
        quiet=ctx.quiet,
        id_field="uid",
    )
