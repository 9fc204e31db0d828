"""Main CLI entry point for diagnocatctl."""

from __future__ import annotations

import click

from diagnocatctl import __version__
from diagnocatctl.cli.auth import auth
from diagnocatctl.cli.common import Context, global_options, handle_errors
from diagnocatctl.cli.config_cmd import config
from diagnocatctl.cli.report import report
from diagnocatctl.cli.study import study
from diagnocatctl.core.output import OutputFormat, print_output, print_success

# =============================================================================
# Main CLI Group
# =============================================================================


@click.group()
@click.version_option(version=__version__, prog_name="diagnocatctl")
def cli() -> None:
    """diagnocatctl - Upload imaging studies to Diagnocat and fetch reports.

    Get started:

      diagnocatctl config init                     # Create config file

      export DIAGNOCAT_API_KEY=...                 # Or DIAGNOCAT_EMAIL/PASSWORD

      diagnocatctl study upload PATIENT scan.zip   # Upload and request analysis

      diagnocatctl report status REPORT_ID         # Check the analysis

    Use --help on any command for more information.
    """
    pass


# =============================================================================
# Register Command Groups
# =============================================================================

cli.add_command(config)
cli.add_command(auth)
cli.add_command(study)
cli.add_command(report)


# =============================================================================
# Top-Level Commands
# =============================================================================


@cli.group()
def health() -> None:
    """Server health and connectivity checks."""
    pass


@health.command("ping")
@global_options
@handle_errors
def health_ping(ctx: Context) -> None:
    """Check server connectivity and credentials."""
    client = ctx.get_client()
    result = client.ping()

    if ctx.output_format == OutputFormat.JSON:
        print_output(result, format=OutputFormat.JSON)
        return

    print_success(f"Server reachable: {result['url']}")
    print_output(
        {
            "status": result["status"],
            "auth_mode": result["auth_mode"],
            "latency": f"{result['latency_ms']}ms",
        },
        format=OutputFormat.TABLE,
    )


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
