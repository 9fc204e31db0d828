"""Config commands for diagnocatctl."""

from __future__ import annotations

import click

from diagnocatctl.core.config import (
    CONFIG_FILE,
    DEFAULT_ANALYSIS_TYPE,
    DEFAULT_STUDY_TYPE,
    DEFAULT_URL,
    Config,
)
from diagnocatctl.core.exceptions import DiagnocatError
from diagnocatctl.core.output import OutputFormat, print_error, print_key_value, print_output, print_success
from diagnocatctl.core.timeouts import DEFAULT_HTTP_TIMEOUT_SECONDS
from diagnocatctl.core.validation import validate_server_url, validate_timeout


def _load_config() -> Config:
    try:
        return Config.load(CONFIG_FILE)
    except DiagnocatError as e:
        print_error(f"Failed to load config: {e}")
        raise SystemExit(1) from e


@click.group()
def config() -> None:
    """Manage diagnocatctl configuration."""
    pass


@config.command("init")
@click.option("--url", prompt="Diagnocat API URL", default=DEFAULT_URL, help="Partner API base URL")
@click.option("--profile", default="default", help="Profile name")
@click.option("--analysis-type", default=DEFAULT_ANALYSIS_TYPE, help="Analysis requested after upload")
@click.option("--study-type", default=DEFAULT_STUDY_TYPE, help="Study type for created studies")
@click.option("--timeout", type=int, default=DEFAULT_HTTP_TIMEOUT_SECONDS, help="Request timeout in seconds")
@click.option("--no-verify-ssl", is_flag=True, help="Disable SSL verification")
@click.option("--force", is_flag=True, help="Overwrite an existing profile")
def config_init(
    url: str,
    profile: str,
    analysis_type: str,
    study_type: str,
    timeout: int,
    no_verify_ssl: bool,
    force: bool,
) -> None:
    """Create configuration file with a new profile.

    Credentials are never written; provide them through DIAGNOCAT_API_KEY
    or DIAGNOCAT_EMAIL/DIAGNOCAT_PASSWORD.

    Example:
        diagnocatctl config init --url https://app2.diagnocat.ru/partner-api
    """
    try:
        url = validate_server_url(url)
        timeout = validate_timeout(timeout)
    except DiagnocatError as e:
        print_error(str(e))
        raise SystemExit(1) from e

    cfg = _load_config() if CONFIG_FILE.exists() else Config()
    if cfg.has_profile(profile) and not force:
        print_error(f"Profile '{profile}' already exists. Use --force to overwrite.")
        raise SystemExit(1)

    cfg.add_profile(
        name=profile,
        url=url,
        verify_ssl=not no_verify_ssl,
        timeout=timeout,
        analysis_type=analysis_type,
        study_type=study_type,
    )
    if len(cfg.profiles) == 1:
        cfg.default_profile = profile

    cfg.save(CONFIG_FILE)

    print_success(f"Configuration saved to {CONFIG_FILE}")
    print_key_value(
        {
            "profile": profile,
            "url": url,
            "analysis_type": analysis_type,
            "study_type": study_type,
        }
    )


@config.command("show")
@click.option("--output", "-o", type=click.Choice(["json", "table"]), default="table")
def config_show(output: str) -> None:
    """Show current configuration (secrets are never shown)."""
    cfg = _load_config()

    if not cfg.profiles:
        print_error("No configuration found. Run 'diagnocatctl config init' first.")
        raise SystemExit(1)

    data = {
        "config_file": str(CONFIG_FILE),
        "default_profile": cfg.default_profile,
        "output_format": cfg.output_format,
        "profiles": list(cfg.profiles.keys()),
    }

    if output == "json":
        details = {}
        for name, p in cfg.profiles.items():
            pdata = p.to_dict()
            for secret in ("api_key", "password"):
                pdata.pop(secret, None)
            details[name] = pdata
        data["profile_details"] = details
        print_output(data, format=OutputFormat.JSON)
        return

    print_key_value(data, title="Configuration")
    click.echo()
    for name, profile in cfg.profiles.items():
        marker = " (default)" if name == cfg.default_profile else ""
        click.echo(f"Profile: {name}{marker}")
        print_key_value(
            {
                "url": profile.url,
                "verify_ssl": profile.verify_ssl,
                "timeout": f"{profile.timeout}s",
                "analysis_type": profile.analysis_type,
                "study_type": profile.study_type,
            },
        )
        click.echo()


@config.command("use-context")
@click.argument("profile")
def config_use_context(profile: str) -> None:
    """Switch the active profile.

    Example:
        diagnocatctl config use-context production
    """
    cfg = _load_config()

    if not cfg.has_profile(profile):
        print_error(f"Profile '{profile}' not found.")
        click.echo(f"Available profiles: {', '.join(cfg.profiles.keys()) or '-'}")
        raise SystemExit(1)

    cfg.set_default_profile(profile)
    cfg.save(CONFIG_FILE)

    print_success(f"Switched to profile '{profile}'")


@config.command("current-context")
def config_current_context() -> None:
    """Show the current active profile."""
    cfg = _load_config()
    click.echo(cfg.default_profile)
