"""Authentication commands for diagnocatctl."""

from __future__ import annotations

import click

from diagnocatctl.cli.common import Context, global_options, handle_errors
from diagnocatctl.core.auth import AUTH_MODE_NONE
from diagnocatctl.core.exceptions import AuthenticationError
from diagnocatctl.core.output import OutputFormat, print_output, print_success


@click.group()
def auth() -> None:
    """Inspect authentication credentials."""
    pass


@auth.command("check")
@global_options
@handle_errors
def auth_check(ctx: Context) -> None:
    """Resolve credentials and report the authentication mode.

    With email/password this performs the token exchange and shows when
    the cached token will be refreshed. A static API key is used as is.

    Example:
        DIAGNOCAT_API_KEY=... diagnocatctl auth check
        diagnocatctl auth check -o json
    """
    client = ctx.get_client()
    if client.auth_mode == AUTH_MODE_NONE:
        raise AuthenticationError(
            client.base_url,
            "No credentials. Set DIAGNOCAT_API_KEY or DIAGNOCAT_EMAIL/DIAGNOCAT_PASSWORD.",
        )

    client.auth_headers()

    assert client.credentials is not None
    credential = client.credentials.credential
    result = {
        "url": client.base_url,
        "auth_mode": client.auth_mode,
        "email": client.credentials.email or "-",
        "expires_at": credential.expires_at.isoformat() if credential else "never",
    }

    if not ctx.quiet and ctx.output_format == OutputFormat.TABLE:
        print_success(f"Credentials resolved ({client.auth_mode})")
    print_output(
        result,
        format=ctx.output_format,
        column_labels={
            "url": "Server",
            "auth_mode": "Auth Mode",
            "email": "Email",
            "expires_at": "Expires At",
        },
        quiet=ctx.quiet,
        id_field="auth_mode",
    )
