"""Common CLI utilities, decorators, and helpers."""

from __future__ import annotations

import sys
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

import click

from diagnocatctl.core.client import DiagnocatClient
from diagnocatctl.core.config import Config, Profile, get_credentials
from diagnocatctl.core.exceptions import (
    AuthenticationError,
    ConfigurationError,
    DiagnocatError,
    ProfileNotFoundError,
    UploadWorkflowError,
)
from diagnocatctl.core.logging import setup_logging
from diagnocatctl.core.output import OutputFormat, print_error

F = TypeVar("F", bound=Callable[..., Any])


# =============================================================================
# Exit Codes
# =============================================================================


class ExitCode:
    """Standard exit codes."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    AUTH_ERROR = 2
    USER_CANCELLED = 5


# =============================================================================
# Context Object
# =============================================================================


class Context:
    """CLI context object passed to commands."""

    def __init__(self) -> None:
        self.config: Optional[Config] = None
        self.client: Optional[DiagnocatClient] = None
        self.profile_name: Optional[str] = None
        self.output_format: OutputFormat = OutputFormat.TABLE
        self.quiet: bool = False
        self.verbose: bool = False

    def get_profile(self) -> Profile:
        """Resolve the active profile.

        Raises:
            ConfigurationError: If the named profile does not exist.
        """
        if self.config is None:
            self.config = Config.load()

        try:
            return self.config.get_profile(self.profile_name)
        except ProfileNotFoundError as e:
            raise ConfigurationError(
                f"Profile '{self.profile_name or self.config.default_profile}' not found. "
                "Run 'diagnocatctl config init' to create one."
            ) from e

    def get_client(self) -> DiagnocatClient:
        """Get or create the API client for the active profile.

        Credentials are resolved lazily; nothing is sent until the first call.
        """
        if self.client is not None:
            return self.client

        profile = self.get_profile()
        api_key, email, password = get_credentials(profile)

        self.client = DiagnocatClient(
            base_url=profile.url,
            api_key=api_key,
            email=email,
            password=password,
            client_host_id=profile.client_host_id,
            timeout=profile.timeout,
            verify_ssl=profile.verify_ssl,
        )
        return self.client


pass_context = click.make_pass_decorator(Context, ensure=True)


# =============================================================================
# Global Options
# =============================================================================


def global_options(f: F) -> F:
    """Add global options to a command."""

    @click.option(
        "--profile",
        "-p",
        envvar="DIAGNOCAT_PROFILE",
        help="Config profile to use",
    )
    @click.option(
        "--output",
        "-o",
        "output_format",
        type=click.Choice(["json", "table"]),
        default="table",
        help="Output format",
    )
    @click.option(
        "--quiet",
        "-q",
        is_flag=True,
        help="Minimal output (IDs only)",
    )
    @click.option(
        "--verbose",
        "-v",
        is_flag=True,
        help="Enable verbose output",
    )
    @pass_context
    @wraps(f)
    def wrapper(
        ctx: Context,
        profile: Optional[str],
        output_format: str,
        quiet: bool,
        verbose: bool,
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        """Populate context from global options and invoke the command."""
        ctx.profile_name = profile
        ctx.output_format = OutputFormat.from_string(output_format)
        ctx.quiet = quiet
        ctx.verbose = verbose

        setup_logging(quiet=quiet, verbose=verbose)
        try:
            ctx.config = Config.load()
        except ConfigurationError as e:
            print_error(str(e))
            sys.exit(ExitCode.GENERAL_ERROR)

        try:
            return f(ctx, *args, **kwargs)
        finally:
            if ctx.client is not None:
                ctx.client.close()

    return wrapper  # type: ignore


# =============================================================================
# Error Handling
# =============================================================================


def handle_errors(f: F) -> F:
    """Print library errors and exit with a consistent code."""

    @wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        """Capture errors and exit with consistent messaging."""
        try:
            return f(*args, **kwargs)
        except AuthenticationError as e:
            print_error(str(e))
            sys.exit(ExitCode.AUTH_ERROR)
        except UploadWorkflowError as e:
            print_error(f"Study upload failed at stage '{e.stage}': {e.cause}")
            if isinstance(e.cause, AuthenticationError):
                sys.exit(ExitCode.AUTH_ERROR)
            sys.exit(ExitCode.GENERAL_ERROR)
        except DiagnocatError as e:
            print_error(str(e))
            sys.exit(ExitCode.GENERAL_ERROR)
        except click.ClickException:
            raise
        except Exception as e:
            print_error(f"Unexpected error: {e}")
            sys.exit(ExitCode.GENERAL_ERROR)

    return wrapper  # type: ignore
