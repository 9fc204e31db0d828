"""Core modules for diagnocatctl."""

from diagnocatctl.core.auth import Credential, CredentialCache, TokenGrant
from diagnocatctl.core.client import DiagnocatClient
from diagnocatctl.core.config import CONFIG_DIR, CONFIG_FILE, Config, Profile
from diagnocatctl.core.exceptions import (
    AuthenticationError,
    ConfigurationError,
    ConnectionError,
    DecodeError,
    DiagnocatError,
    NetworkError,
    RemoteError,
    SessionProcessingError,
    SessionTimeoutError,
    TransferError,
    UploadWorkflowError,
    ValidationError,
    WorkflowCancelledError,
    WorkflowError,
)
from diagnocatctl.core.logging import LogContext, get_audit_logger, get_logger, setup_logging
from diagnocatctl.core.output import (
    OutputFormat,
    console,
    print_error,
    print_json,
    print_output,
    print_success,
    print_table,
    print_warning,
)
from diagnocatctl.core.validation import (
    validate_identifier,
    validate_output_path,
    validate_server_url,
    validate_timeout,
    validate_upload_file,
)

__all__ = [
    # Exceptions
    "DiagnocatError",
    "AuthenticationError",
    "ConfigurationError",
    "ConnectionError",
    "DecodeError",
    "NetworkError",
    "RemoteError",
    "TransferError",
    "ValidationError",
    "WorkflowError",
    "UploadWorkflowError",
    "SessionProcessingError",
    "SessionTimeoutError",
    "WorkflowCancelledError",
    # Validation
    "validate_server_url",
    "validate_identifier",
    "validate_upload_file",
    "validate_output_path",
    "validate_timeout",
    # Config
    "Config",
    "Profile",
    "CONFIG_DIR",
    "CONFIG_FILE",
    # Client
    "DiagnocatClient",
    # Auth
    "Credential",
    "CredentialCache",
    "TokenGrant",
    # Output
    "OutputFormat",
    "print_output",
    "print_table",
    "print_json",
    "print_error",
    "print_warning",
    "print_success",
    "console",
    # Logging
    "get_logger",
    "get_audit_logger",
    "setup_logging",
    "LogContext",
]
