"""diagnocatctl - Upload imaging studies to Diagnocat and track their analyses.

This package provides a client library and command-line interface for the
Diagnocat partner API, supporting:
- Uploading a CBCT/imaging archive through a remote upload session
- Requesting an AI analysis once the upload has been processed
- Checking analysis status, exporting diagnoses and downloading PDF reports
"""

__version__ = "0.1.0"

from diagnocatctl.core.client import DiagnocatClient
from diagnocatctl.core.config import Config, Profile
from diagnocatctl.core.exceptions import (
    AuthenticationError,
    ConfigurationError,
    DecodeError,
    DiagnocatError,
    NetworkError,
    RemoteError,
    TransferError,
    UploadWorkflowError,
    ValidationError,
)
from diagnocatctl.services.analyses import AnalysisService
from diagnocatctl.services.uploads import UploadService

__all__ = [
    "__version__",
    "DiagnocatClient",
    "Config",
    "Profile",
    "UploadService",
    "AnalysisService",
    "DiagnocatError",
    "AuthenticationError",
    "ConfigurationError",
    "DecodeError",
    "NetworkError",
    "RemoteError",
    "TransferError",
    "UploadWorkflowError",
    "ValidationError",
]
