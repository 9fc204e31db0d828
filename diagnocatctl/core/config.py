"""Configuration management for diagnocatctl.

Supports YAML profiles and environment variable overrides.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from diagnocatctl.core.exceptions import ConfigurationError, ProfileNotFoundError
from diagnocatctl.core.timeouts import DEFAULT_HTTP_TIMEOUT_SECONDS

# =============================================================================
# Constants
# =============================================================================

CONFIG_DIR = Path.home() / ".config" / "diagnocatctl"
CONFIG_FILE = CONFIG_DIR / "config.yaml"

DEFAULT_URL = "https://app2.diagnocat.ru/partner-api"
DEFAULT_CLIENT_HOST_ID = "diagnocatctl"
DEFAULT_ANALYSIS_TYPE = "GP"
DEFAULT_STUDY_TYPE = "CBCT"

# Environment variable names
ENV_URL = "DIAGNOCAT_API_URL"
ENV_API_KEY = "DIAGNOCAT_API_KEY"
ENV_EMAIL = "DIAGNOCAT_EMAIL"
ENV_PASSWORD = "DIAGNOCAT_PASSWORD"
ENV_PROFILE = "DIAGNOCAT_PROFILE"
ENV_VERIFY_SSL = "DIAGNOCAT_VERIFY_SSL"
ENV_TIMEOUT = "DIAGNOCAT_TIMEOUT"


# =============================================================================
# Profile
# =============================================================================


@dataclass
class Profile:
    """Configuration profile for a Diagnocat partner API endpoint."""

    url: str = DEFAULT_URL
    verify_ssl: bool = True
    timeout: int = DEFAULT_HTTP_TIMEOUT_SECONDS
    client_host_id: str = DEFAULT_CLIENT_HOST_ID
    analysis_type: str = DEFAULT_ANALYSIS_TYPE
    study_type: str = DEFAULT_STUDY_TYPE
    api_key: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization (secrets only when set)."""
        data: dict[str, Any] = {
            "url": self.url,
            "verify_ssl": self.verify_ssl,
            "timeout": self.timeout,
            "client_host_id": self.client_host_id,
            "analysis_type": self.analysis_type,
            "study_type": self.study_type,
        }
        if self.api_key:
            data["api_key"] = self.api_key
        if self.email:
            data["email"] = self.email
        if self.password:
            data["password"] = self.password
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Profile":
        """Create from dictionary."""
        return cls(
            url=data.get("url", DEFAULT_URL),
            verify_ssl=data.get("verify_ssl", True),
            timeout=data.get("timeout", DEFAULT_HTTP_TIMEOUT_SECONDS),
            client_host_id=data.get("client_host_id", DEFAULT_CLIENT_HOST_ID),
            analysis_type=data.get("analysis_type", DEFAULT_ANALYSIS_TYPE),
            study_type=data.get("study_type", DEFAULT_STUDY_TYPE),
            api_key=data.get("api_key"),
            email=data.get("email"),
            password=data.get("password"),
        )


# =============================================================================
# Config
# =============================================================================


@dataclass
class Config:
    """Application configuration."""

    default_profile: str = "default"
    output_format: str = "table"
    profiles: dict[str, Profile] = field(default_factory=dict)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Config":
        """Load config from file with environment variable overrides.

        Priority (highest to lowest):
        1. Environment variables
        2. Config file
        3. Defaults

        Args:
            config_path: Optional path to config file.

        Returns:
            Loaded configuration.
        """
        path = config_path or CONFIG_FILE
        config = cls()

        if path.exists():
            try:
                with open(path) as f:
                    data = yaml.safe_load(f) or {}

                config.default_profile = data.get("default_profile", "default")
                config.output_format = data.get("output_format", "table")

                for name, pdata in (data.get("profiles") or {}).items():
                    config.profiles[name] = Profile.from_dict(pdata or {})
            except (OSError, yaml.YAMLError, AttributeError, TypeError) as e:
                raise ConfigurationError(f"Failed to load config: {e}") from e

        if url := os.getenv(ENV_URL):
            verify_ssl = os.getenv(ENV_VERIFY_SSL, "true").lower() in ("true", "1", "yes")
            try:
                timeout = int(os.getenv(ENV_TIMEOUT, str(DEFAULT_HTTP_TIMEOUT_SECONDS)))
            except ValueError as e:
                raise ConfigurationError(
                    "Invalid timeout", field=ENV_TIMEOUT, value=os.getenv(ENV_TIMEOUT)
                ) from e

            base = config.profiles.get("default", Profile())
            config.profiles["default"] = Profile(
                url=url,
                verify_ssl=verify_ssl,
                timeout=timeout,
                client_host_id=base.client_host_id,
                analysis_type=base.analysis_type,
                study_type=base.study_type,
                api_key=base.api_key,
                email=base.email,
                password=base.password,
            )

        if profile := os.getenv(ENV_PROFILE):
            config.default_profile = profile

        return config

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save config to file (excludes secrets).

        Args:
            config_path: Optional path to config file.
        """
        path = config_path or CONFIG_FILE
        path.parent.mkdir(parents=True, exist_ok=True)

        profiles = {}
        for name, p in self.profiles.items():
            pdata = p.to_dict()
            for secret in ("api_key", "email", "password"):
                pdata.pop(secret, None)
            profiles[name] = pdata

        data = {
            "default_profile": self.default_profile,
            "output_format": self.output_format,
            "profiles": profiles,
        }

        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    def get_profile(self, name: Optional[str] = None) -> Profile:
        """Get profile by name or default.

        When no profile is configured at all and the default is requested,
        a built-in profile pointing at the public partner API is returned.

        Raises:
            ProfileNotFoundError: If profile doesn't exist.
        """
        name = name or self.default_profile
        if name not in self.profiles:
            if not self.profiles and name == "default":
                return Profile()
            raise ProfileNotFoundError(name)
        return self.profiles[name]

    def has_profile(self, name: str) -> bool:
        """Check if profile exists."""
        return name in self.profiles

    def add_profile(
        self,
        name: str,
        url: str,
        verify_ssl: bool = True,
        timeout: int = DEFAULT_HTTP_TIMEOUT_SECONDS,
        analysis_type: str = DEFAULT_ANALYSIS_TYPE,
        study_type: str = DEFAULT_STUDY_TYPE,
    ) -> Profile:
        """Add or update a profile."""
        profile = Profile(
            url=url,
            verify_ssl=verify_ssl,
            timeout=timeout,
            analysis_type=analysis_type,
            study_type=study_type,
        )
        self.profiles[name] = profile
        return profile

    def set_default_profile(self, name: str) -> None:
        """Set the default profile.

        Raises:
            ProfileNotFoundError: If profile doesn't exist.
        """
        if name not in self.profiles:
            raise ProfileNotFoundError(name)
        self.default_profile = name


def get_credentials(
    profile: Optional[Profile] = None,
) -> tuple[Optional[str], Optional[str], Optional[str]]:
    """Resolve credentials, environment first, then the profile.

    Returns:
        Tuple of (api_key, email, password).
    """
    api_key = os.getenv(ENV_API_KEY) or (profile.api_key if profile else None)
    email = os.getenv(ENV_EMAIL) or (profile.email if profile else None)
    password = os.getenv(ENV_PASSWORD) or (profile.password if profile else None)
    return api_key, email, password
