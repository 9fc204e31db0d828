"""Authentication management for diagnocatctl.

Holds the bearer credential used for partner API calls. A static API key
always wins; otherwise a session token is obtained with email/password and
cached in memory until shortly before the issuer's stated expiry.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from diagnocatctl.core.exceptions import AuthenticationError, DiagnocatError

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

DEFAULT_TOKEN_LIFETIME = timedelta(hours=24)
TOKEN_SAFETY_MARGIN = timedelta(hours=1)

AUTH_MODE_API_KEY = "api_key"
AUTH_MODE_SESSION = "session"
AUTH_MODE_NONE = "none"


# =============================================================================
# Credential
# =============================================================================


@dataclass(frozen=True)
class TokenGrant:
    """Token returned by the identity endpoint."""

    token: str
    expires_in: Optional[float] = None


@dataclass(frozen=True)
class Credential:
    """Session token with its local expiry."""

    token: str
    expires_at: datetime

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        """A credential is usable strictly before its expiry."""
        return (now or datetime.now()) < self.expires_at

    def to_dict(self) -> dict:
        """Convert to dictionary for display (token redacted)."""
        return {
            "token": f"{self.token[:6]}..." if len(self.token) > 6 else "***",
            "expires_at": self.expires_at.isoformat(),
        }


TokenFetcher = Callable[[str, str], TokenGrant]


# =============================================================================
# CredentialCache
# =============================================================================


class CredentialCache:
    """Thread-safe holder of the partner API credential.

    Reads take a snapshot of the current immutable ``Credential``; refresh
    runs under an exclusive lock and re-checks validity after acquiring it,
    so callers racing on an expired token authenticate only once.
    """

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        email: Optional[str] = None,
        password: Optional[str] = None,
        fetch_token: Optional[TokenFetcher] = None,
        clock: Callable[[], datetime] = datetime.now,
        safety_margin: timedelta = TOKEN_SAFETY_MARGIN,
        default_lifetime: timedelta = DEFAULT_TOKEN_LIFETIME,
    ) -> None:
        """Initialize the cache.

        Args:
            api_key: Static pre-shared key. Bypasses the cache when set.
            email: Account email for session authentication.
            password: Account password for session authentication.
            fetch_token: Callable performing the identity call.
            clock: Source of the current time.
            safety_margin: Subtracted from the issuer's token lifetime.
            default_lifetime: Lifetime assumed when the issuer states none.
        """
        self._api_key = api_key or None
        self._email = email or None
        self._password = password or None
        self._fetch_token = fetch_token
        self._clock = clock
        self._safety_margin = safety_margin
        self._default_lifetime = default_lifetime
        self._credential: Optional[Credential] = None
        self._lock = threading.Lock()

    # =========================================================================
    # Introspection
    # =========================================================================

    @property
    def auth_mode(self) -> str:
        """Which credential source is in use."""
        if self._api_key:
            return AUTH_MODE_API_KEY
        if self._email and self._password:
            return AUTH_MODE_SESSION
        return AUTH_MODE_NONE

    @property
    def credential(self) -> Optional[Credential]:
        """Current cached session credential, if any."""
        return self._credential

    @property
    def email(self) -> Optional[str]:
        return self._email

    # =========================================================================
    # Token Access
    # =========================================================================

    def get_token(self) -> str:
        """Return a usable bearer token, authenticating if required.

        Raises:
            AuthenticationError: If no credentials are configured or
                authentication fails.
        """
        if self._api_key:
            return self._api_key

        cached = self._credential
        if cached is not None and cached.is_valid(self._clock()):
            return cached.token

        if not (self._email and self._password):
            raise AuthenticationError(
                reason="No credentials configured (set an API key or email/password)"
            )

        with self._lock:
            # Another caller may have refreshed while we waited
            cached = self._credential
            if cached is not None and cached.is_valid(self._clock()):
                return cached.token
            return self._refresh_locked().token

    def get_auth_headers(self) -> dict[str, str]:
        """Build the Authorization header for a partner API call."""
        return {"Authorization": f"Bearer {self.get_token()}"}

    def refresh(self) -> Credential:
        """Force a new session token regardless of the cached one.

        Raises:
            AuthenticationError: If session credentials are not configured
                or authentication fails.
        """
        if not (self._email and self._password):
            raise AuthenticationError(reason="Email and password not configured")
        with self._lock:
            return self._refresh_locked()

    def invalidate(self, token: Optional[str] = None) -> None:
        """Drop the cached session token.

        Args:
            token: Only invalidate if the cached token is this one, so a
                stale rejection does not discard a newer token.
        """
        with self._lock:
            if self._credential is None:
                return
            if token is None or self._credential.token == token:
                logger.debug("Invalidating cached session token")
                self._credential = None

    # =========================================================================
    # Internals
    # =========================================================================

    def _refresh_locked(self) -> Credential:
        if self._fetch_token is None:
            raise AuthenticationError(reason="No identity endpoint configured")

        logger.info("Authenticating with Diagnocat as %s", self._email)
        try:
            grant = self._fetch_token(self._email or "", self._password or "")
        except AuthenticationError:
            raise
        except DiagnocatError as e:
            raise AuthenticationError(reason=str(e)) from e

        if not grant.token:
            raise AuthenticationError(reason="Identity endpoint returned an empty token")

        lifetime = (
            timedelta(seconds=grant.expires_in) if grant.expires_in else self._default_lifetime
        )
        # Short-lived tokens keep half their lifetime instead of going negative
        usable = max(lifetime - self._safety_margin, lifetime / 2)

        credential = Credential(token=grant.token, expires_at=self._clock() + usable)
        self._credential = credential
        logger.info("Authentication successful, token valid until %s", credential.expires_at)
        return credential
