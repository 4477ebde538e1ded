"""ES256 bearer tokens for the App Store Connect API.

Uses python-jose for JWT signing and cryptography for private key parsing.
Tokens live for 20 minutes (the API's maximum) and are cached until they
come within 60 seconds of expiry.
"""
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from jose import jwt
from jose.exceptions import JOSEError
from pydantic import BaseModel
import structlog

from ..core.config import Settings
from ..core.errors import CredentialError

logger = structlog.get_logger(__name__)


JWT_ALGORITHM = "ES256"
JWT_AUDIENCE = "appstoreconnect-v1"
TOKEN_LIFETIME_SECONDS = 20 * 60
TOKEN_REFRESH_BUFFER_SECONDS = 60


@dataclass(frozen=True)
class Credentials:
    """An App Store Connect API key."""

    key_id: str
    issuer_id: str
    private_key: str  # PEM, PKCS#8 as downloaded from App Store Connect

    def __repr__(self) -> str:
        return f"Credentials(key_id={self.key_id!r}, issuer_id={self.issuer_id!r})"


class Token(BaseModel):
    """A signed bearer token and its lifetime."""

    value: str
    issued_at: int
    expires_at: int

    def is_usable(self, now: float) -> bool:
        """True while the token is outside the refresh buffer."""
        return now < self.expires_at - TOKEN_REFRESH_BUFFER_SECONDS


class TokenAuthenticator:
    """
    Signs and caches App Store Connect bearer tokens.

    One instance is shared by every client using the same API key. A lock
    covers the check-and-regenerate sequence, so when several callers find
    the cache stale only the first signs a token and the rest reuse it.
    """

    def __init__(
        self,
        credentials: Credentials,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the authenticator.

        Args:
            credentials: API key used for every token
            clock: Source of epoch seconds
        """
        self.credentials = credentials
        self.clock = clock
        self._token: Optional[Token] = None
        self._signing_key: Optional[str] = None
        self._lock = threading.Lock()

    @property
    def token(self) -> Optional[Token]:
        """The cached token, if any."""
        return self._token

    def get_token(self) -> str:
        """
        Get a usable bearer token, signing a new one when needed.

        Returns:
            Compact JWT string

        Raises:
            CredentialError: If the private key is unusable or signing fails
        """
        with self._lock:
            now = self.clock()
            if self._token is not None and self._token.is_usable(now):
                return self._token.value

            self._token = self._generate_token(int(now))
            return self._token.value

    def clear_cache(self) -> None:
        """Discard the cached token so the next call signs a fresh one."""
        with self._lock:
            if self._token is not None:
                logger.info("jwt_cache_cleared", kid=self.credentials.key_id)
            self._token = None

    def _load_signing_key(self) -> str:
        """Validate the PEM private key once and keep it for later signing."""
        if self._signing_key is not None:
            return self._signing_key

        pem = self.credentials.private_key.strip()
        try:
            private_key = serialization.load_pem_private_key(
                pem.encode("utf-8"),
                password=None,
            )
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise CredentialError(f"Unable to parse private key: {e}") from e

        if not isinstance(private_key, ec.EllipticCurvePrivateKey):
            raise CredentialError("Private key is not an elliptic-curve key")
        if not isinstance(private_key.curve, ec.SECP256R1):
            raise CredentialError(
                f"Private key uses curve {private_key.curve.name}, ES256 requires P-256"
            )

        self._signing_key = pem
        return pem

    def _generate_token(self, now: int) -> Token:
        """Sign a new token valid from ``now`` for the maximum lifetime."""
        signing_key = self._load_signing_key()
        expires_at = now + TOKEN_LIFETIME_SECONDS

        claims = {
            "iss": self.credentials.issuer_id,
            "iat": now,
            "exp": expires_at,
            "aud": JWT_AUDIENCE,
        }
        headers = {"kid": self.credentials.key_id, "typ": "JWT"}

        try:
            value = jwt.encode(
                claims,
                signing_key,
                algorithm=JWT_ALGORITHM,
                headers=headers,
            )
        except JOSEError as e:
            raise CredentialError(f"Unable to sign token: {e}") from e

        logger.info(
            "jwt_token_generated",
            kid=self.credentials.key_id,
            expires_at=expires_at,
        )
        return Token(value=value, issued_at=now, expires_at=expires_at)


def create_authenticator_from_settings(settings: Settings) -> TokenAuthenticator:
    """
    Build an authenticator from environment settings.

    Args:
        settings: Loaded settings

    Returns:
        TokenAuthenticator for the configured API key

    Raises:
        CredentialError: If any credential variable is missing or unreadable
    """
    missing = settings.missing_credentials()
    if missing:
        raise CredentialError(
            f"Missing required environment variables: {', '.join(missing)}"
        )

    try:
        private_key = settings.resolve_private_key()
    except OSError as e:
        raise CredentialError(f"Unable to read private key file: {e}") from e

    return TokenAuthenticator(
        Credentials(
            key_id=settings.key_id,
            issuer_id=settings.issuer_id,
            private_key=private_key,
        )
    )
