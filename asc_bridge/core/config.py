"""Configuration settings for the App Store Connect bridge."""
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # API key credentials (App Store Connect > Users and Access > Integrations)
    key_id: Optional[str] = None
    issuer_id: Optional[str] = None
    private_key: Optional[str] = None
    private_key_path: Optional[Path] = None

    # API endpoint
    api_base_url: str = "https://api.appstoreconnect.apple.com/v1"

    # Minimum spacing between outgoing requests
    min_request_interval_ms: int = 100
    request_timeout: float = 30.0

    log_level: str = "INFO"

    class Config:
        env_prefix = "APPLE_"
        env_file = ".env"
        extra = "ignore"

    def resolve_private_key(self) -> Optional[str]:
        """
        Return the PEM private key text.

        ``APPLE_PRIVATE_KEY`` wins over ``APPLE_PRIVATE_KEY_PATH``. Keys pasted
        into a single-line env var usually carry literal ``\\n`` sequences,
        which are turned back into newlines.

        Returns:
            PEM text, or None when neither source is configured
        """
        if self.private_key:
            return self.private_key.replace("\\n", "\n")
        if self.private_key_path is not None:
            return self.private_key_path.expanduser().read_text(encoding="utf-8")
        return None

    def missing_credentials(self) -> list[str]:
        """Names of the credential variables that are not set."""
        missing = []
        if not self.key_id:
            missing.append("APPLE_KEY_ID")
        if not self.issuer_id:
            missing.append("APPLE_ISSUER_ID")
        if not self.private_key and self.private_key_path is None:
            missing.append("APPLE_PRIVATE_KEY")
        return missing


settings = Settings()
