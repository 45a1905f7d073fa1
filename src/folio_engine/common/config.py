"""Folio-Engine configuration via pydantic-settings."""

import base64
import binascii
import warnings
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_DEFAULTS = {
    "secret_key": "insecure-dev-key-change-me",
    "api_key": "insecure-admin-key-change-me",
    "super_admin_key": "insecure-super-admin-key-change-me",
}

ENCRYPTION_KEY_BYTES = 32


class FolioSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="FOLIO_")

    environment: str = "development"
    secret_key: str = "insecure-dev-key-change-me"

    # Base64 of exactly 32 random bytes; seals tenants' delegated credentials.
    # Generate with: folio gen-key
    secret_enc_key: str = ""

    # Database
    db_url: str = "sqlite+aiosqlite:///./data/folio.db"

    # API
    api_title: str = "Folio-Engine"
    api_version: str = "0.1.0"
    api_key: str = "insecure-admin-key-change-me"
    super_admin_key: str = "insecure-super-admin-key-change-me"
    host: str = "0.0.0.0"
    port: int = 8080
    api_prefix: str = ""
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:8888"]

    # Tenant lookups are served from memory for this many seconds
    tenant_cache_ttl: int = 30

    # Outbound HTTP (token endpoint, document APIs, storage, email)
    http_timeout: float = 30.0

    # Google identity
    google_client_email: str = ""
    google_private_key: str = ""
    google_oauth_client_id: str = ""
    google_oauth_client_secret: str = ""
    google_oauth_redirect_url: str = "http://localhost:8080/oauth/callback"
    google_token_url: str = "https://oauth2.googleapis.com/token"
    google_auth_url: str = "https://accounts.google.com/o/oauth2/v2/auth"
    oauth_state_max_age: int = 900  # seconds

    # Artifact store (Supabase storage)
    supabase_url: str = ""
    supabase_service_key: str = ""
    artifact_bucket: str = "invoices"
    signed_url_ttl: int = 60 * 60 * 24 * 30  # 30 days

    # Email
    email_provider: str = "resend"
    email_api_key: str = ""
    email_from: str = "no-reply@example.com"
    email_from_name: str = "Folio"

    # PDF
    pdf_compression: bool = True

    @property
    def encryption_key(self) -> bytes:
        """Decode the configured encryption key.

        Returns b"" when no key is configured; a configured key that is not
        base64 of 32 bytes is rejected.
        """
        if not self.secret_enc_key:
            return b""
        try:
            key = base64.b64decode(self.secret_enc_key, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("FOLIO_SECRET_ENC_KEY must be base64") from exc
        if len(key) != ENCRYPTION_KEY_BYTES:
            raise ValueError(
                f"FOLIO_SECRET_ENC_KEY must decode to {ENCRYPTION_KEY_BYTES} bytes, "
                f"got {len(key)}"
            )
        return key

    @property
    def google_private_key_pem(self) -> str:
        """Private key with escaped newlines restored (env vars flatten them)."""
        return self.google_private_key.replace("\\n", "\n")

    def validate_for_production(self) -> None:
        """Raise if insecure defaults or a missing encryption key are used outside development."""
        insecure_fields = [
            field
            for field, default in _INSECURE_DEFAULTS.items()
            if getattr(self, field) == default
        ]
        # Decode eagerly so a malformed key fails at startup in every environment.
        key_missing = not self.encryption_key

        if self.environment != "development":
            problems = [f"FOLIO_{f.upper()}" for f in insecure_fields]
            if key_missing:
                problems.append("FOLIO_SECRET_ENC_KEY")
            if problems:
                raise RuntimeError(
                    f"Refusing to start in '{self.environment}' environment. "
                    f"Set these environment variables to secure values: {', '.join(problems)}. "
                    "Generate an encryption key with: folio gen-key"
                )
            return

        if insecure_fields:
            warnings.warn(
                "Using insecure default keys — set FOLIO_SECRET_KEY, FOLIO_API_KEY, "
                "FOLIO_SUPER_ADMIN_KEY for production",
                UserWarning,
                stacklevel=2,
            )
        if key_missing:
            warnings.warn(
                "FOLIO_SECRET_ENC_KEY is not set; delegated credentials cannot be "
                "sealed or opened",
                UserWarning,
                stacklevel=2,
            )


@lru_cache
def get_settings() -> FolioSettings:
    settings = FolioSettings()
    settings.validate_for_production()
    return settings
