"""One-time delegated authorization: consent URL, signed state, code exchange."""

import logging
from urllib.parse import urlencode

import httpx
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from folio_engine.common.config import FolioSettings
from folio_engine.common.exceptions import ConsentRequiredError, IdentityResolutionError
from folio_engine.identity.credentials import SCOPES

logger = logging.getLogger(__name__)

STATE_SALT = "folio-oauth-state"


class InvalidStateError(ValueError):
    """The `state` parameter was tampered with or has expired."""


class OAuthFlow:
    """Drives the consent round trip that yields a tenant's refresh token."""

    def __init__(self, settings: FolioSettings, http_client: httpx.AsyncClient | None = None):
        self.settings = settings
        self._serializer = URLSafeTimedSerializer(settings.secret_key, salt=STATE_SALT)
        self._http_client = http_client

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.settings.http_timeout)
        return self._http_client

    @property
    def configured(self) -> bool:
        return bool(self.settings.google_oauth_client_id and self.settings.google_oauth_client_secret)

    def sign_state(self, tenant_slug: str) -> str:
        return self._serializer.dumps({"tenant": tenant_slug})

    def verify_state(self, state: str) -> str:
        """Return the tenant slug carried by `state`."""
        try:
            payload = self._serializer.loads(state, max_age=self.settings.oauth_state_max_age)
        except SignatureExpired as exc:
            raise InvalidStateError("Authorization state has expired") from exc
        except BadSignature as exc:
            raise InvalidStateError("Authorization state is invalid") from exc
        tenant = payload.get("tenant") if isinstance(payload, dict) else None
        if not tenant:
            raise InvalidStateError("Authorization state names no tenant")
        return tenant

    def build_authorization_url(self, tenant_slug: str) -> str:
        params = {
            "client_id": self.settings.google_oauth_client_id,
            "redirect_uri": self.settings.google_oauth_redirect_url,
            "response_type": "code",
            "scope": " ".join(SCOPES),
            "access_type": "offline",
            "prompt": "consent",
            "include_granted_scopes": "true",
            "state": self.sign_state(tenant_slug),
        }
        return f"{self.settings.google_auth_url}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> str:
        """Trade an authorization code for the long-lived refresh token.

        Raises ConsentRequiredError when the provider answers without one,
        which happens when the account already granted access and consent
        was not re-prompted.
        """
        http = self._get_http_client()
        try:
            resp = await http.post(
                self.settings.google_token_url,
                data={
                    "grant_type": "authorization_code",
                    "code": code,
                    "client_id": self.settings.google_oauth_client_id,
                    "client_secret": self.settings.google_oauth_client_secret,
                    "redirect_uri": self.settings.google_oauth_redirect_url,
                },
            )
        except httpx.HTTPError as exc:
            raise IdentityResolutionError(f"Token endpoint unreachable: {type(exc).__name__}") from exc

        if resp.status_code != 200:
            logger.warning("Authorization code exchange rejected", extra={"status_code": resp.status_code})
            raise IdentityResolutionError(f"Authorization code exchange failed ({resp.status_code})")

        try:
            payload = resp.json()
        except ValueError as exc:
            raise IdentityResolutionError("Token endpoint returned invalid JSON") from exc
        refresh_token = payload.get("refresh_token") if isinstance(payload, dict) else None
        if not refresh_token:
            raise ConsentRequiredError()
        return refresh_token

    async def close(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
