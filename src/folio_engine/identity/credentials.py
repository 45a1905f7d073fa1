"""Access tokens for the document and file-storage APIs.

Two identities exist:

- service: the shared baseline account. A JWT-bearer assertion signed with
  the account's private key is exchanged for an access token on first use,
  and the token is reused until shortly before it expires.
- delegated: the tenant's own account. The tenant's refresh token is
  exchanged once, when the client is built, and the resulting access token
  lives only as long as that client.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable

import httpx
import jwt

from folio_engine.common.exceptions import IdentityResolutionError

logger = logging.getLogger(__name__)

SCOPES = (
    "https://www.googleapis.com/auth/documents",
    "https://www.googleapis.com/auth/drive",
)
JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"
ASSERTION_LIFETIME = 3600
EXPIRY_MARGIN = 60


@dataclass(frozen=True)
class AccessToken:
    value: str
    expires_at: float

    def is_fresh(self, now: float) -> bool:
        return now < self.expires_at - EXPIRY_MARGIN

    def __repr__(self) -> str:
        return f"AccessToken(expires_at={self.expires_at})"


async def request_token(
    http: httpx.AsyncClient,
    token_url: str,
    data: dict[str, str],
    clock: Callable[[], float] = time.time,
) -> AccessToken:
    """POST a grant to the token endpoint. Any failure raises IdentityResolutionError."""
    grant = data.get("grant_type", "")
    try:
        resp = await http.post(token_url, data=data)
    except httpx.HTTPError as exc:
        logger.warning("Token endpoint unreachable", extra={"grant": grant, "error": type(exc).__name__})
        raise IdentityResolutionError(f"Token endpoint unreachable: {type(exc).__name__}") from exc

    if resp.status_code != 200:
        reason = _error_reason(resp)
        logger.warning(
            "Token exchange rejected",
            extra={"grant": grant, "status_code": resp.status_code, "reason": reason},
        )
        raise IdentityResolutionError(f"Token exchange failed ({resp.status_code}: {reason})")

    try:
        payload = resp.json()
    except ValueError as exc:
        raise IdentityResolutionError("Token endpoint returned invalid JSON") from exc
    if not isinstance(payload, dict):
        raise IdentityResolutionError("Token endpoint returned an unexpected payload")
    token = payload.get("access_token")
    if not token or not isinstance(token, str):
        raise IdentityResolutionError("Token endpoint returned no access_token")
    try:
        expires_in = int(payload.get("expires_in") or ASSERTION_LIFETIME)
    except (TypeError, ValueError) as exc:
        raise IdentityResolutionError("Token endpoint returned an invalid expires_in") from exc
    return AccessToken(value=token, expires_at=clock() + expires_in)


def _error_reason(resp: httpx.Response) -> str:
    try:
        payload = resp.json()
    except ValueError:
        return resp.reason_phrase or "error"
    if isinstance(payload, dict):
        return str(payload.get("error_description") or payload.get("error") or "error")
    return "error"


async def refresh_access_token(
    http: httpx.AsyncClient,
    refresh_token: str,
    client_id: str,
    client_secret: str,
    token_url: str,
    clock: Callable[[], float] = time.time,
) -> AccessToken:
    """Exchange a tenant's long-lived refresh token for an access token."""
    if not (client_id and client_secret):
        raise IdentityResolutionError("Delegated identity is not configured")
    return await request_token(
        http,
        token_url,
        {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "client_id": client_id,
            "client_secret": client_secret,
        },
        clock=clock,
    )


class ServiceAccountCredentials:
    """Baseline identity backed by a service-account key."""

    mode = "service"

    def __init__(
        self,
        client_email: str,
        private_key_pem: str,
        token_url: str,
        scopes: tuple[str, ...] = SCOPES,
        clock: Callable[[], float] = time.time,
    ):
        self.client_email = client_email
        self._private_key = private_key_pem
        self.token_url = token_url
        self.scopes = scopes
        self._clock = clock
        self._token: AccessToken | None = None

    @property
    def configured(self) -> bool:
        return bool(self.client_email and self._private_key)

    def assertion(self) -> str:
        now = int(self._clock())
        claims = {
            "iss": self.client_email,
            "scope": " ".join(self.scopes),
            "aud": self.token_url,
            "iat": now,
            "exp": now + ASSERTION_LIFETIME,
        }
        return jwt.encode(claims, self._private_key, algorithm="RS256")

    async def get_token(self, http: httpx.AsyncClient) -> str:
        if self._token is not None and self._token.is_fresh(self._clock()):
            return self._token.value
        if not self.configured:
            raise IdentityResolutionError("Service identity is not configured")
        try:
            assertion = self.assertion()
        except (ValueError, TypeError, jwt.PyJWTError) as exc:
            raise IdentityResolutionError("Service identity private key is invalid") from exc
        self._token = await request_token(
            http,
            self.token_url,
            {"grant_type": JWT_BEARER_GRANT, "assertion": assertion},
            clock=self._clock,
        )
        logger.info("Issued service access token", extra={"account": self.client_email})
        return self._token.value


class DelegatedCredentials:
    """A tenant's access token, already exchanged."""

    mode = "delegated"

    def __init__(self, token: AccessToken):
        self._token = token

    async def get_token(self, http: httpx.AsyncClient) -> str:
        return self._token.value
