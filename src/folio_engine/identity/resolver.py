"""Chooses the API identity a tenant's documents are produced under."""

import logging

import httpx

from folio_engine.common.config import FolioSettings
from folio_engine.common.exceptions import DecryptionError, IdentityResolutionError
from folio_engine.identity.client import DocumentApiClient
from folio_engine.identity.credentials import (
    DelegatedCredentials,
    ServiceAccountCredentials,
    refresh_access_token,
)
from folio_engine.tenants.record import TenantRecord
from folio_engine.vault.cipher import CredentialVault

logger = logging.getLogger(__name__)


class IdentityResolver:
    """Builds a DocumentApiClient per tenant.

    A tenant holding a delegated credential is always served as itself: the
    credential is opened, exchanged, and discarded. Everyone else shares the
    service identity.
    """

    def __init__(
        self,
        settings: FolioSettings,
        vault: CredentialVault,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.settings = settings
        self.vault = vault
        self._http_client = http_client
        self.service_credentials = ServiceAccountCredentials(
            client_email=settings.google_client_email,
            private_key_pem=settings.google_private_key_pem,
            token_url=settings.google_token_url,
        )

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.settings.http_timeout)
        return self._http_client

    async def resolve_client(self, tenant: TenantRecord) -> DocumentApiClient:
        http = self._get_http_client()
        if not tenant.has_delegated_credential:
            logger.info("Using service identity", extra={"tenant": tenant.slug})
            return DocumentApiClient(self.service_credentials, http)

        try:
            refresh_token = self.vault.open_text(tenant.delegated_credential_encrypted)
        except DecryptionError as exc:
            logger.error("Delegated credential could not be opened", extra={"tenant": tenant.slug})
            raise IdentityResolutionError(
                f"Delegated credential for '{tenant.slug}' could not be decrypted"
            ) from exc

        try:
            token = await refresh_access_token(
                http,
                refresh_token,
                client_id=self.settings.google_oauth_client_id,
                client_secret=self.settings.google_oauth_client_secret,
                token_url=self.settings.google_token_url,
            )
        except IdentityResolutionError as exc:
            raise IdentityResolutionError(
                f"Delegated identity for '{tenant.slug}' failed: {exc.message}"
            ) from exc
        finally:
            del refresh_token

        logger.info("Using delegated identity", extra={"tenant": tenant.slug})
        return DocumentApiClient(DelegatedCredentials(token), http)

    async def close(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
