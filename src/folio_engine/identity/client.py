"""Thin async client for the Drive v3 and Docs v1 REST APIs."""

import logging
from typing import Any, Optional, Protocol

import httpx

from folio_engine.common.exceptions import (
    FolioError,
    IdentityResolutionError,
    RenderError,
    TemplateNotFoundError,
)

logger = logging.getLogger(__name__)

DRIVE_API = "https://www.googleapis.com/drive/v3"
DOCS_API = "https://docs.googleapis.com/v1"
PDF_MIME = "application/pdf"


class Credentials(Protocol):
    mode: str

    async def get_token(self, http: httpx.AsyncClient) -> str: ...


class DocumentApiClient:
    """Calls the document APIs as one identity.

    `mode` is "service" or "delegated", matching the credentials it holds.
    Non-2xx answers raise RenderError unless a call says otherwise.
    """

    def __init__(
        self,
        credentials: Credentials,
        http_client: httpx.AsyncClient,
        drive_url: str = DRIVE_API,
        docs_url: str = DOCS_API,
    ):
        self.credentials = credentials
        self._http = http_client
        self.drive_url = drive_url.rstrip("/")
        self.docs_url = docs_url.rstrip("/")

    @property
    def mode(self) -> str:
        return self.credentials.mode

    async def _request(
        self,
        method: str,
        url: str,
        error: type[FolioError] = RenderError,
        **kwargs: Any,
    ) -> httpx.Response:
        token = await self.credentials.get_token(self._http)
        headers = {"Authorization": f"Bearer {token}", **kwargs.pop("headers", {})}
        try:
            resp = await self._http.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            raise error(f"{method} {_path(url)} failed: {type(exc).__name__}") from exc
        if resp.status_code >= 400:
            logger.warning(
                "Document API error",
                extra={"method": method, "path": _path(url), "status_code": resp.status_code, "mode": self.mode},
            )
            raise error(f"{method} {_path(url)} returned {resp.status_code}")
        return resp

    async def copy_file(self, file_id: str, name: str, parent_id: Optional[str] = None) -> dict:
        """Copy a file; a missing source raises TemplateNotFoundError."""
        body: dict[str, Any] = {"name": name}
        if parent_id:
            body["parents"] = [parent_id]
        token = await self.credentials.get_token(self._http)
        url = f"{self.drive_url}/files/{file_id}/copy"
        try:
            resp = await self._http.post(
                url,
                headers={"Authorization": f"Bearer {token}"},
                params={"supportsAllDrives": "true", "fields": "id,name,webViewLink"},
                json=body,
            )
        except httpx.HTTPError as exc:
            raise RenderError(f"Template copy failed: {type(exc).__name__}") from exc
        if resp.status_code == 404:
            raise TemplateNotFoundError(f"Template '{file_id}' not found")
        if resp.status_code >= 400:
            raise RenderError(f"Template copy returned {resp.status_code}")
        return _json(resp)

    async def batch_update(self, document_id: str, requests: list[dict]) -> dict:
        resp = await self._request(
            "POST",
            f"{self.docs_url}/documents/{document_id}:batchUpdate",
            json={"requests": requests},
        )
        return _json(resp)

    async def get_file_metadata(
        self, file_id: str, fields: str = "id,name,webViewLink,exportLinks"
    ) -> dict:
        resp = await self._request(
            "GET",
            f"{self.drive_url}/files/{file_id}",
            params={"fields": fields, "supportsAllDrives": "true"},
        )
        return _json(resp)

    async def export_pdf(self, file_id: str) -> bytes:
        resp = await self._request(
            "GET",
            f"{self.drive_url}/files/{file_id}/export",
            params={"mimeType": PDF_MIME},
        )
        return resp.content

    async def download(self, url: str) -> bytes:
        resp = await self._request("GET", url, follow_redirects=True)
        return resp.content

    async def about(self) -> dict:
        """The account the client is acting as."""
        resp = await self._request(
            "GET",
            f"{self.drive_url}/about",
            error=IdentityResolutionError,
            params={"fields": "user(displayName,emailAddress)"},
        )
        user = _json(resp, IdentityResolutionError).get("user")
        return user if isinstance(user, dict) else {}


def _path(url: str) -> str:
    return httpx.URL(url).path


def _json(resp: httpx.Response, error: type[FolioError] = RenderError) -> dict:
    """The response body as a JSON object; anything else raises `error`."""
    try:
        payload = resp.json()
    except ValueError as exc:
        raise error(f"{_path(str(resp.request.url))} returned invalid JSON") from exc
    if not isinstance(payload, dict):
        raise error(f"{_path(str(resp.request.url))} returned an unexpected payload")
    return payload
