"""Supabase storage backend for rendered PDFs."""

import asyncio
import logging
from typing import Any
from urllib.parse import quote

import httpx

from folio_engine.common.config import FolioSettings
from folio_engine.common.exceptions import ArtifactStoreError

logger = logging.getLogger(__name__)


class SupabaseArtifactStore:
    """Private bucket access through the storage REST API.

    Every non-2xx answer raises ArtifactStoreError, including a signed-URL
    request for an object that does not exist yet.
    """

    def __init__(
        self,
        base_url: str,
        service_key: str,
        bucket: str = "invoices",
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.service_key = service_key
        self.bucket = bucket
        self.timeout = timeout
        self._http_client = http_client
        self._bucket_ready = False
        self._bucket_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: FolioSettings) -> "SupabaseArtifactStore":
        return cls(
            settings.supabase_url,
            settings.supabase_service_key,
            bucket=settings.artifact_bucket,
            timeout=settings.http_timeout,
        )

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.timeout)
        return self._http_client

    @property
    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.service_key}",
            "apikey": self.service_key,
        }

    def _object_path(self, key: str) -> str:
        return f"{quote(self.bucket)}/{quote(key)}"

    async def _call(self, method: str, path: str, action: str, **kwargs: Any) -> httpx.Response:
        if not self.base_url:
            raise ArtifactStoreError("Artifact store is not configured")
        headers = {**self._headers, **kwargs.pop("headers", {})}
        try:
            resp = await self._get_http_client().request(
                method, f"{self.base_url}/storage/v1/{path}", headers=headers, **kwargs
            )
        except httpx.HTTPError as exc:
            raise ArtifactStoreError(f"{action} failed: {type(exc).__name__}") from exc
        if resp.status_code >= 300:
            raise ArtifactStoreError(f"{action} returned {resp.status_code}: {_message(resp)}")
        return resp

    async def ensure_bucket(self) -> None:
        """Create the private bucket unless it exists. Runs once per store."""
        if self._bucket_ready:
            return
        async with self._bucket_lock:
            if self._bucket_ready:
                return
            try:
                await self._call("GET", f"bucket/{quote(self.bucket)}", "Bucket lookup")
            except ArtifactStoreError:
                try:
                    await self._call(
                        "POST",
                        "bucket",
                        "Bucket creation",
                        json={"id": self.bucket, "name": self.bucket, "public": False},
                    )
                except ArtifactStoreError as exc:
                    if "already exists" not in exc.message.lower():
                        raise
                logger.info("Created artifact bucket", extra={"bucket": self.bucket})
            self._bucket_ready = True

    async def put(self, key: str, data: bytes, content_type: str = "application/pdf") -> None:
        await self.ensure_bucket()
        await self._call(
            "POST",
            f"object/{self._object_path(key)}",
            "Upload",
            content=data,
            headers={"Content-Type": content_type, "x-upsert": "true"},
        )
        logger.info("Stored artifact", extra={"key": key, "bytes": len(data)})

    async def get(self, key: str) -> bytes:
        resp = await self._call("GET", f"object/{self._object_path(key)}", "Download")
        return resp.content

    async def create_signed_url(self, key: str, expires_in: int) -> str:
        resp = await self._call(
            "POST",
            f"object/sign/{self._object_path(key)}",
            "Signed URL",
            json={"expiresIn": expires_in},
        )
        try:
            payload = resp.json()
        except ValueError as exc:
            raise ArtifactStoreError("Signed URL response was not JSON") from exc
        signed = payload.get("signedURL") or payload.get("signedUrl") if isinstance(payload, dict) else None
        if not signed:
            raise ArtifactStoreError("Signed URL response carried no URL")
        if signed.startswith("http"):
            return signed
        return f"{self.base_url}/storage/v1{signed}"

    async def close(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None


def _message(resp: httpx.Response) -> str:
    try:
        payload = resp.json()
    except ValueError:
        return resp.text[:200]
    if isinstance(payload, dict):
        return str(payload.get("message") or payload.get("error") or "")
    return ""
