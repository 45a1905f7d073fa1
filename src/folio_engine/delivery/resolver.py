"""Signed-link delivery with regenerate-on-miss."""

import asyncio
import logging
import weakref
from typing import Awaitable, Callable

from folio_engine.common.exceptions import (
    NOT_FOUND_ERRORS,
    ArtifactStoreError,
    ArtifactUnavailableError,
    FolioError,
)
from folio_engine.delivery.keys import artifact_key
from folio_engine.delivery.store import SupabaseArtifactStore
from folio_engine.rendering.results import RenderedArtifact
from folio_engine.tenants.record import TenantRecord

logger = logging.getLogger(__name__)

Regenerate = Callable[[], Awaitable[bytes]]


class DeliveryResolver:
    """Turns a document into a time-limited link.

    The store is asked for a signed URL at the document's deterministic key.
    On a miss the document is rendered, written to that key, and signed once
    more. Concurrent misses for one key inside this process share a single
    regeneration.
    """

    def __init__(self, store: SupabaseArtifactStore, ttl_seconds: int):
        self.store = store
        self.ttl_seconds = ttl_seconds
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    async def _cached_link(self, key: str) -> str | None:
        try:
            return await self.store.create_signed_url(key, self.ttl_seconds)
        except ArtifactStoreError as exc:
            logger.info("Artifact cache miss", extra={"key": key, "reason": exc.message})
            return None

    async def store_artifact(self, tenant: TenantRecord, document_number: str, data: bytes) -> RenderedArtifact:
        """Write rendered bytes to the document's deterministic key."""
        key = artifact_key(tenant.slug, document_number)
        artifact = RenderedArtifact(key=key, data=data, filename=key.rsplit("/", 1)[-1])
        await self.store.put(artifact.key, artifact.data)
        return artifact

    async def get_link(self, tenant: TenantRecord, document_number: str, regenerate: Regenerate) -> str:
        key = artifact_key(tenant.slug, document_number)
        url = await self._cached_link(key)
        if url is not None:
            return url

        lock = self._lock_for(key)
        async with lock:
            url = await self._cached_link(key)
            if url is not None:
                return url
            try:
                artifact = await self.store_artifact(tenant, document_number, await regenerate())
                url = await self.store.create_signed_url(artifact.key, self.ttl_seconds)
            except NOT_FOUND_ERRORS:
                raise
            except FolioError as exc:
                logger.error("Artifact regeneration failed", extra={"key": key, "error": exc.message})
                raise ArtifactUnavailableError(f"{key} is unavailable: {exc.message}") from exc
            except Exception as exc:
                logger.exception("Artifact regeneration failed", extra={"key": key})
                raise ArtifactUnavailableError(f"{key} is unavailable") from exc

        logger.info("Regenerated artifact", extra={"tenant": tenant.slug, "document": document_number})
        return url
