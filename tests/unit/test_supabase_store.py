"""Tests for the Supabase storage backend against a fake storage API."""

import json
import re

import httpx
import pytest

from folio_engine.common.config import FolioSettings
from folio_engine.common.exceptions import ArtifactStoreError
from folio_engine.delivery.store import SupabaseArtifactStore

BASE = "https://proj.supabase.test"


class FakeStorage:
    """Bucket and object endpoints of the storage REST API, in memory."""

    def __init__(self, bucket_exists: bool = True):
        self.buckets: set[str] = {"invoices"} if bucket_exists else set()
        self.objects: dict[str, bytes] = {}
        self.calls: list[tuple[str, str]] = []
        self.headers: list[httpx.Headers] = []
        self.absolute_urls = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/storage/v1/")
        self.calls.append((request.method, path))
        self.headers.append(request.headers)

        if path.startswith("bucket"):
            if request.method == "GET":
                name = path.split("/", 1)[1]
                if name in self.buckets:
                    return httpx.Response(200, json={"id": name})
                return httpx.Response(404, json={"message": "Bucket not found"})
            body = json.loads(request.content)
            if body["id"] in self.buckets:
                return httpx.Response(400, json={"message": "The resource already exists"})
            assert body["public"] is False
            self.buckets.add(body["id"])
            return httpx.Response(200, json={"name": body["id"]})

        match = re.fullmatch(r"object/sign/(.+)", path)
        if match:
            key = match.group(1)
            if key not in self.objects:
                return httpx.Response(400, json={"statusCode": "404", "error": "not_found", "message": "Object not found"})
            expires = json.loads(request.content)["expiresIn"]
            signed = f"/object/sign/{key}?token=tok&expires={expires}"
            if self.absolute_urls:
                signed = f"{BASE}/storage/v1{signed}"
            return httpx.Response(200, json={"signedURL": signed})

        match = re.fullmatch(r"object/(.+)", path)
        if match:
            key = match.group(1)
            if request.method == "POST":
                self.objects[key] = request.content
                return httpx.Response(200, json={"Key": key})
            if key in self.objects:
                return httpx.Response(200, content=self.objects[key])
            return httpx.Response(400, json={"error": "not_found", "message": "Object not found"})

        return httpx.Response(500)


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
async def store(storage):
    http = httpx.AsyncClient(transport=httpx.MockTransport(storage.handler))
    yield SupabaseArtifactStore(BASE, "service-key", http_client=http)
    await http.aclose()


class TestObjects:
    async def test_put_then_get(self, store, storage):
        await store.put("acme/INV-2024-007.pdf", b"%PDF-1.4 data")
        assert storage.objects == {"invoices/acme/INV-2024-007.pdf": b"%PDF-1.4 data"}
        assert await store.get("acme/INV-2024-007.pdf") == b"%PDF-1.4 data"

    async def test_put_overwrites(self, store, storage):
        await store.put("acme/INV-1.pdf", b"one")
        await store.put("acme/INV-1.pdf", b"two")
        upload_headers = storage.headers[-1]
        assert upload_headers["x-upsert"] == "true"
        assert upload_headers["content-type"] == "application/pdf"
        assert await store.get("acme/INV-1.pdf") == b"two"

    async def test_service_key_sent(self, store, storage):
        await store.put("acme/INV-1.pdf", b"x")
        for headers in storage.headers:
            assert headers["authorization"] == "Bearer service-key"
            assert headers["apikey"] == "service-key"

    async def test_get_missing(self, store):
        with pytest.raises(ArtifactStoreError, match="Object not found"):
            await store.get("acme/nothing.pdf")


class TestSignedUrls:
    async def test_relative_url_is_made_absolute(self, store):
        await store.put("acme/INV-1.pdf", b"x")
        url = await store.create_signed_url("acme/INV-1.pdf", 600)
        assert url == f"{BASE}/storage/v1/object/sign/invoices/acme/INV-1.pdf?token=tok&expires=600"

    async def test_absolute_url_kept(self, store, storage):
        storage.absolute_urls = True
        await store.put("acme/INV-1.pdf", b"x")
        url = await store.create_signed_url("acme/INV-1.pdf", 600)
        assert url.startswith(f"{BASE}/storage/v1/object/sign/")
        assert url.count("/storage/v1") == 1

    async def test_missing_object_raises(self, store):
        with pytest.raises(ArtifactStoreError):
            await store.create_signed_url("acme/INV-404.pdf", 600)


class TestBucket:
    async def test_bucket_created_once(self, storage):
        storage.buckets.clear()
        async with httpx.AsyncClient(transport=httpx.MockTransport(storage.handler)) as http:
            store = SupabaseArtifactStore(BASE, "service-key", http_client=http)
            await store.put("acme/a.pdf", b"a")
            await store.put("acme/b.pdf", b"b")
        assert "invoices" in storage.buckets
        assert storage.calls.count(("POST", "bucket")) == 1
        assert storage.calls.count(("GET", "bucket/invoices")) == 1

    async def test_existing_bucket_not_recreated(self, store, storage):
        await store.put("acme/a.pdf", b"a")
        assert ("POST", "bucket") not in storage.calls

    async def test_bucket_created_concurrently_elsewhere(self, storage):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "GET" and request.url.path.endswith("/bucket/invoices"):
                return httpx.Response(404, json={"message": "Bucket not found"})
            return storage.handler(request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            store = SupabaseArtifactStore(BASE, "service-key", http_client=http)
            await store.put("acme/a.pdf", b"a")
        assert storage.objects["invoices/acme/a.pdf"] == b"a"


class TestConfiguration:
    async def test_unconfigured_store_raises(self):
        store = SupabaseArtifactStore("", "")
        with pytest.raises(ArtifactStoreError, match="not configured"):
            await store.create_signed_url("acme/a.pdf", 60)

    def test_from_settings(self):
        settings = FolioSettings(
            supabase_url=BASE + "/",
            supabase_service_key="k",
            artifact_bucket="docs",
            db_url="sqlite+aiosqlite://",
        )
        store = SupabaseArtifactStore.from_settings(settings)
        assert store.base_url == BASE
        assert store.bucket == "docs"

    async def test_network_failure(self):
        def handler(request):
            raise httpx.ConnectError("refused")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            store = SupabaseArtifactStore(BASE, "k", http_client=http)
            with pytest.raises(ArtifactStoreError, match="ConnectError"):
                await store.get("acme/a.pdf")
