"""Shared test fixtures for Folio-Engine."""

import base64
import os

import pytest
from httpx import ASGITransport, AsyncClient

from folio_engine.common.exceptions import ArtifactStoreError
from folio_engine.dispatch.email import SendResult

ENC_KEY = bytes(range(32))
ENC_KEY_B64 = base64.b64encode(ENC_KEY).decode("ascii")
API_KEY = "test-admin-api-key"
SUPER_ADMIN_KEY = "test-super-admin-key"
SECRET_KEY = "test-secret-key"


class FakeArtifactStore:
    """In-memory stand-in for the storage bucket."""

    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.puts: list[str] = []
        self.sign_calls: list[str] = []
        self.fail_put = False

    async def put(self, key: str, data: bytes, content_type: str = "application/pdf") -> None:
        if self.fail_put:
            raise ArtifactStoreError("Upload returned 500: boom")
        self.objects[key] = data
        self.puts.append(key)

    async def get(self, key: str) -> bytes:
        if key not in self.objects:
            raise ArtifactStoreError("Download returned 404: not_found")
        return self.objects[key]

    async def create_signed_url(self, key: str, expires_in: int) -> str:
        self.sign_calls.append(key)
        if key not in self.objects:
            raise ArtifactStoreError("Signed URL returned 400: Object not found")
        return f"https://store.test/signed/{key}?expires={expires_in}"

    async def close(self) -> None:
        pass


class FakeEmailSender:
    """Records sends and answers with a canned result."""

    def __init__(self, result: SendResult | None = None):
        self.result = result or SendResult(ok=True, provider="resend", provider_id="msg_123")
        self.sent: list[dict] = []

    async def send(self, to_email, subject, html, from_email=None, from_name=None, reply_to=None):
        self.sent.append({
            "to": to_email,
            "subject": subject,
            "html": html,
            "from_email": from_email,
            "reply_to": reply_to,
        })
        return self.result

    async def close(self) -> None:
        pass


@pytest.fixture
def enc_key():
    return ENC_KEY


@pytest.fixture
def api_key():
    return API_KEY


@pytest.fixture
def fake_store():
    return FakeArtifactStore()


@pytest.fixture
def fake_sender():
    return FakeEmailSender()


@pytest.fixture
def app(fake_store, fake_sender):
    """Create a test app with in-memory DB and fake store/email backends."""
    os.environ["FOLIO_DB_URL"] = "sqlite+aiosqlite://"
    os.environ["FOLIO_ENVIRONMENT"] = "development"
    os.environ["FOLIO_SECRET_KEY"] = SECRET_KEY
    os.environ["FOLIO_SECRET_ENC_KEY"] = ENC_KEY_B64
    os.environ["FOLIO_API_KEY"] = API_KEY
    os.environ["FOLIO_SUPER_ADMIN_KEY"] = SUPER_ADMIN_KEY
    os.environ["FOLIO_GOOGLE_OAUTH_CLIENT_ID"] = "client-id"
    os.environ["FOLIO_GOOGLE_OAUTH_CLIENT_SECRET"] = "client-secret"

    # Clear caches and singletons so new env vars take effect
    from folio_engine.common.config import get_settings
    get_settings.cache_clear()

    from folio_engine import deps
    deps.reset_singletons()
    deps._store = fake_store
    deps._email = fake_sender

    from folio_engine.app import create_app
    return create_app()


@pytest.fixture
async def client(app):
    # Manually init DB since ASGITransport doesn't run lifespan
    from folio_engine.deps import get_db
    db = get_db()
    await db.init()
    await db.create_all()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await db.close()


@pytest.fixture
def admin_headers():
    return {"X-Folio-Api-Key": API_KEY}


@pytest.fixture
def super_admin_headers():
    return {"X-Folio-Api-Key": SUPER_ADMIN_KEY}
