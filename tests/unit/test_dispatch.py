"""Tests for email providers, notification bodies and the delivery log."""

import json

import httpx
import pytest

from folio_engine.common.config import FolioSettings
from folio_engine.common.database import DatabaseManager
from folio_engine.common.exceptions import DispatchError
from folio_engine.dispatch.email import RESEND_URL, SENDGRID_URL, EmailSender, SendResult
from folio_engine.dispatch.models import DeliveryLogModel
from folio_engine.dispatch.service import Dispatcher, compose_body, compose_subject
from folio_engine.documents.schemas import ClientInfo, DocumentRequest, DocumentType
from folio_engine.tenants.cache import TenantCache
from folio_engine.tenants.record import TenantRecord
from folio_engine.tenants.service import TenantService
from folio_engine.vault.cipher import CredentialVault

LINK = "https://store.test/signed/acme/INV-2024-007.pdf?expires=60"


def make_tenant(**overrides) -> TenantRecord:
    defaults = {
        "id": "t-acme",
        "slug": "acme",
        "business_name": "Acme Co Ltd",
        "business_email": "billing@acme.example",
        "brand_color": "#3b6b5c",
    }
    defaults.update(overrides)
    return TenantRecord(**defaults)


def make_request(**overrides) -> DocumentRequest:
    defaults = {
        "document_type": DocumentType.INVOICE,
        "number": "INV-2024-007",
        "id": "doc-7",
        "issue_date": "2024-09-01",
        "due_date": "2024-09-15",
        "currency": "EUR",
        "total": 123,
        "client": ClientInfo(name="Rosa Maria", email="rosa@example.com"),
    }
    defaults.update(overrides)
    return DocumentRequest(**defaults)


class Provider:
    def __init__(self, response: httpx.Response):
        self.response = response
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.response


def sender_for(provider: Provider, name: str) -> EmailSender:
    http = httpx.AsyncClient(transport=httpx.MockTransport(provider.handler))
    return EmailSender(provider=name, api_key="key-1", from_email="no-reply@folio.test", http_client=http)


class TestResend:
    async def test_success_returns_message_id(self):
        provider = Provider(httpx.Response(200, json={"id": "re_123"}))
        result = await sender_for(provider, "resend").send("rosa@example.com", "Hi", "<p>x</p>", reply_to="a@b.c")
        assert result == SendResult(ok=True, provider="resend", provider_id="re_123")
        request = provider.requests[0]
        assert str(request.url) == RESEND_URL
        assert request.headers["authorization"] == "Bearer key-1"
        body = json.loads(request.content)
        assert body["to"] == ["rosa@example.com"]
        assert body["from"] == "Folio <no-reply@folio.test>"
        assert body["reply_to"] == "a@b.c"

    async def test_rejection_carries_provider_message(self):
        provider = Provider(httpx.Response(422, json={"message": "Invalid `to` field"}))
        result = await sender_for(provider, "resend").send("bad", "Hi", "<p>x</p>")
        assert result.ok is False
        assert result.error == "Invalid `to` field"

    async def test_success_without_id_is_a_failure(self):
        provider = Provider(httpx.Response(200, json={}))
        result = await sender_for(provider, "resend").send("rosa@example.com", "Hi", "<p>x</p>")
        assert result.ok is False


class TestSendGrid:
    async def test_message_id_from_header(self):
        provider = Provider(httpx.Response(202, headers={"X-Message-Id": "sg-9"}))
        result = await sender_for(provider, "sendgrid").send(
            "rosa@example.com", "Hi", "<p>x</p>", from_email="billing@acme.example", from_name="Acme"
        )
        assert result.ok is True
        assert result.provider_id == "sg-9"
        request = provider.requests[0]
        assert str(request.url) == SENDGRID_URL
        body = json.loads(request.content)
        assert body["from"] == {"email": "billing@acme.example", "name": "Acme"}
        assert body["personalizations"] == [{"to": [{"email": "rosa@example.com"}]}]

    async def test_error_list(self):
        provider = Provider(httpx.Response(400, json={"errors": [{"message": "bad from"}]}))
        result = await sender_for(provider, "sendgrid").send("rosa@example.com", "Hi", "<p>x</p>")
        assert result == SendResult(ok=False, provider="sendgrid", error="bad from")


class TestSenderFailures:
    async def test_unconfigured(self):
        result = await EmailSender(provider="resend", api_key="").send("a@b.c", "Hi", "x")
        assert result.ok is False
        assert "not configured" in result.error

    async def test_unknown_provider(self):
        result = await EmailSender(provider="pigeon", api_key="k").send("a@b.c", "Hi", "x")
        assert result.ok is False

    async def test_network_error_is_a_result(self):
        def handler(request):
            raise httpx.ReadTimeout("slow")

        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        sender = EmailSender(provider="resend", api_key="k", http_client=http)
        result = await sender.send("a@b.c", "Hi", "x")
        assert result.ok is False
        assert "ReadTimeout" in result.error


class TestCompose:
    def test_subject(self):
        assert compose_subject(make_tenant(), make_request()) == "Invoice INV-2024-007 — Acme Co Ltd"

    def test_subject_falls_back_to_slug(self):
        assert compose_subject(make_tenant(business_name=""), make_request()).endswith("— acme")

    def test_body_contents(self):
        body = compose_body(make_tenant(logo_url="https://cdn.test/logo.png"), make_request(), LINK)
        assert "Hi Rosa Maria," in body
        assert "123.00 EUR" in body
        assert "Due date: 2024-09-15" in body
        assert 'src="https://cdn.test/logo.png"' in body
        assert "background:#3b6b5c" in body
        assert 'href="https://store.test/signed/acme/INV-2024-007.pdf?expires=60"' in body

    def test_quote_shows_validity(self):
        request = make_request(document_type=DocumentType.QUOTE, number="QUO-1", valid_until="2024-10-01")
        body = compose_body(make_tenant(), request, LINK)
        assert "Valid until: 2024-10-01" in body
        assert "Due date" not in body

    def test_values_are_escaped(self):
        tenant = make_tenant(business_name="<b>Acme</b>", brand_color="red;}</style><script>")
        request = make_request(client=ClientInfo(name='<script>alert("x")</script>'))
        body = compose_body(tenant, request, 'https://x.test/"><img src=x>')
        assert "<script>" not in body
        assert "&lt;script&gt;" in body
        assert "&lt;b&gt;Acme&lt;/b&gt;" in body
        assert '"><img' not in body
        assert "background:#111111" in body

    def test_logo_block_omitted_without_logo(self):
        body = compose_body(make_tenant(), make_request(), LINK)
        assert "<img" not in body
        assert "<strong>INV-2024-007</strong>" in body
        assert "Please find your invoice" in body

    def test_missing_dates_are_skipped(self):
        body = compose_body(make_tenant(), make_request(due_date=""), LINK)
        assert "Issue date: 2024-09-01" in body
        assert "Due date" not in body


@pytest.fixture
async def db():
    manager = DatabaseManager(FolioSettings(db_url="sqlite+aiosqlite://"))
    await manager.init()
    await manager.create_all()
    yield manager
    await manager.close()


@pytest.fixture
async def tenant(db) -> TenantRecord:
    service = TenantService(TenantCache(), CredentialVault(b""))
    async with db.get_session() as session:
        model = await service.create_tenant(
            session, slug="acme", business_name="Acme Co Ltd", email_from="billing@acme.example"
        )
        return TenantRecord.from_model(model)


class TestDispatcher:
    async def test_success_logs_sent_entry(self, db, tenant, fake_sender):
        dispatcher = Dispatcher(fake_sender)
        async with db.get_session() as session:
            entry = await dispatcher.send(session, tenant, make_request(), "rosa@example.com", LINK)
        assert entry.status == "sent"
        assert entry.provider_id == "msg_123"
        assert entry.error is None
        assert fake_sender.sent[0]["from_email"] == "billing@acme.example"
        assert fake_sender.sent[0]["subject"] == "Invoice INV-2024-007 — Acme Co Ltd"

        async with db.get_session() as session:
            entries = await dispatcher.list_entries(session, tenant)
        assert [(e.document_number, e.to_email, e.link) for e in entries] == [
            ("INV-2024-007", "rosa@example.com", LINK)
        ]

    async def test_failure_is_logged_and_raised(self, db, tenant, fake_sender):
        fake_sender.result = SendResult(ok=False, provider="resend", error="domain not verified")
        dispatcher = Dispatcher(fake_sender)
        with pytest.raises(DispatchError, match="domain not verified"):
            async with db.get_session() as session:
                await dispatcher.send(session, tenant, make_request(), "rosa@example.com", LINK)

        async with db.get_session() as session:
            entries = await dispatcher.list_entries(session, tenant)
        assert len(entries) == 1
        assert entries[0].status == "error"
        assert entries[0].error == "domain not verified"
        assert entries[0].provider_id is None

    async def test_failure_without_message(self, db, tenant, fake_sender):
        fake_sender.result = SendResult(ok=False, provider="resend")
        with pytest.raises(DispatchError, match="send failed"):
            async with db.get_session() as session:
                await Dispatcher(fake_sender).send(session, tenant, make_request(), "rosa@example.com", LINK)

    async def test_one_entry_per_attempt(self, db, tenant, fake_sender):
        dispatcher = Dispatcher(fake_sender)
        for _ in range(3):
            async with db.get_session() as session:
                await dispatcher.send(session, tenant, make_request(), "rosa@example.com", LINK)
        async with db.get_session() as session:
            assert len(await dispatcher.list_entries(session, tenant)) == 3
            assert len(await dispatcher.list_entries(session, tenant, limit=2)) == 2

    async def test_entries_scoped_to_tenant(self, db, tenant, fake_sender):
        async with db.get_session() as session:
            await Dispatcher(fake_sender).send(session, tenant, make_request(), "rosa@example.com", LINK)
        other = TenantRecord(id="t-other", slug="other")
        async with db.get_session() as session:
            assert await Dispatcher(fake_sender).list_entries(session, other) == []
            assert isinstance((await Dispatcher(fake_sender).list_entries(session, tenant))[0], DeliveryLogModel)
