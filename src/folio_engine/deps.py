"""Dependency injection singletons for Folio-Engine."""

from folio_engine.common.config import get_settings
from folio_engine.common.database import DatabaseManager
from folio_engine.delivery.resolver import DeliveryResolver
from folio_engine.delivery.store import SupabaseArtifactStore
from folio_engine.dispatch.email import EmailSender
from folio_engine.dispatch.service import Dispatcher
from folio_engine.documents.pipeline import DocumentPipeline
from folio_engine.documents.service import DocumentService
from folio_engine.identity.oauth import OAuthFlow
from folio_engine.identity.resolver import IdentityResolver
from folio_engine.rendering.pdf import LayoutRenderer
from folio_engine.tenants.cache import TenantCache
from folio_engine.tenants.service import TenantService
from folio_engine.vault.cipher import CredentialVault

_db: DatabaseManager | None = None
_vault: CredentialVault | None = None
_tenants: TenantService | None = None
_documents: DocumentService | None = None
_identity: IdentityResolver | None = None
_oauth: OAuthFlow | None = None
_store: SupabaseArtifactStore | None = None
_delivery: DeliveryResolver | None = None
_email: EmailSender | None = None
_dispatcher: Dispatcher | None = None
_pipeline: DocumentPipeline | None = None


def get_db() -> DatabaseManager:
    global _db
    if _db is None:
        _db = DatabaseManager(get_settings())
    return _db


def get_vault() -> CredentialVault:
    global _vault
    if _vault is None:
        _vault = CredentialVault.from_settings(get_settings())
    return _vault


def get_tenant_service() -> TenantService:
    global _tenants
    if _tenants is None:
        _tenants = TenantService(
            TenantCache(ttl_seconds=get_settings().tenant_cache_ttl),
            get_vault(),
        )
    return _tenants


def get_document_service() -> DocumentService:
    global _documents
    if _documents is None:
        _documents = DocumentService()
    return _documents


def get_identity_resolver() -> IdentityResolver:
    global _identity
    if _identity is None:
        _identity = IdentityResolver(get_settings(), get_vault())
    return _identity


def get_oauth_flow() -> OAuthFlow:
    global _oauth
    if _oauth is None:
        _oauth = OAuthFlow(get_settings())
    return _oauth


def get_artifact_store() -> SupabaseArtifactStore:
    global _store
    if _store is None:
        _store = SupabaseArtifactStore.from_settings(get_settings())
    return _store


def get_delivery_resolver() -> DeliveryResolver:
    global _delivery
    if _delivery is None:
        _delivery = DeliveryResolver(get_artifact_store(), get_settings().signed_url_ttl)
    return _delivery


def get_email_sender() -> EmailSender:
    global _email
    if _email is None:
        _email = EmailSender.from_settings(get_settings())
    return _email


def get_dispatcher() -> Dispatcher:
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = Dispatcher(get_email_sender())
    return _dispatcher


def get_pipeline() -> DocumentPipeline:
    global _pipeline
    if _pipeline is None:
        _pipeline = DocumentPipeline(
            tenants=get_tenant_service(),
            documents=get_document_service(),
            identity=get_identity_resolver(),
            delivery=get_delivery_resolver(),
            dispatcher=get_dispatcher(),
            layout=LayoutRenderer(compress=get_settings().pdf_compression),
        )
    return _pipeline


async def close_clients() -> None:
    """Close the outbound HTTP clients the singletons opened."""
    if _identity is not None:
        await _identity.close()
    if _oauth is not None:
        await _oauth.close()
    if _store is not None:
        await _store.close()
    if _email is not None:
        await _email.close()


def reset_singletons() -> None:
    """Reset all singletons (for testing)."""
    global _db, _vault, _tenants, _documents, _identity, _oauth
    global _store, _delivery, _email, _dispatcher, _pipeline
    _db = None
    _vault = None
    _tenants = None
    _documents = None
    _identity = None
    _oauth = None
    _store = None
    _delivery = None
    _email = None
    _dispatcher = None
    _pipeline = None
