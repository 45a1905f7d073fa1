"""Immutable tenant snapshot handed to the rendering and delivery pipeline."""

from dataclasses import dataclass, fields

from folio_engine.tenants.models import TenantModel


@dataclass(frozen=True)
class TenantRecord:
    id: str
    slug: str
    business_name: str = ""
    business_address: str = ""
    business_email: str = ""
    business_phone: str = ""
    tax_id: str = ""
    owner_email: str = ""
    currency: str = "EUR"
    timezone: str = "Europe/Lisbon"
    logo_url: str = ""
    brand_color: str = ""
    email_from: str = ""
    template_invoice_id: str = ""
    template_quote_id: str = ""
    template_receipt_id: str = ""
    exports_folder_id: str = ""
    delegated_credential_encrypted: str = ""

    @classmethod
    def from_model(cls, model: TenantModel) -> "TenantRecord":
        values = {}
        for f in fields(cls):
            value = getattr(model, f.name)
            values[f.name] = value if value is not None else f.default
        return cls(**values)

    @property
    def display_name(self) -> str:
        return self.business_name or self.slug

    @property
    def has_delegated_credential(self) -> bool:
        return bool(self.delegated_credential_encrypted)

    def template_for(self, document_type: str) -> str:
        """Remote template id configured for a document type, or ""."""
        return getattr(self, f"template_{document_type}_id", "") or ""

    def __repr__(self) -> str:
        # Keeps the sealed credential out of logs and tracebacks.
        return (
            f"TenantRecord(id={self.id!r}, slug={self.slug!r}, "
            f"delegated={self.has_delegated_credential})"
        )
