"""SQLAlchemy model for tenants."""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from folio_engine.common.models import Base, TimestampMixin, generate_uuid


class TenantModel(Base, TimestampMixin):
    __tablename__ = "tenants"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    business_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    business_address: Mapped[str] = mapped_column(Text, default="")
    business_email: Mapped[str] = mapped_column(String(255), default="")
    business_phone: Mapped[str] = mapped_column(String(64), default="")
    tax_id: Mapped[str] = mapped_column(String(64), default="")
    owner_email: Mapped[str] = mapped_column(String(255), default="")
    currency: Mapped[str] = mapped_column(String(3), default="EUR")
    timezone: Mapped[str] = mapped_column(String(64), default="Europe/Lisbon")

    # Branding
    logo_url: Mapped[str] = mapped_column(String(1024), default="")
    brand_color: Mapped[str] = mapped_column(String(16), default="")
    email_from: Mapped[str] = mapped_column(String(255), default="")

    # Remote document templates and export folder
    template_invoice_id: Mapped[str] = mapped_column(String(255), default="")
    template_quote_id: Mapped[str] = mapped_column(String(255), default="")
    template_receipt_id: Mapped[str] = mapped_column(String(255), default="")
    exports_folder_id: Mapped[str] = mapped_column(String(255), default="")

    # Sealed envelope (see folio_engine.vault.cipher); never stored in clear.
    delegated_credential_encrypted: Mapped[str] = mapped_column(Text, default="")
