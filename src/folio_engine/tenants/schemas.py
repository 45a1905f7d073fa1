"""Pydantic schemas for tenant endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class TenantCreate(BaseModel):
    slug: str = Field(..., min_length=1, max_length=100, pattern=r"^[a-z0-9]([a-z0-9-]*[a-z0-9])?$")
    business_name: str = Field("", max_length=255)
    business_address: str = ""
    business_email: str = ""
    business_phone: str = ""
    tax_id: str = ""
    owner_email: str = ""
    currency: str = Field("EUR", min_length=3, max_length=3)
    timezone: str = "Europe/Lisbon"
    logo_url: str = ""
    brand_color: str = Field("", pattern=r"^(#?[0-9a-fA-F]{3}|#?[0-9a-fA-F]{6})?$")
    email_from: str = ""
    template_invoice_id: str = ""
    template_quote_id: str = ""
    template_receipt_id: str = ""
    exports_folder_id: str = ""


class TenantUpdate(BaseModel):
    business_name: Optional[str] = None
    business_address: Optional[str] = None
    business_email: Optional[str] = None
    business_phone: Optional[str] = None
    tax_id: Optional[str] = None
    owner_email: Optional[str] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    timezone: Optional[str] = None
    logo_url: Optional[str] = None
    brand_color: Optional[str] = Field(None, pattern=r"^(#?[0-9a-fA-F]{3}|#?[0-9a-fA-F]{6})?$")
    email_from: Optional[str] = None
    template_invoice_id: Optional[str] = None
    template_quote_id: Optional[str] = None
    template_receipt_id: Optional[str] = None
    exports_folder_id: Optional[str] = None


class TenantResponse(BaseModel):
    id: str
    slug: str
    business_name: str
    currency: str
    timezone: str
    logo_url: str
    brand_color: str
    email_from: str
    template_invoice_id: str
    template_quote_id: str
    template_receipt_id: str
    exports_folder_id: str
    identity_mode: str
    created_at: datetime

    @classmethod
    def from_model(cls, tenant) -> "TenantResponse":
        return cls(
            id=tenant.id,
            slug=tenant.slug,
            business_name=tenant.business_name or "",
            currency=tenant.currency or "EUR",
            timezone=tenant.timezone or "",
            logo_url=tenant.logo_url or "",
            brand_color=tenant.brand_color or "",
            email_from=tenant.email_from or "",
            template_invoice_id=tenant.template_invoice_id or "",
            template_quote_id=tenant.template_quote_id or "",
            template_receipt_id=tenant.template_receipt_id or "",
            exports_folder_id=tenant.exports_folder_id or "",
            identity_mode="delegated" if tenant.delegated_credential_encrypted else "service",
            created_at=tenant.created_at,
        )
