"""Pydantic schemas for billing documents and the document endpoints."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class DocumentType(str, Enum):
    INVOICE = "invoice"
    QUOTE = "quote"
    RECEIPT = "receipt"

    @property
    def label(self) -> str:
        return self.value.capitalize()


NUMBER_PREFIXES = {
    DocumentType.INVOICE: "INV",
    DocumentType.QUOTE: "QUO",
    DocumentType.RECEIPT: "RCP",
}


class ClientInfo(BaseModel):
    name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""


class LineItem(BaseModel):
    description: str = ""
    unit: str = "each"
    qty: Optional[float] = None
    unit_price: Optional[float] = None
    tax_rate: Optional[float] = None
    line_total: Optional[float] = None


class DocumentRequest(BaseModel):
    """Everything needed to render one document, validated before rendering."""

    document_type: DocumentType
    number: str = Field(..., min_length=1, max_length=64)
    id: Optional[str] = None
    status: str = ""
    issue_date: str = ""
    due_date: str = ""
    valid_until: str = ""
    currency: str = ""
    subtotal: Optional[float] = None
    tax_total: Optional[float] = None
    total: Optional[float] = None
    notes: str = ""
    client: ClientInfo = ClientInfo()
    items: list[LineItem] = []

    @property
    def suggested_filename(self) -> str:
        return f"{self.document_type.value}-{self.number}.pdf"


class DocumentCreate(BaseModel):
    tenant: str = Field(..., min_length=1)
    document_type: DocumentType = DocumentType.INVOICE
    number: Optional[str] = Field(None, min_length=1, max_length=64)
    status: str = "draft"
    issue_date: str = ""
    due_date: str = ""
    valid_until: str = ""
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    subtotal: Optional[float] = None
    tax_total: Optional[float] = None
    total: Optional[float] = None
    notes: str = ""
    client: Optional[ClientInfo] = None
    items: list[LineItem] = []


class DocumentCreateResponse(BaseModel):
    id: str
    number: str
    document_type: DocumentType


class DocumentRef(BaseModel):
    """Names one tenant document by id or by number."""

    tenant: str = Field(..., min_length=1)
    document_id: Optional[str] = None
    document_number: Optional[str] = None

    @model_validator(mode="after")
    def _needs_id_or_number(self):
        if not (self.document_id or self.document_number):
            raise ValueError("Provide 'document_id' or 'document_number'")
        return self


class RenderResponse(BaseModel):
    success: bool = True
    document_number: str
    suggested_filename: str
    artifact_location: Optional[str] = None
    inline_bytes_base64: Optional[str] = None


class SendRequest(DocumentRef):
    to_email: Optional[str] = None


class SendResponse(BaseModel):
    sent: bool
    recipient: str
    subject: str
    link: str
    provider_message_id: Optional[str] = None
