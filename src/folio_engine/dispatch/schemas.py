"""Pydantic schemas for delivery log endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class DeliveryLogResponse(BaseModel):
    id: str
    document_id: Optional[str]
    document_number: str
    kind: str
    to_email: str
    subject: str
    status: str
    provider: str
    provider_id: Optional[str]
    error: Optional[str]
    link: str
    created_at: datetime

    @classmethod
    def from_model(cls, entry) -> "DeliveryLogResponse":
        return cls(
            id=entry.id,
            document_id=entry.document_id,
            document_number=entry.document_number or "",
            kind=entry.kind,
            to_email=entry.to_email,
            subject=entry.subject,
            status=entry.status,
            provider=entry.provider or "",
            provider_id=entry.provider_id,
            error=entry.error,
            link=entry.link or "",
            created_at=entry.created_at,
        )
