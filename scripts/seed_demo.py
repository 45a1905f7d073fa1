#!/usr/bin/env python3
"""Seed a demo tenant with one client and one invoice.

Usage:
    python scripts/seed_demo.py [tenant-slug]
"""

import asyncio
import sys
from pathlib import Path

# Ensure project root is on path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from folio_engine.common.config import get_settings
from folio_engine.common.database import DatabaseManager
from folio_engine.common.exceptions import DocumentNotFoundError
from folio_engine.documents.schemas import ClientInfo, DocumentCreate, LineItem
from folio_engine.documents.service import DocumentService
from folio_engine.tenants.cache import TenantCache
from folio_engine.tenants.service import TenantService
from folio_engine.vault.cipher import CredentialVault

DEMO_NAMES = {"acme-co": "Acme Co Ltd", "blue-cafe": "Blue Café"}


def business_name_for(slug: str) -> str:
    if slug in DEMO_NAMES:
        return DEMO_NAMES[slug]
    return slug.replace("-", " ").replace("_", " ").title()


async def seed_demo(slug: str) -> None:
    settings = get_settings()
    db = DatabaseManager(settings)
    await db.init()
    await db.create_all()

    tenants = TenantService(TenantCache(ttl_seconds=0), CredentialVault.from_settings(settings))
    documents = DocumentService()

    async with db.get_session() as session:
        tenant = await tenants.get_by_slug(session, slug)
        if tenant is None:
            tenant = await tenants.create_tenant(session, slug, business_name=business_name_for(slug))
            print(f"  [created] tenant {slug}")
        else:
            print(f"  [skip] tenant {slug} already exists")

        record = await tenants.resolve(session, slug)
        number = "INV-2024-007"
        try:
            await documents.get_document(session, record, number=number)
            print(f"  [skip] {number} already exists")
        except DocumentNotFoundError:
            await documents.create_document(
                session,
                record,
                DocumentCreate(
                    tenant=slug,
                    number=number,
                    issue_date="2024-09-01",
                    due_date="2024-09-15",
                    currency="EUR",
                    subtotal=100,
                    tax_total=23,
                    total=123,
                    notes="Thank you.",
                    client=ClientInfo(
                        name="Rosa Maria",
                        email="rosa@example.com",
                        phone="+254700000000",
                        address="Rua Exemplo 123, Lisboa",
                    ),
                    items=[
                        LineItem(description="Service A", qty=1, unit_price=100, tax_rate=23, line_total=100),
                    ],
                ),
            )
            print(f"  [created] {number} for Rosa Maria")

    await db.close()
    print("\nDone.")


if __name__ == "__main__":
    asyncio.run(seed_demo(sys.argv[1] if len(sys.argv) > 1 else "acme-co"))
