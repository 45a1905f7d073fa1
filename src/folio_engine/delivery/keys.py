"""Deterministic storage keys for rendered documents."""


def artifact_key(tenant_slug: str, document_number: str) -> str:
    """`{tenant_slug}/{document_number}.pdf`; re-rendering a document always targets the same key."""
    return f"{tenant_slug}/{document_number}.pdf"
