"""API key authentication dependencies."""

import hmac

from fastapi import Header, HTTPException


def _matches(provided: str, expected: str) -> bool:
    return hmac.compare_digest(provided.encode(), expected.encode())


async def require_api_key(
    x_folio_api_key: str = Header(..., alias="X-Folio-Api-Key"),
) -> str:
    """FastAPI dependency that validates admin API key from header."""
    from folio_engine.common.config import get_settings

    settings = get_settings()
    if not _matches(x_folio_api_key, settings.api_key):
        raise HTTPException(status_code=403, detail="Invalid API key")
    return x_folio_api_key


async def require_super_admin(
    x_folio_api_key: str = Header(..., alias="X-Folio-Api-Key"),
) -> str:
    """FastAPI dependency that validates super-admin API key from header."""
    from folio_engine.common.config import get_settings

    settings = get_settings()
    if not _matches(x_folio_api_key, settings.super_admin_key):
        raise HTTPException(status_code=403, detail="Invalid super-admin key")
    return x_folio_api_key
