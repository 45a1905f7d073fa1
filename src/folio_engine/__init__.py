"""Folio-Engine: tenant-scoped invoice rendering and secure document delivery."""

from folio_engine.delivery.keys import artifact_key
from folio_engine.rendering.formatting import format_money
from folio_engine.rendering.pdf import LayoutRenderer
from folio_engine.vault.cipher import CredentialVault

__all__ = [
    "CredentialVault",
    "LayoutRenderer",
    "artifact_key",
    "format_money",
]
__version__ = "0.1.0"
