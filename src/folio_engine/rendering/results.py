"""Render outcomes shared by the renderers, the delivery layer and the API."""

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class LinkResult:
    """The document was exported remotely and can be fetched from `url`."""

    url: str
    filename: str
    document_id: Optional[str] = None
    document_url: Optional[str] = None


@dataclass(frozen=True)
class InlineBytesResult:
    """The PDF bytes themselves."""

    data: bytes
    filename: str
    document_id: Optional[str] = None
    document_url: Optional[str] = None


RenderResult = Union[LinkResult, InlineBytesResult]


@dataclass(frozen=True)
class RenderedArtifact:
    """PDF bytes bound to their deterministic storage key."""

    key: str
    data: bytes
    filename: str
