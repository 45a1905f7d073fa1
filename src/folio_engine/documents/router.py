"""Document API router — create, render, link, send."""

import base64

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import RedirectResponse
from sqlalchemy.exc import IntegrityError

from folio_engine.common.exceptions import FolioError
from folio_engine.common.security import require_api_key
from folio_engine.documents.schemas import (
    DocumentCreate,
    DocumentCreateResponse,
    DocumentRef,
    RenderResponse,
    SendRequest,
    SendResponse,
)
from folio_engine.rendering.results import LinkResult

router = APIRouter(prefix="/documents", tags=["documents"])


def _get_pipeline():
    from folio_engine.deps import get_pipeline
    return get_pipeline()


def _get_documents():
    from folio_engine.deps import get_document_service
    return get_document_service()


def _get_tenants():
    from folio_engine.deps import get_tenant_service
    return get_tenant_service()


def _get_db():
    from folio_engine.deps import get_db
    return get_db()


@router.post("", response_model=DocumentCreateResponse, status_code=201)
async def create_document(body: DocumentCreate, _=Depends(require_api_key)):
    db = _get_db()
    try:
        async with db.get_session() as session:
            tenant = await _get_tenants().resolve(session, body.tenant)
            doc = await _get_documents().create_document(session, tenant, body)
            return DocumentCreateResponse(id=doc.id, number=doc.number, document_type=doc.document_type)
    except FolioError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except IntegrityError:
        raise HTTPException(status_code=409, detail="Document number already exists")


@router.post("/render", response_model=RenderResponse)
async def render_document(body: DocumentRef, _=Depends(require_api_key)):
    db = _get_db()
    try:
        async with db.get_session() as session:
            request, result = await _get_pipeline().render(
                session, body.tenant,
                document_id=body.document_id, number=body.document_number,
            )
    except FolioError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    if isinstance(result, LinkResult):
        return RenderResponse(
            document_number=request.number,
            suggested_filename=result.filename,
            artifact_location=result.url,
        )
    return RenderResponse(
        document_number=request.number,
        suggested_filename=result.filename,
        inline_bytes_base64=base64.b64encode(result.data).decode("ascii"),
    )


@router.get("/{slug}/{number}/link")
async def document_link(slug: str, number: str, _=Depends(require_api_key)):
    """Redirect to a signed download URL, rendering the PDF first if needed."""
    db = _get_db()
    try:
        async with db.get_session() as session:
            url = await _get_pipeline().get_link(session, slug, number)
    except FolioError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return RedirectResponse(url, status_code=302, headers={"Cache-Control": "no-store"})


@router.post("/send", response_model=SendResponse)
async def send_document(body: SendRequest, _=Depends(require_api_key)):
    db = _get_db()
    try:
        async with db.get_session() as session:
            delivery = await _get_pipeline().send(
                session, body.tenant,
                document_id=body.document_id, number=body.document_number,
                to_email=body.to_email,
            )
            entry = delivery.entry
            return SendResponse(
                sent=True,
                recipient=entry.to_email,
                subject=entry.subject,
                link=delivery.link,
                provider_message_id=entry.provider_id,
            )
    except FolioError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
