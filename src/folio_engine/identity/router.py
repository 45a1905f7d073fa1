"""Delegated authorization routes and identity diagnostics."""

import logging
import pathlib

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from folio_engine.common.exceptions import FolioError
from folio_engine.common.security import require_api_key
from folio_engine.identity.oauth import InvalidStateError

logger = logging.getLogger(__name__)

_TEMPLATES_DIR = pathlib.Path(__file__).parent.parent / "templates"

router = APIRouter(tags=["identity"])
templates = Jinja2Templates(directory=str(_TEMPLATES_DIR))


def _get_oauth():
    from folio_engine.deps import get_oauth_flow
    return get_oauth_flow()


def _get_identity():
    from folio_engine.deps import get_identity_resolver
    return get_identity_resolver()


def _get_tenants():
    from folio_engine.deps import get_tenant_service
    return get_tenant_service()


def _get_db():
    from folio_engine.deps import get_db
    return get_db()


def _page(request: Request, title: str, message: str, status_code: int = 200) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "oauth_result.html",
        {"title": title, "message": message},
        status_code=status_code,
    )


@router.get("/oauth/start")
async def oauth_start(tenant: str = Query(..., min_length=1)):
    """Redirect the tenant owner to the consent screen."""
    flow = _get_oauth()
    if not flow.configured:
        raise HTTPException(status_code=503, detail="Delegated authorization is not configured")
    db = _get_db()
    async with db.get_session() as session:
        try:
            record = await _get_tenants().resolve(session, tenant)
        except FolioError as e:
            raise HTTPException(status_code=e.status_code, detail=e.message)
    return RedirectResponse(flow.build_authorization_url(record.slug), status_code=302)


@router.get("/oauth/callback", response_class=HTMLResponse)
async def oauth_callback(
    request: Request,
    code: str = Query(""),
    state: str = Query(""),
    error: str = Query(""),
):
    """Store the tenant's refresh token, sealed, and report the outcome."""
    if error:
        return _page(request, "Authorization cancelled", f"The provider returned: {error}", 400)
    if not code or not state:
        return _page(request, "Authorization failed", "Missing code or state.", 400)

    flow = _get_oauth()
    try:
        slug = flow.verify_state(state)
    except InvalidStateError as e:
        return _page(request, "Authorization failed", str(e), 400)

    try:
        refresh_token = await flow.exchange_code(code)
        db = _get_db()
        async with db.get_session() as session:
            await _get_tenants().save_delegated_credential(session, slug, refresh_token)
    except FolioError as e:
        logger.warning("Delegated authorization failed", extra={"tenant": slug, "error": e.code})
        return _page(request, "Authorization failed", e.message, e.status_code)

    return _page(
        request,
        "Google connected",
        f"Documents for '{slug}' will now be created in your own account. You can close this window.",
    )


@router.get("/identity/{slug}/whoami")
async def whoami(slug: str, _=Depends(require_api_key)):
    """Which identity a tenant's documents are produced under."""
    db = _get_db()
    try:
        async with db.get_session() as session:
            record = await _get_tenants().resolve(session, slug)
        client = await _get_identity().resolve_client(record)
        user = await client.about()
    except FolioError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return {
        "tenant": record.slug,
        "mode": client.mode,
        "email": user.get("emailAddress", ""),
        "display_name": user.get("displayName", ""),
    }
