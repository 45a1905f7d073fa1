"""FastAPI application factory for Folio-Engine."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from folio_engine.common.config import get_settings
from folio_engine.common.logging import setup_logging
from folio_engine.common.schemas import HealthResponse


def create_app() -> FastAPI:
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        from folio_engine.deps import close_clients, get_db
        setup_logging("DEBUG" if settings.environment == "development" else "INFO")
        db = get_db()
        await db.init()
        await db.create_all()
        yield
        # Shutdown
        await close_clients()
        await db.close()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(version=settings.api_version)

    # Mount routers
    from folio_engine.tenants.router import router as tenant_router
    from folio_engine.documents.router import router as document_router
    from folio_engine.dispatch.router import router as delivery_router
    from folio_engine.identity.router import router as identity_router

    prefix = settings.api_prefix
    app.include_router(tenant_router, prefix=prefix, tags=["tenants"])
    app.include_router(document_router, prefix=prefix, tags=["documents"])
    app.include_router(delivery_router, prefix=prefix, tags=["deliveries"])
    app.include_router(identity_router, prefix=prefix, tags=["identity"])

    return app
