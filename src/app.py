"""Storefront FastAPI application.

Serves the cart and checkout API. Every request is handled against one
``Storefront`` service held on ``app.state``, inside a storefront domain
context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from contextlib import asynccontextmanager
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.api import cart_router, checkout_router, register_error_handlers
from storefront.config import settings
from storefront.domain import storefront as domain
from storefront.shop import Storefront
from storefront.utils.db import database_config, setup_db
from storefront.utils.logging import add_context, clear_context, configure_logging

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# STOREFRONT_DATABASE_URL selects the cart database; unset keeps carts in
# memory. PROTEAN_ENV picks the overlay section of domain.toml.
configure_logging(env=settings.env, level=settings.log_level, log_dir=None if settings.env == "test" else "logs")
domain.config["databases"]["default"] = database_config(settings.database_url)
domain.init()


def create_app(storefront: Storefront | None = None) -> FastAPI:
    storefront = storefront or Storefront.in_memory(settings=settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_db(domain)
        logger.info("Storefront started", env=storefront.settings.env)
        yield

    # -----------------------------------------------------------------------
    # FastAPI app
    # -----------------------------------------------------------------------
    app = FastAPI(
        title="Storefront API",
        description="Shopping cart and checkout",
        lifespan=lifespan,
    )
    app.state.storefront = storefront

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the storefront domain context for each request."""
        with domain.domain_context():
            response = await call_next(request)
        return response

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        """Bind a request id and path to every log line of the request."""
        clear_context()
        add_context(request_id=request.headers.get("x-request-id") or uuid4().hex, path=request.url.path)
        try:
            return await call_next(request)
        finally:
            clear_context()

    register_error_handlers(app)

    # -----------------------------------------------------------------------
    # Routers
    # -----------------------------------------------------------------------
    app.include_router(cart_router)
    app.include_router(checkout_router)

    # -----------------------------------------------------------------------
    # Health / root
    # -----------------------------------------------------------------------
    @app.get("/health")
    async def health():
        return JSONResponse(
            content={
                "status": "ok",
                "env": storefront.settings.env,
                "domain": domain.name,
                "merge_policy": storefront.settings.merge_policy.value,
                "open_checkouts": storefront.open_checkouts,
            }
        )

    return app


app = create_app()
