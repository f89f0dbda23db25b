"""Storefront FastAPI application.

Web server for checkout, orders, eSewa payments, discounts, carts, saved
addresses and the product catalogue. Commands are processed synchronously
inside the ordering domain context pushed for every request.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ordering.config import get_settings
from ordering.domain import ordering
from ordering.utils.logging import add_context, clear_context, configure_logging, get_logger

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# Initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay and the gateway endpoints.
configure_logging()
ordering.init()

logger = get_logger(__name__)
settings = get_settings()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront API",
    description="E-commerce ordering: checkout, orders, eSewa payments and discounts",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the ordering domain context and bind a request id to the logs."""
    request_id = request.headers.get("X-Request-Id") or uuid.uuid4().hex
    add_context(request_id=request_id, path=request.url.path)
    try:
        with ordering.domain_context():
            response = await call_next(request)
    finally:
        clear_context()
    response.headers["X-Request-Id"] = request_id
    return response


# ---------------------------------------------------------------------------
# Routers and error handlers
# ---------------------------------------------------------------------------
from ordering.api import ROUTERS  # noqa: E402
from ordering.api.errors import register_exception_handlers  # noqa: E402

for router in ROUTERS:
    app.include_router(router, prefix="/api/v1")

register_exception_handlers(app)

logger.info("app_started", environment=settings.environment, frontend_url=settings.frontend_url)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "environment": settings.environment,
            "domains": {"ordering": {"name": ordering.name}},
        }
    )
