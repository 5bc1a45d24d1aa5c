"""Ordering service FastAPI application.

Commands are processed synchronously per HTTP request; every request runs
inside the ordering domain context. Notifications are stored
with the change that caused them and delivered by the dispatcher's background
worker, which resumes anything left undelivered when the app starts.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from contextlib import asynccontextmanager

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from notifications.dispatcher import get_dispatcher
from ordering.domain import ordering
from ordering.utils.logging import configure_logging

configure_logging()
ordering.init()


@asynccontextmanager
async def lifespan(app: FastAPI):
    dispatcher = get_dispatcher()
    dispatcher.start()
    yield
    dispatcher.drain(timeout=5.0)
    dispatcher.stop()


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Ordering API",
    description="Food ordering carts, orders and payments",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the ordering domain context for each request."""
    with ordering.domain_context():
        response = await call_next(request)
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from ordering.api import customer_router, order_router, payment_router, register_error_handlers  # noqa: E402

app.include_router(customer_router)
app.include_router(order_router)
app.include_router(payment_router)
register_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    dispatcher = get_dispatcher()
    return JSONResponse(
        content={
            "status": "ok",
            "domain": ordering.name,
            "notifications": dispatcher.stats(),
        }
    )
