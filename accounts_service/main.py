"""
FastAPI application and entry point.

This module creates and configures the FastAPI application:
  1. Logging — root level from settings.LOG_LEVEL
  2. Lifespan manager — creates tables on startup, disposes the engine on shutdown
  3. CORS middleware
  4. Exception handlers — maps domain errors to HTTP responses
  5. Router registration

Running locally:
    uvicorn accounts_service.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import accounts_service.models  # noqa: F401  (registers every table on Base.metadata)
from accounts_service.config import settings
from accounts_service.database import engine, Base
from accounts_service.exceptions import register_exception_handlers
from accounts_service.routers import account_users, accounts, users

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup:
      Creates all database tables if they don't exist. Schema migrations are
      out of scope for this service; production databases are provisioned
      separately.

    Shutdown:
      Disposes of the database engine, closing all connections cleanly.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("%s %s started", settings.APP_NAME, settings.APP_VERSION)
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Accounts, balances and account-user associations for scooter rentals",
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

# Users first: "/api/accounts/users" would otherwise be captured by
# "/api/accounts/{account_id}" and rejected as an invalid UUID.
app.include_router(users.router, prefix="/api/accounts/users", tags=["Users"])
app.include_router(account_users.router, prefix="/api/accounts", tags=["Account-User Relationships"])
app.include_router(accounts.router, prefix="/api/accounts", tags=["Accounts"])


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@app.get("/health", tags=["Health"])
async def health_check():
    """Liveness probe for load balancers and orchestrators."""
    return {"status": "ok", "version": settings.APP_VERSION}
