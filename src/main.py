"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy import text

from config.settings import settings
from src.pf_account.api.router import investment_router
from src.pf_account.api.router import router as account_router
from src.pf_account.application.service import AccountApplicationService
from src.pf_common.database import async_session_factory, engine
from src.pf_common.errors import AppError
from src.pf_common.response import app_error_handler
from src.pf_gateway.middleware.request_log import RequestLogMiddleware

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify the DB connection and purge expired stock prices.
    Shutdown: dispose the pool."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    async with async_session_factory() as session:
        await AccountApplicationService().purge_expired_prices(session)
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)
app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]

app.include_router(account_router, prefix="/api/v1")
app.include_router(investment_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
