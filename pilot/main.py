"""defi-pilot entrypoint.

Builds the FastAPI app: strategy, portfolio and transaction routers under
``/api/pilot``, the pool summary at ``/api/pools``, ``/health``, and the
error handlers that render every failure as ``{"error": message}``.
"""
from __future__ import annotations

import asyncio
import logging
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from rich.logging import RichHandler

from pilot.api import portfolio, strategies, transactions
from pilot.config import settings
from pilot.container import Pilot
from pilot.errors import PilotError

# ── logging ───────────────────────────────────────────────────────────────────

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True)],
)
logger = logging.getLogger("pilot")

VERSION = "0.1.0"


# ── error handlers ────────────────────────────────────────────────────────────


async def pilot_error_handler(request: Request, exc: PilotError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ())[1:])}: {err.get('msg')}"
        for err in exc.errors()
    )
    return JSONResponse(status_code=400, content={"error": f"Invalid request parameters: {details}"})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# ── FastAPI app ───────────────────────────────────────────────────────────────


def create_app(container: Pilot | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("defi-pilot server starting (chain %d)", settings.chain_id)
        yield
        logger.info("defi-pilot server stopping")

    app = FastAPI(
        title="defi-pilot",
        description="DeFi strategy aggregation and unsigned transaction building",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.pilot = container or Pilot.create()

    app.add_exception_handler(PilotError, pilot_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(strategies.router)
    app.include_router(strategies.pools_router)
    app.include_router(portfolio.router)
    app.include_router(transactions.router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "version": VERSION}

    return app


async def run_server() -> None:
    config = uvicorn.Config(
        create_app(),
        host=settings.api_host,
        port=settings.api_port,
        log_level="warning",
    )
    server = uvicorn.Server(config)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(run_server())
    except KeyboardInterrupt:
        sys.exit(0)
