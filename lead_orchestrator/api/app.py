"""
FastAPI application factory.

The orchestrator and config live on ``app.state`` so tests can build an app
around fakes with ``create_app(orchestrator=..., config=...)``.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from lead_orchestrator import __version__
from lead_orchestrator.api.routers import debug, health, webhook
from lead_orchestrator.config import AppConfig, settings
from lead_orchestrator.errors import DebugRequestError
from lead_orchestrator.orchestrator import LeadOrchestrator, build_orchestrator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    transport = app.state.config.transport
    logger.info(
        "Lead orchestrator starting (dev_mode=%s, reply_to_lead_in_dev=%s, fast_ack=%s)",
        transport.dev_mode, transport.reply_to_lead_in_dev, transport.fast_ack,
    )
    yield
    logger.info("Shutting down: draining queued messages")
    await app.state.orchestrator.aclose()


async def debug_error_handler(request: Request, exc: DebugRequestError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"ok": False, "error": exc.error})


def create_app(
    orchestrator: Optional[LeadOrchestrator] = None,
    config: Optional[AppConfig] = None,
) -> FastAPI:
    config = config or settings
    app = FastAPI(
        title="Lead Handoff Orchestrator",
        description="WhatsApp lead qualification and operator handoff",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.orchestrator = orchestrator or build_orchestrator(config)
    app.add_exception_handler(DebugRequestError, debug_error_handler)

    app.include_router(health.router)
    app.include_router(webhook.router)
    app.include_router(debug.router)
    return app
