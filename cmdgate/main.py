"""Main FastAPI application entry point."""
import asyncio
import logging
import signal
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from cmdgate.api.routes import router
from cmdgate.config import VERSION, Settings, get_settings
from cmdgate.logger import setup_logging
from cmdgate.services.audit_log import JsonAuditLog
from cmdgate.services.gateway import GENERIC_FAILURE, CommandGateway
from cmdgate.services.lifecycle import ServiceLifecycle
from cmdgate.services.registry import CommandRegistry

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Wire the gateway for the given settings; files are touched only at startup."""
    settings = settings or get_settings()

    audit = JsonAuditLog(settings.logs_dir)
    registry = CommandRegistry(settings.commands_file, audit)
    gateway = CommandGateway(registry, audit)
    lifecycle = ServiceLifecycle(settings, registry, audit)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        lifecycle.startup(loop=asyncio.get_running_loop())
        lifecycle.started()
        yield
        lifecycle.shutdown()

    app = FastAPI(
        title="Command Gateway",
        description="Whitelisted command execution with confirmation gating and daily audit logs.",
        version=VERSION,
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.gateway = gateway
    app.state.lifecycle = lifecycle

    app.include_router(router, prefix="/api", tags=["commands"])

    @app.exception_handler(Exception)
    async def unhandled_exception(request: Request, exc: Exception):
        lifecycle.record_uncaught(exc)
        return JSONResponse(status_code=500, content={"text": GENERIC_FAILURE, "requiresConfirmation": False})

    # Health check
    @app.get("/health")
    def health_check():
        return {"status": "healthy", "service": "Command Gateway", "port": settings.port}

    return app


class GatewayServer(uvicorn.Server):
    """uvicorn server that audits SIGTERM before shutting down."""

    def __init__(self, config: uvicorn.Config, lifecycle: ServiceLifecycle):
        super().__init__(config)
        self.lifecycle = lifecycle

    def handle_exit(self, sig, frame) -> None:
        if sig == signal.SIGTERM:
            self.lifecycle.terminated()
        super().handle_exit(sig, frame)


def run() -> None:
    settings = get_settings()
    setup_logging(settings.log_level)

    app = create_app(settings)
    app.state.lifecycle.install_excepthook()

    config = uvicorn.Config(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
    GatewayServer(config, app.state.lifecycle).run()


if __name__ == "__main__":
    run()
