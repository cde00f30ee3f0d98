"""FastAPI application server.

This module contains the main FastAPI application setup and server runner.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI  # type: ignore[import-untyped]
from fastapi.responses import JSONResponse  # type: ignore[import-untyped]

from time_ledger import __version__
from time_ledger.api.middleware import setup_middleware
from time_ledger.core.config import ConfigManager
from time_ledger.core.logs import setup_logging
from time_ledger.service import TimeLedgerService


def create_app(
    config: Optional[ConfigManager] = None, service: Optional[TimeLedgerService] = None
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        config: Optional configuration manager (creates default if None)
        service: Optional ledger service. Built from ``config`` if None, in
            which case the application closes it on shutdown

    Returns:
        Configured FastAPI application instance
    """
    if config is None:
        config = ConfigManager()
    owns_service = service is None
    if service is None:
        setup_logging(config)
        service = TimeLedgerService.from_config(config)
    service.open()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        service.open()
        yield
        if owns_service:
            service.close()

    app = FastAPI(
        title="Time Ledger API",
        description="REST API for work sessions, breaks, reports and shared reports",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.service = service

    setup_middleware(app, config)

    from time_ledger.api.endpoints import entries, reports, session, settings, shares, system

    app.include_router(system.router, prefix="/api/v1", tags=["system"])
    app.include_router(session.router, prefix="/api/v1/session", tags=["session"])
    app.include_router(entries.router, prefix="/api/v1/entries", tags=["entries"])
    app.include_router(reports.router, prefix="/api/v1/reports", tags=["reports"])
    app.include_router(shares.router, prefix="/api/v1/shares", tags=["shares"])
    app.include_router(shares.public_router, prefix="/api/v1/shared", tags=["shares"])
    app.include_router(settings.router, prefix="/api/v1/settings", tags=["settings"])

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Root endpoint."""
        return JSONResponse(
            {
                "message": "Time Ledger API",
                "version": __version__,
                "docs": "/docs",
                "health": "/api/v1/health",
            }
        )

    return app


def run_server(
    host: str = "localhost",
    port: int = 8000,
    reload: bool = False,
    config: Optional[ConfigManager] = None,
) -> None:
    """Run the API server using Uvicorn.

    Args:
        host: Host address to bind to
        port: Port number to bind to
        reload: Enable auto-reload for development
        config: Optional configuration manager

    Note:
        This function blocks until the server is stopped. With reload, the
        reloaded application reads the default config file.
    """
    import uvicorn  # type: ignore[import-untyped]

    if config is None:
        config = ConfigManager()

    if reload:
        uvicorn.run(
            "time_ledger.api.server:create_app",
            factory=True,
            host=host,
            port=port,
            reload=True,
            log_level=config.get("api.log_level", "info"),
            access_log=config.get("api.access_log", True),
        )
        return

    uvicorn.run(
        create_app(config),
        host=host,
        port=port,
        log_level=config.get("api.log_level", "info"),
        access_log=config.get("api.access_log", True),
    )
