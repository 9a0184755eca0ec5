import asyncio
import contextlib
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from dishka.integrations.fastapi import setup_dishka

from core.container import container
from core.environment.config import Settings
from core.exception_handler import (
    validation_exception_handler,
    http_exception_handler,
    starlette_exception_handler,
    custom_exception_handler
)
from core.exceptions import BaseCustomException
from watcher.monitor import ChainMonitor
from webhook.router import router as webhook_router
from webhook.schemas import HealthResponse

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Start the chain monitor next to the API when enabled.
    """
    settings = await container.get(Settings, component="environment")
    monitor_task = None
    if settings.monitor_enabled:
        monitor = await container.get(ChainMonitor, component="watcher")
        monitor_task = asyncio.create_task(monitor.run())
    try:
        yield
    finally:
        if monitor_task is not None:
            monitor_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await monitor_task
        await container.close()


app = FastAPI(
    title="Chain Watcher",
    version=VERSION,
    description="Watches an EVM chain and address notifications for transfers to watched addresses",
    lifespan=lifespan,
)

setup_dishka(container, app)

app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(StarletteHTTPException, starlette_exception_handler)
app.add_exception_handler(BaseCustomException, custom_exception_handler)
app.add_exception_handler(Exception, custom_exception_handler)

app.include_router(webhook_router)


@app.get("/")
async def root():
    """
    Root endpoint.

    Returns
    -------
    dict
        Application information
    """
    return {
        "name": "Chain Watcher",
        "version": VERSION,
        "endpoints": {
            "webhook": "/webhook",
            "test": "/test",
            "health": "/health",
            "docs": "/docs"
        }
    }


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """
    Health check endpoint.

    Returns
    -------
    HealthResponse
        Health status
    """
    return HealthResponse(status="OK", timestamp=datetime.now(timezone.utc).isoformat())
