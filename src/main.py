"""
Event Cancellation FastAPI Application
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from src.platform.app_factory import create_app
from src.platform.config.di import cleanup, container, setup
from src.platform.config.wire_modules import WIRE_MODULES
from src.platform.logging.loguru_io import Logger


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan: startup and shutdown."""
    Logger.base.info('🚀 [Cancellation Service] Starting up...')

    setup()
    Logger.base.info('⚙️ [Cancellation Service] Settings and policy loaded')

    container.wire(modules=WIRE_MODULES)
    Logger.base.info('🔌 [Cancellation Service] Dependency injection wired')

    Logger.base.info('✅ [Cancellation Service] Ready to serve requests')

    yield

    Logger.base.info('🛑 [Cancellation Service] Shutting down...')

    container.unwire()
    cleanup()

    Logger.base.info('👋 [Cancellation Service] Shutdown complete')


app = create_app(lifespan=lifespan)


@app.get('/')
async def root() -> RedirectResponse:
    """Root endpoint - redirect to docs."""
    return RedirectResponse(url='/docs')
