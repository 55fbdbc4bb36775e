"""
Production FastAPI Application

Wires DI, tracing and (when selected) the Kvrocks connection pool.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from src.platform.app_factory import create_app
from src.platform.config.core_setting import settings
from src.platform.config.di import container
from src.platform.config.wire_modules import WIRE_MODULES
from src.platform.logging.loguru_io import Logger
from src.platform.observability.tracing import TracingConfig
from src.platform.state.kvrocks_client import kvrocks_client


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan: startup and shutdown."""
    Logger.base.info('🚀 [Ticketing API] Starting up...')

    tracing = TracingConfig(service_name='ticketing-api', service_version=settings.VERSION)
    tracing.setup()
    if tracing.exporting:
        Logger.base.info('📊 [Ticketing API] OpenTelemetry tracing configured')
    else:
        Logger.base.info('📊 [Ticketing API] Tracing enabled without an exporter')

    container.wire(modules=WIRE_MODULES)
    Logger.base.info('🔌 [Ticketing API] Dependency injection wired')

    if settings.STORE_BACKEND == 'kvrocks':
        tracing.instrument_redis()
        await kvrocks_client.initialize()  # Fail-fast
        Logger.base.info('📡 [Ticketing API] Kvrocks document store ready')
    else:
        Logger.base.warning('🧪 [Ticketing API] Using in-memory document store (single process)')

    Logger.base.info('✅ [Ticketing API] Ready to serve requests')

    yield

    Logger.base.info('🛑 [Ticketing API] Shutting down...')

    if settings.STORE_BACKEND == 'kvrocks':
        await kvrocks_client.disconnect()
        Logger.base.info('📡 [Ticketing API] Kvrocks disconnected')

    tracing.shutdown()
    container.unwire()

    Logger.base.info('👋 [Ticketing API] Shutdown complete')


app = create_app(lifespan=lifespan)


@app.get('/')
async def root() -> RedirectResponse:
    """Root endpoint - redirect to docs."""
    return RedirectResponse(url='/docs')
