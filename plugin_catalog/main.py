"""plugin-catalog - fuzzy search over the Vendetta plugin catalog."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from plugin_catalog import __version__
from plugin_catalog.core.config import settings
from plugin_catalog.core.logging import configure_logfire, instrument_fastapi, instrument_httpx
from plugin_catalog.interface.catalog_router import router as catalog_router
from plugin_catalog.services.session_service import create_session


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Startup
    # Configure logging first so session startup is captured
    configure_logfire()
    instrument_httpx()

    session = create_session(settings)
    app.state.session = session
    await session.start()
    yield
    # Shutdown
    await session.close()


app = FastAPI(
    title="plugin-catalog",
    description="Fuzzy search over the Vendetta plugin catalog",
    version=__version__,
    lifespan=lifespan,
)

# Instrument FastAPI with Logfire
instrument_fastapi(app)

# Register routers
app.include_router(catalog_router)


@app.get("/health")
async def health_check(request: Request) -> JSONResponse:
    """Health check endpoint."""
    session = request.app.state.session
    return JSONResponse(content={"status": "healthy", "catalog": session.catalog.state.value}, status_code=200)


def run() -> None:
    """Serve the web UI with uvicorn."""
    uvicorn.run(app, host=settings.host, port=settings.port)
