from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Callable, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from . import __version__
from .config import AppSettings
from .routers import rooms as rooms_router
from .routers import websockets as ws_router
from .state import RelayState
from .sweeper import Sweeper

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "info") -> None:
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    configured_level = getattr(logging, level.upper(), None)
    if isinstance(configured_level, int):
        logging.getLogger().setLevel(configured_level)


# Custom StaticFiles variant that disables caching for the bundled web client.
class NoCacheStaticFiles(StaticFiles):
    async def get_response(self, path: str, scope):  # type: ignore[override]
        response = await super().get_response(path, scope)
        response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
        response.headers["Pragma"] = "no-cache"
        response.headers["Expires"] = "0"
        return response


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Body validation errors are reported as 400.
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "invalid request body"},
    )


def create_app(settings: Optional[AppSettings] = None, clock: Optional[Callable[[], int]] = None) -> FastAPI:
    """Build a relay application with its own, independent in-memory state."""
    settings = settings or AppSettings()
    relay = RelayState(settings, clock=clock)
    sweeper = Sweeper(relay)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        sweeper.start()
        yield
        await sweeper.stop()
        logger.info("Relay shutdown complete")

    app = FastAPI(title="roomrelay", version=__version__, lifespan=lifespan)
    app.state.relay = relay
    app.state.sweeper = sweeper

    # -----------------------------
    # Middleware & error handling
    # -----------------------------

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    # Register routers
    app.include_router(rooms_router.router)
    app.include_router(ws_router.router)

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    # -----------------------------
    # Static file mounting
    # -----------------------------

    static_dir = settings.server.static_dir
    if static_dir:
        if Path(static_dir).is_dir():
            app.mount("/", NoCacheStaticFiles(directory=static_dir, html=True), name="frontend")
        else:
            logger.warning("Static directory %s does not exist; not serving a client", static_dir)

    return app


__all__ = ["create_app", "configure_logging", "NoCacheStaticFiles"]
