"""
Web Application
FastAPI surface of the UCI engine bridge
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict

from . import __version__
from .config import BridgeSettings
from .dispatcher import BridgeDispatcher
from .errors import BridgeError

logger = logging.getLogger(__name__)


# Pydantic models
# Values stay loosely typed: the dispatcher coerces and clamps them itself
class TimingSpec(BaseModel):
    model_config = ConfigDict(extra="ignore")

    mode: Optional[str] = None
    wtime: Any = None
    btime: Any = None
    winc: Any = None
    binc: Any = None


class MoveRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    fen: Any = None
    movetime: Any = None
    timing: Optional[TimingSpec] = None
    turn: Any = None
    engine: Any = None


def create_app(settings: Optional[BridgeSettings] = None,
               dispatcher: Optional[BridgeDispatcher] = None) -> FastAPI:
    """
    Build the FastAPI application

    Args:
        settings: Bridge settings (read from the environment if None)
        dispatcher: Dispatcher to use (built from settings if None)

    Returns:
        Configured FastAPI app
    """
    settings = settings or BridgeSettings.from_env()
    dispatcher = dispatcher or BridgeDispatcher(settings)

    app = FastAPI(title="UCI Engine Bridge", version=__version__)
    app.state.settings = settings
    app.state.dispatcher = dispatcher

    @app.exception_handler(BridgeError)
    async def bridge_error_handler(_request: Request, exc: BridgeError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(_request: Request, exc: RequestValidationError):
        logger.info(f"Rejected malformed request body: {exc.errors()}")
        return JSONResponse(status_code=400, content={"error": "Malformed request body"})

    # API Endpoints
    # Plain 'def' handlers: FastAPI runs them in its thread pool while they
    # block on the engine

    @app.get("/health")
    def health():
        return {
            "ok": True,
            "port": settings.port,
            "time": datetime.now(timezone.utc).isoformat()
        }

    @app.get("/api/engines")
    def get_engines():
        """List engine identifiers"""
        return dispatcher.list_engines()

    @app.post("/api/make-move")
    def make_move(body: Optional[MoveRequest] = None):
        """Ask the engine for its move in a running game"""
        return dispatcher.handle(_payload(body))

    @app.post("/api/bestmove")
    def bestmove(body: Optional[MoveRequest] = None):
        """Analyse a position without committing to a game"""
        return dispatcher.handle(_payload(body))

    return app


def _payload(body: Optional[MoveRequest]) -> dict:
    return body.model_dump() if body is not None else {}
