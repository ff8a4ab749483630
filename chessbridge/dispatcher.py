"""
Bridge Dispatcher
Turns one external request into one engine result or one error
"""

import logging
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional

import chess

from .config import BridgeSettings
from .engine_session import EngineSession
from .errors import ClientInputError, EngineDirectoryError
from .models import (
    BLACK,
    ClockTime,
    EngineRequest,
    EngineResult,
    FixedMoveTime,
    TimeControl,
    WHITE,
)
from .uci_interface import build_commands, coerce_clock, coerce_movetime, side_from_turn

logger = logging.getLogger(__name__)

CLOCK_MODE = "clock"


class BridgeDispatcher:
    """
    Validates requests, picks an engine and runs one EngineSession per request

    The dispatcher keeps no per-request state; concurrent calls share only
    the read-only settings.
    """

    def __init__(self,
                 settings: Optional[BridgeSettings] = None,
                 session_factory: Callable[..., EngineSession] = EngineSession):
        self.settings = settings or BridgeSettings()
        self.session_factory = session_factory

    def parse_request(self, payload: Optional[Mapping]) -> EngineRequest:
        """
        Validate a raw request body

        Args:
            payload: Decoded JSON body {fen, movetime?, timing?, turn?, engine?}

        Returns:
            EngineRequest ready to dispatch

        Raises:
            ClientInputError: fen missing or not parseable, bad engine id
        """
        payload = payload or {}

        fen = payload.get("fen")
        if not isinstance(fen, str) or not fen.strip():
            raise ClientInputError("Missing 'fen' in body")
        fen = fen.strip()

        try:
            board = chess.Board(fen)
        except ValueError as e:
            raise ClientInputError("Invalid 'fen' in body", detail=str(e))

        fen_side = WHITE if board.turn == chess.WHITE else BLACK
        side_to_move = side_from_turn(payload.get("turn"), fen_side)

        engine_id = payload.get("engine") or self.settings.default_engine
        if not isinstance(engine_id, str):
            raise ClientInputError("Invalid 'engine' in body")
        self.resolve_engine(engine_id)

        return EngineRequest(
            position=fen,
            time_control=self._time_control(payload),
            side_to_move=side_to_move,
            engine_id=engine_id,
        )

    def _time_control(self, payload: Mapping) -> TimeControl:
        timing = payload.get("timing")
        if isinstance(timing, Mapping) and timing.get("mode") == CLOCK_MODE:
            return coerce_clock(
                timing.get("wtime"),
                timing.get("btime"),
                timing.get("winc"),
                timing.get("binc"),
            )
        return FixedMoveTime(coerce_movetime(payload.get("movetime")))

    def resolve_engine(self, engine_id: str) -> Path:
        """Map an engine identifier to a path inside the engine directory"""
        # Plain file names only; symlinked engines inside the directory are fine
        if (not engine_id or engine_id in (".", "..")
                or "/" in engine_id or "\\" in engine_id or "\x00" in engine_id):
            raise ClientInputError("Invalid 'engine' in body", detail=engine_id)

        return self.settings.engine_dir / engine_id

    def timeout_for(self, time_control: TimeControl) -> int:
        """Session deadline in ms for a time control"""
        if isinstance(time_control, ClockTime):
            return self.settings.clock_timeout_ms
        return max(self.settings.min_timeout_ms,
                   time_control.movetime + self.settings.movetime_slack_ms)

    def dispatch(self, request: EngineRequest) -> EngineResult:
        """
        Run one engine session for a validated request

        Raises:
            EngineLaunchError, EngineTimeoutError, EngineProtocolAnomaly
        """
        engine_path = self.resolve_engine(request.engine_id)
        timeout_ms = self.timeout_for(request.time_control)
        commands = build_commands(request.position, request.time_control)

        logger.info(f"Dispatching to {request.engine_id}: {commands[-1]} "
                    f"(side {request.side_to_move}, timeout {timeout_ms}ms)")

        session = self.session_factory(engine_path, request.side_to_move, timeout_ms)
        result = session.run(commands)

        logger.info(f"Engine {request.engine_id} answered {result.best_move}")
        return result

    def handle(self, payload: Optional[Mapping]) -> Dict:
        """Validate, dispatch and shape the response body"""
        request = self.parse_request(payload)
        return self.dispatch(request).to_dict()

    def list_engines(self) -> List[str]:
        """Engine identifiers available in the engine directory"""
        engine_dir = self.settings.engine_dir
        try:
            entries = list(engine_dir.iterdir())
        except OSError as e:
            logger.error(f"Failed to read engine directory {engine_dir}: {e}")
            raise EngineDirectoryError("Failed to read engine directory", detail=str(e))

        names = [
            entry.name for entry in entries
            if entry.is_file()
            and not entry.name.startswith(".")
            and not entry.name.lower().endswith(".md")
        ]
        return sorted(names)
