"""
Bridge Settings
Runtime configuration loaded from environment variables
"""

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_ENGINE = "chess_engine"
DEFAULT_ENGINE_DIR = "engine"
DEFAULT_PORT = 3001


def _env_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {key}={raw!r}, using {default}")
        return default


@dataclass(frozen=True)
class BridgeSettings:
    """Bridge configuration"""
    engine_dir: Path = Path(DEFAULT_ENGINE_DIR)
    default_engine: str = DEFAULT_ENGINE
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    log_level: str = "INFO"
    clock_timeout_ms: int = 30000   # engine manages its own clock
    min_timeout_ms: int = 4000
    movetime_slack_ms: int = 2000   # handshake and I/O on top of movetime

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "BridgeSettings":
        """
        Build settings from environment variables

        Args:
            env: Mapping to read from (defaults to os.environ)

        Returns:
            BridgeSettings with defaults for anything unset
        """
        if env is None:
            env = os.environ

        return cls(
            engine_dir=Path(env.get("CHESSBRIDGE_ENGINE_DIR") or DEFAULT_ENGINE_DIR),
            default_engine=env.get("CHESSBRIDGE_DEFAULT_ENGINE") or DEFAULT_ENGINE,
            host=env.get("HOST") or "0.0.0.0",
            port=_env_int(env, "PORT", DEFAULT_PORT),
            log_level=(env.get("CHESSBRIDGE_LOG_LEVEL") or "INFO").upper(),
            clock_timeout_ms=_env_int(env, "CHESSBRIDGE_CLOCK_TIMEOUT_MS", 30000),
            min_timeout_ms=_env_int(env, "CHESSBRIDGE_MIN_TIMEOUT_MS", 4000),
            movetime_slack_ms=_env_int(env, "CHESSBRIDGE_MOVETIME_SLACK_MS", 2000),
        )

    def with_overrides(self, **changes) -> "BridgeSettings":
        """Copy with the given non-None fields replaced"""
        changes = {k: v for k, v in changes.items() if v is not None}
        if "engine_dir" in changes:
            changes["engine_dir"] = Path(changes["engine_dir"])
        return replace(self, **changes)


def configure_logging(level: str = "INFO"):
    """Configure root logging for the entry points"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
