"""
UCI Engine Bridge
Play against, or analyse with, an external chess engine over HTTP
"""

__version__ = "1.0.0"
__author__ = "UCI Engine Bridge Contributors"

from .config import BridgeSettings
from .dispatcher import BridgeDispatcher
from .engine_session import EngineSession
from .errors import (
    BridgeError,
    ClientInputError,
    EngineDirectoryError,
    EngineLaunchError,
    EngineProtocolAnomaly,
    EngineTimeoutError,
)
from .models import ClockTime, EngineRequest, EngineResult, Evaluation, FixedMoveTime

__all__ = [
    'BridgeSettings',
    'BridgeDispatcher',
    'EngineSession',
    'BridgeError',
    'ClientInputError',
    'EngineDirectoryError',
    'EngineLaunchError',
    'EngineProtocolAnomaly',
    'EngineTimeoutError',
    'ClockTime',
    'EngineRequest',
    'EngineResult',
    'Evaluation',
    'FixedMoveTime'
]
