"""
Bridge Data Model
Requests handed to an engine session and the results it produces
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Union

WHITE = "w"
BLACK = "b"


@dataclass(frozen=True)
class FixedMoveTime:
    """Search for a fixed number of milliseconds"""
    movetime: int


@dataclass(frozen=True)
class ClockTime:
    """Search using the remaining clock of both sides (all values in ms)"""
    wtime: int
    btime: int
    winc: int = 0
    binc: int = 0


TimeControl = Union[FixedMoveTime, ClockTime]


@dataclass(frozen=True)
class EngineRequest:
    """One validated move/analysis request"""
    position: str
    time_control: TimeControl
    side_to_move: str
    engine_id: str


@dataclass(frozen=True)
class Evaluation:
    """Engine score, always from White's point of view"""
    kind: str  # "cp" or "mate"
    value: int
    pov: str = "white"

    def to_dict(self) -> Dict:
        return {"type": self.kind, "value": self.value, "pov": self.pov}


@dataclass(frozen=True)
class EngineResult:
    """Outcome of a successful engine session"""
    best_move: Optional[str]
    evaluation: Optional[Evaluation] = None
    principal_variation: Optional[List[str]] = None

    def to_dict(self) -> Dict:
        """Shape the result the way HTTP callers expect it"""
        return {
            "bestmove": self.best_move,
            "eval": self.evaluation.to_dict() if self.evaluation else None,
            "pv": " ".join(self.principal_variation) if self.principal_variation else None,
        }
