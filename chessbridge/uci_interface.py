"""
UCI Protocol Helpers
Command construction, value coercion and incremental output parsing
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional

from .models import BLACK, ClockTime, Evaluation, TimeControl, WHITE

DEFAULT_MOVETIME = 1000
MIN_MOVETIME = 50
MAX_TIME_MS = 24 * 60 * 60 * 1000

BESTMOVE_RE = re.compile(r"\bbestmove\s+([a-h][1-8][a-h][1-8][qrbn]?)")
# In a line that is still arriving the move must already be terminated
PARTIAL_BESTMOVE_RE = re.compile(r"\bbestmove\s+([a-h][1-8][a-h][1-8][qrbn]?)\s")

INFO_PATTERNS = {
    "depth": re.compile(r"\bdepth\s+(\d+)"),
    "seldepth": re.compile(r"\bseldepth\s+(\d+)"),
    "score_mate": re.compile(r"\bscore\s+mate\s+(-?\d+)"),
    "score_cp": re.compile(r"\bscore\s+cp\s+(-?\d+)"),
    "nodes": re.compile(r"\bnodes\s+(\d+)"),
    "nps": re.compile(r"\bnps\s+(\d+)"),
    "time": re.compile(r"\btime\s+(\d+)"),
    "pv": re.compile(r"\bpv\s+(.+)$"),
}


def to_int(value) -> int:
    """Coerce a loosely typed request value to an int, 0 when malformed"""
    if value is None:
        return 0
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0


def coerce_movetime(value) -> int:
    """Requested movetime in ms, defaulted and clamped to [50ms, 24h]"""
    return min(MAX_TIME_MS, max(MIN_MOVETIME, to_int(value) or DEFAULT_MOVETIME))


def _clock_value(value) -> int:
    return min(MAX_TIME_MS, max(0, to_int(value)))


def coerce_clock(wtime, btime, winc=0, binc=0) -> ClockTime:
    """Clock values clamped to non-negative integers of at most 24h"""
    return ClockTime(
        wtime=_clock_value(wtime),
        btime=_clock_value(btime),
        winc=_clock_value(winc),
        binc=_clock_value(binc),
    )


def go_command(time_control: TimeControl) -> str:
    """Build the single 'go' command for a time control"""
    cmd_parts = ["go"]

    if isinstance(time_control, ClockTime):
        cmd_parts.append(f"wtime {time_control.wtime}")
        cmd_parts.append(f"btime {time_control.btime}")
        cmd_parts.append(f"winc {time_control.winc}")
        cmd_parts.append(f"binc {time_control.binc}")
    else:
        cmd_parts.append(f"movetime {time_control.movetime}")

    return " ".join(cmd_parts)


def build_commands(fen: str, time_control: TimeControl) -> List[str]:
    """
    Full command sequence for one search

    Args:
        fen: Position to search
        time_control: FixedMoveTime or ClockTime

    Returns:
        Commands in the order they are written to the engine
    """
    return [
        "uci",
        "isready",
        "ucinewgame",
        f"position fen {fen}",
        go_command(time_control),
    ]


def parse_info(line: str) -> Dict:
    """Parse a UCI info line into a dict of the fields present"""
    info = {"raw": line}

    for key, pattern in INFO_PATTERNS.items():
        match = pattern.search(line)
        if match:
            value = match.group(1)
            if key == "pv":
                info[key] = value.strip()
            else:
                info[key] = int(value)

    return info


def find_bestmove(text: str, partial: bool = False) -> Optional[str]:
    """Return the bestmove token in text, if any"""
    pattern = PARTIAL_BESTMOVE_RE if partial else BESTMOVE_RE
    match = pattern.search(text)
    return match.group(1) if match else None


class LineBuffer:
    """
    Accumulates engine output and hands back complete lines

    The trailing segment without a newline is kept until the rest of the
    line arrives.
    """

    def __init__(self):
        self.pending = ""

    def feed(self, chunk: str) -> List[str]:
        """Append a chunk and return the lines it completed"""
        segments = (self.pending + chunk).split("\n")
        self.pending = segments.pop()
        return [segment.rstrip("\r") for segment in segments]


@dataclass
class Score:
    """Raw engine score, from the point of view of the side to move"""
    kind: str
    value: int

    def from_white(self, side_to_move: str) -> Evaluation:
        value = self.value if side_to_move == WHITE else -self.value
        return Evaluation(kind=self.kind, value=value)


class InfoSnapshot:
    """Latest score and principal variation seen in 'info' lines"""

    def __init__(self):
        self.score: Optional[Score] = None
        self.pv: Optional[str] = None

    def update(self, line: str) -> bool:
        """
        Fold one complete output line into the snapshot

        Returns:
            True if the line was an info line
        """
        if not line.startswith("info "):
            return False

        info = parse_info(line)
        if "score_mate" in info:
            self.score = Score("mate", info["score_mate"])
        elif "score_cp" in info:
            self.score = Score("cp", info["score_cp"])

        if info.get("pv"):
            self.pv = info["pv"]

        return True

    def evaluation(self, side_to_move: str) -> Optional[Evaluation]:
        if self.score is None:
            return None
        return self.score.from_white(side_to_move)

    def principal_variation(self) -> Optional[List[str]]:
        return self.pv.split() if self.pv else None


def side_from_turn(turn, fallback: str) -> str:
    """Accept 'w'/'b' from the caller, otherwise use the fallback side"""
    if turn in (WHITE, BLACK):
        return turn
    return fallback
