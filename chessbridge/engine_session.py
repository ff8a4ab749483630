"""
Engine Session
Runs one UCI engine subprocess from spawn to guaranteed termination
"""

import codecs
import logging
import subprocess
import threading
from pathlib import Path
from typing import Callable, List, Optional

from .errors import BridgeError, EngineLaunchError, EngineProtocolAnomaly, EngineTimeoutError
from .models import EngineResult
from .uci_interface import InfoSnapshot, LineBuffer, find_bestmove

logger = logging.getLogger(__name__)

READ_CHUNK = 4096
# Longest allowed search plus handshake slack; keeps Timer and Event waits in range
MAX_TIMEOUT_MS = 25 * 60 * 60 * 1000


class EngineSession:
    """
    One engine process serving exactly one search

    Every event source (stdout data, stdout EOF, write failure, spawn failure,
    timer) ends in _finish(), which only acts the first time it is called.
    """

    def __init__(self,
                 engine_path: str,
                 side_to_move: str,
                 timeout_ms: int,
                 popen: Callable = subprocess.Popen):
        """
        Initialize Engine Session

        Args:
            engine_path: Path to engine executable
            side_to_move: 'w' or 'b', used to normalize scores to White
            timeout_ms: Deadline for the whole session
            popen: Process factory (subprocess.Popen compatible)
        """
        self.engine_path = Path(engine_path)
        self.side_to_move = side_to_move
        self.timeout_ms = max(0, min(int(timeout_ms), MAX_TIMEOUT_MS))
        self._popen = popen

        self.process: Optional[subprocess.Popen] = None
        self.timer: Optional[threading.Timer] = None
        self.buffer = LineBuffer()
        self.snapshot = InfoSnapshot()

        self.result: Optional[EngineResult] = None
        self.error: Optional[BridgeError] = None
        self._lock = threading.Lock()
        self._settled = threading.Event()

    @property
    def settled(self) -> bool:
        return self._settled.is_set()

    def run(self, commands: List[str]) -> EngineResult:
        """Start the engine, send commands and block until the session settles"""
        try:
            self.start(commands)
            return self.wait()
        finally:
            if not self.settled:
                self._on_timeout()

    def start(self, commands: List[str]):
        """Arm the deadline, spawn the engine and write the command sequence"""
        self.timer = threading.Timer(self.timeout_ms / 1000.0, self._on_timeout)
        self.timer.daemon = True
        self.timer.start()

        try:
            self.process = self._popen(
                [str(self.engine_path)],
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                bufsize=0
            )
        except OSError as e:
            logger.error(f"Failed to start engine {self.engine_path}: {e}")
            self._finish(error=EngineLaunchError("Failed to start engine", detail=str(e)))
            return

        logger.info(f"Engine process started: {self.engine_path.name} PID {self.process.pid}")

        threading.Thread(target=self._read_stdout, daemon=True).start()
        threading.Thread(target=self._read_stderr, daemon=True).start()

        for command in commands:
            if not self.send_command(command):
                break

    def wait(self) -> EngineResult:
        """Block until the first terminal event; raise its error if it was one"""
        try:
            self._settled.wait(self.timeout_ms / 1000.0 + 1.0)
        finally:
            if not self.settled:
                self._on_timeout()

        if self.error is not None:
            raise self.error
        return self.result

    def send_command(self, command: str) -> bool:
        """Write one command line; False once the session can no longer write"""
        if self.settled or not self.process or not self.process.stdin:
            return False

        try:
            logger.debug(f">> {command}")
            self.process.stdin.write((command + "\n").encode("ascii", errors="replace"))
            self.process.stdin.flush()
            return True
        except (OSError, ValueError) as e:
            logger.warning(f"Error sending command '{command}': {e}")
            self._finish(error=EngineProtocolAnomaly(
                "Engine exited without a bestmove",
                detail=f"engine stopped accepting input: {e}"
            ))
            return False

    def feed(self, chunk: str):
        """Handle one chunk of decoded stdout"""
        if self.settled:
            return

        for line in self.buffer.feed(chunk):
            if line:
                logger.debug(f"<< {line}")
            self.snapshot.update(line)
            move = find_bestmove(line)
            if move:
                self._resolve(move)
                return

        move = find_bestmove(self.buffer.pending, partial=True)
        if move:
            self._resolve(move)

    def end_of_output(self):
        """Handle stdout EOF: the unterminated tail is now a complete line"""
        if self.settled:
            return

        tail = self.buffer.pending.rstrip("\r")
        self.snapshot.update(tail)
        move = find_bestmove(tail)
        if move:
            self._resolve(move)

    def _resolve(self, move: str):
        result = EngineResult(
            best_move=move,
            evaluation=self.snapshot.evaluation(self.side_to_move),
            principal_variation=self.snapshot.principal_variation()
        )
        self._finish(result=result)

    def _on_timeout(self):
        if not self.settled:
            logger.warning(f"Engine timeout after {self.timeout_ms}ms: {self.engine_path.name}")
        self._finish(error=EngineTimeoutError("Engine timeout"))

    def _on_exit(self, returncode: Optional[int]):
        if not self.settled:
            logger.warning(f"Engine exited with code {returncode} before bestmove")
        self._finish(error=EngineProtocolAnomaly(
            "Engine exited without a bestmove",
            detail=f"exit code {returncode}"
        ))

    def _finish(self, result: Optional[EngineResult] = None, error: Optional[BridgeError] = None):
        with self._lock:
            if self._settled.is_set():
                return
            self.result = result
            self.error = error
            self._settled.set()

        self._teardown()

    def _teardown(self):
        if self.timer is not None:
            self.timer.cancel()

        process = self.process
        if process is None:
            return

        try:
            if process.stdin:
                process.stdin.close()
        except OSError as e:
            logger.debug(f"Error closing engine stdin: {e}")

        if process.poll() is None:
            try:
                process.kill()
            except OSError as e:
                logger.debug(f"Error killing engine: {e}")

    def _read_stdout(self):
        """Reader thread: decode stdout chunks until EOF, then report the exit"""
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        stream = self.process.stdout

        try:
            while True:
                data = stream.read(READ_CHUNK)
                if not data:
                    break
                self.feed(decoder.decode(data))
            self.feed(decoder.decode(b"", final=True))
        except (OSError, ValueError) as e:
            logger.debug(f"Error reading engine output: {e}")
        finally:
            stream.close()

        self.end_of_output()
        self._on_exit(self.process.wait())

    def _read_stderr(self):
        stream = self.process.stderr
        try:
            for raw in iter(stream.readline, b""):
                text = raw.decode("utf-8", errors="replace").rstrip()
                if text:
                    logger.warning(f"[engine stderr] {text}")
        except (OSError, ValueError) as e:
            logger.debug(f"Error reading engine stderr: {e}")
        finally:
            stream.close()
