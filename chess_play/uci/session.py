"""
Engine Session

Runs one search of an external UCI engine: spawns the engine process,
sends the startup command sequence, and reads its output until the
"bestmove" line.

Lifecycle:
    NOT_STARTED -> RUNNING -> COMPLETED | FAILED | CANCELLED

Threading:
    - run(): executes the whole session on the calling thread
    - start(): executes run() on a daemon worker thread and returns a
      Future settled exactly once with the EngineDecision or the
      EngineSessionError
    - cancel(): kills the engine from any thread; a cancelled session
      never delivers a decision
    - A supervisory timer kills an engine that stays silent past
      movetime + grace, reported as ENGINE_TIMEOUT

The process handle and both pipes are owned by the session; nothing else
reads or writes them.
"""

import logging
import shutil
import subprocess
import threading
from concurrent.futures import CancelledError, Future
from enum import Enum
from typing import List, Optional

from chess_play.uci.accumulator import EngineDecision, ResponseAccumulator
from chess_play.uci.config import EngineConfig
from chess_play.uci.errors import EngineSessionError, ErrorKind

logger = logging.getLogger(__name__)


DEFAULT_ENGINE_PATH = "/usr/local/bin/stockfish"


def find_engine() -> str:
    """
    Auto-detect a Stockfish binary.

    The orchestrator calls this when no engine path is configured and falls
    back to DEFAULT_ENGINE_PATH if nothing is found, so a missing engine
    surfaces as a SPAWN_FAILURE on the first engine turn.

    Returns:
        Path to the engine binary

    Raises:
        FileNotFoundError: If Stockfish is not installed
    """
    candidates = [
        "stockfish",
        DEFAULT_ENGINE_PATH,
        "/usr/bin/stockfish",
        "/usr/games/stockfish",
        "/opt/homebrew/bin/stockfish",
    ]

    for candidate in candidates:
        path = shutil.which(candidate)
        if path:
            return path

    raise FileNotFoundError(
        "Stockfish not found. Install with: brew install stockfish (macOS) "
        "or apt install stockfish (Linux)"
    )


class SessionState(Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class EngineSession:
    """
    A single engine search for one position.

    Each session spawns a fresh engine process and sends "ucinewgame", so
    no state is carried over between sessions.

    Attributes:
        engine_path: Path to the UCI engine executable
        fen: Position to search
        config: Search policy and I/O settings
        state: Current lifecycle state
        future: Settled with the result when started via start()
    """

    def __init__(self, engine_path: str, fen: str, config: Optional[EngineConfig] = None):
        self.engine_path = str(engine_path)
        self.fen = fen
        self.config = config or EngineConfig()
        self.state = SessionState.NOT_STARTED
        self.future: Future = Future()

        self._process: Optional[subprocess.Popen] = None
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._cancelled = threading.Event()
        self._timed_out = threading.Event()

    def start(self) -> Future:
        """
        Run the session on a worker thread.

        Returns:
            Future resolving to an EngineDecision or raising EngineSessionError
        """
        self._claim()
        self._thread = threading.Thread(
            target=self._run_and_settle, name="engine-session", daemon=True
        )
        self._thread.start()
        return self.future

    def run(self) -> EngineDecision:
        """
        Run the session on the calling thread.

        Returns:
            The engine's decision

        Raises:
            EngineSessionError: If the session fails
            CancelledError: If cancel() was called while running
        """
        self._claim()
        return self._execute()

    def cancel(self) -> bool:
        """
        Abandon the session and kill the engine process.

        Returns:
            True if the session was pending or running, False if it had
            already finished
        """
        with self._lock:
            if self.state not in (SessionState.NOT_STARTED, SessionState.RUNNING):
                return False
            self.state = SessionState.CANCELLED
            self._cancelled.set()
            self.future.cancel()

        logger.info("Engine session cancelled")
        self._kill()
        return True

    def join(self, timeout: Optional[float] = None):
        """Wait for the worker thread started by start()."""
        if self._thread is not None:
            self._thread.join(timeout)

    def _claim(self):
        with self._lock:
            if self.state is not SessionState.NOT_STARTED:
                raise RuntimeError(
                    f"Engine session cannot be started in state {self.state.value}"
                )
            self.state = SessionState.RUNNING

    def _finish(self, state: SessionState):
        with self._lock:
            if self.state is SessionState.RUNNING:
                self.state = state

    def _run_and_settle(self):
        try:
            decision = self._execute()
        except CancelledError:
            return
        except EngineSessionError as e:
            self._settle(exception=e)
        except Exception as e:
            logger.error(f"Engine session crashed: {e}", exc_info=True)
            self._settle(exception=e)
        else:
            self._settle(result=decision)

    def _settle(self, result: Optional[EngineDecision] = None, exception: Optional[BaseException] = None):
        with self._lock:
            if self.future.done():
                return
            if exception is not None:
                self.future.set_exception(exception)
            else:
                self.future.set_result(result)

    def _execute(self) -> EngineDecision:
        try:
            self._spawn()

            timer = threading.Timer(self.config.timeout_seconds, self._on_timeout)
            timer.daemon = True
            timer.start()
            try:
                self._send_commands(self.config.startup_commands(self.fen))
                decision = self._read_decision()
            finally:
                timer.cancel()
                self._shutdown()

        except EngineSessionError as e:
            logger.error(f"Engine session failed ({e.kind.value}): {e}")
            self._finish(SessionState.FAILED)
            raise
        except Exception:
            self._finish(SessionState.FAILED)
            raise

        self._finish(SessionState.COMPLETED)

        evaluation = decision.evaluation.describe() if decision.evaluation else "no evaluation"
        logger.info(f"Engine move: {decision.move} ({evaluation})")
        return decision

    def _spawn(self):
        logger.info(f"Starting engine: {self.engine_path}")
        logger.debug(f"Search position: {self.fen}")

        try:
            process = subprocess.Popen(
                [self.engine_path],
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            raise EngineSessionError(
                ErrorKind.SPAWN_FAILURE,
                f"Failed to start engine {self.engine_path}: {e}",
                cause=e,
            ) from e

        with self._lock:
            self._process = process
            cancelled = self._cancelled.is_set()

        if cancelled:
            self._kill()
            self._shutdown()
            raise CancelledError()

    def _send_commands(self, commands: List[str]):
        """Write all commands and flush before any output is read."""
        stdin = self._process.stdin
        try:
            for cmd in commands:
                logger.debug(f">>> {cmd}")
                stdin.write(f"{cmd}\n".encode("ascii"))
            stdin.flush()
        except OSError as e:
            self._raise_for_closed_stream(cause=e)

    def _read_decision(self) -> EngineDecision:
        accumulator = ResponseAccumulator()
        stdout = self._process.stdout

        while not accumulator.is_done():
            try:
                chunk = stdout.read1(self.config.read_chunk_size)
            except (OSError, ValueError) as e:
                self._raise_for_closed_stream(cause=e)

            if not chunk:
                self._raise_for_closed_stream()

            accumulator.feed(chunk)

        return accumulator.decision()

    def _raise_for_closed_stream(self, cause: Optional[BaseException] = None):
        if self._cancelled.is_set():
            raise CancelledError()

        if self._timed_out.is_set():
            raise EngineSessionError(
                ErrorKind.ENGINE_TIMEOUT,
                f"Engine did not answer within {self.config.timeout_seconds:.1f}s",
                cause=cause,
            )

        raise EngineSessionError(
            ErrorKind.STREAM_CLOSED_PREMATURELY,
            "Engine closed its output before sending bestmove",
            cause=cause,
        )

    def _on_timeout(self):
        logger.warning(
            f"Engine exceeded {self.config.timeout_seconds:.1f}s, killing it"
        )
        self._timed_out.set()
        self._kill()

    def _kill(self):
        with self._lock:
            process = self._process

        if process is None or process.poll() is not None:
            return

        try:
            process.kill()
        except OSError as e:
            logger.debug(f"Kill failed: {e}")

    def _shutdown(self):
        """Ask the engine to quit, close the pipes, and reap the process."""
        process = self._process

        if process.poll() is None and not self._cancelled.is_set():
            try:
                logger.debug(">>> quit")
                process.stdin.write(b"quit\n")
                process.stdin.flush()
            except OSError as e:
                logger.debug(f"Could not send quit: {e}")

        for stream in (process.stdin, process.stdout):
            try:
                stream.close()
            except OSError as e:
                logger.debug(f"Error closing engine pipe: {e}")

        try:
            process.wait(timeout=self.config.quit_timeout)
        except subprocess.TimeoutExpired:
            logger.warning("Engine did not exit after quit, killing it")
            process.kill()
            process.wait()

        logger.debug(f"Engine exited with code {process.returncode}")
