"""
Game Orchestrator

Owns the game state (a python-chess Board), accepts the human's moves,
and runs one EngineSession per engine turn.

Engine results arrive on a worker thread. They are queued as EngineEvent
objects and applied only when the interaction loop calls poll_events()
or wait_for_engine(), so game state is only touched from that loop.

Usage:
    game = GameOrchestrator(engine_path="/usr/local/bin/stockfish")
    game.play_move(decode_move("e2e4"))     # starts the engine turn
    while not game.wait_for_engine(timeout=0.1):
        redraw()
    print(game.status, game.engine_evaluation, game.pv_display())
"""

import logging
import queue
import time
from concurrent.futures import Future
from dataclasses import dataclass
from typing import List, Optional, Union

import chess

from chess_play.uci.accumulator import EngineDecision
from chess_play.uci.config import EngineConfig
from chess_play.uci.errors import EngineSessionError, ErrorKind
from chess_play.uci.notation import Move
from chess_play.uci.session import DEFAULT_ENGINE_PATH, EngineSession, find_engine

logger = logging.getLogger(__name__)


ENGINE_NAME = "Stockfish"


@dataclass(frozen=True)
class EngineEvent:
    """Completion of one engine session, delivered once."""

    session_id: int
    decision: Optional[EngineDecision] = None
    error: Optional[BaseException] = None


def _default_engine_path() -> str:
    try:
        return find_engine()
    except FileNotFoundError:
        logger.warning(f"Stockfish not found on PATH, using {DEFAULT_ENGINE_PATH}")
        return DEFAULT_ENGINE_PATH


def _color_name(color: chess.Color) -> str:
    return "White" if color == chess.WHITE else "Black"


class GameOrchestrator:
    """
    Human versus engine game.

    Attributes:
        board: Current game state
        human_color: Side played by the human (default White)
        engine_path: Engine executable used for every session
        config: Search policy passed to every session
        selected_square: Square chosen by the first click of a move, if any
        engine_evaluation: Display string of the last engine evaluation
        principal_variation: Last engine principal variation
        last_decision: Last applied EngineDecision
        last_error: Last engine failure, cleared by a successful engine move
    """

    def __init__(
        self,
        engine_path: Optional[str] = None,
        config: Optional[EngineConfig] = None,
        human_color: chess.Color = chess.WHITE,
    ):
        self.engine_path = engine_path or _default_engine_path()
        self.config = config or EngineConfig()
        self.human_color = human_color

        self.board = chess.Board()
        self.selected_square: Optional[int] = None
        self.engine_evaluation = ""
        self.principal_variation: List[Move] = []
        self.last_decision: Optional[EngineDecision] = None
        self.last_error: Optional[BaseException] = None

        self._status = f"{_color_name(chess.WHITE)}'s turn"
        self._session: Optional[EngineSession] = None
        self._session_id = 0
        self._events: "queue.Queue[EngineEvent]" = queue.Queue()

        if self.board.turn != self.human_color:
            self.request_engine_move()

    def current_fen(self) -> str:
        return self.board.fen()

    @property
    def is_engine_thinking(self) -> bool:
        return self._session is not None

    def is_game_over(self) -> bool:
        return self.board.is_game_over()

    @property
    def status(self) -> str:
        """Status line for the user, the game result once the game is over."""
        result = self.result_text()
        return result if result is not None else self._status

    def result_text(self) -> Optional[str]:
        outcome = self.board.outcome()
        if outcome is None:
            return None

        if outcome.termination == chess.Termination.CHECKMATE:
            return f"{_color_name(outcome.winner)} wins by checkmate!"
        if outcome.termination == chess.Termination.STALEMATE:
            return "Draw by stalemate"

        reason = outcome.termination.name.lower().replace("_", " ")
        if outcome.winner is None:
            return f"Draw ({reason})"
        return f"{_color_name(outcome.winner)} wins ({reason})"

    def pv_display(self, limit: int = 5) -> str:
        """First moves of the principal variation, space separated."""
        return " ".join(str(move) for move in self.principal_variation[:limit])

    # Human input

    def select_square(self, square: int) -> bool:
        """
        Handle a click on a square.

        The first click selects a square; the next click tries to move from
        the selected square to the clicked one. If that move is not legal the
        clicked square becomes the new selection.

        Args:
            square: python-chess square index (chess.E2, ...)

        Returns:
            True if a move was played
        """
        if not self._accepts_human_input():
            return False

        if self.selected_square is not None:
            if self.play_move(chess.Move(self.selected_square, square)):
                return True

        self.selected_square = square
        return False

    def play_move(self, move: Union[Move, chess.Move]) -> bool:
        """
        Play a human move and start the engine's reply.

        A pawn move to the last rank without a promotion piece is promoted to
        a queen.

        Returns:
            True if the move was legal and played
        """
        if not self._accepts_human_input():
            return False

        if isinstance(move, Move):
            move = move.to_chess()

        if move not in self.board.legal_moves and move.promotion is None:
            queen_move = chess.Move(move.from_square, move.to_square, promotion=chess.QUEEN)
            if queen_move in self.board.legal_moves:
                move = queen_move

        if move not in self.board.legal_moves:
            logger.debug(f"Rejected human move: {move.uci()}")
            return False

        self.board.push(move)
        self.selected_square = None
        logger.info(f"Human move: {move.uci()}")

        if not self.board.is_game_over():
            self.request_engine_move()
        return True

    def _accepts_human_input(self) -> bool:
        return (
            not self.board.is_game_over()
            and not self.is_engine_thinking
            and self.board.turn == self.human_color
        )

    # Engine turns

    def request_engine_move(self) -> Future:
        """
        Start an engine session for the current position.

        Returns:
            The session's Future

        Raises:
            RuntimeError: If a session is already running or the game is over
        """
        if self.is_engine_thinking:
            raise RuntimeError("An engine session is already running")
        if self.board.is_game_over():
            raise RuntimeError("The game is over")

        self._session_id += 1
        session_id = self._session_id
        self._session = EngineSession(self.engine_path, self.current_fen(), self.config)
        self._status = f"{ENGINE_NAME} is thinking..."

        future = self._session.start()
        future.add_done_callback(lambda f: self._on_session_done(session_id, f))
        return future

    def _on_session_done(self, session_id: int, future: Future):
        # Runs on the worker thread; only hands the result over
        if future.cancelled():
            return

        error = future.exception()
        if error is not None:
            self._events.put(EngineEvent(session_id, error=error))
        else:
            self._events.put(EngineEvent(session_id, decision=future.result()))

    def poll_events(self) -> int:
        """
        Apply engine results that have arrived, without blocking.

        Returns:
            Number of events handled
        """
        handled = 0
        while True:
            try:
                event = self._events.get_nowait()
            except queue.Empty:
                return handled
            self._handle_event(event)
            handled += 1

    def wait_for_engine(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the running engine session has been applied.

        Returns:
            True if no session is running anymore, False on timeout
        """
        deadline = None if timeout is None else time.monotonic() + timeout

        while self.is_engine_thinking:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            try:
                event = self._events.get(timeout=remaining)
            except queue.Empty:
                return False
            self._handle_event(event)

        return True

    def _handle_event(self, event: EngineEvent):
        if event.session_id != self._session_id:
            logger.debug(f"Discarding result of superseded session {event.session_id}")
            return

        self._session = None

        if event.error is not None:
            self._handle_engine_error(event.error)
        else:
            self._apply_engine_decision(event.decision)

    def _apply_engine_decision(self, decision: EngineDecision):
        move = decision.move.to_chess()

        if move not in self.board.legal_moves:
            self._handle_engine_error(
                EngineSessionError(
                    ErrorKind.ENGINE_PROPOSED_ILLEGAL_MOVE,
                    f"Engine proposed illegal move {decision.move}",
                )
            )
            return

        self.board.push(move)
        self.last_decision = decision
        self.last_error = None
        self.engine_evaluation = decision.evaluation.describe() if decision.evaluation else ""
        self.principal_variation = list(decision.pv)
        self._status = f"{_color_name(self.board.turn)}'s turn"

    def _handle_engine_error(self, error: BaseException):
        self.last_error = error

        if isinstance(error, EngineSessionError) and error.kind is ErrorKind.NO_LEGAL_MOVE:
            logger.info("Engine reports no legal move")
            self._status = self.result_text() or f"{ENGINE_NAME} has no legal move"
            return

        logger.error(f"Engine move declined: {error}")
        self._status = f"Engine error: {error}"

    # Game control

    def close(self):
        """Cancel the running engine session, if any."""
        if self._session is not None:
            self._session.cancel()
            self._session = None
        # Invalidate events of sessions that already finished
        self._session_id += 1

    def new_game(self):
        """Abandon any running engine session and reset the board."""
        self.close()

        self.board = chess.Board()
        self.selected_square = None
        self.engine_evaluation = ""
        self.principal_variation = []
        self.last_decision = None
        self.last_error = None
        self._status = f"New game - {_color_name(chess.WHITE)}'s turn"
        logger.info("New game")

        if self.board.turn != self.human_color:
            self.request_engine_move()
