"""
Streaming Response Accumulator

Consumes engine output in arbitrarily sized byte chunks, reassembles
complete lines, classifies each one, and keeps the latest evaluation and
principal variation until the terminal "bestmove" line arrives.

State machine:
    COLLECTING -> TERMINATED    bestmove with a decodable move
    COLLECTING -> ABORTED       bestmove (none), or an undecodable move

Each line is parsed on its own; score and pv updates are "last wins",
never merged across lines.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from chess_play.uci.errors import EngineSessionError, ErrorKind
from chess_play.uci.notation import Move, MoveParseError, decode_move
from chess_play.uci.parser import BestMoveLine, EvaluationReport, InfoLine, parse_line

logger = logging.getLogger(__name__)


class AccumulatorState(Enum):
    COLLECTING = "collecting"
    TERMINATED = "terminated"
    ABORTED = "aborted"


@dataclass(frozen=True)
class EngineDecision:
    """
    Result of one engine session.

    Attributes:
        move: Move chosen by the engine
        evaluation: Last reported evaluation, None if no scored info line
        pv: Last reported principal variation (may be empty)
        ponder: Expected reply reported with bestmove, if decodable
        depth: Last reported search depth, if any
    """

    move: Move
    evaluation: Optional[EvaluationReport] = None
    pv: Tuple[Move, ...] = ()
    ponder: Optional[Move] = None
    depth: Optional[int] = None


class ResponseAccumulator:
    """
    Incremental parser for a single search response.

    Attributes:
        state: Current state (COLLECTING, TERMINATED, ABORTED)
        evaluation: Latest evaluation seen so far
        principal_variation: Latest non-empty pv seen so far
        best_move: Resolved move once TERMINATED
        error_kind: Recorded failure once ABORTED
    """

    def __init__(self):
        self._buffer = bytearray()
        self.state = AccumulatorState.COLLECTING
        self.evaluation: Optional[EvaluationReport] = None
        self.principal_variation: Tuple[Move, ...] = ()
        self.depth: Optional[int] = None
        self.best_move: Optional[Move] = None
        self.ponder: Optional[Move] = None
        self.error_kind: Optional[ErrorKind] = None
        self.error_message = ""

    def is_done(self) -> bool:
        return self.state is not AccumulatorState.COLLECTING

    def feed(self, data: bytes):
        """
        Append a chunk of raw output and process every complete line in it.

        A trailing partial line stays buffered until a later chunk supplies
        its newline. Input received after the terminal line is discarded.
        """
        if self.is_done():
            return

        self._buffer.extend(data)

        while not self.is_done():
            newline_idx = self._buffer.find(b"\n")
            if newline_idx < 0:
                break

            raw = bytes(self._buffer[:newline_idx])
            del self._buffer[:newline_idx + 1]
            self._handle_line(raw.decode("utf-8", errors="replace"))

        if self.is_done():
            self._buffer.clear()

    def _handle_line(self, line: str):
        logger.debug(f"<<< {line.rstrip()}")
        event = parse_line(line)

        if isinstance(event, InfoLine):
            if event.score is not None:
                self.evaluation = event.score
            if event.pv:
                self.principal_variation = event.pv
            if event.depth is not None:
                self.depth = event.depth

        elif isinstance(event, BestMoveLine):
            self._handle_best_move(event)

    def _handle_best_move(self, event: BestMoveLine):
        if event.token is None:
            self._abort(ErrorKind.NO_LEGAL_MOVE, "Engine reports no legal move")
            return

        try:
            self.best_move = decode_move(event.token)
        except MoveParseError as e:
            self._abort(ErrorKind.UNPARSABLE_BEST_MOVE, f"Unparsable best move: {e}")
            return

        if event.ponder is not None:
            try:
                self.ponder = decode_move(event.ponder)
            except MoveParseError as e:
                logger.debug(f"Ignoring ponder move: {e}")

        self.state = AccumulatorState.TERMINATED
        logger.debug(f"Best move resolved: {self.best_move}")

    def _abort(self, kind: ErrorKind, message: str):
        logger.warning(message)
        self.state = AccumulatorState.ABORTED
        self.error_kind = kind
        self.error_message = message

    def decision(self) -> EngineDecision:
        """
        Final result of the response.

        Raises:
            EngineSessionError: If the response ended ABORTED
            RuntimeError: If the terminal line has not been seen yet
        """
        if self.state is AccumulatorState.ABORTED:
            raise EngineSessionError(self.error_kind, self.error_message)

        if self.state is AccumulatorState.COLLECTING:
            raise RuntimeError("Engine response is still being collected")

        return EngineDecision(
            move=self.best_move,
            evaluation=self.evaluation,
            pv=self.principal_variation,
            ponder=self.ponder,
            depth=self.depth,
        )
