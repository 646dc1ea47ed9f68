"""
UCI Line Classifier & Parser

Classifies one complete line of engine output and extracts typed fields.

Line kinds:
    info ...        InfoLine (optional score, optional pv, optional depth)
    bestmove ...    BestMoveLine (move token, optional ponder token)
    anything else   IgnorableLine (id, option, uciok, readyok, blank lines)

Malformed diagnostic content is dropped field by field rather than
rejected, since engines commonly emit extra or partial info output.

Examples:
    info depth 12 score cp 35 nodes 48211 pv e2e4 e7e5 g1f3
    info depth 20 score mate -3 pv h7h8q
    info depth 9 score cp -120 upperbound pv d2d4
    bestmove e2e4 ponder e7e5
    bestmove (none)
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple, Union

from chess_play.uci.notation import Move, MoveParseError, decode_move

logger = logging.getLogger(__name__)


# Mate scores are reported as this many centipawns, signed by the mating side
MATE_SCORE = 10000

# Tokens engines use after "bestmove" when there is no legal move
NO_MOVE_TOKENS = ("(none)", "0000")


class Bound(Enum):
    """
    Bound qualifier of a reported score.

        - EXACT: The score was fully searched
        - LOWER: Fail-high, the true score is at least this ("lowerbound")
        - UPPER: Fail-low, the true score is at most this ("upperbound")
    """
    EXACT = "exact"
    LOWER = "lowerbound"
    UPPER = "upperbound"


@dataclass(frozen=True)
class EvaluationReport:
    """
    Evaluation from the engine's point of view (side to move).

    Attributes:
        centipawns: Signed score; mate scores are mapped to +/-MATE_SCORE
        bound: Whether the score is exact or a lower/upper bound
        mate_in: Moves to mate for "score mate N" lines, else None
    """

    centipawns: int
    bound: Bound = Bound.EXACT
    mate_in: Optional[int] = None

    @property
    def is_mate(self) -> bool:
        return self.mate_in is not None

    def describe(self) -> str:
        """Human readable form, e.g. "Evaluation: ≥35"."""
        prefix = {Bound.EXACT: "", Bound.LOWER: "≥", Bound.UPPER: "≤"}[self.bound]
        if self.is_mate:
            return f"Evaluation: {prefix}mate {self.mate_in}"
        return f"Evaluation: {prefix}{self.centipawns}"


@dataclass(frozen=True)
class InfoLine:
    score: Optional[EvaluationReport] = None
    pv: Optional[Tuple[Move, ...]] = None
    depth: Optional[int] = None


@dataclass(frozen=True)
class BestMoveLine:
    """
    Terminal line of a search.

    token is None when the engine reports that there is no legal move.
    """

    token: Optional[str]
    ponder: Optional[str] = None


@dataclass(frozen=True)
class IgnorableLine:
    text: str = ""


LineEvent = Union[InfoLine, BestMoveLine, IgnorableLine]


def _parse_int(text: str) -> Optional[int]:
    try:
        return int(text)
    except ValueError:
        return None


def _parse_score(tokens: List[str]) -> Optional[EvaluationReport]:
    """Extract "score cp|mate <N> [lowerbound|upperbound]" from info tokens."""
    if "score" not in tokens:
        return None

    score_idx = tokens.index("score")
    if score_idx + 2 >= len(tokens):
        return None

    score_type = tokens[score_idx + 1]
    value = _parse_int(tokens[score_idx + 2])
    if value is None:
        logger.debug(f"Ignoring non-numeric score: {tokens[score_idx + 2]!r}")
        return None

    # Bound qualifiers follow the score value
    trailing = tokens[score_idx + 3:]
    if "lowerbound" in trailing:
        bound = Bound.LOWER
    elif "upperbound" in trailing:
        bound = Bound.UPPER
    else:
        bound = Bound.EXACT

    if score_type == "cp":
        return EvaluationReport(centipawns=value, bound=bound)
    elif score_type == "mate":
        centipawns = MATE_SCORE if value > 0 else -MATE_SCORE
        return EvaluationReport(centipawns=centipawns, bound=bound, mate_in=value)

    logger.debug(f"Ignoring unknown score type: {score_type!r}")
    return None


def _parse_pv(tokens: List[str]) -> Optional[Tuple[Move, ...]]:
    """Decode every token after "pv", dropping tokens that fail to decode."""
    if "pv" not in tokens:
        return None

    moves = []
    for token in tokens[tokens.index("pv") + 1:]:
        try:
            moves.append(decode_move(token))
        except MoveParseError as e:
            logger.debug(f"Dropping pv token: {e}")
    return tuple(moves)


def _parse_depth(tokens: List[str]) -> Optional[int]:
    if "depth" not in tokens:
        return None
    depth_idx = tokens.index("depth") + 1
    if depth_idx >= len(tokens):
        return None
    return _parse_int(tokens[depth_idx])


def parse_line(line: str) -> LineEvent:
    """
    Classify one complete protocol line.

    Args:
        line: A single line of engine output, without or with its newline

    Returns:
        InfoLine, BestMoveLine or IgnorableLine
    """
    tokens = line.split()
    if not tokens:
        return IgnorableLine(line)

    if tokens[0] == "info":
        # "string" consumes the rest of the line as free text
        if "string" in tokens:
            tokens = tokens[:tokens.index("string")]
        return InfoLine(
            score=_parse_score(tokens),
            pv=_parse_pv(tokens),
            depth=_parse_depth(tokens),
        )

    if tokens[0] == "bestmove":
        # A bare "bestmove" keeps an empty token so it fails decoding downstream
        token = tokens[1] if len(tokens) > 1 else ""
        if token in NO_MOVE_TOKENS:
            token = None

        ponder = None
        if "ponder" in tokens[2:]:
            ponder_idx = tokens.index("ponder", 2) + 1
            if ponder_idx < len(tokens):
                ponder = tokens[ponder_idx]

        return BestMoveLine(token=token, ponder=ponder)

    return IgnorableLine(line)
