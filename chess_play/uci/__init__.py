"""
UCI Engine Client

Drives an external engine that speaks the Universal Chess Interface over
its standard input and output.

Protocol Flow:
    GUI → "uci", "isready", "ucinewgame"
    GUI → "position fen <FEN>"
    GUI → "setoption name Skill Level value 20" (and other options)
    GUI → "go movetime 5000"
    Engine → "info depth 12 score cp 35 pv e2e4 e7e5"   (zero or more)
    Engine → "bestmove e2e4 ponder e7e5"

Reference:
    UCI Protocol: https://www.chessprogramming.org/UCI
"""

from chess_play.uci.notation import Coordinate, Move, MoveParseError, decode_move, encode_move
from chess_play.uci.parser import (
    Bound,
    EvaluationReport,
    InfoLine,
    BestMoveLine,
    IgnorableLine,
    parse_line,
)
from chess_play.uci.errors import ErrorKind, EngineSessionError
from chess_play.uci.accumulator import AccumulatorState, EngineDecision, ResponseAccumulator
from chess_play.uci.config import EngineConfig
from chess_play.uci.session import EngineSession, SessionState, find_engine

__all__ = [
    "Coordinate",
    "Move",
    "MoveParseError",
    "decode_move",
    "encode_move",
    "Bound",
    "EvaluationReport",
    "InfoLine",
    "BestMoveLine",
    "IgnorableLine",
    "parse_line",
    "ErrorKind",
    "EngineSessionError",
    "AccumulatorState",
    "EngineDecision",
    "ResponseAccumulator",
    "EngineConfig",
    "EngineSession",
    "SessionState",
    "find_engine",
]
