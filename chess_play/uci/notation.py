"""
Move Notation Codec

Converts between the engine's plain coordinate move tokens and the
project's Move value type.

Token format:
    e2e4    origin square, destination square
    e7e8q   optional trailing promotion letter (q, r, b, n)

Files a-h map to 0-7, ranks 1-8 map to 0-7.

Reference:
    UCI move format: https://www.chessprogramming.org/UCI#Move_Format
"""

from dataclasses import dataclass
from typing import Optional

import chess


FILE_NAMES = "abcdefgh"
RANK_NAMES = "12345678"

_PIECE_TYPES = {
    "q": chess.QUEEN,
    "r": chess.ROOK,
    "b": chess.BISHOP,
    "n": chess.KNIGHT,
}


class MoveParseError(ValueError):
    """Raised when a move token is malformed."""

    def __init__(self, token: str, reason: str):
        self.token = token
        self.reason = reason
        super().__init__(f"Malformed move token {token!r}: {reason}")


@dataclass(frozen=True)
class Coordinate:
    """A board square as (file, rank), both in 0..7."""

    file: int
    rank: int

    def __post_init__(self):
        if not 0 <= self.file <= 7:
            raise ValueError(f"file must be in 0..7, got {self.file}")
        if not 0 <= self.rank <= 7:
            raise ValueError(f"rank must be in 0..7, got {self.rank}")

    @property
    def name(self) -> str:
        return FILE_NAMES[self.file] + RANK_NAMES[self.rank]

    @classmethod
    def from_square(cls, square: int) -> "Coordinate":
        """Build from a python-chess square index (0 = a1, 63 = h8)."""
        return cls(chess.square_file(square), chess.square_rank(square))

    def to_square(self) -> int:
        return chess.square(self.file, self.rank)


@dataclass(frozen=True)
class Move:
    """
    An origin/destination pair with an optional promotion piece.

    Attributes:
        origin: Square the piece moves from
        destination: Square the piece moves to
        promotion: Promotion letter (q, r, b, n) or None
    """

    origin: Coordinate
    destination: Coordinate
    promotion: Optional[str] = None

    def __post_init__(self):
        if self.promotion is not None and self.promotion not in _PIECE_TYPES:
            raise ValueError(f"Unknown promotion piece: {self.promotion!r}")

    def __str__(self) -> str:
        return encode_move(self)

    def to_chess(self) -> chess.Move:
        """Convert to a python-chess Move for the rules engine."""
        promotion = _PIECE_TYPES[self.promotion] if self.promotion else None
        return chess.Move(
            self.origin.to_square(), self.destination.to_square(), promotion=promotion
        )

    @classmethod
    def from_chess(cls, move: chess.Move) -> "Move":
        promotion = chess.piece_symbol(move.promotion) if move.promotion else None
        return cls(
            Coordinate.from_square(move.from_square),
            Coordinate.from_square(move.to_square),
            promotion,
        )


def _decode_coordinate(token: str, text: str) -> Coordinate:
    file_char, rank_char = text[0], text[1]
    if file_char not in FILE_NAMES:
        raise MoveParseError(token, f"file {file_char!r} out of range")
    if rank_char not in RANK_NAMES:
        raise MoveParseError(token, f"rank {rank_char!r} out of range")
    return Coordinate(FILE_NAMES.index(file_char), RANK_NAMES.index(rank_char))


def decode_move(token: str) -> Move:
    """
    Decode a coordinate move token.

    Args:
        token: Move token such as "e2e4" or "a7a8q"

    Returns:
        Decoded Move

    Raises:
        MoveParseError: If the length is not 4 or 5, a file/rank character is
            out of range, or the fifth character is not a promotion letter
    """
    if len(token) not in (4, 5):
        raise MoveParseError(token, f"expected 4 or 5 characters, got {len(token)}")

    origin = _decode_coordinate(token, token[0:2])
    destination = _decode_coordinate(token, token[2:4])

    promotion = None
    if len(token) == 5:
        promotion = token[4]
        if promotion not in _PIECE_TYPES:
            raise MoveParseError(token, f"unknown promotion piece {promotion!r}")

    return Move(origin, destination, promotion)


def encode_move(move: Move) -> str:
    """Encode a Move as a coordinate token (inverse of decode_move)."""
    return move.origin.name + move.destination.name + (move.promotion or "")
