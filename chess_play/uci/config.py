"""
Engine session configuration.
"""

from dataclasses import dataclass
from typing import List


@dataclass
class EngineConfig:
    """Search policy and I/O settings for an engine session.

    The defaults ask the engine for full strength play with a fixed
    five second search per move.
    """

    # Search policy
    skill_level: int = 20
    """Stockfish "Skill Level" option (0-20)"""

    contempt: int = 100
    """Stockfish "Contempt" option"""

    limit_strength: bool = False
    """Value sent for UCI_LimitStrength"""

    movetime_ms: int = 5000
    """Search time per move in milliseconds ("go movetime")"""

    # Supervision
    timeout_grace_ms: int = 3000
    """Extra time beyond movetime before a silent engine is killed"""

    quit_timeout: float = 1.0
    """Seconds to wait for the engine to exit after "quit" """

    # I/O
    read_chunk_size: int = 1024
    """Maximum bytes read from engine stdout per read call"""

    def __post_init__(self):
        """Validate configuration after initialization."""
        if not 0 <= self.skill_level <= 20:
            raise ValueError(f"skill_level must be in 0..20, got {self.skill_level}")

        if self.movetime_ms <= 0:
            raise ValueError(f"movetime_ms must be positive, got {self.movetime_ms}")

        if self.timeout_grace_ms < 0:
            raise ValueError(
                f"timeout_grace_ms must not be negative, got {self.timeout_grace_ms}"
            )

        if self.read_chunk_size <= 0:
            raise ValueError(
                f"read_chunk_size must be positive, got {self.read_chunk_size}"
            )

    @property
    def timeout_seconds(self) -> float:
        """Supervisory deadline for one search."""
        return (self.movetime_ms + self.timeout_grace_ms) / 1000.0

    def startup_commands(self, fen: str) -> List[str]:
        """
        Command sequence sent to the engine at the start of a session.

        Args:
            fen: Position to search, in FEN

        Returns:
            UCI commands, without newlines
        """
        return [
            "uci",
            "isready",
            "ucinewgame",
            f"position fen {fen}",
            f"setoption name Skill Level value {self.skill_level}",
            f"setoption name Contempt value {self.contempt}",
            f"setoption name UCI_LimitStrength value {str(self.limit_strength).lower()}",
            f"go movetime {self.movetime_ms}",
        ]
