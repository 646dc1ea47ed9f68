"""
Game orchestration: board state, human input, and engine turns.
"""

from chess_play.game.orchestrator import EngineEvent, GameOrchestrator

__all__ = ["EngineEvent", "GameOrchestrator"]
