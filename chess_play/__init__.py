"""
Chess Play

Play chess against an external UCI engine such as Stockfish.

## Architecture

1. **uci**: Engine protocol client
   - Move notation codec (coordinate tokens such as e2e4, e7e8q)
   - Line parser for info / bestmove output
   - Streaming accumulator that rebuilds lines from raw output chunks
   - Engine session: process lifecycle, startup commands, read loop

2. **game**: Game orchestration
   - python-chess board as the rules engine
   - Human move entry and one engine session per engine turn
   - Engine results delivered as queued events

## Quick Start

```python
from chess_play.game import GameOrchestrator
from chess_play.uci import decode_move

game = GameOrchestrator(engine_path="/usr/local/bin/stockfish")
game.play_move(decode_move("e2e4"))
game.wait_for_engine()
print(game.status, game.engine_evaluation, game.pv_display())
```

### From the command line

```bash
python tools/play.py --engine /usr/local/bin/stockfish
```
"""

__version__ = "0.1.0"
__license__ = "MIT"

from chess_play.game import GameOrchestrator
from chess_play.uci import EngineConfig, EngineSession

__all__ = [
    'GameOrchestrator',
    'EngineConfig',
    'EngineSession',
]
