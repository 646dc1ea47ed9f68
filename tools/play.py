#!/usr/bin/env python3
"""
Play a game against a UCI engine in the terminal.

Usage:
    python tools/play.py
    python tools/play.py --engine /usr/local/bin/stockfish --movetime 2000
    python tools/play.py --color black --skill-level 5 --verbose

Enter moves in coordinate notation (e2e4, e7e8q). Other commands:
    new     start a new game
    retry   ask the engine again after an engine error
    quit    exit
"""

import argparse
import logging
import sys
from pathlib import Path

import chess

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from chess_play.game import GameOrchestrator
from chess_play.uci import EngineConfig, MoveParseError, decode_move


def setup_logging(verbose: bool = False):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def print_position(game: GameOrchestrator):
    """Print the board, status and the engine's analysis."""
    print()
    print(game.board)
    print()
    print(game.status)
    if game.engine_evaluation:
        print(game.engine_evaluation)
    if game.principal_variation:
        print(f"Principal Variation: {game.pv_display()}")


def wait_for_engine(game: GameOrchestrator):
    """Wait for the engine move while showing progress."""
    print(game.status, end="", flush=True)
    while not game.wait_for_engine(timeout=0.5):
        print(".", end="", flush=True)
    print()


def play(game: GameOrchestrator):
    """Main interaction loop."""
    while True:
        if game.is_engine_thinking:
            wait_for_engine(game)
            continue

        print_position(game)

        try:
            command = input("> ").strip()
        except EOFError:
            return

        if not command:
            continue

        if command == "quit":
            return

        if command == "new":
            game.new_game()
            continue

        if command == "retry":
            if game.is_game_over() or game.board.turn == game.human_color:
                print("Nothing to retry")
            else:
                game.request_engine_move()
            continue

        if game.is_game_over():
            print("The game is over. Type 'new' or 'quit'.")
            continue

        if game.board.turn != game.human_color:
            print("It is the engine's turn. Type 'retry', 'new' or 'quit'.")
            continue

        try:
            move = decode_move(command)
        except MoveParseError as e:
            print(f"Error: {e}")
            continue

        if not game.play_move(move):
            print(f"Illegal move: {command}")


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Play chess against a UCI engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument(
        "--engine",
        type=str,
        default=None,
        help="Path to UCI engine binary (default: auto-detect Stockfish)",
    )
    parser.add_argument(
        "--color",
        choices=["white", "black"],
        default="white",
        help="Side you play (default: white)",
    )
    parser.add_argument(
        "--movetime",
        type=int,
        default=5000,
        help="Engine search time per move in ms (default: 5000)",
    )
    parser.add_argument(
        "--skill-level",
        type=int,
        default=20,
        help="Engine skill level 0-20 (default: 20)",
    )
    parser.add_argument(
        "--contempt",
        type=int,
        default=100,
        help="Engine contempt (default: 100)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging (shows engine traffic)",
    )

    args = parser.parse_args()
    setup_logging(args.verbose)

    try:
        config = EngineConfig(
            skill_level=args.skill_level,
            contempt=args.contempt,
            movetime_ms=args.movetime,
        )
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    human_color = chess.WHITE if args.color == "white" else chess.BLACK
    game = GameOrchestrator(engine_path=args.engine, config=config, human_color=human_color)

    try:
        play(game)
    except KeyboardInterrupt:
        print("\nInterrupted")
    finally:
        game.close()


if __name__ == "__main__":
    main()
