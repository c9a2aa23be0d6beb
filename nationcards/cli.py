"""
Nation Cards CLI - Command-line interface for the engine.

Usage:
    nationcards simulate [--games N] [--players N]   Play bot-only games
    nationcards serve [--host H] [--port P]           Run the HTTP API
    nationcards validate-weights <weights_file>       Check a weights document
"""

from collections import Counter
import argparse
import logging
import os
import sys


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Nation Cards - Card Game Engine with MCTS Bots",
        prog="nationcards",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("NATIONCARDS_LOG_LEVEL", "INFO"),
        help="Logging level (default: $NATIONCARDS_LOG_LEVEL or INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Simulate command
    simulate_parser = subparsers.add_parser("simulate", help="Play bot-only games")
    simulate_parser.add_argument("--games", type=int, default=1, help="Number of games")
    simulate_parser.add_argument("--players", type=int, default=4, help="Bots per game")
    simulate_parser.add_argument("--iterations", type=int, default=None,
                                 help="MCTS iterations per decision (default: profile budget)")
    simulate_parser.add_argument("--difficulty", choices=["easy", "normal", "hard"],
                                 default="normal", help="Bot profile")
    simulate_parser.add_argument("--seed", type=int, default=None, help="Seed of the first game")
    simulate_parser.add_argument("--weights", help="Value-network weights file")
    simulate_parser.add_argument("--export", "-o", help="Write training records to this JSON file")
    simulate_parser.add_argument("--max-turns", type=int, default=100, help="Turn limit per game")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes")

    # Validate-weights command
    validate_parser = subparsers.add_parser("validate-weights", help="Check a weights document")
    validate_parser.add_argument("weights_file", help="Path to weights JSON file")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "simulate":
        cmd_simulate(args)
    elif args.command == "serve":
        cmd_serve(args)
    elif args.command == "validate-weights":
        cmd_validate_weights(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_simulate(args):
    """Play bot-only games and report the winners."""
    from .bots import ValueEvaluator, export_training_records
    from .engine_core.state import GameSettings
    from .session import simulate_game, default_bot_seats

    if args.players < 2:
        print("Error: a game needs at least 2 players")
        sys.exit(1)

    evaluator = None
    if args.weights:
        evaluator = ValueEvaluator()
        if not evaluator.load_weights_file(args.weights):
            print(f"Error: {evaluator.last_error}")
            sys.exit(1)

    settings = GameSettings(
        max_players=args.players,
        bot_count=args.players,
        bot_difficulty=args.difficulty,
        max_turns=args.max_turns,
    )

    winners = Counter()
    records = []
    for i in range(args.games):
        seed = args.seed + i if args.seed is not None else None
        result = simulate_game(
            seats=default_bot_seats(args.players, args.difficulty),
            settings=settings,
            seed=seed,
            iterations=args.iterations,
            evaluator=evaluator,
        )
        winner = result.final_state.get_player(result.winner_id) if result.winner_id else None
        label = f"{winner.name} ({winner.nation.value})" if winner else "none"
        winners[label] += 1
        records.extend(result.records)
        print(f"Game {i + 1}: winner {label} on turn {result.final_state.turn}, "
              f"{result.steps} actions, {result.forced_actions} forced")

    print("\nWins:")
    for label, count in winners.most_common():
        print(f"  {label}: {count}")

    if args.export:
        written = export_training_records(records, args.export)
        print(f"\nWrote {written} training records to {args.export}")


def cmd_serve(args):
    """Run the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "nationcards.api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level.lower(),
    )


def cmd_validate_weights(args):
    """Validate a weights document."""
    from .bots import ValueEvaluator

    print(f"Validating: {args.weights_file}")
    evaluator = ValueEvaluator()
    if not evaluator.load_weights_file(args.weights_file):
        print(f"Invalid: {evaluator.last_error}")
        sys.exit(1)
    print(f"Valid: hidden size {evaluator.weights.hidden_size}")


if __name__ == "__main__":
    main()
