"""
PowerToe CLI - Command-line interface for the server.

Usage:
    powertoe serve [--host HOST] [--port PORT] [--seed SEED]   Run the API server
    powertoe board [--seed SEED]                               Print a random board
"""

import argparse
import logging
import random
import sys


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="PowerToe - Multiplayer tic-tac-toe with powers",
        prog="powertoe",
    )
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Bind port")
    serve_parser.add_argument("--seed", type=int, help="Seed for board randomization")

    # Board preview
    board_parser = subparsers.add_parser("board", help="Print a randomized board with its hidden cells")
    board_parser.add_argument("--seed", type=int, help="Seed for board randomization")

    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "board":
        cmd_board(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_serve(args):
    """Run the FastAPI app under uvicorn."""
    import uvicorn
    from .api.app import create_app

    app = create_app(seed=args.seed)
    uvicorn.run(app, host=args.host, port=args.port)


def cmd_board(args):
    """Print a board with every cell type shown."""
    from .engine_core.board import initialize_board

    board = initialize_board(random.Random(args.seed))
    for row in range(3):
        cells = board[row * 3:row * 3 + 3]
        print(" | ".join(f"{c.position}:{c.cell_type.value:<13}" for c in cells))


if __name__ == "__main__":
    main()
