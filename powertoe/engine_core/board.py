"""
Board - Creation and inspection of the 3x3 grid.

The random source is always passed in so that boards can be
reproduced from a seed in tests.
"""

from __future__ import annotations
import logging
import random

from .state import Cell, CellType, BOARD_SIZE, SPECIAL_CELL_TYPES

logger = logging.getLogger(__name__)

MIN_SPECIAL_CELLS = 3
MAX_SPECIAL_CELLS = 5

# Rows, then columns, then diagonals
WINNING_LINES: tuple[tuple[int, int, int], ...] = (
    (0, 1, 2), (3, 4, 5), (6, 7, 8),
    (0, 3, 6), (1, 4, 7), (2, 5, 8),
    (0, 4, 8), (2, 4, 6),
)


def initialize_board(rng: random.Random, special_cells_enabled: bool = True) -> list[Cell]:
    """
    Build a fresh board.

    All cells start NORMAL. With special cells enabled, 3 to 5 distinct
    positions are picked and each gets a special type drawn with
    replacement. Special cells start hidden.
    """
    cells = [Cell(position=i) for i in range(BOARD_SIZE)]
    if not special_cells_enabled:
        return cells

    target = rng.randint(MIN_SPECIAL_CELLS, MAX_SPECIAL_CELLS)
    positions = rng.sample(range(BOARD_SIZE), target)
    for position in positions:
        cell = cells[position]
        cell.cell_type = rng.choice(SPECIAL_CELL_TYPES)
        cell.revealed = False
        logger.debug("Special cell at %d: %s", position, cell.cell_type.value)

    logger.info("Board initialized with %d special cells: %s", len(positions), sorted(positions))
    return cells


def check_winner(board: list[Cell]) -> str | None:
    """Return the mark of the first uniformly marked line, or None."""
    for a, b, c in WINNING_LINES:
        first = board[a].mark
        if first and first == board[b].mark and first == board[c].mark:
            return first
    return None


def is_full(board: list[Cell]) -> bool:
    return all(cell.is_occupied for cell in board)


def is_valid_position(position: int) -> bool:
    return 0 <= position < BOARD_SIZE


def tick_blocked_cells(board: list[Cell]):
    """Advance every block counter by one turn."""
    for cell in board:
        cell.tick_block()


def special_positions(board: list[Cell]) -> list[int]:
    return [cell.position for cell in board if cell.cell_type != CellType.NORMAL]
