"""
Engine Core - In-memory game state for PowerToe matches.

The engine:
1. Builds randomized boards
2. Validates and applies moves
3. Resolves special cell and power effects
4. Detects wins and draws

It performs no I/O. Callers broadcast the results.
"""

from .state import Cell, CellType, Player, PowerType, MatchStatus, BOARD_SIZE, MAX_PLAYERS
from .action import ActionResult, CellEffect, ErrorCode, MoveResult
from .board import initialize_board, check_winner, is_full, WINNING_LINES
from .effect_resolver import EffectResolver, EffectContext
from .match import Match

__all__ = [
    "Cell",
    "CellType",
    "Player",
    "PowerType",
    "MatchStatus",
    "BOARD_SIZE",
    "MAX_PLAYERS",
    "ActionResult",
    "CellEffect",
    "ErrorCode",
    "MoveResult",
    "initialize_board",
    "check_winner",
    "is_full",
    "WINNING_LINES",
    "EffectResolver",
    "EffectContext",
    "Match",
]
