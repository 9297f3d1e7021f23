"""
Match - The per-match state machine.

WAITING -> ACTIVE -> FINISHED. PAUSED exists but nothing moves into it.

A Match is the single point of mutation for its board and roster:
- add_player / remove_player manage the roster
- make_move validates, marks, resolves the cell effect, detects
  win or draw, and advances the turn
- use_power consumes a held power and applies it

A Match is not thread-safe. The registry serializes access per match.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from copy import deepcopy
import logging
import random
import time

from .state import Cell, Player, PowerType, MatchStatus, MAX_PLAYERS
from .action import ActionResult, CellEffect, ErrorCode, MoveResult
from .board import (
    check_winner,
    initialize_board,
    is_full,
    is_valid_position,
    tick_blocked_cells,
)
from .effect_resolver import EffectContext, EffectResolver

logger = logging.getLogger(__name__)


@dataclass
class Match:
    """
    One playthrough: a board, up to four players and the turn pointer.

    The board is randomized from `rng` unless one is given.
    """
    match_id: str
    rng: random.Random = field(default_factory=random.Random, repr=False, compare=False)
    players: list[Player] = field(default_factory=list)
    board: list[Cell] | None = None
    current_player_index: int = 0
    status: MatchStatus = MatchStatus.WAITING
    winner_symbol: str | None = None
    created_at: float = field(default_factory=time.time)
    updated_at: float = field(default_factory=time.time)
    turn_count: int = 0
    special_cells_enabled: bool = True
    event_log: list[str] = field(default_factory=list)

    def __post_init__(self):
        if self.board is None:
            self.board = initialize_board(self.rng, self.special_cells_enabled)

    # =========================================================================
    # Roster
    # =========================================================================

    @property
    def current_player(self) -> Player | None:
        if not self.players:
            return None
        return self.players[self.current_player_index]

    @property
    def is_roster_full(self) -> bool:
        return len(self.players) >= MAX_PLAYERS

    def get_player(self, player_id: str) -> Player | None:
        for player in self.players:
            if player.player_id == player_id:
                return player
        return None

    def add_player(self, player: Player) -> bool:
        """Seat a player. False if the match is full or finished."""
        if self.is_roster_full or self.status == MatchStatus.FINISHED:
            return False

        self.players.append(player)
        self._log(f"{player.display_name} joined the match (player {len(self.players)}/{MAX_PLAYERS})")

        if len(self.players) == 2 and self.status == MatchStatus.WAITING:
            self.status = MatchStatus.ACTIVE
            self.players[0].is_active = True
            self._log(f"{self.players[0].display_name} starts the match")
        self._touch()
        return True

    def remove_player(self, player_id: str) -> bool:
        """
        Drop a player from the roster. False if they were not seated.

        The turn pointer keeps pointing at the same player when someone
        before it leaves; when the current player leaves, the next one in
        seat order takes the turn. An empty roster finishes the match.
        """
        index = next(
            (i for i, p in enumerate(self.players) if p.player_id == player_id),
            None,
        )
        if index is None:
            return False

        removed = self.players.pop(index)
        self._log(f"{removed.display_name} left the match")

        if not self.players:
            self.current_player_index = 0
            self.status = MatchStatus.FINISHED
        else:
            if index < self.current_player_index:
                self.current_player_index -= 1
            elif self.current_player_index >= len(self.players):
                self.current_player_index = 0
            if self.status == MatchStatus.ACTIVE:
                for i, player in enumerate(self.players):
                    player.is_active = i == self.current_player_index

        assert not self.players or 0 <= self.current_player_index < len(self.players)
        self._touch()
        return True

    # =========================================================================
    # Turns
    # =========================================================================

    def advance_turn(self):
        """
        Pass the turn to the next seat.

        This is the only place block counters tick down.
        """
        if not self.players:
            return

        self.players[self.current_player_index].is_active = False
        self.current_player_index = (self.current_player_index + 1) % len(self.players)
        self.players[self.current_player_index].is_active = True
        self.turn_count += 1
        tick_blocked_cells(self.board)
        self._touch()

    def make_move(self, player_id: str, position: int) -> MoveResult:
        """
        Place the current player's mark at `position`.

        Checks run in order and the first failure is returned with
        nothing changed: match active, player's turn, position on the
        board, cell playable.
        """
        if self.status != MatchStatus.ACTIVE:
            if self.status == MatchStatus.FINISHED:
                return MoveResult.failure(ErrorCode.MATCH_FINISHED, "The match is over")
            return MoveResult.failure(ErrorCode.MATCH_NOT_ACTIVE, "The match is not active")

        player = self.current_player
        if player is None or player.player_id != player_id:
            return MoveResult.failure(ErrorCode.NOT_YOUR_TURN, "Not your turn")

        if not is_valid_position(position):
            return MoveResult.failure(ErrorCode.INVALID_POSITION, f"Invalid position: {position}")

        cell = self.board[position]
        if not cell.is_playable:
            return MoveResult.failure(ErrorCode.CELL_UNAVAILABLE, "Cell not available")

        cell.mark = player.symbol
        cell.revealed = True
        self._log(f"{player.display_name} played position {position}")

        effect = self._resolver().resolve_cell(cell, self._context(player))

        winner = check_winner(self.board)
        if winner is not None:
            self._finish_with_winner(winner)
        elif is_full(self.board):
            self.status = MatchStatus.FINISHED
            self._log("Draw!")
        else:
            self.advance_turn()
            if effect == CellEffect.SKIP_TURN:
                self.advance_turn()

        self._touch()
        return MoveResult(success=True, message="Move accepted", effect=effect)

    def _finish_with_winner(self, symbol: str):
        self.status = MatchStatus.FINISHED
        self.winner_symbol = symbol
        for player in self.players:
            if player.symbol == symbol:
                player.score += 1
                self._log(f"{player.display_name} won the match!")
                break
        logger.info("Match %s won by %s", self.match_id, symbol)

    # =========================================================================
    # Powers
    # =========================================================================

    def use_power(
        self,
        player_id: str,
        power: PowerType,
        target_position: int | None = None,
    ) -> ActionResult:
        """
        Spend one held power.

        Does not advance the turn, whatever the power.
        """
        player = self.get_player(player_id)
        if player is None:
            return ActionResult.failure(ErrorCode.PLAYER_NOT_FOUND, "Player not in this match")

        if not self._resolver().resolve_power(power, self._context(player), target_position):
            return ActionResult.failure(ErrorCode.POWER_NOT_HELD, f"{power.display_name} not held")

        self._touch()
        return ActionResult.ok(f"Power used: {power.display_name}")

    # =========================================================================
    # Helpers
    # =========================================================================

    def clone(self) -> Match:
        """Deep copy for broadcasting. The random source is shared, not copied."""
        return deepcopy(self, {id(self.rng): self.rng})

    def _resolver(self) -> EffectResolver:
        return EffectResolver(rng=self.rng)

    def _context(self, player: Player) -> EffectContext:
        return EffectContext(player=player, board=self.board, log=self._log)

    def _log(self, message: str):
        self.event_log.append(f"{datetime.now().isoformat(timespec='seconds')}: {message}")

    def _touch(self):
        self.updated_at = time.time()
