"""
Effect Resolver - Maps special cells and powers to their effects.

Two entry points:
- resolve_cell: fires once, when a move first occupies a cell
- resolve_power: fires on an explicit "use power" request

The resolver owns no match state. It mutates the board and player it
is handed through an EffectContext, and draws randomness only from the
random source it was built with.

Fake, double-points and reverse cells are announced but change nothing
else, and swap-pieces / triple-play consume the power without touching
the board. These are kept exactly as played today pending a rules
decision.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable
import logging
import random

from .state import Cell, CellType, Player, PowerType
from .action import CellEffect
from .board import is_valid_position

logger = logging.getLogger(__name__)

BLOCK_CELL_TURNS = 2


@dataclass
class EffectContext:
    """The acting player, the board they act on, and where to log."""
    player: Player
    board: list[Cell]
    log: Callable[[str], None]


@dataclass
class EffectResolver:
    """
    Resolves cell and power effects.

    Stateless apart from the injected random source.
    """
    rng: random.Random

    def resolve_cell(self, cell: Cell, context: EffectContext) -> CellEffect:
        """Apply the effect of the cell just played on and return its tag."""
        handler = self._cell_handlers().get(cell.cell_type)
        if handler is None:
            return CellEffect.NONE
        effect = handler(cell, context)
        logger.info(
            "Cell %d (%s) resolved to %s for %s",
            cell.position, cell.cell_type.value, effect.value, context.player.display_name,
        )
        return effect

    def resolve_power(
        self,
        power: PowerType,
        context: EffectContext,
        target_position: int | None = None,
    ) -> bool:
        """
        Consume one `power` from the acting player and apply it.

        Returns False, changing nothing, when the power is not held.
        A target outside the board still consumes the power.
        """
        if not context.player.consume_power(power):
            return False

        handler = self._power_handlers()[power]
        handler(context, target_position)
        logger.info("%s used power %s (target=%s)", context.player.display_name, power.key, target_position)
        return True

    # =========================================================================
    # Cell effects
    # =========================================================================

    def _cell_handlers(self) -> dict[CellType, Callable[[Cell, EffectContext], CellEffect]]:
        return {
            CellType.TRAP: self._trap,
            CellType.POWER_UP: self._power_up,
            CellType.FAKE: self._fake,
            CellType.DOUBLE_POINTS: self._double_points,
            CellType.REVERSE: self._reverse,
        }

    def _trap(self, cell: Cell, context: EffectContext) -> CellEffect:
        context.log(f"Trap! {context.player.display_name} loses a turn")
        return CellEffect.SKIP_TURN

    def _power_up(self, cell: Cell, context: EffectContext) -> CellEffect:
        power = self.rng.choice(list(PowerType))
        context.player.add_power(power)
        context.log(f"{context.player.display_name} gained power: {power.display_name}")
        return CellEffect.POWER_GAINED

    def _fake(self, cell: Cell, context: EffectContext) -> CellEffect:
        # TODO: schedule removal of the mark once a vanish delay is agreed on
        context.log("Fake cell! The piece will vanish soon")
        return CellEffect.FAKE_CELL

    def _double_points(self, cell: Cell, context: EffectContext) -> CellEffect:
        context.log("Double points cell activated!")
        return CellEffect.DOUBLE_POINTS

    def _reverse(self, cell: Cell, context: EffectContext) -> CellEffect:
        context.log("Turn order reversed!")
        return CellEffect.REVERSE_ORDER

    # =========================================================================
    # Powers
    # =========================================================================

    def _power_handlers(self) -> dict[PowerType, Callable[[EffectContext, int | None], None]]:
        return {
            PowerType.EXTRA_TURN: self._extra_turn,
            PowerType.REMOVE_OPPONENT_PIECE: self._remove_opponent_piece,
            PowerType.SWAP_PIECES: self._swap_pieces,
            PowerType.REVEAL_TRAPS: self._reveal_traps,
            PowerType.BLOCK_CELL: self._block_cell,
            PowerType.TRIPLE_PLAY: self._triple_play,
        }

    def _extra_turn(self, context: EffectContext, target: int | None):
        # The engine never advances the turn after a power, so the caller
        # simply keeps the same player on move.
        context.log(f"{context.player.display_name} used Extra Turn")

    def _remove_opponent_piece(self, context: EffectContext, target: int | None):
        cell = _target_cell(context, target)
        if cell is None:
            return
        if cell.is_occupied and cell.mark != context.player.symbol:
            cell.mark = None
            context.log(f"{context.player.display_name} removed an opponent's piece")

    def _swap_pieces(self, context: EffectContext, target: int | None):
        context.log(f"{context.player.display_name} used Swap Pieces")

    def _reveal_traps(self, context: EffectContext, target: int | None):
        for cell in context.board:
            if cell.cell_type == CellType.TRAP:
                cell.revealed = True
        context.log(f"{context.player.display_name} revealed all traps")

    def _block_cell(self, context: EffectContext, target: int | None):
        cell = _target_cell(context, target)
        if cell is None:
            return
        cell.block(BLOCK_CELL_TURNS)
        context.log(f"{context.player.display_name} blocked cell {cell.position}")

    def _triple_play(self, context: EffectContext, target: int | None):
        context.log(f"{context.player.display_name} used Triple Play")


def _target_cell(context: EffectContext, target: int | None) -> Cell | None:
    if target is None or not is_valid_position(target):
        return None
    return context.board[target]
