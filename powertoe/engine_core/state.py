"""
Match State - Data model for a single PowerToe match.

Design principles:
- Plain dataclasses: the Match state machine mutates them in place
- Snapshot-friendly: a Match can be deep-copied for broadcasting
- Hidden information: special cell types stay private until revealed
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum


BOARD_SIZE = 9
MAX_PLAYERS = 4


class MatchStatus(Enum):
    """Lifecycle of a match."""
    WAITING = "waiting"  # Fewer than two players
    ACTIVE = "active"
    PAUSED = "paused"  # Reserved, nothing enters or leaves it
    FINISHED = "finished"


class CellType(Enum):
    """Cell types, fixed when the board is created."""
    NORMAL = "normal"
    TRAP = "trap"
    POWER_UP = "power_up"
    FAKE = "fake"
    DOUBLE_POINTS = "double_points"
    REVERSE = "reverse"


SPECIAL_CELL_TYPES = (
    CellType.TRAP,
    CellType.POWER_UP,
    CellType.FAKE,
    CellType.DOUBLE_POINTS,
    CellType.REVERSE,
)


class PowerType(Enum):
    """Consumable powers a player can collect from power-up cells."""
    EXTRA_TURN = ("extra_turn", "Extra Turn", "Play twice in a row")
    REMOVE_OPPONENT_PIECE = ("remove_opponent_piece", "Remove Opponent", "Remove an opponent's piece")
    SWAP_PIECES = ("swap_pieces", "Swap Pieces", "Swap two pieces")
    REVEAL_TRAPS = ("reveal_traps", "Reveal Traps", "Reveal every trap cell")
    BLOCK_CELL = ("block_cell", "Block Cell", "Block a cell for two turns")
    TRIPLE_PLAY = ("triple_play", "Triple Play", "Place three pieces at once")

    def __init__(self, key: str, display_name: str, description: str):
        self.key = key
        self.display_name = display_name
        self.description = description

    @classmethod
    def from_key(cls, key: str) -> PowerType:
        """Look up a power by its wire key."""
        for power in cls:
            if power.key == key:
                return power
        raise ValueError(f"Unknown power: {key}")


@dataclass
class Cell:
    """
    One square of the 3x3 board.

    A cell is marked at most once by a move. Its type never changes
    after board creation.
    """
    position: int
    mark: str | None = None
    cell_type: CellType = CellType.NORMAL
    revealed: bool = False
    blocked: bool = False
    blocked_turns: int = 0

    @property
    def is_occupied(self) -> bool:
        return bool(self.mark)

    @property
    def is_playable(self) -> bool:
        return not self.is_occupied and not self.blocked

    @property
    def public_type(self) -> CellType | None:
        """Cell type as shown to players, None while still hidden."""
        return self.cell_type if self.revealed else None

    def block(self, turns: int):
        self.blocked = True
        self.blocked_turns = turns

    def tick_block(self):
        """Count down one turn of blocking."""
        if self.blocked and self.blocked_turns > 0:
            self.blocked_turns -= 1
            if self.blocked_turns <= 0:
                self.blocked_turns = 0
                self.blocked = False


@dataclass
class Player:
    """
    A seat in a match.

    `player_id` and `symbol` never change. `powers` is a multiset:
    the same power may be held more than once.
    """
    player_id: str
    display_name: str
    symbol: str
    score: int = 0
    powers: list[PowerType] = field(default_factory=list)
    is_active: bool = False

    def add_power(self, power: PowerType):
        self.powers.append(power)

    def has_power(self, power: PowerType) -> bool:
        return power in self.powers

    def consume_power(self, power: PowerType) -> bool:
        """Remove one instance of the power. False if not held."""
        if not self.has_power(power):
            return False
        self.powers.remove(power)
        return True

    def fresh_copy(self) -> Player:
        """Same identity and score, no powers, not active (used on restart)."""
        return Player(
            player_id=self.player_id,
            display_name=self.display_name,
            symbol=self.symbol,
            score=self.score,
        )
