"""
Pytest fixtures for PowerToe tests.
"""

import random

import pytest

from ..engine_core.match import Match
from ..engine_core.state import Cell, CellType, Player
from ..session import MatchRegistry
from ..api.service import APIService


PLAYER_SEATS = [
    ("alice", "Alice", "X"),
    ("bob", "Bob", "O"),
    ("carol", "Carol", "△"),
    ("dave", "Dave", "□"),
]


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source."""
    return random.Random(1234)


@pytest.fixture
def match_factory(rng):
    """
    Build a match with the first `num_players` seats filled.

    Boards are all NORMAL unless `special` is given as
    {position: CellType}.
    """
    def _make(num_players: int = 2, special: dict[int, CellType] | None = None) -> Match:
        board = [Cell(position=i) for i in range(9)]
        for position, cell_type in (special or {}).items():
            board[position].cell_type = cell_type
        match = Match(match_id="test_match", rng=rng, board=board)
        for player_id, name, symbol in PLAYER_SEATS[:num_players]:
            match.add_player(Player(player_id=player_id, display_name=name, symbol=symbol))
        return match

    return _make


@pytest.fixture
def two_player_match(match_factory) -> Match:
    """Active 2-player match on an all-normal board, Alice to move."""
    return match_factory(2)


@pytest.fixture
def registry() -> MatchRegistry:
    return MatchRegistry(rng=random.Random(42))


@pytest.fixture
def service(registry) -> APIService:
    return APIService(registry=registry)


def flatten_board(registry: MatchRegistry, match_id: str):
    """Turn every cell of a stored match NORMAL so play is predictable."""
    entry = registry._entries[match_id]
    with entry.lock:
        for cell in entry.match.board:
            cell.cell_type = CellType.NORMAL
