"""
Tests for the match registry (lifecycle, symbols, locking).
"""

import threading

from ..engine_core.action import CellEffect, ErrorCode
from ..engine_core.state import MatchStatus, PowerType
from ..session import MatchRegistry, SYMBOLS
from .conftest import flatten_board


def _started_match(registry: MatchRegistry):
    match = registry.create_match()
    alice = registry.join_match(match.match_id, "Alice").payload
    bob = registry.join_match(match.match_id, "Bob").payload
    flatten_board(registry, match.match_id)
    return match.match_id, alice, bob


class TestLifecycle:
    """Tests for create/get/list."""

    def test_create_match(self, registry):
        match = registry.create_match()

        assert match.status == MatchStatus.WAITING
        assert match.players == []
        assert registry.get_match(match.match_id) is not None

    def test_ids_are_unique(self, registry):
        ids = {registry.create_match().match_id for _ in range(20)}
        assert len(ids) == 20

    def test_get_unknown_match(self, registry):
        assert registry.get_match("nope") is None

    def test_list_matches(self, registry):
        for _ in range(3):
            registry.create_match()
        assert len(registry.list_matches()) == 3

    def test_snapshots_are_detached(self, registry):
        """Changing a returned snapshot does not change the stored match."""
        match = registry.create_match()
        match.players.append(None)

        assert registry.get_match(match.match_id).players == []

    def test_active_match_ids(self, registry):
        match_id, alice, bob = _started_match(registry)
        waiting = registry.create_match()

        registry.make_move(match_id, alice.player_id, 0)
        registry.make_move(match_id, bob.player_id, 3)
        registry.make_move(match_id, alice.player_id, 1)
        registry.make_move(match_id, bob.player_id, 4)
        registry.make_move(match_id, alice.player_id, 2)

        assert registry.active_match_ids() == [waiting.match_id]


class TestJoin:
    """Tests for joining."""

    def test_alice_and_bob_start_match(self, registry):
        """Join Alice, join Bob: active, Alice on turn."""
        match_id, alice, bob = _started_match(registry)
        match = registry.get_match(match_id)

        assert match.status == MatchStatus.ACTIVE
        assert match.current_player.player_id == alice.player_id
        assert alice.symbol == "X"
        assert bob.symbol == "O"

    def test_symbols_in_seat_order(self, registry):
        match = registry.create_match()
        symbols = [
            registry.join_match(match.match_id, name).payload.symbol
            for name in ("A", "B", "C", "D")
        ]
        assert tuple(symbols) == SYMBOLS

    def test_join_full_match(self, registry):
        match = registry.create_match()
        for name in ("A", "B", "C", "D"):
            registry.join_match(match.match_id, name)

        result = registry.join_match(match.match_id, "E")

        assert not result.success
        assert result.error_code == ErrorCode.MATCH_FULL

    def test_join_unknown_match(self, registry):
        result = registry.join_match("nope", "Alice")
        assert result.error_code == ErrorCode.NOT_FOUND

    def test_join_finished_match(self, registry):
        match_id, alice, bob = _started_match(registry)
        registry.remove_player(match_id, bob.player_id)
        for position, player in [(0, alice), (3, alice), (6, alice)]:
            registry.make_move(match_id, player.player_id, position)
        assert registry.get_match(match_id).status == MatchStatus.FINISHED

        result = registry.join_match(match_id, "Carol")

        assert result.error_code == ErrorCode.MATCH_FINISHED

    def test_symbol_freed_by_leaver_is_reused(self, registry):
        """Symbols stay unique after someone leaves."""
        match = registry.create_match()
        registry.join_match(match.match_id, "A")
        b = registry.join_match(match.match_id, "B").payload
        registry.join_match(match.match_id, "C")
        registry.remove_player(match.match_id, b.player_id)

        d = registry.join_match(match.match_id, "D").payload

        symbols = [p.symbol for p in registry.get_match(match.match_id).players]
        assert d.symbol == "O"
        assert len(set(symbols)) == len(symbols)


class TestMovesAndPowers:
    """Tests for delegated match operations."""

    def test_move(self, registry):
        match_id, alice, bob = _started_match(registry)

        result = registry.make_move(match_id, alice.player_id, 4)

        assert result.success
        assert result.effect == CellEffect.NONE
        match = registry.get_match(match_id)
        assert match.board[4].mark == "X"
        assert match.current_player.player_id == bob.player_id

    def test_move_unknown_match(self, registry):
        result = registry.make_move("nope", "p", 0)
        assert not result.success
        assert result.error_code == ErrorCode.NOT_FOUND

    def test_power_not_held(self, registry):
        match_id, alice, bob = _started_match(registry)
        result = registry.use_power(match_id, alice.player_id, PowerType.BLOCK_CELL, 4)
        assert result.error_code == ErrorCode.POWER_NOT_HELD

    def test_power_unknown_match(self, registry):
        result = registry.use_power("nope", "p", PowerType.BLOCK_CELL, 4)
        assert result.error_code == ErrorCode.NOT_FOUND

    def test_concurrent_moves_are_serialized(self, registry):
        """Two racing moves by the same player: exactly one lands."""
        match_id, alice, bob = _started_match(registry)
        barrier = threading.Barrier(2)
        results = []

        def move(position):
            barrier.wait()
            results.append(registry.make_move(match_id, alice.player_id, position))

        threads = [threading.Thread(target=move, args=(p,)) for p in (0, 8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(r.success for r in results) == [False, True]
        failed = next(r for r in results if not r.success)
        assert failed.error_code == ErrorCode.NOT_YOUR_TURN
        match = registry.get_match(match_id)
        assert sum(1 for c in match.board if c.mark) == 1
        assert match.turn_count == 1


class TestRestart:
    """Tests for restart."""

    def test_restart_finished_match(self, registry):
        """Same id, seats, symbols and scores. Fresh board and turn."""
        match_id, alice, bob = _started_match(registry)
        for player, position in [(alice, 0), (bob, 3), (alice, 1), (bob, 4), (alice, 2)]:
            registry.make_move(match_id, player.player_id, position)
        finished = registry.get_match(match_id)
        assert finished.status == MatchStatus.FINISHED

        restarted = registry.restart_match(match_id)

        assert restarted.match_id == match_id
        assert restarted.status == MatchStatus.ACTIVE
        assert [(p.player_id, p.display_name, p.symbol, p.score) for p in restarted.players] == [
            (alice.player_id, "Alice", "X", 1),
            (bob.player_id, "Bob", "O", 0),
        ]
        assert restarted.current_player.player_id == alice.player_id
        assert restarted.winner_symbol is None
        assert restarted.turn_count == 0
        assert all(c.mark is None and not c.revealed for c in restarted.board)
        assert all(p.powers == [] for p in restarted.players)
        assert registry.get_match(match_id).status == MatchStatus.ACTIVE

    def test_restart_unknown_match(self, registry):
        assert registry.restart_match("nope") is None


class TestRemovePlayer:
    """Tests for leaving."""

    def test_last_leaver_drops_match(self, registry):
        match_id, alice, bob = _started_match(registry)

        registry.remove_player(match_id, alice.player_id)
        assert registry.get_match(match_id) is not None

        result = registry.remove_player(match_id, bob.player_id)

        assert result.success
        assert result.payload is True
        assert result.match.status == MatchStatus.FINISHED
        assert registry.get_match(match_id) is None
        assert registry.list_matches() == []

    def test_remove_unknown_player(self, registry):
        match_id, alice, bob = _started_match(registry)
        result = registry.remove_player(match_id, "mallory")
        assert result.error_code == ErrorCode.PLAYER_NOT_FOUND

    def test_remove_from_unknown_match(self, registry):
        assert registry.remove_player("nope", "p").error_code == ErrorCode.NOT_FOUND

    def test_leave_keeps_match_with_players(self, registry):
        match_id, alice, bob = _started_match(registry)

        result = registry.remove_player(match_id, alice.player_id)

        assert result.payload is False
        assert [p.player_id for p in result.match.players] == [bob.player_id]

    def test_restart_of_dropped_entry_fails(self, registry):
        """A restart that looked the entry up before the last leave does not revive it."""
        match_id, alice, bob = _started_match(registry)
        stale = registry._entries[match_id]
        registry.remove_player(match_id, alice.player_id)
        registry.remove_player(match_id, bob.player_id)
        registry._entry = lambda _: stale

        assert registry.restart_match(match_id) is None

    def test_seated_player_never_lost_to_concurrent_leave(self, registry):
        """Last leave racing restart + join: a successful join always leaves a stored match."""
        for _ in range(30):
            match = registry.create_match()
            alice = registry.join_match(match.match_id, "Alice").payload
            barrier = threading.Barrier(2)
            joined = []

            def leave():
                barrier.wait()
                registry.remove_player(match.match_id, alice.player_id)

            def restart_and_join():
                barrier.wait()
                registry.restart_match(match.match_id)
                joined.append(registry.join_match(match.match_id, "Carol"))

            threads = [threading.Thread(target=leave), threading.Thread(target=restart_and_join)]
            for t in threads:
                t.start()
            for t in threads:
                t.join()

            if joined[0].success:
                stored = registry.get_match(match.match_id)
                assert stored is not None
                assert joined[0].payload.player_id in [p.player_id for p in stored.players]


class TestResultSnapshots:
    """State-changing calls return the snapshot taken with the change."""

    def test_join_carries_match(self, registry):
        match = registry.create_match()
        registry.join_match(match.match_id, "Alice")

        result = registry.join_match(match.match_id, "Bob")

        assert result.match.status == MatchStatus.ACTIVE
        assert [p.symbol for p in result.match.players] == ["X", "O"]

    def test_move_snapshot_unaffected_by_later_leave(self, registry):
        match_id, alice, bob = _started_match(registry)

        result = registry.make_move(match_id, alice.player_id, 4)
        registry.remove_player(match_id, alice.player_id)
        registry.remove_player(match_id, bob.player_id)

        assert result.match.board[4].mark == "X"
        assert result.match.current_player.player_id == bob.player_id
        assert registry.get_match(match_id) is None

    def test_failed_move_has_no_snapshot(self, registry):
        match_id, alice, bob = _started_match(registry)
        assert registry.make_move(match_id, bob.player_id, 4).match is None

    def test_power_carries_match(self, registry):
        match_id, alice, bob = _started_match(registry)
        registry._entries[match_id].match.get_player(alice.player_id).add_power(PowerType.BLOCK_CELL)

        result = registry.use_power(match_id, alice.player_id, PowerType.BLOCK_CELL, 4)

        assert result.match.board[4].blocked
        assert result.match.get_player(alice.player_id).powers == []
