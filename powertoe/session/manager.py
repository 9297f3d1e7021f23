"""
Match Registry - Creates, stores and retires matches.

LIFECYCLE:
1. create_match -> empty WAITING match with a fresh board
2. join_match -> players take the next free symbol; 2nd player starts it
3. make_move / use_power -> delegated to the Match
4. restart_match -> new Match under the same id, same seats and scores
5. remove_player -> when the last player leaves, the match is dropped

CONCURRENCY:
- The id -> entry map is guarded by one lock (insert, lookup, removal)
- Every entry has its own lock; all reads and writes of that match's
  state happen while holding it
- No operation ever holds two match locks. remove_player takes the map
  lock while holding a match lock; nothing takes them in the other order

Every method returns snapshots (Match.clone()), never the live Match.
Results of state changes carry the snapshot taken under the same lock
as the change.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from copy import deepcopy
import logging
import random
import threading
import uuid

from ..engine_core.state import Player, PowerType, MatchStatus
from ..engine_core.action import ActionResult, ErrorCode, MoveResult
from ..engine_core.match import Match

logger = logging.getLogger(__name__)

SYMBOLS = ("X", "O", "△", "□")


@dataclass
class MatchEntry:
    """A stored match and the lock that serializes access to it."""
    match: Match
    lock: threading.RLock = field(default_factory=threading.RLock)


class MatchRegistry:
    """
    In-memory store of live matches.

    No persistence - matches live as long as the process.
    """

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.Random()
        self._entries: dict[str, MatchEntry] = {}
        self._lock = threading.Lock()
        self._rng_lock = threading.Lock()

    def create_match(self) -> Match:
        """Create and store a new empty match."""
        with self._lock:
            match_id = uuid.uuid4().hex[:8]
            while match_id in self._entries:
                match_id = uuid.uuid4().hex[:8]
            entry = MatchEntry(match=Match(match_id=match_id, rng=self._spawn_rng()))
            self._entries[match_id] = entry
        logger.info("Created match %s", match_id)
        with entry.lock:
            return entry.match.clone()

    def get_match(self, match_id: str) -> Match | None:
        entry = self._entry(match_id)
        if entry is None:
            return None
        with entry.lock:
            return entry.match.clone()

    def list_matches(self) -> list[Match]:
        with self._lock:
            entries = list(self._entries.values())
        snapshots = []
        for entry in entries:
            with entry.lock:
                snapshots.append(entry.match.clone())
        return snapshots

    def join_match(self, match_id: str, display_name: str) -> ActionResult:
        """
        Seat a new player.

        On success the payload is the new Player (a copy).
        """
        entry = self._entry(match_id)
        if entry is None:
            return _not_found(match_id)

        with entry.lock:
            match = entry.match
            if match.is_roster_full:
                return ActionResult.failure(ErrorCode.MATCH_FULL, "The match is full")

            player = Player(
                player_id=str(uuid.uuid4()),
                display_name=display_name,
                symbol=_next_symbol(match),
            )
            if not match.add_player(player):
                return ActionResult.failure(ErrorCode.MATCH_FINISHED, "The match is over")

            logger.info("%s joined match %s as %s", display_name, match_id, player.symbol)
            return ActionResult.ok(
                f"{display_name} joined the match",
                payload=deepcopy(player),
                match=match.clone(),
            )

    def make_move(self, match_id: str, player_id: str, position: int) -> MoveResult:
        entry = self._entry(match_id)
        if entry is None:
            return MoveResult.failure(ErrorCode.NOT_FOUND, f"Match {match_id} not found")

        with entry.lock:
            result = entry.match.make_move(player_id, position)
            if result.success:
                result.match = entry.match.clone()
        if not result.success:
            logger.debug("Move rejected in %s: %s", match_id, result.message)
        return result

    def use_power(
        self,
        match_id: str,
        player_id: str,
        power: PowerType,
        target_position: int | None = None,
    ) -> ActionResult:
        entry = self._entry(match_id)
        if entry is None:
            return _not_found(match_id)

        with entry.lock:
            result = entry.match.use_power(player_id, power, target_position)
            if result.success:
                result.match = entry.match.clone()
            return result

    def restart_match(self, match_id: str) -> Match | None:
        """
        Replace a match with a fresh one under the same id.

        Seats, symbols and scores carry over. Board, turn, powers and
        log start over.
        """
        entry = self._entry(match_id)
        if entry is None:
            return None

        with entry.lock:
            if not self._is_live(match_id, entry):
                return None
            old = entry.match
            new = Match(match_id=match_id, rng=self._spawn_rng())
            for player in old.players:
                new.add_player(player.fresh_copy())
            entry.match = new
            logger.info("Restarted match %s with %d players", match_id, len(new.players))
            return new.clone()

    def remove_player(self, match_id: str, player_id: str) -> ActionResult:
        """
        Take a player out of a match. Drops the match once nobody is left.

        On success `match` is the snapshot after the leave and the payload
        is True when the match was dropped.
        """
        entry = self._entry(match_id)
        if entry is None:
            return _not_found(match_id)

        with entry.lock:
            if not entry.match.remove_player(player_id):
                return ActionResult.failure(ErrorCode.PLAYER_NOT_FOUND, "Player not in this match")
            snapshot = entry.match.clone()
            dropped = False
            if not entry.match.players:
                with self._lock:
                    if self._entries.get(match_id) is entry:
                        del self._entries[match_id]
                        dropped = True

        if dropped:
            logger.info("Match %s abandoned and removed", match_id)
        return ActionResult.ok("Player left the match", payload=dropped, match=snapshot)

    def active_match_ids(self) -> list[str]:
        """Ids of matches that are not finished."""
        return [m.match_id for m in self.list_matches() if m.status != MatchStatus.FINISHED]

    def _spawn_rng(self) -> random.Random:
        """Per-match random source, derived from the registry seed."""
        with self._rng_lock:
            return random.Random(self._rng.getrandbits(64))

    def _entry(self, match_id: str) -> MatchEntry | None:
        with self._lock:
            return self._entries.get(match_id)

    def _is_live(self, match_id: str, entry: MatchEntry) -> bool:
        """False once remove_player has dropped the entry."""
        with self._lock:
            return self._entries.get(match_id) is entry


def _next_symbol(match: Match) -> str:
    """First symbol, in seat order, that no current player holds."""
    taken = {p.symbol for p in match.players}
    for symbol in SYMBOLS:
        if symbol not in taken:
            return symbol
    raise RuntimeError(f"No free symbol in match {match.match_id}")


def _not_found(match_id: str) -> ActionResult:
    return ActionResult.failure(ErrorCode.NOT_FOUND, f"Match {match_id} not found")
