"""
Rating Ledger

Append-only rating history per player. Every change (tournament, inactivity,
ranking refresh) reads the player's latest snapshot and appends a new one;
earlier snapshots are never modified.

Updates for one player are serialized on that player's lock so concurrent
tournament results cannot read the same snapshot and drop an update. Updates
for different players never contend.

Usage:
    from oppr.rating.ledger import RatingLedger

    ledger = RatingLedger()
    changes = ledger.rate_tournament(results)
    ledger.history_frame("p1")
"""

import threading
from collections import defaultdict
from datetime import datetime
from typing import Optional, Sequence

import pandas as pd

from oppr.config import EngineConfig
from oppr.errors import InputDomainError
from oppr.models import FinishingResult, MatchOutcome, Player, RatingChange, RatingSnapshot
from oppr.rating.glicko import apply_inactivity_decay, new_rating, update_rating
from oppr.rating.simulation import simulate_player_matches
from oppr.store import current
from oppr.utils import setup_logging

# --- Module Logger ---
logger = setup_logging(__name__)


class RatingLedger:
    """In-memory rating history keyed by player id."""

    def __init__(self, config: Optional[EngineConfig] = None):
        self._config = config
        self._history: dict[str, list[RatingSnapshot]] = defaultdict(list)
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _cfg(self) -> EngineConfig:
        return current(self._config)

    def _lock_for(self, player_id: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(player_id)
            if lock is None:
                lock = self._locks[player_id] = threading.Lock()
            return lock

    def _latest_unlocked(self, player_id):
        snapshots = self._history.get(player_id)
        if snapshots:
            return snapshots[-1]
        return new_rating(config=self._cfg())

    # --- Reads ---

    def players(self) -> list[str]:
        return sorted(self._history)

    def latest(self, player_id: str) -> RatingSnapshot:
        """Latest snapshot, or the starting rating for an unknown player."""
        with self._lock_for(player_id):
            return self._latest_unlocked(player_id)

    def history(self, player_id: str) -> list[RatingSnapshot]:
        with self._lock_for(player_id):
            return list(self._history.get(player_id, []))

    def history_frame(self, player_id: str) -> pd.DataFrame:
        """
        Player history as a DataFrame.

        Returns:
            DataFrame with columns [recorded_at, reason, rating, rating_deviation],
            oldest first
        """
        rows = [
            {
                'recorded_at': snap.recorded_at,
                'reason': snap.reason,
                'rating': snap.rating,
                'rating_deviation': snap.rating_deviation,
            }
            for snap in self.history(player_id)
        ]
        return pd.DataFrame(rows, columns=['recorded_at', 'reason', 'rating', 'rating_deviation'])

    # --- Writes ---

    def register(self, player_id: str, snapshot: Optional[RatingSnapshot] = None) -> RatingSnapshot:
        """Seed a player's history (starting rating when no snapshot is given)."""
        with self._lock_for(player_id):
            if self._history.get(player_id):
                raise InputDomainError(f"Player {player_id} already has rating history")
            seed = snapshot if snapshot is not None else new_rating(config=self._cfg())
            self._history[player_id].append(seed)
            return seed

    def record_tournament(
        self,
        player_id: str,
        outcomes: Sequence[MatchOutcome],
        recorded_at: Optional[datetime] = None,
    ) -> RatingChange:
        """Apply one tournament's outcomes to the player's latest rating."""
        with self._lock_for(player_id):
            before = self._latest_unlocked(player_id)
            change = update_rating(before, outcomes, self._cfg())
            self._history[player_id].append(RatingSnapshot(
                rating=change.new_rating,
                rating_deviation=change.new_deviation,
                recorded_at=recorded_at,
                reason="tournament",
            ))
        logger.debug(f"Player {player_id}: {before.rating:.2f} -> {change.new_rating:.2f}")
        return change

    def record_inactivity(
        self,
        player_id: str,
        days_inactive: float,
        recorded_at: Optional[datetime] = None,
    ) -> RatingSnapshot:
        with self._lock_for(player_id):
            after = apply_inactivity_decay(
                self._latest_unlocked(player_id), days_inactive, recorded_at, self._cfg()
            )
            self._history[player_id].append(after)
            return after

    def record_ranking_refresh(self, player_id: str, recorded_at: Optional[datetime] = None) -> RatingSnapshot:
        """Checkpoint the current rating when world rankings are recomputed."""
        with self._lock_for(player_id):
            latest = self._latest_unlocked(player_id)
            snap = RatingSnapshot(
                rating=latest.rating,
                rating_deviation=latest.rating_deviation,
                recorded_at=recorded_at,
                reason="ranking",
            )
            self._history[player_id].append(snap)
            return snap

    def rate_tournament(
        self,
        results: Sequence[FinishingResult],
        recorded_at: Optional[datetime] = None,
    ) -> dict[str, RatingChange]:
        """
        Rate every finisher of a tournament.

        All matches are simulated against the ratings players held before
        the tournament, so the order players are processed in does not
        matter.

        Args:
            results: The tournament's finishing order (ties share a position)
            recorded_at: Timestamp for the new snapshots

        Returns:
            Mapping of player id to RatingChange

        Raises:
            InputDomainError: If a player appears twice
        """
        ids = [r.player.id for r in results]
        if len(set(ids)) != len(ids):
            raise InputDomainError("Duplicate player in tournament results")

        cfg = self._cfg()
        before = {player_id: self.latest(player_id) for player_id in ids}
        field = [
            FinishingResult(
                player=Player(
                    id=r.player.id,
                    rating=before[r.player.id].rating,
                    rating_deviation=before[r.player.id].rating_deviation,
                    ranking=r.player.ranking,
                    event_count=r.player.event_count,
                    rated=r.player.rated,
                ),
                position=r.position,
                event_date=r.event_date,
                opted_out=r.opted_out,
            )
            for r in results
        ]

        changes = {}
        for player_id in ids:
            outcomes = simulate_player_matches(player_id, field, cfg)
            changes[player_id] = self.record_tournament(player_id, outcomes, recorded_at)

        logger.info(f"Rated tournament with {len(ids)} players")
        return changes
