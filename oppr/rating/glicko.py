"""
Glicko Rating Engine

Updates a player's skill rating from a batch of simulated head-to-head
outcomes (see oppr.rating.simulation). This is Glicko-1: each player carries
a rating and a rating deviation (RD). Opponents with a high RD are weighted
down through g(RD); the player's own RD shrinks as evidence accumulates and
grows again with inactivity.

Rating period math, with q = ln(10) / 400:
    g(RD) = 1 / sqrt(1 + 3 q² RD² / π²)
    E     = 1 / (1 + 10^(-g (r - r_j) / 400))
    d²    = 1 / (q² Σ g² E (1 - E))
    r'    = r + q² / (1/RD² + 1/d²) Σ g (s - E)
    RD'   = sqrt(1 / (1/RD² + 1/d²))

Usage:
    from oppr.rating.glicko import new_rating, update_rating
    change = update_rating(new_rating(), outcomes)
"""

import math
from dataclasses import replace
from datetime import datetime
from typing import Optional, Sequence

import numpy as np

from oppr.config import EngineConfig
from oppr.errors import InputDomainError
from oppr.models import MatchOutcome, RatingChange, RatingSnapshot
from oppr.store import current
from oppr.utils import clamp, setup_logging

# --- Module Logger ---
logger = setup_logging(__name__)


def g(deviation, q):
    """Uncertainty weight of an opponent; 1.0 for a perfectly known rating."""
    return 1 / np.sqrt(1 + 3 * q ** 2 * np.square(deviation) / math.pi ** 2)


def expected_score(rating, opponent_rating, opponent_deviation, q):
    """Expected score of ``rating`` against an opponent, discounted by the opponent's RD."""
    weight = g(opponent_deviation, q)
    return 1 / (1 + np.power(10.0, -weight * (rating - opponent_rating) / 400))


def new_rating(recorded_at: Optional[datetime] = None,
               config: Optional[EngineConfig] = None) -> RatingSnapshot:
    """Starting rating for a player with no history: default rating, maximum RD."""
    cfg = current(config)
    return RatingSnapshot(
        rating=cfg.rating.default_rating,
        rating_deviation=cfg.rating.max_deviation,
        recorded_at=recorded_at,
        reason="new",
    )


def is_provisional(event_count: int, config: Optional[EngineConfig] = None) -> bool:
    """A rating is provisional until the player has played enough events to be rated."""
    return event_count < current(config).base_value.rated_player_threshold


def update_rating(
    current_rating: RatingSnapshot,
    outcomes: Sequence[MatchOutcome],
    config: Optional[EngineConfig] = None,
) -> RatingChange:
    """
    Run one Glicko rating period over a batch of outcomes.

    Args:
        current_rating: The player's rating before the batch
        outcomes: Simulated matches from one tournament
        config: Configuration snapshot (default: active configuration)

    Returns:
        RatingChange with the new rating (rounded to 2 decimals), the new RD
        and the rating change. An empty batch changes nothing.

    Raises:
        InputDomainError: If an outcome score is not 0, 0.5 or 1
    """
    cfg = current(config)
    rating = current_rating.rating
    deviation = current_rating.rating_deviation

    if not outcomes:
        return RatingChange(new_rating=rating, new_deviation=deviation, change=0.0)

    for outcome in outcomes:
        if outcome.score not in (0.0, 0.5, 1.0):
            raise InputDomainError(f"Match score must be 0, 0.5 or 1, got {outcome.score}")

    q = cfg.rating.q
    opp_ratings = np.array([o.opponent_rating for o in outcomes], dtype=float)
    opp_deviations = np.array([o.opponent_deviation for o in outcomes], dtype=float)
    scores = np.array([o.score for o in outcomes], dtype=float)

    weights = g(opp_deviations, q)
    expected = expected_score(rating, opp_ratings, opp_deviations, q)

    variance_sum = float(np.sum(weights ** 2 * expected * (1 - expected)))
    if variance_sum <= 0:
        # Every opponent is so far away that the batch carries no information
        logger.debug(f"Degenerate rating batch of {len(outcomes)} outcomes, rating unchanged")
        return RatingChange(new_rating=rating, new_deviation=deviation, change=0.0)

    d_squared = 1 / (q ** 2 * variance_sum)
    precision = 1 / deviation ** 2 + 1 / d_squared
    improvement = float(np.sum(weights * (scores - expected)))

    updated = round(rating + q ** 2 / precision * improvement, 2)
    updated_deviation = min(math.sqrt(1 / precision), deviation)
    updated_deviation = clamp(updated_deviation, cfg.rating.min_deviation, cfg.rating.max_deviation)

    logger.debug(
        f"Rating update over {len(outcomes)} outcomes: "
        f"{rating:.2f} -> {updated:.2f}, RD {deviation:.2f} -> {updated_deviation:.2f}"
    )
    return RatingChange(
        new_rating=updated,
        new_deviation=updated_deviation,
        change=round(updated - rating, 2),
    )


def apply_inactivity_decay(
    current_rating: RatingSnapshot,
    days_inactive: float,
    recorded_at: Optional[datetime] = None,
    config: Optional[EngineConfig] = None,
) -> RatingSnapshot:
    """
    Grow a player's RD for time spent away from competition.

    Args:
        current_rating: The player's latest snapshot
        days_inactive: Days since the player's last event
        recorded_at: Timestamp for the new snapshot
        config: Configuration snapshot (default: active configuration)

    Returns:
        New snapshot with the same rating and RD raised by
        days * deviation_decay_per_day, capped at max_deviation (an RD
        already above the cap is pulled back to it)

    Raises:
        InputDomainError: If days_inactive is negative
    """
    if days_inactive < 0:
        raise InputDomainError(f"days_inactive must be >= 0, got {days_inactive}")

    cfg = current(config)
    deviation = current_rating.rating_deviation
    grown = min(deviation + days_inactive * cfg.rating.deviation_decay_per_day, cfg.rating.max_deviation)
    return replace(
        current_rating,
        rating_deviation=grown,
        recorded_at=recorded_at,
        reason="inactivity",
    )
