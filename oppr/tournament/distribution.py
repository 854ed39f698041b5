"""
Point Distribution Engine

Splits a tournament's first-place value across the finishing order. Each
finisher gets two components:

- Flat (linear): first_place_value * flat_fraction * (N + 1 - p) / N
- Shaped: first_place_value * shaped_fraction
  * (1 - ((p - 1) / min(rated / 2, max_dynamic_players)) ** position_exponent) ** value_exponent,
  zero once p - 1 reaches the cap

Both weights are exactly 1 at p = 1, and flat_fraction + shaped_fraction is
exactly 1 after configuration derivation, so the winner always receives the
full first-place value. Both weights only fall as p grows.
"""

from typing import Optional, Sequence

import pandas as pd

from oppr.config import EngineConfig
from oppr.models import FinishingResult, PointAward
from oppr.store import current
from oppr.tournament.value import player_is_rated
from oppr.utils import setup_logging
from oppr.validation import validate_results

# --- Module Logger ---
logger = setup_logging(__name__)


def flat_weight(position: int, player_count: int) -> float:
    """Linear share of the flat pool: 1 for the winner, 1/N for position N."""
    if player_count <= 0:
        return 0.0
    return max(0.0, (player_count + 1 - position) / player_count)


def shaped_weight(position: int, rated_player_count: int, config: Optional[EngineConfig] = None) -> float:
    """
    Shaped share of the dynamic pool.

    The curve stretches over the top half of the rated field, capped at
    max_dynamic_players. Position 1 always gets the full weight.
    """
    di = current(config).distribution
    if position <= 1:
        return 1.0

    dynamic_cap = min(rated_player_count / 2, di.max_dynamic_players)
    if dynamic_cap <= 0 or position - 1 >= dynamic_cap:
        return 0.0

    ratio = (position - 1) / dynamic_cap
    return max(0.0, (1 - ratio ** di.position_exponent) ** di.value_exponent)


def calculate_flat_points(position, player_count, first_place_value, config=None):
    di = current(config).distribution
    return first_place_value * di.flat_fraction * flat_weight(position, player_count)


def calculate_shaped_points(position, rated_player_count, first_place_value, config=None):
    cfg = current(config)
    return first_place_value * cfg.distribution.shaped_fraction * shaped_weight(position, rated_player_count, cfg)


def points_for_position(position, player_count, rated_player_count, first_place_value, config=None):
    """Total points (flat + shaped) for one finishing position."""
    cfg = current(config)
    weight = (
        cfg.distribution.flat_fraction * flat_weight(position, player_count)
        + cfg.distribution.shaped_fraction * shaped_weight(position, rated_player_count, cfg)
    )
    return first_place_value * weight


def position_percentage(position, player_count, rated_player_count, config=None):
    """Share of the first-place value a position receives (0.0 to 1.0)."""
    return points_for_position(position, player_count, rated_player_count, 1.0, config)


def distribute_points(
    results: Sequence[FinishingResult],
    first_place_value: float,
    config: Optional[EngineConfig] = None,
) -> list[PointAward]:
    """
    Distribute points to every finisher.

    Opted-out results are dropped before counting; the remaining positions
    must still be dense 1..N with a single winner.

    Args:
        results: Finishing order
        first_place_value: Value of first place for this tournament
        config: Configuration snapshot (default: active configuration)

    Returns:
        One PointAward per remaining finisher, in position order (ties by id)

    Raises:
        InputDomainError: For duplicate players, gaps in positions or a
            shared first place
    """
    cfg = current(config)
    active = [r for r in results if not r.opted_out]
    if not active:
        return []

    validate_results(active)

    player_count = len(active)
    rated_count = sum(1 for r in active if player_is_rated(r.player, cfg))

    awards = []
    for result in sorted(active, key=lambda r: (r.position, r.player.id)):
        awards.append(PointAward(
            player=result.player,
            position=result.position,
            flat_points=calculate_flat_points(result.position, player_count, first_place_value, cfg),
            shaped_points=calculate_shaped_points(result.position, rated_count, first_place_value, cfg),
            total_points=points_for_position(result.position, player_count, rated_count, first_place_value, cfg),
        ))

    logger.debug(
        f"Distributed {first_place_value:.2f} first-place value over {player_count} finishers "
        f"({rated_count} rated)"
    )
    return awards


def awards_frame(awards: Sequence[PointAward]) -> pd.DataFrame:
    """
    Tabulate awards for display or persistence.

    Returns:
        DataFrame with columns [position, player_id, flat_points, shaped_points, total_points]
    """
    columns = ['position', 'player_id', 'flat_points', 'shaped_points', 'total_points']
    if not awards:
        return pd.DataFrame(columns=columns)

    rows = [{
        'position': a.position,
        'player_id': a.player.id,
        'flat_points': round(a.flat_points, 2),
        'shaped_points': round(a.shaped_points, 2),
        'total_points': round(a.total_points, 2),
    } for a in awards]
    return pd.DataFrame(rows, columns=columns)
