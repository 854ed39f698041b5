"""
Tournament Value Calculator

Computes what a tournament is worth to its winner:

    raw value         = base value + rating adjustment + ranking adjustment
    first-place value = raw value * format grade * booster multiplier

- Base value: points per rated player, capped
- Rating adjustment: top-N rated players by rating, each adding
  max(0, rating * coefficient - offset), total capped
- Ranking adjustment: top-N ranked players by best ranking, each adding
  max(0, ln(ranking) * coefficient + offset), total capped

The two adjustments pick their top-N from independent orderings (a player
can count toward one and not the other). Ties go to the lower player id.

Usage:
    from oppr.tournament.value import calculate_tournament_value
    value = calculate_tournament_value(players, format_spec, "certified")
"""

import math
from typing import Optional, Sequence

from oppr.config import EngineConfig
from oppr.errors import InputDomainError
from oppr.models import FormatSpec, Player, TournamentValue
from oppr.store import current
from oppr.tournament.boosters import get_booster_multiplier
from oppr.tournament.grade import evaluate_format_grade
from oppr.utils import setup_logging, top_n

# --- Module Logger ---
logger = setup_logging(__name__)


def is_player_rated(event_count: int, config: Optional[EngineConfig] = None) -> bool:
    return event_count >= current(config).base_value.rated_player_threshold


def player_is_rated(player: Player, config: Optional[EngineConfig] = None) -> bool:
    if player.rated is not None:
        return player.rated
    return is_player_rated(player.event_count, config)


def count_rated_players(players: Sequence[Player], config: Optional[EngineConfig] = None) -> int:
    cfg = current(config)
    return sum(1 for player in players if player_is_rated(player, cfg))


def calculate_base_value(players, config=None):
    """
    Base value from the number of rated players.

    Args:
        players: Tournament field
        config: Configuration snapshot (default: active configuration)

    Returns:
        points_per_player * rated count, capped at max_base_value
    """
    bv = current(config).base_value
    return min(count_rated_players(players, config) * bv.points_per_player, bv.max_base_value)


def player_rating_contribution(rating: float, config: Optional[EngineConfig] = None) -> float:
    ra = current(config).value_adjustment.rating
    if rating < ra.min_effective_rating:
        return 0.0
    return max(0.0, rating * ra.coefficient - ra.offset)


def player_ranking_contribution(ranking: float, config: Optional[EngineConfig] = None) -> float:
    rk = current(config).value_adjustment.ranking
    return max(0.0, math.log(max(1, ranking)) * rk.coefficient + rk.offset)


def top_rated_players(players, count=None, config=None):
    """Rated players by rating, highest first, ties by id."""
    cfg = current(config)
    limit = count if count is not None else cfg.value_adjustment.max_players_considered
    rated = [p for p in players if player_is_rated(p, cfg)]
    return top_n(rated, limit, key=lambda p: p.rating, tie_break=lambda p: p.id)


def top_ranked_players(players, count=None, config=None):
    """Players holding a world ranking, best (lowest) first, ties by id."""
    cfg = current(config)
    limit = count if count is not None else cfg.value_adjustment.max_players_considered
    ranked = [p for p in players if p.ranking is not None and p.ranking > 0]
    return top_n(ranked, limit, key=lambda p: p.ranking, tie_break=lambda p: p.id, descending=False)


def calculate_rating_adjustment(players, config=None):
    cfg = current(config)
    total = sum(player_rating_contribution(p.rating, cfg) for p in top_rated_players(players, config=cfg))
    return min(total, cfg.value_adjustment.rating.max_value)


def calculate_ranking_adjustment(players, config=None):
    cfg = current(config)
    total = sum(player_ranking_contribution(p.ranking, cfg) for p in top_ranked_players(players, config=cfg))
    return min(total, cfg.value_adjustment.ranking.max_value)


def calculate_raw_value(players, config=None):
    cfg = current(config)
    return (
        calculate_base_value(players, cfg)
        + calculate_rating_adjustment(players, cfg)
        + calculate_ranking_adjustment(players, cfg)
    )


def calculate_tournament_value(
    players: Sequence[Player],
    format_spec: FormatSpec,
    booster: str = "none",
    config: Optional[EngineConfig] = None,
) -> TournamentValue:
    """
    Compute every component of a tournament's value.

    Args:
        players: Tournament field
        format_spec: Qualifying/finals structure
        booster: Certification tier (see oppr.tournament.boosters.BOOSTER_TIERS)
        config: Configuration snapshot (default: active configuration)

    Returns:
        TournamentValue with base, adjustments, grade, booster and first-place value

    Raises:
        InputDomainError: For duplicate players, an unknown booster or a
            malformed format spec
    """
    cfg = current(config)

    ids = [p.id for p in players]
    if len(ids) != len(set(ids)):
        raise InputDomainError("Duplicate player ids in tournament field")

    base_value = calculate_base_value(players, cfg)
    rating_adj = calculate_rating_adjustment(players, cfg)
    ranking_adj = calculate_ranking_adjustment(players, cfg)
    raw_value = base_value + rating_adj + ranking_adj

    grade = evaluate_format_grade(format_spec, field_size=len(players), config=cfg).grade
    multiplier = get_booster_multiplier(booster, cfg)
    first_place_value = raw_value * grade * multiplier

    logger.debug(
        f"Tournament value: base={base_value:.2f} rating_adj={rating_adj:.2f} "
        f"ranking_adj={ranking_adj:.2f} grade={grade:.3f} booster={multiplier} "
        f"-> first place {first_place_value:.2f}"
    )

    return TournamentValue(
        base_value=base_value,
        rating_adjustment=rating_adj,
        ranking_adjustment=ranking_adj,
        raw_value=raw_value,
        format_grade=grade,
        booster_multiplier=multiplier,
        first_place_value=first_place_value,
    )
