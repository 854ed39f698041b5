"""
Certification boosters.

Applied after the format grade:
- none: 1.0x
- certified: 1.25x
- certified-plus: 1.5x
- championship-series: 1.5x
- major: 2.0x

Major and championship-series events are designated; certified and
certified-plus are earned from the event's structure (see determine_booster).
"""

from typing import Optional

from oppr.config import EngineConfig
from oppr.errors import InputDomainError
from oppr.store import current

BOOSTER_TIERS = ("none", "certified", "certified-plus", "championship-series", "major")


def get_booster_multiplier(tier: str, config: Optional[EngineConfig] = None) -> float:
    """
    Look up the multiplier for a certification tier.

    Raises:
        InputDomainError: If the tier is not one of BOOSTER_TIERS
    """
    if tier not in BOOSTER_TIERS:
        raise InputDomainError(
            f"Unknown booster tier: '{tier}'. Allowed values: {', '.join(BOOSTER_TIERS)}"
        )
    return getattr(current(config).boosters, tier.replace("-", "_"))


def apply_booster(value: float, tier: str, config: Optional[EngineConfig] = None) -> float:
    return value * get_booster_multiplier(tier, config)


def qualifies_for_certified(has_valid_qualifying, has_valid_finals, finalist_count, duration_days,
                            config=None):
    """24+ finalists, valid qualifying and finals formats, at most 4 days."""
    bo = current(config).boosters
    if finalist_count < bo.certified_min_finalists:
        return False
    if not has_valid_qualifying or not has_valid_finals:
        return False
    return duration_days <= bo.certified_max_days


def qualifies_for_certified_plus(rated_player_count, has_valid_qualifying, has_valid_finals,
                                 finalist_count, duration_days, config=None):
    """Everything certified requires, plus 128+ rated players."""
    cfg = current(config)
    if rated_player_count < cfg.boosters.certified_plus_min_rated_players:
        return False
    return qualifies_for_certified(has_valid_qualifying, has_valid_finals, finalist_count, duration_days, cfg)


def determine_booster(rated_player_count, has_valid_qualifying, has_valid_finals,
                      finalist_count, duration_days, config=None):
    """Highest earned tier: certified-plus, certified or none."""
    cfg = current(config)
    if qualifies_for_certified_plus(rated_player_count, has_valid_qualifying, has_valid_finals,
                                    finalist_count, duration_days, cfg):
        return "certified-plus"
    if qualifies_for_certified(has_valid_qualifying, has_valid_finals, finalist_count, duration_days, cfg):
        return "certified"
    return "none"
