"""
Player efficiency: how much of the available first-place value a player
actually collects, as a percentage. Only active (non-expired) events count.
Also compares recent form against the whole history and summarizes
per-event efficiency.
"""

import statistics
from typing import Optional, Sequence

from oppr.config import EngineConfig
from oppr.errors import InputDomainError
from oppr.models import DateLike, EventPoints
from oppr.ranking.aggregator import decayed_points
from oppr.ranking.decay import _as_date, is_event_active
from oppr.store import current
from oppr.utils import top_n


def event_efficiency(points_earned: float, first_place_value: float) -> float:
    """Points earned as a percentage of first place (0 when first place is worth nothing)."""
    if first_place_value == 0:
        return 0.0
    return points_earned / first_place_value * 100


def _active(events, now, config):
    return [e for e in events if is_event_active(e.event_date, now, config)]


def overall_efficiency(events: Sequence[EventPoints], now: DateLike, config=None) -> float:
    active = _active(events, now, config)
    available = sum(e.first_place_value for e in active)
    if available == 0:
        return 0.0
    return sum(e.total_points for e in active) / available * 100


def top_n_efficiency(events: Sequence[EventPoints], now: DateLike, n=None, config=None) -> float:
    """Efficiency over the player's N best events by points earned."""
    cfg = current(config)
    count = n if n is not None else cfg.ranking.top_events_count
    best = top_n(
        _active(events, now, cfg), count,
        key=lambda e: e.total_points, tie_break=lambda e: e.tournament_id,
    )
    return overall_efficiency(best, now, cfg)


def decayed_efficiency(events: Sequence[EventPoints], now: DateLike, config=None) -> float:
    """Efficiency using decayed rather than raw points."""
    cfg = current(config)
    active = _active(events, now, cfg)
    available = sum(e.first_place_value for e in active)
    if available == 0:
        return 0.0
    return sum(decayed_points(e, now, cfg) for e in active) / available * 100


def _recent_first(events):
    return sorted(events, key=lambda e: (_as_date(e.event_date), e.tournament_id), reverse=True)


def analyze_efficiency_trend(
    events: Sequence[EventPoints],
    now: DateLike,
    window_size: Optional[int] = None,
    config: Optional[EngineConfig] = None,
) -> dict:
    """
    Compare a player's recent efficiency with their efficiency over all active events.

    Args:
        events: The player's event points
        now: Reference date for deciding which events are still active
        window_size: Number of most recent events forming the recent window
            (default: ranking.trend_window)
        config: Configuration snapshot (default: active configuration)

    Returns:
        Dict with keys overall_efficiency, recent_efficiency and trend, where
        trend is 'improving', 'declining' or 'stable' (gap under
        ranking.trend_threshold percentage points)
    """
    cfg = current(config)
    window = window_size if window_size is not None else cfg.ranking.trend_window
    if window < 1:
        raise InputDomainError(f"window_size must be >= 1, got {window}")

    ordered = _recent_first(_active(events, now, cfg))
    overall = overall_efficiency(ordered, now, cfg)
    recent = overall_efficiency(ordered[:window], now, cfg)

    difference = recent - overall
    if abs(difference) < cfg.ranking.trend_threshold:
        trend = 'stable'
    elif difference > 0:
        trend = 'improving'
    else:
        trend = 'declining'

    return {
        'overall_efficiency': overall,
        'recent_efficiency': recent,
        'trend': trend,
    }


def get_efficiency_stats(events: Sequence[EventPoints], now: DateLike,
                         config: Optional[EngineConfig] = None) -> dict:
    """
    Summary efficiency figures for a player's active events.

    Returns:
        Dict with keys overall, top_n, best, worst, average and median, all
        percentages. Every value is 0.0 when the player has no active events.
        The median of an even count is the lower of the two middle values.
    """
    cfg = current(config)
    active = _active(events, now, cfg)
    if not active:
        return {'overall': 0.0, 'top_n': 0.0, 'best': 0.0, 'worst': 0.0, 'average': 0.0, 'median': 0.0}

    per_event = sorted(
        (event_efficiency(e.total_points, e.first_place_value) for e in active),
        reverse=True,
    )
    return {
        'overall': overall_efficiency(active, now, cfg),
        'top_n': top_n_efficiency(active, now, config=cfg),
        'best': per_event[0],
        'worst': per_event[-1],
        'average': statistics.mean(per_event),
        'median': per_event[len(per_event) // 2],
    }
