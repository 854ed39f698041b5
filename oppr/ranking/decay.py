"""
Time Decay Engine

Ages a point award by the age of its event:
- 0-1 years: 100%
- 1-2 years: 75%
- 2-3 years: 50%
- 3+ years: 0% (expired)

Only undecayed points and the event date are ever stored, so retuning the
weights re-ages all history on the next read. Every function takes ``now``
explicitly; there is no hidden clock.
"""

from datetime import date, datetime
from typing import Optional

from oppr.config import EngineConfig
from oppr.models import DateLike
from oppr.store import current


def _as_date(value: DateLike) -> date:
    return value.date() if isinstance(value, datetime) else value


def days_between(event_date: DateLike, now: DateLike) -> int:
    """Whole days from event_date to now (negative for future events)."""
    return (_as_date(now) - _as_date(event_date)).days


def event_age(event_date: DateLike, now: DateLike, config: Optional[EngineConfig] = None) -> float:
    """Age of an event in years."""
    return days_between(event_date, now) / current(config).time_decay.days_per_year


def decay_multiplier(age_in_years: float, config: Optional[EngineConfig] = None) -> float:
    td = current(config).time_decay
    if age_in_years < 1:
        return td.year_0_to_1
    if age_in_years < 2:
        return td.year_1_to_2
    if age_in_years < 3:
        return td.year_2_to_3
    return td.year_3_plus


def decay_points(points: float, event_date: DateLike, now: DateLike,
                 config: Optional[EngineConfig] = None) -> float:
    """
    Apply time decay to points earned at an event.

    Args:
        points: Undecayed points
        event_date: Date the points were earned
        now: Reference date
        config: Configuration snapshot (default: active configuration)

    Returns:
        points scaled by the weight for the event's age
    """
    cfg = current(config)
    return points * decay_multiplier(event_age(event_date, now, cfg), cfg)


def is_event_active(event_date: DateLike, now: DateLike, config: Optional[EngineConfig] = None) -> bool:
    """An event is active until it is 3 years old."""
    return event_age(event_date, now, config) < 3


def event_decay_info(event_date, now, config=None):
    cfg = current(config)
    age_in_days = days_between(event_date, now)
    age_in_years = age_in_days / cfg.time_decay.days_per_year
    return {
        'age_in_days': age_in_days,
        'age_in_years': age_in_years,
        'decay_multiplier': decay_multiplier(age_in_years, cfg),
        'is_active': age_in_years < 3,
    }
