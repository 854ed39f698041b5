"""
Ranking Aggregator

Turns a player's event history into a world-ranking score: decay every
event's points to ``now``, drop expired events, keep the top N decayed
values and sum them.

Selection order is decayed points descending; equal values prefer the more
recent event, then the lower tournament id. Standings order players by
ranking points descending, then player id.

Usage:
    from oppr.ranking.aggregator import aggregate_ranking, compute_world_rankings
"""

from datetime import datetime
from typing import Optional, Sequence

import pandas as pd

from oppr.config import EngineConfig
from oppr.models import DateLike, EventPoints
from oppr.ranking.decay import _as_date, decay_points, is_event_active
from oppr.store import current
from oppr.utils import setup_logging, top_n

# --- Module Logger ---
logger = setup_logging(__name__)


def decayed_points(event: EventPoints, now: DateLike, config: Optional[EngineConfig] = None) -> float:
    return decay_points(event.total_points, event.event_date, now, config)


def select_top_events(
    events: Sequence[EventPoints],
    now: DateLike,
    config: Optional[EngineConfig] = None,
) -> list[tuple[EventPoints, float]]:
    """
    Pick the events that count toward a player's ranking.

    Args:
        events: The player's undecayed event points
        now: Reference date for decay
        config: Configuration snapshot (default: active configuration)

    Returns:
        (event, decayed points) pairs, best first, at most top_events_count
    """
    cfg = current(config)
    active = [
        (event, decayed_points(event, now, cfg))
        for event in events
        if is_event_active(event.event_date, now, cfg)
    ]
    return top_n(
        active,
        cfg.ranking.top_events_count,
        key=lambda pair: pair[1],
        tie_break=lambda pair: (-_as_date(pair[0].event_date).toordinal(), pair[0].tournament_id),
    )


def aggregate_ranking(events: Sequence[EventPoints], now: DateLike,
                      config: Optional[EngineConfig] = None) -> float:
    """Sum of the top N decayed event points (0.0 with no active events)."""
    return sum(points for _, points in select_top_events(events, now, config))


def compute_world_rankings(events_df: pd.DataFrame, now: DateLike,
                           config: Optional[EngineConfig] = None) -> pd.DataFrame:
    """
    Compute standings for every player in an event-points table.

    Args:
        events_df: DataFrame with columns [player_id, tournament_id, event_date, total_points]
        now: Reference date for decay
        config: Configuration snapshot (default: active configuration)

    Returns:
        DataFrame with columns [world_ranking, player_id, ranking_points, events_counted],
        best first. Players whose events have all expired are left out.
    """
    cfg = current(config)
    columns = ['world_ranking', 'player_id', 'ranking_points', 'events_counted']
    if events_df.empty:
        return pd.DataFrame(columns=columns)

    rows = []
    for player_id, group in events_df.groupby('player_id', sort=True):
        events = [
            EventPoints(
                tournament_id=str(row.tournament_id),
                event_date=_to_date(row.event_date),
                total_points=float(row.total_points),
            )
            for row in group.itertuples(index=False)
        ]
        selected = select_top_events(events, now, cfg)
        if not selected:
            continue
        rows.append({
            'player_id': player_id,
            'ranking_points': round(sum(points for _, points in selected), 2),
            'events_counted': len(selected),
        })

    if not rows:
        return pd.DataFrame(columns=columns)

    standings = pd.DataFrame(rows)
    standings = standings.sort_values(
        ['ranking_points', 'player_id'], ascending=[False, True]
    ).reset_index(drop=True)
    standings['world_ranking'] = standings.index + 1

    logger.info(f"Computed world rankings for {len(standings)} players")
    return standings[columns]


def _to_date(value):
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        return pd.Timestamp(value).date()
    return value
