"""
Tests for ranking aggregation and efficiency.
"""

from datetime import date, timedelta

import pandas as pd
import pytest

from oppr.models import EventPoints
from oppr.ranking.aggregator import (
    aggregate_ranking,
    compute_world_rankings,
    select_top_events,
)
from oppr.errors import InputDomainError
from oppr.ranking.efficiency import (
    analyze_efficiency_trend,
    decayed_efficiency,
    event_efficiency,
    get_efficiency_stats,
    overall_efficiency,
    top_n_efficiency,
)
from oppr.store import resolve_config

NOW = date(2025, 6, 1)


def event(tid, days, points, fpv=0.0):
    return EventPoints(tournament_id=tid, event_date=NOW - timedelta(days=days), total_points=points,
                       first_place_value=fpv)


class TestSelectTopEvents:
    """Tests for select_top_events."""

    def test_best_decayed_first(self):
        events = [event("old", 400, 40.0), event("new", 10, 35.0)]
        selected = select_top_events(events, NOW)
        # 40 * 0.75 = 30 < 35
        assert [e.tournament_id for e, _ in selected] == ["new", "old"]
        assert [p for _, p in selected] == [35.0, 30.0]

    def test_expired_excluded(self):
        events = [event("ancient", 1200, 100.0), event("recent", 5, 1.0)]
        assert [e.tournament_id for e, _ in select_top_events(events, NOW)] == ["recent"]

    def test_limited_to_top_count(self):
        events = [event(f"t{i:02d}", i, float(i + 1)) for i in range(20)]
        selected = select_top_events(events, NOW)
        assert len(selected) == 15
        assert selected[0][0].tournament_id == "t19"

    def test_tie_prefers_recent_event(self):
        events = [event("b", 100, 10.0), event("a", 200, 10.0), event("c", 50, 10.0)]
        assert [e.tournament_id for e, _ in select_top_events(events, NOW)] == ["c", "b", "a"]

    def test_tie_same_day_by_id(self):
        events = [event("z", 10, 10.0), event("m", 10, 10.0)]
        assert [e.tournament_id for e, _ in select_top_events(events, NOW)] == ["m", "z"]

    def test_count_from_config(self):
        resolve_config({"ranking": {"top_events_count": 2}})
        events = [event(f"t{i}", i, 5.0) for i in range(5)]
        assert len(select_top_events(events, NOW)) == 2


class TestAggregateRanking:
    """Tests for aggregate_ranking."""

    def test_sum_of_decayed_points(self):
        events = [event("a", 10, 20.0), event("b", 500, 20.0), event("c", 800, 20.0)]
        assert aggregate_ranking(events, NOW) == pytest.approx(20.0 + 15.0 + 10.0)

    def test_no_events(self):
        assert aggregate_ranking([], NOW) == 0


class TestWorldRankings:
    """Tests for compute_world_rankings."""

    def test_standings(self):
        df = pd.DataFrame([
            {'player_id': 'alice', 'tournament_id': 't1', 'event_date': NOW - timedelta(days=5), 'total_points': 30.0},
            {'player_id': 'alice', 'tournament_id': 't2', 'event_date': NOW - timedelta(days=400), 'total_points': 20.0},
            {'player_id': 'bob', 'tournament_id': 't1', 'event_date': NOW - timedelta(days=5), 'total_points': 50.0},
            {'player_id': 'carol', 'tournament_id': 't3', 'event_date': NOW - timedelta(days=2000), 'total_points': 99.0},
        ])
        standings = compute_world_rankings(df, NOW)

        assert list(standings.columns) == ['world_ranking', 'player_id', 'ranking_points', 'events_counted']
        assert list(standings['player_id']) == ['bob', 'alice']
        assert list(standings['world_ranking']) == [1, 2]
        assert standings.iloc[1]['ranking_points'] == pytest.approx(45.0)
        assert standings.iloc[1]['events_counted'] == 2

    def test_identical_totals_ordered_by_id(self):
        df = pd.DataFrame([
            {'player_id': 'zed', 'tournament_id': 't1', 'event_date': NOW, 'total_points': 10.0},
            {'player_id': 'amy', 'tournament_id': 't1', 'event_date': NOW, 'total_points': 10.0},
        ])
        assert list(compute_world_rankings(df, NOW)['player_id']) == ['amy', 'zed']

    def test_string_dates(self):
        df = pd.DataFrame([
            {'player_id': 'p', 'tournament_id': 't', 'event_date': '2024-01-01', 'total_points': 8.0},
        ])
        assert compute_world_rankings(df, NOW)['ranking_points'].iloc[0] == pytest.approx(6.0)

    def test_empty(self):
        df = pd.DataFrame(columns=['player_id', 'tournament_id', 'event_date', 'total_points'])
        assert compute_world_rankings(df, NOW).empty


class TestEfficiency:
    """Tests for efficiency percentages."""

    def test_event_efficiency(self):
        assert event_efficiency(5.0, 20.0) == 25.0
        assert event_efficiency(5.0, 0.0) == 0.0

    def test_overall_efficiency(self):
        events = [event("a", 10, 10.0, fpv=20.0), event("b", 20, 5.0, fpv=20.0)]
        assert overall_efficiency(events, NOW) == pytest.approx(37.5)

    def test_expired_events_ignored(self):
        events = [event("a", 10, 10.0, fpv=20.0), event("b", 1500, 0.0, fpv=100.0)]
        assert overall_efficiency(events, NOW) == pytest.approx(50.0)

    def test_nothing_available(self):
        assert overall_efficiency([], NOW) == 0.0
        assert decayed_efficiency([event("a", 10, 0.0)], NOW) == 0.0

    def test_top_n_efficiency(self):
        events = [event("a", 10, 10.0, fpv=10.0), event("b", 20, 1.0, fpv=10.0)]
        assert top_n_efficiency(events, NOW, n=1) == pytest.approx(100.0)

    def test_decayed_efficiency(self):
        events = [event("a", 400, 10.0, fpv=10.0)]
        assert decayed_efficiency(events, NOW) == pytest.approx(75.0)


class TestEfficiencyTrend:
    """Tests for analyze_efficiency_trend."""

    def test_improving(self):
        recent = [event(f"r{i}", i + 1, 80.0, fpv=100.0) for i in range(2)]
        older = [event(f"o{i}", 100 + i, 20.0, fpv=100.0) for i in range(3)]
        result = analyze_efficiency_trend(older + recent, NOW, window_size=2)
        assert result['overall_efficiency'] == pytest.approx(44.0)
        assert result['recent_efficiency'] == pytest.approx(80.0)
        assert result['trend'] == 'improving'

    def test_declining(self):
        recent = [event(f"r{i}", i + 1, 20.0, fpv=100.0) for i in range(2)]
        older = [event(f"o{i}", 100 + i, 80.0, fpv=100.0) for i in range(3)]
        result = analyze_efficiency_trend(recent + older, NOW, window_size=2)
        assert result['overall_efficiency'] == pytest.approx(56.0)
        assert result['trend'] == 'declining'

    def test_small_gap_is_stable(self):
        events = [event("r", 1, 52.0, fpv=100.0), event("o", 100, 50.0, fpv=100.0)]
        result = analyze_efficiency_trend(events, NOW, window_size=1)
        assert result['trend'] == 'stable'

    def test_expired_events_left_out(self):
        events = [event("r", 1, 50.0, fpv=100.0), event("gone", 2000, 0.0, fpv=100.0)]
        result = analyze_efficiency_trend(events, NOW, window_size=1)
        assert result['overall_efficiency'] == pytest.approx(50.0)
        assert result['trend'] == 'stable'

    def test_window_and_threshold_from_config(self):
        resolve_config({"ranking": {"trend_window": 1, "trend_threshold": 0.5}})
        events = [event("r", 1, 52.0, fpv=100.0), event("o", 100, 50.0, fpv=100.0)]
        result = analyze_efficiency_trend(events, NOW)
        assert result['recent_efficiency'] == pytest.approx(52.0)
        assert result['trend'] == 'improving'

    def test_no_events(self):
        result = analyze_efficiency_trend([], NOW)
        assert result == {'overall_efficiency': 0.0, 'recent_efficiency': 0.0, 'trend': 'stable'}

    def test_window_must_be_positive(self):
        with pytest.raises(InputDomainError):
            analyze_efficiency_trend([], NOW, window_size=0)


class TestEfficiencyStats:
    """Tests for get_efficiency_stats."""

    def events(self):
        return [event(f"t{i}", 10 + i, points, fpv=100.0) for i, points in enumerate([10.0, 40.0, 70.0, 100.0])]

    def test_stats(self):
        stats = get_efficiency_stats(self.events(), NOW)
        assert stats['overall'] == pytest.approx(55.0)
        assert stats['top_n'] == pytest.approx(55.0)
        assert stats['best'] == pytest.approx(100.0)
        assert stats['worst'] == pytest.approx(10.0)
        assert stats['average'] == pytest.approx(55.0)
        # Lower middle of an even count
        assert stats['median'] == pytest.approx(40.0)

    def test_top_n_follows_config(self):
        resolve_config({"ranking": {"top_events_count": 2}})
        stats = get_efficiency_stats(self.events(), NOW)
        assert stats['top_n'] == pytest.approx(85.0)

    def test_no_active_events(self):
        stats = get_efficiency_stats([event("gone", 2000, 10.0, fpv=100.0)], NOW)
        assert set(stats.values()) == {0.0}
