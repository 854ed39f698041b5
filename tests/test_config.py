"""
Tests for the configuration store.
"""

import threading

import pytest

from oppr.config import DEFAULT_CONFIG
from oppr.errors import ConfigurationValidationError
from oppr.store import (
    check_overrides,
    derive,
    get_config,
    get_default,
    reset_config,
    resolve_config,
    validate_config,
)


class TestDefaults:
    """Tests for the built-in configuration."""

    def test_defaults_are_valid(self):
        assert validate_config(get_default()) == []

    def test_derived_defaults(self):
        cfg = get_default()
        assert cfg.base_value.max_player_count == pytest.approx(64)
        assert cfg.value_adjustment.rating.min_effective_rating == pytest.approx(1285.714, abs=1e-3)
        assert cfg.format_grade.max_games_for_max_grade == pytest.approx(50)
        assert cfg.distribution.shaped_fraction == pytest.approx(0.9)

    def test_fractions_sum_to_one(self):
        di = get_config().distribution
        assert di.flat_fraction + di.shaped_fraction == 1.0

    def test_derive_is_idempotent(self):
        assert derive(derive(DEFAULT_CONFIG)) == derive(DEFAULT_CONFIG)


class TestResolveConfig:
    """Tests for resolve_config."""

    def test_override_is_installed(self):
        cfg = resolve_config({"time_decay": {"year_1_to_2": 0.8}})
        assert cfg.time_decay.year_1_to_2 == 0.8
        assert get_config().time_decay.year_1_to_2 == 0.8

    def test_derived_fields_recompute(self):
        cfg = resolve_config({"distribution": {"flat_fraction": 0.2}})
        assert cfg.distribution.shaped_fraction == pytest.approx(0.8)

        cfg = resolve_config({"base_value": {"points_per_player": 1.0}})
        assert cfg.base_value.max_player_count == pytest.approx(32)

    def test_overrides_stack_on_active(self):
        resolve_config({"time_decay": {"year_1_to_2": 0.8}})
        cfg = resolve_config({"ranking": {"top_events_count": 10}})
        assert cfg.time_decay.year_1_to_2 == 0.8
        assert cfg.ranking.top_events_count == 10

    def test_rejected_override_keeps_previous(self):
        before = resolve_config({"time_decay": {"year_1_to_2": 0.8}})
        with pytest.raises(ConfigurationValidationError):
            resolve_config({"time_decay": {"year_3_plus": 0.1}})
        assert get_config() is before

    def test_rejection_reports_every_issue(self):
        with pytest.raises(ConfigurationValidationError) as excinfo:
            resolve_config({
                "boosters": {"none": 1.1},
                "rating": {"min_deviation": 300.0},
            })
        fields = {issue.field for issue in excinfo.value.issues}
        assert "boosters.none" in fields
        assert "rating.max_deviation" in fields

    def test_derived_override_rejected(self):
        with pytest.raises(ConfigurationValidationError) as excinfo:
            resolve_config({"distribution": {"shaped_fraction": 0.5}})
        issue = excinfo.value.issues[0]
        assert issue.field == "distribution.shaped_fraction"
        assert issue.suggested_value == pytest.approx(0.9)

    def test_consistent_derived_override_accepted(self):
        cfg = resolve_config({"distribution": {"flat_fraction": 0.2, "shaped_fraction": 0.8}})
        assert cfg.distribution.shaped_fraction == pytest.approx(0.8)

    def test_unknown_field_rejected(self):
        with pytest.raises(ConfigurationValidationError) as excinfo:
            resolve_config({"time_decay": {"year_9": 0.1}})
        assert excinfo.value.issues[0].field == "time_decay.year_9"

    def test_non_numeric_rejected(self):
        with pytest.raises(ConfigurationValidationError):
            resolve_config({"ranking": {"top_events_count": "fifteen"}})
        with pytest.raises(ConfigurationValidationError):
            resolve_config({"rating": {"q": float("nan")}})

    def test_error_is_value_error(self):
        with pytest.raises(ValueError):
            resolve_config({"format_grade": {"max_with_finals": 0.5}})

    def test_finals_multiplier_map_merge(self):
        cfg = resolve_config({"format_grade": {"finals_format_multipliers": {"match-play": 1.2}}})
        assert cfg.format_grade.finals_format_multipliers["match-play"] == 1.2
        assert cfg.format_grade.finals_format_multipliers["pin-golf"] == 1.0

    def test_reset_restores_defaults(self):
        resolve_config({"time_decay": {"year_1_to_2": 0.8}})
        assert reset_config() is get_default()
        assert get_config().time_decay.year_1_to_2 == 0.75


class TestIntegerAndDivisorFields:
    """Tests for count fields and the flip-frenzy divisors."""

    def test_fractional_count_rejected(self):
        with pytest.raises(ConfigurationValidationError) as excinfo:
            resolve_config({"ranking": {"top_events_count": 2.5}})
        issue = excinfo.value.issues[0]
        assert issue.field == "ranking.top_events_count"
        assert issue.suggested_value == 2
        assert get_config().ranking.top_events_count == 15

    def test_whole_float_stored_as_int(self):
        cfg = resolve_config({"ranking": {"top_events_count": 15.0}})
        assert cfg.ranking.top_events_count == 15
        assert isinstance(cfg.ranking.top_events_count, int)

    @pytest.mark.parametrize("section, name", [
        ("value_adjustment", "max_players_considered"),
        ("rating", "opponents_range"),
        ("base_value", "rated_player_threshold"),
        ("validation", "min_players"),
    ])
    def test_other_counts_must_be_whole(self, section, name):
        issues = check_overrides({section: {name: 1.5}})
        assert f"{section}.{name}" in {i.field for i in issues}

    def test_boolean_count_rejected(self):
        issues = check_overrides({"rating": {"opponents_range": True}})
        assert "rating.opponents_range" in {i.field for i in issues}

    @pytest.mark.parametrize("name, suggested", [
        ("flip_frenzy_three_ball_divisor", 2),
        ("flip_frenzy_one_ball_divisor", 3),
    ])
    def test_divisor_must_be_positive(self, name, suggested):
        with pytest.raises(ConfigurationValidationError) as excinfo:
            resolve_config({"format_grade": {name: 0}})
        issue = excinfo.value.issues[0]
        assert issue.field == f"format_grade.{name}"
        assert issue.suggested_value == suggested


class TestCheckOverrides:
    """Tests for check_overrides (dry run)."""

    def test_check_does_not_install(self):
        assert check_overrides({"time_decay": {"year_1_to_2": 0.8}}) == []
        assert get_config().time_decay.year_1_to_2 == 0.75

    def test_check_reports_issues(self):
        issues = check_overrides({"time_decay": {"year_0_to_1": 0.9}})
        assert [i.field for i in issues] == ["time_decay.year_0_to_1"]


class TestConcurrentResolution:
    """Readers never see a half-installed configuration."""

    def test_snapshots_always_consistent(self):
        errors = []

        def writer():
            for fraction in (0.1, 0.2, 0.3, 0.4) * 25:
                resolve_config({"distribution": {"flat_fraction": fraction}})

        def reader():
            for _ in range(500):
                di = get_config().distribution
                if abs(di.flat_fraction + di.shaped_fraction - 1.0) > 1e-9:
                    errors.append(di)

        threads = [threading.Thread(target=writer)] + [threading.Thread(target=reader) for _ in range(3)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
