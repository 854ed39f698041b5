"""
Tests for tournament input validators.
"""

from datetime import date, datetime

import pytest

from oppr.errors import InputDomainError
from oppr.models import FinishingResult, Player
from oppr.store import reset_config, resolve_config
from oppr.tournament.value import player_is_rated
from oppr.validation import (
    validate_date_not_future,
    validate_dense_positions,
    validate_games_per_machine,
    validate_minimum_players,
    validate_percentage,
    validate_player,
    validate_players,
    validate_private_tournament,
    validate_results,
)


class TestPlayers:
    """Tests for player validation."""

    def test_valid_field(self):
        validate_players([Player(id="a"), Player(id="b", ranking=3, rating_deviation=50.0)])

    def test_empty_field(self):
        with pytest.raises(InputDomainError):
            validate_players([])

    def test_duplicate_id(self):
        with pytest.raises(InputDomainError):
            validate_players([Player(id="a"), Player(id="a")])

    def test_bad_values(self):
        with pytest.raises(InputDomainError):
            validate_player(Player(id=""))
        with pytest.raises(InputDomainError):
            validate_player(Player(id="a", ranking=0))
        with pytest.raises(InputDomainError):
            validate_player(Player(id="a", rating=-1))

    def test_player_is_rated(self):
        assert player_is_rated(Player(id="a", event_count=5))
        assert not player_is_rated(Player(id="a", event_count=4))
        assert player_is_rated(Player(id="a", event_count=0, rated=True))

    def test_player_is_rated_uses_pinned_config(self):
        lenient = resolve_config({"base_value": {"rated_player_threshold": 1}})
        reset_config()
        player = Player(id="a", event_count=1)
        assert player_is_rated(player, lenient)
        assert not player_is_rated(player)


class TestTournamentRules:
    """Tests for field size and machine rules."""

    def test_minimum_players(self):
        validate_minimum_players(3)
        with pytest.raises(InputDomainError):
            validate_minimum_players(2)

    def test_private_tournament(self):
        validate_private_tournament(5, is_private=False)
        validate_private_tournament(16, is_private=True)
        with pytest.raises(InputDomainError):
            validate_private_tournament(15, is_private=True)

    def test_games_per_machine(self):
        validate_games_per_machine(6, 2)
        with pytest.raises(InputDomainError):
            validate_games_per_machine(7, 2)

    def test_limits_follow_config(self):
        resolve_config({"validation": {"min_players": 10}})
        with pytest.raises(InputDomainError):
            validate_minimum_players(9)


class TestResults:
    """Tests for finishing order validation."""

    def test_dense_with_ties(self):
        validate_dense_positions([1, 2, 2, 3])

    def test_gap(self):
        with pytest.raises(InputDomainError):
            validate_dense_positions([1, 2, 2, 4])

    def test_zero_position(self):
        with pytest.raises(InputDomainError):
            validate_dense_positions([0, 1])

    def test_non_integer_position(self):
        with pytest.raises(InputDomainError):
            validate_results([FinishingResult(Player(id="a"), 1.5)])

    def test_valid_results(self):
        validate_results([FinishingResult(Player(id="a"), 1), FinishingResult(Player(id="b"), 2)])


class TestDatesAndPercentages:
    """Tests for date and percentage validators."""

    def test_past_and_present_dates(self):
        validate_date_not_future(date(2025, 5, 31), date(2025, 6, 1))
        validate_date_not_future(date(2025, 6, 1), date(2025, 6, 1))

    def test_future_date(self):
        with pytest.raises(InputDomainError, match="Event date"):
            validate_date_not_future(date(2025, 6, 2), date(2025, 6, 1), field_name="Event date")

    def test_datetimes_compared_exactly(self):
        with pytest.raises(InputDomainError):
            validate_date_not_future(datetime(2025, 6, 1, 12, 0), datetime(2025, 6, 1, 9, 0))

    def test_mixed_date_and_datetime(self):
        validate_date_not_future(datetime(2025, 6, 1, 23, 0), date(2025, 6, 1))

    def test_percentage_bounds(self):
        validate_percentage(0)
        validate_percentage(100)
        with pytest.raises(InputDomainError):
            validate_percentage(-0.1)
        with pytest.raises(InputDomainError):
            validate_percentage(100.5)
