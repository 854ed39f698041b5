"""
Shared fixtures for engine tests.
"""

import pytest

from oppr.models import FinishingResult, Player
from oppr.store import reset_config


@pytest.fixture(autouse=True)
def default_config():
    """Every test starts and ends on the built-in defaults."""
    reset_config()
    yield
    reset_config()


def make_players(count, rated=None, base_rating=1300.0, step=0.0):
    """Players p01..pNN; the first ``rated`` of them have enough events to be rated."""
    rated = count if rated is None else rated
    return [
        Player(
            id=f"p{i + 1:02d}",
            rating=base_rating + step * i,
            event_count=5 if i < rated else 0,
        )
        for i in range(count)
    ]


def make_results(players):
    return [FinishingResult(player=p, position=i + 1) for i, p in enumerate(players)]
