"""
OPPR Scoring Engine

Computes tournament values, per-position points, time-decayed world
rankings and Glicko skill ratings for competitive pinball.

Subpackages:
- oppr.tournament: Tournament value, format grade, boosters, point distribution
- oppr.ranking: Time decay and ranking aggregation
- oppr.rating: Match simulation, rating updates, rating ledger

Usage:
    import oppr

    oppr.resolve_config({"time_decay": {"year_1_to_2": 0.8}})
    value = oppr.calculate_tournament_value(players, format_spec, "certified")
    awards = oppr.distribute_points(results, value.first_place_value)
"""

from oppr.errors import (
    ConfigurationValidationError,
    InputDomainError,
    OpprError,
    ValidationIssue,
)
from oppr.models import (
    EventPoints,
    FinalsSpec,
    FinishingResult,
    FormatSpec,
    MatchOutcome,
    Player,
    PointAward,
    QualifyingSpec,
    RatingChange,
    RatingSnapshot,
    TournamentValue,
)
from oppr.store import get_config, get_default, reset_config, resolve_config
from oppr.ranking.aggregator import aggregate_ranking
from oppr.ranking.decay import decay_points
from oppr.rating.glicko import apply_inactivity_decay, update_rating
from oppr.rating.simulation import simulate_matches
from oppr.tournament.distribution import distribute_points
from oppr.tournament.value import calculate_tournament_value

__all__ = [
    # Configuration
    'resolve_config',
    'get_config',
    'get_default',
    'reset_config',
    # Operations
    'calculate_tournament_value',
    'distribute_points',
    'decay_points',
    'aggregate_ranking',
    'simulate_matches',
    'update_rating',
    'apply_inactivity_decay',
    # Models
    'Player',
    'QualifyingSpec',
    'FinalsSpec',
    'FormatSpec',
    'FinishingResult',
    'PointAward',
    'EventPoints',
    'TournamentValue',
    'MatchOutcome',
    'RatingSnapshot',
    'RatingChange',
    # Errors
    'OpprError',
    'ConfigurationValidationError',
    'InputDomainError',
    'ValidationIssue',
]
