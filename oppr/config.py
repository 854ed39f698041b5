"""
Central configuration for the OPPR scoring engine.

All default constants live here, grouped the way the scoring rules group
them. The groups are frozen dataclasses so a resolved configuration can be
shared between threads as an immutable snapshot; see ``oppr.store`` for
overrides, derivation and validation.
"""

import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

# --- Base Value ---
POINTS_PER_PLAYER = 0.5  # Points per rated player
MAX_BASE_VALUE = 32.0  # Reached at 64+ rated players
RATED_PLAYER_THRESHOLD = 5  # Events needed to become a rated player

# --- Value Adjustment (ratings) ---
RATING_ADJ_MAX_VALUE = 25.0
RATING_ADJ_COEFFICIENT = 0.000546875
RATING_ADJ_OFFSET = 0.703125
PERFECT_RATING = 2000.0  # A perfect player adds ~0.39 points

# --- Value Adjustment (rankings) ---
RANKING_ADJ_MAX_VALUE = 50.0
RANKING_ADJ_COEFFICIENT = -0.211675054  # ln(ranking) coefficient
RANKING_ADJ_OFFSET = 1.459827968  # World #1 adds ~1.46 points
MAX_PLAYERS_CONSIDERED = 64

# --- Format Grade ---
BASE_GAME_VALUE = 0.04  # 4% per meaningful game
MAX_GRADE_WITHOUT_FINALS = 1.0
MAX_GRADE_WITH_FINALS = 2.0
FOUR_PLAYER_GROUPS = 2.0
THREE_PLAYER_GROUPS = 1.5
ONE_BALL = 0.33
TWO_BALL = 0.66
THREE_PLUS_BALL = 1.0
PERCENT_PER_HOUR = 0.01  # Unlimited qualifying: 1% per hour...
MAX_HOURS_BONUS = 0.2  # ...up to 20%
MIN_HOURS_FOR_BONUS = 20
MIN_FINALISTS_PERCENT = 0.1
MAX_FINALISTS_PERCENT = 0.5
FLIP_FRENZY_THREE_BALL_DIVISOR = 2
FLIP_FRENZY_ONE_BALL_DIVISOR = 3
UNLIMITED_CARD_MULTIPLIER = 4.0  # Card qualifying: 16% per game with 20+ hours

# Finals format types and their grade multipliers
FINALS_FORMAT_MULTIPLIERS = {
    "single-elimination": 1.0,
    "double-elimination": 1.0,
    "match-play": 1.0,
    "best-game": 1.0,
    "card-qualifying": 1.0,
    "pin-golf": 1.0,
    "flip-frenzy": 1.0,
    "strike-format": 1.0,
    "target-match-play": 1.0,
    "hybrid": 1.0,
}
QUALIFYING_TYPES = frozenset({"limited", "unlimited", "hybrid", "none"})

# --- Certification Boosters ---
BOOSTER_NONE = 1.0
BOOSTER_CERTIFIED = 1.25
BOOSTER_CERTIFIED_PLUS = 1.5
BOOSTER_CHAMPIONSHIP_SERIES = 1.5
BOOSTER_MAJOR = 2.0
CERTIFIED_MIN_FINALISTS = 24
CERTIFIED_MAX_DAYS = 4
CERTIFIED_PLUS_MIN_RATED_PLAYERS = 128

# --- Time Decay ---
YEAR_0_TO_1 = 1.0
YEAR_1_TO_2 = 0.75
YEAR_2_TO_3 = 0.5
YEAR_3_PLUS = 0.0
DAYS_PER_YEAR = 365

# --- Point Distribution ---
FLAT_FRACTION = 0.1  # Linear share of first-place value
POSITION_EXPONENT = 0.7
VALUE_EXPONENT = 3
MAX_DYNAMIC_PLAYERS = 64

# --- Ranking ---
TOP_EVENTS_COUNT = 15
EFFICIENCY_TREND_WINDOW = 10  # Recent events compared against the whole history
EFFICIENCY_TREND_THRESHOLD = 5.0  # Percentage points; smaller gaps count as stable

# --- Rating (Glicko) ---
DEFAULT_RATING = 1300.0
MIN_DEVIATION = 10.0
MAX_DEVIATION = 200.0
DEVIATION_DECAY_PER_DAY = 0.3
OPPONENTS_RANGE = 32  # Players above/below used per simulated tournament
GLICKO_Q = math.log(10) / 400

# --- Tournament Validation ---
MIN_PLAYERS = 3
MIN_PRIVATE_PLAYERS = 16
MAX_GAMES_PER_MACHINE = 3


@dataclass(frozen=True)
class BaseValueConstants:
    points_per_player: float = POINTS_PER_PLAYER
    max_base_value: float = MAX_BASE_VALUE
    max_player_count: float = MAX_BASE_VALUE / POINTS_PER_PLAYER  # derived
    rated_player_threshold: int = RATED_PLAYER_THRESHOLD


@dataclass(frozen=True)
class RatingAdjustmentConstants:
    max_value: float = RATING_ADJ_MAX_VALUE
    coefficient: float = RATING_ADJ_COEFFICIENT
    offset: float = RATING_ADJ_OFFSET
    perfect_rating: float = PERFECT_RATING
    min_effective_rating: float = RATING_ADJ_OFFSET / RATING_ADJ_COEFFICIENT  # derived


@dataclass(frozen=True)
class RankingAdjustmentConstants:
    max_value: float = RANKING_ADJ_MAX_VALUE
    coefficient: float = RANKING_ADJ_COEFFICIENT
    offset: float = RANKING_ADJ_OFFSET


@dataclass(frozen=True)
class ValueAdjustmentConstants:
    rating: RatingAdjustmentConstants = field(default_factory=RatingAdjustmentConstants)
    ranking: RankingAdjustmentConstants = field(default_factory=RankingAdjustmentConstants)
    max_players_considered: int = MAX_PLAYERS_CONSIDERED


@dataclass(frozen=True)
class FormatGradeConstants:
    base_game_value: float = BASE_GAME_VALUE
    max_without_finals: float = MAX_GRADE_WITHOUT_FINALS
    max_with_finals: float = MAX_GRADE_WITH_FINALS
    max_games_for_max_grade: float = MAX_GRADE_WITH_FINALS / BASE_GAME_VALUE  # derived
    four_player_groups: float = FOUR_PLAYER_GROUPS
    three_player_groups: float = THREE_PLAYER_GROUPS
    one_ball: float = ONE_BALL
    two_ball: float = TWO_BALL
    three_plus_ball: float = THREE_PLUS_BALL
    percent_per_hour: float = PERCENT_PER_HOUR
    max_hours_bonus: float = MAX_HOURS_BONUS
    min_hours_for_bonus: float = MIN_HOURS_FOR_BONUS
    min_finalists_percent: float = MIN_FINALISTS_PERCENT
    max_finalists_percent: float = MAX_FINALISTS_PERCENT
    flip_frenzy_three_ball_divisor: float = FLIP_FRENZY_THREE_BALL_DIVISOR
    flip_frenzy_one_ball_divisor: float = FLIP_FRENZY_ONE_BALL_DIVISOR
    unlimited_card_multiplier: float = UNLIMITED_CARD_MULTIPLIER
    finals_format_multipliers: Mapping[str, float] = field(
        default_factory=lambda: MappingProxyType(dict(FINALS_FORMAT_MULTIPLIERS))
    )


@dataclass(frozen=True)
class BoosterConstants:
    none: float = BOOSTER_NONE
    certified: float = BOOSTER_CERTIFIED
    certified_plus: float = BOOSTER_CERTIFIED_PLUS
    championship_series: float = BOOSTER_CHAMPIONSHIP_SERIES
    major: float = BOOSTER_MAJOR
    certified_min_finalists: int = CERTIFIED_MIN_FINALISTS
    certified_max_days: int = CERTIFIED_MAX_DAYS
    certified_plus_min_rated_players: int = CERTIFIED_PLUS_MIN_RATED_PLAYERS


@dataclass(frozen=True)
class TimeDecayConstants:
    year_0_to_1: float = YEAR_0_TO_1
    year_1_to_2: float = YEAR_1_TO_2
    year_2_to_3: float = YEAR_2_TO_3
    year_3_plus: float = YEAR_3_PLUS
    days_per_year: float = DAYS_PER_YEAR


@dataclass(frozen=True)
class DistributionConstants:
    flat_fraction: float = FLAT_FRACTION
    shaped_fraction: float = 1.0 - FLAT_FRACTION  # derived
    position_exponent: float = POSITION_EXPONENT
    value_exponent: float = VALUE_EXPONENT
    max_dynamic_players: float = MAX_DYNAMIC_PLAYERS


@dataclass(frozen=True)
class RankingConstants:
    top_events_count: int = TOP_EVENTS_COUNT
    trend_window: int = EFFICIENCY_TREND_WINDOW
    trend_threshold: float = EFFICIENCY_TREND_THRESHOLD


@dataclass(frozen=True)
class RatingConstants:
    default_rating: float = DEFAULT_RATING
    min_deviation: float = MIN_DEVIATION
    max_deviation: float = MAX_DEVIATION
    deviation_decay_per_day: float = DEVIATION_DECAY_PER_DAY
    opponents_range: int = OPPONENTS_RANGE
    q: float = GLICKO_Q


@dataclass(frozen=True)
class ValidationConstants:
    min_players: int = MIN_PLAYERS
    min_private_players: int = MIN_PRIVATE_PLAYERS
    max_games_per_machine: int = MAX_GAMES_PER_MACHINE


@dataclass(frozen=True)
class EngineConfig:
    """Complete engine configuration: every constant group in one snapshot."""
    base_value: BaseValueConstants = field(default_factory=BaseValueConstants)
    value_adjustment: ValueAdjustmentConstants = field(default_factory=ValueAdjustmentConstants)
    format_grade: FormatGradeConstants = field(default_factory=FormatGradeConstants)
    boosters: BoosterConstants = field(default_factory=BoosterConstants)
    time_decay: TimeDecayConstants = field(default_factory=TimeDecayConstants)
    distribution: DistributionConstants = field(default_factory=DistributionConstants)
    ranking: RankingConstants = field(default_factory=RankingConstants)
    rating: RatingConstants = field(default_factory=RatingConstants)
    validation: ValidationConstants = field(default_factory=ValidationConstants)


DEFAULT_CONFIG = EngineConfig()
