"""
Engine data model.

Plain dataclasses passed between the formula modules. The engine never
persists these; collaborators map them to and from their own storage.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Union

from oppr.config import DEFAULT_RATING

DateLike = Union[date, datetime]


@dataclass
class Player:
    """
    Engine view of a player.

    ``ranking`` is the world ranking position (1 = best) or None when the
    player has no ranking yet. ``rated`` overrides the event-count rule when
    a collaborator stores the flag directly; see
    ``oppr.tournament.value.player_is_rated``.
    """
    id: str
    rating: float = DEFAULT_RATING
    rating_deviation: Optional[float] = None
    ranking: Optional[int] = None
    event_count: int = 0
    rated: Optional[bool] = None


@dataclass(frozen=True)
class QualifyingSpec:
    type: str = "limited"
    meaningful_games: float = 0
    hours: Optional[float] = None
    four_player_groups: bool = False
    three_player_groups: bool = False


@dataclass(frozen=True)
class FinalsSpec:
    format_type: str = "none"
    meaningful_games: float = 0
    finalist_count: Optional[int] = None
    four_player_groups: bool = False
    three_player_groups: bool = False

    @property
    def has_finals(self) -> bool:
        return self.format_type != "none"


@dataclass(frozen=True)
class FormatSpec:
    qualifying: QualifyingSpec = field(default_factory=QualifyingSpec)
    finals: FinalsSpec = field(default_factory=FinalsSpec)
    ball_count: int = 3


@dataclass
class FinishingResult:
    player: Player
    position: int
    event_date: Optional[DateLike] = None
    opted_out: bool = False


@dataclass(frozen=True)
class PointAward:
    player: Player
    position: int
    flat_points: float
    shaped_points: float
    total_points: float


@dataclass(frozen=True)
class TournamentValue:
    base_value: float
    rating_adjustment: float
    ranking_adjustment: float
    raw_value: float
    format_grade: float
    booster_multiplier: float
    first_place_value: float


@dataclass(frozen=True)
class EventPoints:
    """Undecayed points a player earned at one event."""
    tournament_id: str
    event_date: DateLike
    total_points: float
    first_place_value: float = 0.0


@dataclass(frozen=True)
class MatchOutcome:
    opponent_id: str
    opponent_rating: float
    opponent_deviation: float
    score: float


@dataclass(frozen=True)
class RatingSnapshot:
    rating: float
    rating_deviation: float
    recorded_at: Optional[datetime] = None
    reason: str = "new"


@dataclass(frozen=True)
class RatingChange:
    new_rating: float
    new_deviation: float
    change: float
