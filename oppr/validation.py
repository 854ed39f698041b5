"""
Input validation for formula calls.

Each validator raises InputDomainError on the first problem it finds.
"""

from datetime import datetime
from typing import Iterable, Optional, Sequence

from oppr.config import EngineConfig
from oppr.errors import InputDomainError
from oppr.models import DateLike, FinishingResult, Player
from oppr.store import current


def validate_player(player: Player) -> None:
    """
    Validate a single player.

    Raises:
        InputDomainError: If the id is missing or a numeric field is out of range
    """
    if not player.id:
        raise InputDomainError("Player must have an id")
    if player.rating < 0:
        raise InputDomainError(f"Player {player.id} has invalid rating: {player.rating}")
    if player.ranking is not None and player.ranking < 1:
        raise InputDomainError(f"Player {player.id} has invalid ranking: {player.ranking}")
    if player.rating_deviation is not None and player.rating_deviation < 0:
        raise InputDomainError(f"Player {player.id} has invalid rating deviation: {player.rating_deviation}")


def validate_players(players: Sequence[Player]) -> None:
    """
    Validate a tournament field: non-empty, each player valid, unique ids.

    Raises:
        InputDomainError: On the first invalid player or duplicate id
    """
    if len(players) == 0:
        raise InputDomainError("Players list cannot be empty")

    seen = set()
    for player in players:
        validate_player(player)
        if player.id in seen:
            raise InputDomainError(f"Duplicate player id: {player.id}")
        seen.add(player.id)


def validate_minimum_players(player_count: int, config: Optional[EngineConfig] = None) -> None:
    minimum = current(config).validation.min_players
    if player_count < minimum:
        raise InputDomainError(f"Tournament must have at least {minimum} players (got {player_count})")


def validate_private_tournament(player_count: int, is_private: bool, config: Optional[EngineConfig] = None) -> None:
    minimum = current(config).validation.min_private_players
    if is_private and player_count < minimum:
        raise InputDomainError(
            f"Private tournament must have at least {minimum} players (got {player_count})"
        )


def validate_games_per_machine(meaningful_games: float, machine_count: int,
                               config: Optional[EngineConfig] = None) -> None:
    limit = current(config).validation.max_games_per_machine
    if machine_count <= 0:
        return
    per_machine = meaningful_games / machine_count
    if per_machine > limit:
        raise InputDomainError(f"Cannot exceed {limit} games per machine (got {per_machine:g})")


def validate_dense_positions(positions: Iterable[int]) -> None:
    """
    Check that positions form a dense 1-based order.

    Tied players share a position and the next distinct position follows
    immediately (1, 2, 2, 3 is dense; 1, 2, 2, 4 is not).

    Raises:
        InputDomainError: If a position is below 1 or the order has gaps
    """
    distinct = sorted(set(positions))
    if not distinct:
        return
    if distinct[0] < 1:
        raise InputDomainError(f"Positions must be 1 or greater (got {distinct[0]})")
    expected = list(range(1, len(distinct) + 1))
    if distinct != expected:
        missing = sorted(set(expected) - set(distinct))
        raise InputDomainError(f"Positions are not dense; missing {missing}")


def validate_results(results: Sequence[FinishingResult]) -> None:
    """
    Validate a finishing order: valid players, unique ids, dense positions,
    and a single winner.

    Raises:
        InputDomainError: On the first violation
    """
    seen = set()
    for result in results:
        validate_player(result.player)
        if result.player.id in seen:
            raise InputDomainError(f"Duplicate player in results: {result.player.id}")
        seen.add(result.player.id)
        if isinstance(result.position, bool) or not isinstance(result.position, int):
            raise InputDomainError(f"Position must be an integer (got {result.position!r})")

    validate_dense_positions(r.position for r in results)

    winners = sum(1 for r in results if r.position == 1)
    if results and winners != 1:
        raise InputDomainError(f"Must have exactly one player in 1st place (found {winners})")


def validate_date_not_future(value: DateLike, now: DateLike, field_name: str = "Date") -> None:
    """
    Reject dates after ``now``.

    Two datetimes are compared exactly; otherwise only the calendar day counts.

    Raises:
        InputDomainError: If value is later than now
    """
    if isinstance(value, datetime) and isinstance(now, datetime):
        later = value > now
    else:
        day = value.date() if isinstance(value, datetime) else value
        today = now.date() if isinstance(now, datetime) else now
        later = day > today
    if later:
        raise InputDomainError(f"{field_name} cannot be in the future")


def validate_percentage(value: float, field_name: str = "Percentage") -> None:
    if value < 0 or value > 100:
        raise InputDomainError(f"{field_name} must be between 0 and 100 (got {value})")
