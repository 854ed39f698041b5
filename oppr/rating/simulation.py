"""
Match Simulator

Turns a finishing order into head-to-head outcomes for the rating update.
Every player is treated as having played the players finishing near them:
- Finished ahead of the opponent = win (1.0)
- Tied with the opponent = draw (0.5)
- Finished behind the opponent = loss (0.0)

Only the ``opponents_range`` players on either side of the player in the
sorted order are used.

Usage:
    from oppr.rating.simulation import simulate_matches
    outcomes = simulate_matches(2, results)
"""

from typing import Optional, Sequence

from oppr.config import EngineConfig
from oppr.models import FinishingResult, MatchOutcome
from oppr.store import current
from oppr.utils import setup_logging

# --- Module Logger ---
logger = setup_logging(__name__)


def match_score(player_position, opponent_position):
    if player_position < opponent_position:
        return 1.0
    if player_position > opponent_position:
        return 0.0
    return 0.5


def sort_finishers(finishing_list: Sequence[FinishingResult]) -> list[FinishingResult]:
    """Sort by position, then player id so tied players keep a stable order."""
    return sorted(finishing_list, key=lambda r: (r.position, r.player.id))


def _outcomes_at(index, ordered, config):
    me = ordered[index]
    rng = config.rating.opponents_range
    start = max(0, index - rng)
    end = min(len(ordered), index + rng + 1)

    outcomes = []
    for i in range(start, end):
        if i == index:
            continue
        opponent = ordered[i].player
        deviation = opponent.rating_deviation
        if deviation is None:
            deviation = config.rating.max_deviation
        outcomes.append(MatchOutcome(
            opponent_id=opponent.id,
            opponent_rating=opponent.rating,
            opponent_deviation=deviation,
            score=match_score(me.position, ordered[i].position),
        ))
    return outcomes


def simulate_matches(
    position: int,
    finishing_list: Sequence[FinishingResult],
    config: Optional[EngineConfig] = None,
) -> list[MatchOutcome]:
    """
    Simulate the matches of the player who finished at ``position``.

    When several players share the position, the first of them by player id
    is used; see simulate_player_matches for an unambiguous lookup.

    Args:
        position: Finishing position of the player
        finishing_list: Every finisher of the tournament
        config: Configuration snapshot (default: active configuration)

    Returns:
        One MatchOutcome per nearby opponent, in finishing order. Empty when
        nobody finished at ``position``.
    """
    cfg = current(config)
    ordered = sort_finishers(finishing_list)
    for index, result in enumerate(ordered):
        if result.position == position:
            return _outcomes_at(index, ordered, cfg)

    logger.debug(f"No finisher at position {position}, no matches simulated")
    return []


def simulate_player_matches(
    player_id: str,
    finishing_list: Sequence[FinishingResult],
    config: Optional[EngineConfig] = None,
) -> list[MatchOutcome]:
    """Simulate the matches of one player, looked up by id."""
    cfg = current(config)
    ordered = sort_finishers(finishing_list)
    for index, result in enumerate(ordered):
        if result.player.id == player_id:
            return _outcomes_at(index, ordered, cfg)
    return []
