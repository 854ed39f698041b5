"""
Format Grade Evaluator

Scores a tournament's qualifying and finals structure into a multiplier
applied to its raw value:

    grade = (qualifying + finals) * ball adjustment, clamped to the cap

- Qualifying: base game value * meaningful games * group multiplier
  * unlimited-duration bonus
- Finals: base game value * meaningful games * group multiplier
  * finals format multiplier (skipped when the format is "none")
- Cap: max_with_finals when finals are present, else max_without_finals
"""

from dataclasses import dataclass, field
from typing import Optional

from oppr.config import EngineConfig, QUALIFYING_TYPES
from oppr.errors import InputDomainError, ValidationIssue
from oppr.models import FinalsSpec, FormatSpec, QualifyingSpec
from oppr.store import current
from oppr.utils import clamp, setup_logging

# --- Module Logger ---
logger = setup_logging(__name__)


@dataclass(frozen=True)
class FormatGrade:
    qualifying: float
    finals: float
    ball_adjustment: float
    cap: float
    grade: float
    eligibility_issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def finals_eligible(self) -> bool:
        return not self.eligibility_issues


def group_multiplier(four_player_groups, three_player_groups, config=None):
    """Four-player groups take precedence over three-player groups."""
    fg = current(config).format_grade
    if four_player_groups:
        return fg.four_player_groups
    if three_player_groups:
        return fg.three_player_groups
    return 1.0


def ball_count_adjustment(ball_count, config=None):
    fg = current(config).format_grade
    if ball_count <= 1:
        return fg.one_ball
    if ball_count == 2:
        return fg.two_ball
    return fg.three_plus_ball


def unlimited_duration_bonus(qualifying: QualifyingSpec, config: Optional[EngineConfig] = None) -> float:
    """
    Multiplier for long unlimited qualifying: 1% per hour up to 20%, only
    once the minimum number of hours is reached.
    """
    fg = current(config).format_grade
    if qualifying.type != "unlimited" or not qualifying.hours:
        return 1.0
    if qualifying.hours < fg.min_hours_for_bonus:
        return 1.0
    return 1.0 + min(qualifying.hours * fg.percent_per_hour, fg.max_hours_bonus)


def finals_format_multiplier(format_type: str, config: Optional[EngineConfig] = None) -> float:
    multipliers = current(config).format_grade.finals_format_multipliers
    if format_type not in multipliers:
        raise InputDomainError(
            f"Unknown finals format: '{format_type}'. "
            f"Allowed values: none, {', '.join(sorted(multipliers))}"
        )
    return multipliers[format_type]


def validate_format_spec(spec: FormatSpec, config: Optional[EngineConfig] = None) -> None:
    """
    Reject malformed format input.

    Raises:
        InputDomainError: For unknown types, negative games, hours or ball count
    """
    q, f = spec.qualifying, spec.finals
    if q.type not in QUALIFYING_TYPES:
        raise InputDomainError(
            f"Unknown qualifying type: '{q.type}'. Allowed values: {', '.join(sorted(QUALIFYING_TYPES))}"
        )
    if q.meaningful_games < 0:
        raise InputDomainError("Qualifying meaningful games cannot be negative")
    if q.hours is not None and q.hours < 0:
        raise InputDomainError("Qualifying hours cannot be negative")
    if f.meaningful_games < 0:
        raise InputDomainError("Finals meaningful games cannot be negative")
    if f.finalist_count is not None and f.finalist_count < 0:
        raise InputDomainError("Finalist count cannot be negative")
    if spec.ball_count < 1:
        raise InputDomainError(f"Ball count must be at least 1 (got {spec.ball_count})")
    if f.has_finals:
        finals_format_multiplier(f.format_type, config)


def qualifying_contribution(qualifying: QualifyingSpec, config: Optional[EngineConfig] = None) -> float:
    cfg = current(config)
    if qualifying.type == "none":
        return 0.0
    return (
        cfg.format_grade.base_game_value
        * qualifying.meaningful_games
        * group_multiplier(qualifying.four_player_groups, qualifying.three_player_groups, cfg)
        * unlimited_duration_bonus(qualifying, cfg)
    )


def finals_contribution(finals: FinalsSpec, config: Optional[EngineConfig] = None) -> float:
    cfg = current(config)
    if not finals.has_finals:
        return 0.0
    return (
        cfg.format_grade.base_game_value
        * finals.meaningful_games
        * group_multiplier(finals.four_player_groups, finals.three_player_groups, cfg)
        * finals_format_multiplier(finals.format_type, cfg)
    )


def check_finals_eligibility(field_size: int, finalist_count: int,
                             config: Optional[EngineConfig] = None) -> list[ValidationIssue]:
    """
    Check that the share of the field advancing to finals lies within the
    configured bounds. Out-of-range shares are reported, not clamped.

    Args:
        field_size: Players in qualifying
        finalist_count: Players advancing to finals

    Returns:
        Issues found (empty when eligible)
    """
    fg = current(config).format_grade
    if field_size <= 0:
        return [ValidationIssue("finals.finalist_count", "Qualifying field is empty")]

    share = finalist_count / field_size
    if share < fg.min_finalists_percent:
        return [ValidationIssue(
            "finals.finalist_count",
            f"Finals must include at least {fg.min_finalists_percent:.0%} of participants (got {share:.1%})",
            fg.min_finalists_percent * field_size,
        )]
    if share > fg.max_finalists_percent:
        return [ValidationIssue(
            "finals.finalist_count",
            f"Finals cannot include more than {fg.max_finalists_percent:.0%} of participants (got {share:.1%})",
            fg.max_finalists_percent * field_size,
        )]
    return []


def evaluate_format_grade(spec: FormatSpec, field_size: Optional[int] = None,
                          config: Optional[EngineConfig] = None) -> FormatGrade:
    """
    Evaluate a tournament format into its grade.

    Args:
        spec: Qualifying/finals structure
        field_size: Players in qualifying; enables the finals eligibility check
            when the finals declare a finalist count
        config: Configuration snapshot (default: active configuration)

    Returns:
        FormatGrade with each component, the cap and any eligibility issues

    Raises:
        InputDomainError: If the format spec is malformed
    """
    cfg = current(config)
    validate_format_spec(spec, cfg)

    qualifying = qualifying_contribution(spec.qualifying, cfg)
    finals = finals_contribution(spec.finals, cfg)
    ball = ball_count_adjustment(spec.ball_count, cfg)
    cap = cfg.format_grade.max_with_finals if spec.finals.has_finals else cfg.format_grade.max_without_finals
    grade = clamp((qualifying + finals) * ball, 0.0, cap)

    issues = []
    if spec.finals.has_finals and spec.finals.finalist_count is not None and field_size is not None:
        issues = check_finals_eligibility(field_size, spec.finals.finalist_count, cfg)
        if issues:
            logger.warning(f"Finals eligibility check failed: {issues[0].message}")

    logger.debug(
        f"Format grade: qualifying={qualifying:.4f} finals={finals:.4f} "
        f"ball={ball} cap={cap} -> {grade:.4f}"
    )
    return FormatGrade(qualifying, finals, ball, cap, grade, issues)


def calculate_format_grade(spec: FormatSpec, config: Optional[EngineConfig] = None) -> float:
    """Grade as a plain multiplier (e.g. 1.48 = 148%)."""
    return evaluate_format_grade(spec, config=config).grade


def calculate_flip_frenzy_grade(average_matches, one_ball=False, config=None):
    """
    Grade a Flip Frenzy event from the average matches played per player.

    Every two matches (three for one-ball) count as one meaningful game.
    """
    fg = current(config).format_grade
    divisor = fg.flip_frenzy_one_ball_divisor if one_ball else fg.flip_frenzy_three_ball_divisor
    meaningful_games = max(0.0, average_matches) / divisor
    return min(meaningful_games * fg.base_game_value, fg.max_without_finals)


def calculate_unlimited_card_grade(meaningful_games, hours, finals_games, config=None):
    """
    Grade an unlimited card qualifying event followed by match-play finals.

    Card qualifying earns the card multiplier per game (16% instead of 4%)
    once qualifying runs for min_hours_for_bonus hours, and the hours bonus
    is added to the qualifying grade rather than multiplied in.

    Args:
        meaningful_games: Meaningful games on a qualifying card
        hours: Hours qualifying is open
        finals_games: Meaningful games in finals

    Returns:
        Grade capped at max_with_finals

    Raises:
        InputDomainError: If any input is negative
    """
    cfg = current(config)
    fg = cfg.format_grade
    if meaningful_games < 0 or hours < 0 or finals_games < 0:
        raise InputDomainError("Games and hours cannot be negative")

    per_game = fg.base_game_value
    if hours >= fg.min_hours_for_bonus:
        per_game *= fg.unlimited_card_multiplier
    qualifying = meaningful_games * per_game + min(hours * fg.percent_per_hour, fg.max_hours_bonus)
    finals = finals_contribution(FinalsSpec(format_type="match-play", meaningful_games=finals_games), cfg)
    return min(qualifying + finals, fg.max_with_finals)
