"""
Configuration Store

Holds the active engine configuration and resolves user overrides into a new
one. Resolution is a single pipeline:

    merge overrides -> derive dependent fields -> validate -> install

The active configuration is an immutable ``EngineConfig`` snapshot. Writers
serialize on a lock and swap the reference only after validation succeeds,
so readers always see either the old or the new snapshot, never a mix.

Usage:
    from oppr.store import resolve_config, get_config, reset_config

    resolve_config({"time_decay": {"year_1_to_2": 0.8}})
"""

import math
import threading
from dataclasses import fields, is_dataclass, replace
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional

from oppr.config import DEFAULT_CONFIG, EngineConfig
from oppr.errors import ConfigurationValidationError, ValidationIssue
from oppr.utils import setup_logging

# --- Module Logger ---
logger = setup_logging(__name__)

# Tolerance for comparing derived values and fraction sums
_TOLERANCE = 1e-9


# --- Derivation ---
def _ratio(numerator: float, denominator: float) -> Optional[float]:
    if denominator == 0:
        return None
    return numerator / denominator


# Derived field -> function of the (merged) config. Nothing else in the
# engine recomputes these.
DERIVED_FIELDS: dict[str, Callable[[EngineConfig], Optional[float]]] = {
    "base_value.max_player_count": lambda c: _ratio(
        c.base_value.max_base_value, c.base_value.points_per_player
    ),
    "value_adjustment.rating.min_effective_rating": lambda c: _ratio(
        c.value_adjustment.rating.offset, c.value_adjustment.rating.coefficient
    ),
    "format_grade.max_games_for_max_grade": lambda c: _ratio(
        c.format_grade.max_with_finals, c.format_grade.base_game_value
    ),
    "distribution.shaped_fraction": lambda c: 1.0 - c.distribution.flat_fraction,
}


def _replace_path(node: Any, path: list[str], value: Any) -> Any:
    head, rest = path[0], path[1:]
    if not rest:
        return replace(node, **{head: value})
    return replace(node, **{head: _replace_path(getattr(node, head), rest, value)})


def _get_path(node: Any, path: str) -> Any:
    for part in path.split("."):
        node = getattr(node, part)
    return node


def derive(config: EngineConfig) -> EngineConfig:
    """
    Recompute every derived field from its sources.

    A derivation whose divisor is zero leaves the field untouched; validation
    then reports the zero source.
    """
    for path, rule in DERIVED_FIELDS.items():
        value = rule(config)
        if value is not None:
            config = _replace_path(config, path.split("."), value)
    return config


# Fields used as counts, slice bounds or index ranges
INTEGER_FIELDS = (
    "base_value.rated_player_threshold",
    "value_adjustment.max_players_considered",
    "boosters.certified_min_finalists",
    "boosters.certified_max_days",
    "boosters.certified_plus_min_rated_players",
    "ranking.top_events_count",
    "ranking.trend_window",
    "rating.opponents_range",
    "validation.min_players",
    "validation.min_private_players",
    "validation.max_games_per_machine",
)


# --- Merge ---
def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _merge(node: Any, overrides: Any, path: str, issues: list[ValidationIssue]) -> Any:
    if not isinstance(overrides, Mapping):
        issues.append(ValidationIssue(path or "<root>", "Expected a mapping of overrides"))
        return node

    known = {f.name for f in fields(node)}
    changes = {}
    for key, value in overrides.items():
        field_path = f"{path}.{key}" if path else str(key)
        if key not in known:
            issues.append(ValidationIssue(field_path, "Unknown configuration field"))
            continue

        current = getattr(node, key)
        if is_dataclass(current):
            changes[key] = _merge(current, value, field_path, issues)
        elif isinstance(current, Mapping):
            if not isinstance(value, Mapping):
                issues.append(ValidationIssue(field_path, "Expected a mapping"))
                continue
            bad = [name for name, v in value.items() if not _is_number(v)]
            if bad:
                issues.append(ValidationIssue(field_path, f"Non-numeric entries: {', '.join(map(str, bad))}"))
                continue
            merged = dict(current)
            merged.update(value)
            changes[key] = MappingProxyType(merged)
        elif not _is_number(value):
            issues.append(ValidationIssue(field_path, f"Must be a finite number (got {value!r})"))
        elif field_path in INTEGER_FIELDS and isinstance(value, float) and value.is_integer():
            changes[key] = int(value)
        else:
            changes[key] = value

    return replace(node, **changes) if changes else node


def _flatten(overrides: Any, prefix: str = "") -> dict[str, Any]:
    flat = {}
    if not isinstance(overrides, Mapping):
        return flat
    for key, value in overrides.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            flat.update(_flatten(value, path))
        else:
            flat[path] = value
    return flat


# --- Validation ---
def validate_config(config: EngineConfig) -> list[ValidationIssue]:
    """
    Check every cross-field invariant of a configuration.

    Args:
        config: Fully merged and derived configuration

    Returns:
        All violated invariants (empty when the configuration is valid)
    """
    issues = []

    for path in INTEGER_FIELDS:
        value = _get_path(config, path)
        if isinstance(value, bool) or not isinstance(value, int):
            issues.append(ValidationIssue(
                path, f"Must be a whole number (got {value!r})", round(value) if _is_number(value) else None))

    bv = config.base_value
    if bv.points_per_player <= 0:
        issues.append(ValidationIssue(
            "base_value.points_per_player", "Points per player must be positive", 0.5))
    elif not math.isclose(bv.max_player_count, bv.max_base_value / bv.points_per_player, abs_tol=_TOLERANCE):
        issues.append(ValidationIssue(
            "base_value.max_player_count",
            "Should equal max_base_value / points_per_player",
            bv.max_base_value / bv.points_per_player,
        ))
    if bv.max_base_value < 0:
        issues.append(ValidationIssue("base_value.max_base_value", "Cannot be negative", 32.0))
    if bv.rated_player_threshold < 1:
        issues.append(ValidationIssue(
            "base_value.rated_player_threshold", "Must be at least 1 event", 5))

    va = config.value_adjustment
    if va.rating.coefficient <= 0:
        issues.append(ValidationIssue(
            "value_adjustment.rating.coefficient", "Rating coefficient must be positive", 0.000546875))
    if va.rating.max_value < 0:
        issues.append(ValidationIssue("value_adjustment.rating.max_value", "Cannot be negative", 25.0))
    if va.ranking.max_value < 0:
        issues.append(ValidationIssue("value_adjustment.ranking.max_value", "Cannot be negative", 50.0))
    if va.max_players_considered < 1:
        issues.append(ValidationIssue(
            "value_adjustment.max_players_considered", "Must consider at least one player", 64))

    fg = config.format_grade
    if fg.base_game_value < 0:
        issues.append(ValidationIssue("format_grade.base_game_value", "Cannot be negative", 0.04))
    if fg.max_with_finals <= fg.max_without_finals:
        issues.append(ValidationIssue(
            "format_grade.max_with_finals",
            "Max grade with finals must be greater than without finals",
            fg.max_without_finals + 0.5,
        ))
    for name, default in (("one_ball", 0.33), ("two_ball", 0.66)):
        value = getattr(fg, name)
        if value <= 0 or value > 1:
            issues.append(ValidationIssue(
                f"format_grade.{name}", "Ball adjustment must be between 0 and 1", default))
    if fg.three_plus_ball != 1.0:
        issues.append(ValidationIssue(
            "format_grade.three_plus_ball", "3+ ball adjustment must be 1.0", 1.0))
    if fg.min_finalists_percent >= fg.max_finalists_percent:
        issues.append(ValidationIssue(
            "format_grade.max_finalists_percent",
            "Max finalists percentage must be greater than min",
            fg.min_finalists_percent + 0.1,
        ))
    for name, default in (("flip_frenzy_three_ball_divisor", 2), ("flip_frenzy_one_ball_divisor", 3)):
        if getattr(fg, name) <= 0:
            issues.append(ValidationIssue(f"format_grade.{name}", "Divisor must be positive", default))
    if fg.unlimited_card_multiplier < 0:
        issues.append(ValidationIssue("format_grade.unlimited_card_multiplier", "Cannot be negative", 4.0))
    for format_type, multiplier in fg.finals_format_multipliers.items():
        if multiplier < 0:
            issues.append(ValidationIssue(
                f"format_grade.finals_format_multipliers.{format_type}", "Cannot be negative", 1.0))

    bo = config.boosters
    if bo.certified_min_finalists < 1:
        issues.append(ValidationIssue("boosters.certified_min_finalists", "Must be at least 1", 24))
    if bo.certified_max_days < 1:
        issues.append(ValidationIssue("boosters.certified_max_days", "Must be at least 1 day", 4))
    if bo.certified_plus_min_rated_players < 0:
        issues.append(ValidationIssue("boosters.certified_plus_min_rated_players", "Cannot be negative", 128))
    if bo.none != 1.0:
        issues.append(ValidationIssue("boosters.none", "None booster must be 1.0 (no boost)", 1.0))
    ladder = [("none", bo.none), ("certified", bo.certified),
              ("certified_plus", bo.certified_plus), ("major", bo.major)]
    for (_, previous), (name, value) in zip(ladder, ladder[1:]):
        if value < previous:
            issues.append(ValidationIssue(
                f"boosters.{name}", "Boosters must be non-decreasing", previous + 0.25))
    if not bo.certified <= bo.championship_series <= bo.major:
        issues.append(ValidationIssue(
            "boosters.championship_series",
            "Championship series booster must lie between certified and major",
            bo.certified_plus,
        ))

    td = config.time_decay
    if td.year_0_to_1 != 1.0:
        issues.append(ValidationIssue("time_decay.year_0_to_1", "First year decay must be 1.0", 1.0))
    if not 0 <= td.year_1_to_2 <= td.year_0_to_1:
        issues.append(ValidationIssue(
            "time_decay.year_1_to_2", "Year 1-2 weight must be between 0 and the year 0-1 weight", 0.75))
    if not 0 <= td.year_2_to_3 <= td.year_1_to_2:
        issues.append(ValidationIssue(
            "time_decay.year_2_to_3", "Year 2-3 weight must be between 0 and the year 1-2 weight", 0.5))
    if td.year_3_plus != 0.0:
        issues.append(ValidationIssue("time_decay.year_3_plus", "Year 3+ weight must be 0.0 (expired)", 0.0))
    if td.days_per_year <= 0:
        issues.append(ValidationIssue("time_decay.days_per_year", "Must be positive", 365))

    di = config.distribution
    if not 0 <= di.flat_fraction <= 1:
        issues.append(ValidationIssue(
            "distribution.flat_fraction", "Flat fraction must be between 0 and 1", 0.1))
    total = di.flat_fraction + di.shaped_fraction
    if abs(total - 1.0) > _TOLERANCE:
        issues.append(ValidationIssue(
            "distribution.flat_fraction",
            f"Flat + shaped fractions must equal 1.0 (currently {total:.3f})",
            1.0 - di.shaped_fraction,
        ))
    if di.position_exponent <= 0:
        issues.append(ValidationIssue("distribution.position_exponent", "Must be positive", 0.7))
    if di.value_exponent <= 0:
        issues.append(ValidationIssue("distribution.value_exponent", "Must be positive", 3))
    if di.max_dynamic_players <= 0:
        issues.append(ValidationIssue("distribution.max_dynamic_players", "Must be positive", 64))

    if config.ranking.top_events_count < 1:
        issues.append(ValidationIssue("ranking.top_events_count", "Must count at least one event", 15))
    if config.ranking.trend_window < 1:
        issues.append(ValidationIssue("ranking.trend_window", "Must look at least one event back", 10))
    if config.ranking.trend_threshold < 0:
        issues.append(ValidationIssue("ranking.trend_threshold", "Cannot be negative", 5.0))

    ra = config.rating
    if ra.min_deviation <= 0:
        issues.append(ValidationIssue(
            "rating.min_deviation", "Min rating deviation must be positive", 10.0))
    if ra.max_deviation <= ra.min_deviation:
        issues.append(ValidationIssue(
            "rating.max_deviation",
            "Max rating deviation must be greater than min rating deviation",
            ra.min_deviation + 50,
        ))
    if ra.deviation_decay_per_day < 0:
        issues.append(ValidationIssue("rating.deviation_decay_per_day", "Cannot be negative", 0.3))
    if ra.opponents_range < 1:
        issues.append(ValidationIssue("rating.opponents_range", "Must be at least 1", 32))
    if ra.q <= 0:
        issues.append(ValidationIssue("rating.q", "Must be positive", math.log(10) / 400))

    if config.validation.min_players < 1:
        issues.append(ValidationIssue("validation.min_players", "Minimum players must be at least 1", 3))

    return issues


def build_config(base: EngineConfig, overrides: Mapping[str, Any]) -> tuple[EngineConfig, list[ValidationIssue]]:
    """
    Merge overrides onto a base configuration, derive, and validate.

    Pure: nothing is installed.

    Returns:
        Tuple of (candidate config, issues). The candidate is only usable
        when issues is empty.
    """
    issues: list[ValidationIssue] = []
    merged = _merge(base, overrides, "", issues)
    candidate = derive(merged)

    for path, supplied in _flatten(overrides).items():
        if path in DERIVED_FIELDS and _is_number(supplied):
            derived = _get_path(candidate, path)
            if not math.isclose(supplied, derived, abs_tol=_TOLERANCE):
                issues.append(ValidationIssue(
                    path, "Derived field cannot be set independently; change its sources instead", derived))

    issues.extend(validate_config(candidate))
    return candidate, issues


class ConfigStore:
    """
    Process-wide holder of the active configuration.

    Readers use ``active`` (a plain attribute read of an immutable snapshot).
    Writers go through ``resolve``/``reset``, which hold a lock for the whole
    merge-derive-validate-install sequence.
    """

    def __init__(self, defaults: EngineConfig = DEFAULT_CONFIG):
        self._defaults = derive(defaults)
        self._active = self._defaults
        self._write_lock = threading.Lock()

    @property
    def active(self) -> EngineConfig:
        return self._active

    def get_default(self) -> EngineConfig:
        return self._defaults

    def check(self, overrides: Mapping[str, Any]) -> list[ValidationIssue]:
        """Report what resolving these overrides would reject, without installing."""
        _, issues = build_config(self._active, overrides)
        return issues

    def resolve(self, overrides: Mapping[str, Any]) -> EngineConfig:
        with self._write_lock:
            candidate, issues = build_config(self._active, overrides)
            if issues:
                logger.warning(f"Rejected configuration override with {len(issues)} issue(s)")
                for issue in issues:
                    logger.debug(f"  {issue}")
                raise ConfigurationValidationError(issues)
            self._active = candidate
        logger.info(f"Installed configuration override: {sorted(_flatten(overrides))}")
        return candidate

    def reset(self) -> EngineConfig:
        with self._write_lock:
            self._active = self._defaults
        logger.info("Configuration reset to defaults")
        return self._defaults


_store = ConfigStore()


def get_config() -> EngineConfig:
    """Return the active configuration snapshot."""
    return _store.active


def get_default() -> EngineConfig:
    """Return the built-in default configuration."""
    return _store.get_default()


def resolve_config(overrides: Mapping[str, Any]) -> EngineConfig:
    """
    Apply overrides on top of the active configuration.

    Args:
        overrides: Nested mapping, e.g. ``{"distribution": {"flat_fraction": 0.2}}``

    Returns:
        The newly installed configuration

    Raises:
        ConfigurationValidationError: With every violated invariant; the
            previous configuration stays active
    """
    return _store.resolve(overrides)


def check_overrides(overrides: Mapping[str, Any]) -> list[ValidationIssue]:
    return _store.check(overrides)


def reset_config() -> EngineConfig:
    """Restore the built-in defaults."""
    return _store.reset()


def current(config: Optional[EngineConfig]) -> EngineConfig:
    """Use an explicitly passed config, falling back to the active snapshot."""
    return config if config is not None else _store.active
