"""
Tournament scoring

Modules:
- value: Base value and rating/ranking adjustments
- grade: Format grade (TGP)
- boosters: Certification booster multipliers
- distribution: Splitting first-place value across finishers
"""


def __getattr__(name):
    """Lazy imports so submodules can be run and tested in isolation."""
    if name == "calculate_tournament_value":
        from oppr.tournament.value import calculate_tournament_value
        return calculate_tournament_value
    if name == "calculate_format_grade":
        from oppr.tournament.grade import calculate_format_grade
        return calculate_format_grade
    if name == "evaluate_format_grade":
        from oppr.tournament.grade import evaluate_format_grade
        return evaluate_format_grade
    if name == "get_booster_multiplier":
        from oppr.tournament.boosters import get_booster_multiplier
        return get_booster_multiplier
    if name == "distribute_points":
        from oppr.tournament.distribution import distribute_points
        return distribute_points
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
