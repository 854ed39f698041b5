"""
World ranking

Modules:
- decay: Time decay of event points
- aggregator: Top-N aggregation and world standings
- efficiency: Share of available first-place value a player collects
"""


def __getattr__(name):
    """Lazy imports so submodules can be run and tested in isolation."""
    if name == "decay_points":
        from oppr.ranking.decay import decay_points
        return decay_points
    if name == "aggregate_ranking":
        from oppr.ranking.aggregator import aggregate_ranking
        return aggregate_ranking
    if name == "select_top_events":
        from oppr.ranking.aggregator import select_top_events
        return select_top_events
    if name == "compute_world_rankings":
        from oppr.ranking.aggregator import compute_world_rankings
        return compute_world_rankings
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
