"""
Skill rating

Modules:
- simulation: Finishing order to head-to-head outcomes
- glicko: Glicko rating updates and inactivity decay
- ledger: Per-player append-only rating history
"""


def __getattr__(name):
    """Lazy imports so submodules can be run and tested in isolation."""
    if name == "simulate_matches":
        from oppr.rating.simulation import simulate_matches
        return simulate_matches
    if name == "update_rating":
        from oppr.rating.glicko import update_rating
        return update_rating
    if name == "apply_inactivity_decay":
        from oppr.rating.glicko import apply_inactivity_decay
        return apply_inactivity_decay
    if name == "RatingLedger":
        from oppr.rating.ledger import RatingLedger
        return RatingLedger
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
