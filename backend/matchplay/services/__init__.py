"""Tournament services (pure helpers, no I/O unless a store is passed in)."""

from .holes import apply_hole_result
from .scoreboard import calculate_scoreboard, get_scoreboard
from .tournaments import (
    apply_roster,
    build_round_matches,
    new_tournament,
    replace_round_matches,
    set_match_result,
)

__all__ = [
    "apply_hole_result",
    "apply_roster",
    "build_round_matches",
    "calculate_scoreboard",
    "get_scoreboard",
    "new_tournament",
    "replace_round_matches",
    "set_match_result",
]
