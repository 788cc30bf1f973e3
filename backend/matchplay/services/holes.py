"""Hole-by-hole result entry."""

from __future__ import annotations

from ..exceptions import InvalidInput
from ..models import HOLES_PER_MATCH, HoleOutcome, Match, Tournament
from ..scoring.match_play import calculate_match_result
from .tournaments import find_match

VALID_HOLE_OUTCOMES = frozenset({"", *(outcome.value for outcome in HoleOutcome)})


def validate_hole(hole: int, outcome: str) -> None:
    if isinstance(hole, bool) or not isinstance(hole, int):
        raise InvalidInput(f"invalid hole number: {hole!r}")
    if not 1 <= hole <= HOLES_PER_MATCH:
        raise InvalidInput(f"invalid hole number (1-{HOLES_PER_MATCH}): {hole}")
    if outcome not in VALID_HOLE_OUTCOMES:
        raise InvalidInput(f"invalid hole result: {outcome}")


def apply_hole_result(
    tournament: Tournament,
    round_number: int,
    match_id: str,
    hole: int,
    outcome: HoleOutcome | str,
) -> Match:
    """Record ``outcome`` for ``hole`` and re-derive the match result.

    An empty ``outcome`` clears the hole. Afterwards every earlier hole that
    has no outcome is recorded as halved, so entering hole 5 first marks
    holes 1-4 halved. The match is modified in place; no I/O happens here.
    """

    if isinstance(outcome, HoleOutcome):
        outcome = outcome.value
    validate_hole(hole, outcome)
    match = find_match(tournament, round_number, match_id)

    if outcome:
        match.hole_results[hole] = HoleOutcome(outcome)
    else:
        match.hole_results.pop(hole, None)

    for earlier in range(1, hole):
        match.hole_results.setdefault(earlier, HoleOutcome.HALVED)

    match.result, match.score = calculate_match_result(
        match.hole_results, tournament.team1_name, tournament.team2_name
    )
    return match
