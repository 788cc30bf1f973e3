"""Match-play scoring engine.
Derives a match result and its display score from hole-by-hole outcomes."""

from collections.abc import Mapping
from typing import Tuple

from ..models import HOLES_PER_MATCH, HoleOutcome, MatchResult


def _tally(holes: Mapping[int, str]) -> Tuple[int, int, int]:
    team1_wins = team2_wins = played = 0
    for hole in range(1, HOLES_PER_MATCH + 1):
        outcome = holes.get(hole)
        if not outcome:
            continue
        played += 1
        if outcome == HoleOutcome.TEAM1:
            team1_wins += 1
        elif outcome == HoleOutcome.TEAM2:
            team2_wins += 1
    return team1_wins, team2_wins, played


def calculate_match_result(
    holes: Mapping[int, str], team1_name: str, team2_name: str
) -> Tuple[MatchResult, str]:
    """Return ``(result, score)`` for the recorded hole outcomes.

    A side wins once its lead exceeds the number of holes left to play
    (``"3 & 2"``, or ``"2 UP"`` after the 18th). A level finish is a tie
    (``"A/S"``). Anything else is still pending and the score shows the
    running state, e.g. ``"Eagles 2 UP thru 7"`` or ``"A/S thru 4"``.
    Only holes 1-18 are considered.
    """

    team1_wins, team2_wins, played = _tally(holes)
    if played == 0:
        return MatchResult.PENDING, ""

    lead = team1_wins - team2_wins
    remaining = HOLES_PER_MATCH - played

    if abs(lead) > remaining:
        result = MatchResult.TEAM1 if lead > 0 else MatchResult.TEAM2
        if remaining == 0:
            return result, f"{abs(lead)} UP"
        return result, f"{abs(lead)} & {remaining}"

    if remaining == 0 and lead == 0:
        return MatchResult.TIE, "A/S"

    if lead == 0:
        return MatchResult.PENDING, f"A/S thru {played}"
    leader = team1_name if lead > 0 else team2_name
    return MatchResult.PENDING, f"{leader} {abs(lead)} UP thru {played}"
