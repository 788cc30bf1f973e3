"""Scoreboard projection of a tournament."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..models import MatchResult, RoundScore, Scoreboard, Tournament

if TYPE_CHECKING:  # pragma: no cover
    from ..stores.base import TournamentStore


def calculate_scoreboard(tournament: Tournament) -> Scoreboard:
    """Sum match points per round and per team.

    A won match is worth the round's ``points_per_match`` to the winner, a
    tie splits it evenly and a pending match counts only towards
    ``total_matches``. Rounds appear in tournament order.
    """

    scoreboard = Scoreboard(
        team1_name=tournament.team1_name,
        team2_name=tournament.team2_name,
    )

    for rnd in tournament.rounds:
        score = RoundScore(
            round_number=rnd.number,
            round_name=rnd.name,
            points_per_match=rnd.points_per_match,
            total_matches=len(rnd.matches),
        )
        for match in rnd.matches:
            if match.result == MatchResult.TEAM1:
                score.team1_points += rnd.points_per_match
            elif match.result == MatchResult.TEAM2:
                score.team2_points += rnd.points_per_match
            elif match.result == MatchResult.TIE:
                score.team1_points += rnd.points_per_match / 2
                score.team2_points += rnd.points_per_match / 2
            else:
                continue
            score.matches_played += 1

        scoreboard.team1_total += score.team1_points
        scoreboard.team2_total += score.team2_points
        scoreboard.round_scores.append(score)

    return scoreboard


async def get_scoreboard(store: "TournamentStore", tournament_id: str) -> Scoreboard:
    """Load ``tournament_id`` from ``store`` and project its scoreboard."""

    return calculate_scoreboard(await store.get_tournament(tournament_id))
