"""Helpers for building and editing a tournament aggregate.

These functions never touch storage: they operate on a tournament that a
store has already loaded and will persist afterwards.
"""

from __future__ import annotations

import uuid
from typing import Iterable, Sequence

from ..exceptions import InvalidInput, MatchNotFound, PlayerNotFound, RoundNotFound
from ..models import (
    Match,
    MatchResult,
    Pairing,
    Player,
    Round,
    Team,
    TeamRoster,
    Tournament,
    default_rounds,
)


def _new_id() -> str:
    return str(uuid.uuid4())


def new_tournament(
    name: str,
    team1_name: str,
    team2_name: str,
    *,
    tournament_id: str | None = None,
) -> Tournament:
    """Build a tournament with two empty teams and the five template rounds."""

    if not name or not team1_name or not team2_name:
        raise InvalidInput("name, team1Name, and team2Name are required")
    return Tournament(
        id=tournament_id or _new_id(),
        name=name,
        teams=[
            Team(id=_new_id(), name=team1_name),
            Team(id=_new_id(), name=team2_name),
        ],
        rounds=default_rounds(),
    )


def find_round(tournament: Tournament, round_number: int) -> Round:
    for rnd in tournament.rounds:
        if rnd.number == round_number:
            return rnd
    raise RoundNotFound(round_number)


def find_match(tournament: Tournament, round_number: int, match_id: str) -> Match:
    rnd = find_round(tournament, round_number)
    for match in rnd.matches:
        if match.id == match_id:
            return match
    raise MatchNotFound(match_id, round_number)


def find_player(tournament: Tournament, player_id: str) -> Player:
    for team in tournament.teams:
        for player in team.players:
            if player.id == player_id:
                return player
    raise PlayerNotFound(player_id)


def apply_roster(
    tournament: Tournament,
    *,
    name: str | None = None,
    teams: Sequence[TeamRoster] | None = None,
) -> Tournament:
    """Rename the tournament and/or replace both team rosters in place.

    Players are matched to the existing roster by position: the player in
    slot ``j`` keeps the id and linked account of whoever held slot ``j``
    before. Slots beyond the old roster get fresh ids.
    """

    if name:
        tournament.name = name

    if teams is not None:
        if len(teams) != 2:
            raise InvalidInput("exactly two team rosters are required")
        for team, roster in zip(tournament.teams, teams):
            previous = team.players
            players = []
            for slot, player_name in enumerate(roster.players):
                if slot < len(previous):
                    player_id = previous[slot].id
                    user_email = previous[slot].user_email
                else:
                    player_id, user_email = _new_id(), None
                players.append(
                    Player(
                        id=player_id,
                        name=player_name,
                        team_id=team.id,
                        user_email=user_email,
                    )
                )
            team.name = roster.name
            team.players = players

    return tournament


def build_round_matches(round_number: int, pairings: Iterable[Pairing]) -> list[Match]:
    """Create fresh pending matches, one per pairing."""

    return [
        Match(
            id=_new_id(),
            round_number=round_number,
            team1_players=list(pairing.team1_players),
            team2_players=list(pairing.team2_players),
        )
        for pairing in pairings
    ]


def replace_round_matches(
    tournament: Tournament, round_number: int, pairings: Iterable[Pairing]
) -> Round:
    """Replace a round's whole match list with fresh matches for ``pairings``."""

    rnd = find_round(tournament, round_number)
    rnd.matches = build_round_matches(round_number, pairings)
    return rnd


def set_match_result(
    tournament: Tournament,
    round_number: int,
    match_id: str,
    result: MatchResult | str,
    score: str,
) -> Match:
    """Override a match's result and score without consulting its holes."""

    try:
        result = MatchResult(result)
    except ValueError:
        raise InvalidInput(f"invalid result: {result}") from None
    match = find_match(tournament, round_number, match_id)
    match.result = result
    match.score = score
    return match


def link_player(tournament: Tournament, player_id: str, email: str) -> Player:
    player = find_player(tournament, player_id)
    player.user_email = email or None
    return player
