import pytest

from conftest import make_tournament, singles_pairings
from matchplay.exceptions import InvalidInput, PlayerNotFound, RoundNotFound
from matchplay.models import HoleOutcome, MatchResult, Pairing, TeamRoster
from matchplay.services.tournaments import (
    apply_roster,
    build_round_matches,
    find_player,
    link_player,
    new_tournament,
    replace_round_matches,
    set_match_result,
)


def test_new_tournament_has_two_empty_teams_and_template_rounds():
    tournament = new_tournament("Club Cup", "Eagles", "Hawks")

    assert tournament.id
    assert [team.name for team in tournament.teams] == ["Eagles", "Hawks"]
    assert tournament.teams[0].id != tournament.teams[1].id
    assert all(team.players == [] for team in tournament.teams)
    assert [r.number for r in tournament.rounds] == [1, 2, 3, 4, 5]
    assert tournament.created_at is None


@pytest.mark.parametrize("args", [("", "A", "B"), ("Cup", "", "B"), ("Cup", "A", "")])
def test_new_tournament_requires_names(args):
    with pytest.raises(InvalidInput):
        new_tournament(*args)


def test_roster_sets_back_references():
    tournament = make_tournament()
    for team in tournament.teams:
        assert len(team.players) == 4
        assert all(player.team_id == team.id for player in team.players)


def test_roster_keeps_ids_and_links_by_position():
    tournament = make_tournament()
    first = tournament.teams[0].players[0]
    link_player(tournament, first.id, "ann@example.com")

    apply_roster(
        tournament,
        name="Renamed Cup",
        teams=[
            TeamRoster(name="Eagles", players=["Annie", "Bea", "Cal", "Dee", "Ed"]),
            TeamRoster(name="Hawks", players=["Eve"]),
        ],
    )

    eagles, hawks = tournament.teams
    assert tournament.name == "Renamed Cup"
    assert eagles.players[0].id == first.id
    assert eagles.players[0].name == "Annie"
    assert eagles.players[0].user_email == "ann@example.com"
    assert len({p.id for p in eagles.players}) == 5
    assert eagles.players[4].user_email is None
    assert [p.name for p in hawks.players] == ["Eve"]


def test_roster_without_teams_only_renames():
    tournament = make_tournament()
    before = [team.model_copy(deep=True) for team in tournament.teams]
    apply_roster(tournament, name="New Name")
    assert tournament.name == "New Name"
    assert tournament.teams == before


def test_roster_requires_both_teams():
    with pytest.raises(InvalidInput):
        apply_roster(make_tournament(), teams=[TeamRoster(name="Solo")])


def test_build_round_matches_creates_fresh_pending_matches():
    matches = build_round_matches(
        2,
        [
            Pairing(team1_players=["a", "b"], team2_players=["c", "d"]),
            Pairing(team1_players=["e", "f"], team2_players=["g", "h"]),
        ],
    )

    assert len({m.id for m in matches}) == 2
    for match in matches:
        assert match.round_number == 2
        assert match.result == MatchResult.PENDING
        assert match.score == ""
        assert match.hole_results == {}
    assert matches[0].team2_players == ["c", "d"]


def test_replacing_pairings_discards_previous_matches():
    tournament = make_tournament()
    first = replace_round_matches(tournament, 5, singles_pairings(tournament))
    old_ids = {m.id for m in first.matches}
    first.matches[0].hole_results[1] = HoleOutcome.TEAM1

    rnd = replace_round_matches(tournament, 5, singles_pairings(tournament)[:2])

    assert len(rnd.matches) == 2
    assert old_ids.isdisjoint(m.id for m in rnd.matches)
    assert all(m.hole_results == {} for m in rnd.matches)


def test_replacing_pairings_for_unknown_round():
    with pytest.raises(RoundNotFound):
        replace_round_matches(make_tournament(), 6, [])


def test_manual_result_override_ignores_holes():
    tournament = make_tournament()
    rnd = replace_round_matches(tournament, 1, singles_pairings(tournament)[:1])
    match_id = rnd.matches[0].id

    match = set_match_result(tournament, 1, match_id, "team2", "2 & 1")

    assert (match.result, match.score) == (MatchResult.TEAM2, "2 & 1")
    assert match.hole_results == {}


def test_manual_result_must_be_known():
    tournament = make_tournament()
    rnd = replace_round_matches(tournament, 1, singles_pairings(tournament)[:1])
    with pytest.raises(InvalidInput, match="invalid result"):
        set_match_result(tournament, 1, rnd.matches[0].id, "won", "")


def test_link_player_sets_and_clears_account():
    tournament = make_tournament()
    player_id = tournament.teams[1].players[2].id

    link_player(tournament, player_id, "gus@example.com")
    assert find_player(tournament, player_id).user_email == "gus@example.com"

    link_player(tournament, player_id, "")
    assert find_player(tournament, player_id).user_email is None


def test_link_unknown_player():
    with pytest.raises(PlayerNotFound):
        link_player(make_tournament(), "nobody", "x@example.com")
