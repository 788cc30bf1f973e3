import pytest

from conftest import make_tournament, singles_pairings
from matchplay.exceptions import InvalidInput, MatchNotFound, RoundNotFound
from matchplay.models import HoleOutcome, MatchResult
from matchplay.services.holes import apply_hole_result
from matchplay.services.tournaments import replace_round_matches


@pytest.fixture
def tournament():
    tournament = make_tournament()
    replace_round_matches(tournament, 5, singles_pairings(tournament))
    return tournament


def _match_id(tournament, index=0):
    return tournament.rounds[4].matches[index].id


def test_skipping_ahead_backfills_earlier_holes_as_halved(tournament):
    match = apply_hole_result(tournament, 5, _match_id(tournament), 5, "team1")

    assert match.hole_results == {
        1: HoleOutcome.HALVED,
        2: HoleOutcome.HALVED,
        3: HoleOutcome.HALVED,
        4: HoleOutcome.HALVED,
        5: HoleOutcome.TEAM1,
    }
    assert (match.result, match.score) == (MatchResult.PENDING, "Eagles 1 UP thru 5")


def test_backfill_never_overwrites_recorded_holes(tournament):
    match_id = _match_id(tournament)
    apply_hole_result(tournament, 5, match_id, 1, "team2")
    match = apply_hole_result(tournament, 5, match_id, 5, "team1")

    assert match.hole_results[1] == HoleOutcome.TEAM2
    assert [match.hole_results[h] for h in (2, 3, 4)] == [HoleOutcome.HALVED] * 3
    assert match.score == "A/S thru 5"


def test_recording_the_same_outcome_twice_is_idempotent(tournament):
    match_id = _match_id(tournament)
    once = apply_hole_result(tournament, 5, match_id, 3, "team2").model_copy(deep=True)
    twice = apply_hole_result(tournament, 5, match_id, 3, "team2")
    assert twice == once


def test_empty_outcome_clears_the_hole(tournament):
    match_id = _match_id(tournament)
    apply_hole_result(tournament, 5, match_id, 1, "team1")
    apply_hole_result(tournament, 5, match_id, 2, "team2")
    match = apply_hole_result(tournament, 5, match_id, 2, "")

    assert match.hole_results == {1: HoleOutcome.TEAM1}
    assert match.score == "Eagles 1 UP thru 1"


def test_clearing_the_only_hole_returns_to_pending(tournament):
    match_id = _match_id(tournament)
    apply_hole_result(tournament, 5, match_id, 1, HoleOutcome.TEAM1)
    match = apply_hole_result(tournament, 5, match_id, 1, "")
    assert match.hole_results == {}
    assert (match.result, match.score) == (MatchResult.PENDING, "")


def test_clinch_is_derived_after_each_hole(tournament):
    match_id = _match_id(tournament)
    for hole in range(1, 11):
        match = apply_hole_result(tournament, 5, match_id, hole, "team2")
    assert (match.result, match.score) == (MatchResult.TEAM2, "10 & 8")


def test_score_uses_current_team_names(tournament):
    tournament.teams[1].name = "Falcons"
    match = apply_hole_result(tournament, 5, _match_id(tournament), 1, "team2")
    assert match.score == "Falcons 1 UP thru 1"


def test_other_matches_are_untouched(tournament):
    apply_hole_result(tournament, 5, _match_id(tournament, 0), 4, "team1")
    other = tournament.rounds[4].matches[1]
    assert other.hole_results == {}
    assert other.result == MatchResult.PENDING


@pytest.mark.parametrize("hole", [0, 19, -1])
def test_hole_number_out_of_range(tournament, hole):
    with pytest.raises(InvalidInput):
        apply_hole_result(tournament, 5, _match_id(tournament), hole, "team1")


def test_unknown_outcome_is_rejected(tournament):
    with pytest.raises(InvalidInput, match="invalid hole result"):
        apply_hole_result(tournament, 5, _match_id(tournament), 1, "birdie")


def test_unknown_round_is_not_found(tournament):
    with pytest.raises(RoundNotFound):
        apply_hole_result(tournament, 9, _match_id(tournament), 1, "team1")


def test_unknown_match_is_not_found(tournament):
    with pytest.raises(MatchNotFound):
        apply_hole_result(tournament, 5, "missing", 1, "team1")
    with pytest.raises(MatchNotFound):
        apply_hole_result(tournament, 4, _match_id(tournament), 1, "team1")
