import json
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from conftest import make_tournament
from matchplay.codec import decode_tournament, encode_tournament
from matchplay.models import (
    HoleOutcome,
    LocalUser,
    Match,
    MatchResult,
    Player,
    RoundType,
    Tournament,
    default_rounds,
)


def _legacy_document() -> dict:
    holes = ["team1", "", "halved"] + [""] * 15
    return {
        "id": "legacy",
        "name": "Old Cup",
        "teams": [
            {"id": "t1", "name": "Eagles", "players": None},
            {"id": "t2", "name": "Hawks"},
        ],
        "rounds": [
            {
                "number": 1,
                "name": "Lauderdale",
                "type": "lauderdale",
                "pointsPerMatch": 1,
                "matches": [
                    {
                        "id": "m1",
                        "roundNumber": 1,
                        "team1Players": ["p1"],
                        "team2Players": None,
                        "result": "",
                        "holeResults": holes,
                    }
                ],
            },
            {"number": 2, "name": "Foursome", "type": "foursome", "pointsPerMatch": 0.5, "matches": None},
        ],
        "createdAt": "2024-05-01T10:00:00.123456789Z",
        "updatedAt": "2024-05-01T11:30:00Z",
    }


def test_legacy_hole_array_decodes_to_sparse_map():
    match = Match.model_validate(
        {"id": "m1", "roundNumber": 1, "holeResults": ["team1", "", "halved"] + [""] * 15}
    )
    assert match.hole_results == {1: HoleOutcome.TEAM1, 3: HoleOutcome.HALVED}


def test_hole_map_with_string_keys_decodes():
    match = Match.model_validate(
        {"id": "m1", "roundNumber": 1, "holeResults": {"2": "team2", "5": "halved", "6": ""}}
    )
    assert match.hole_results == {2: HoleOutcome.TEAM2, 5: HoleOutcome.HALVED}


def test_decoding_an_upgraded_match_is_a_no_op():
    legacy = Match.model_validate(
        {"id": "m1", "roundNumber": 1, "holeResults": ["team1", "", "team2"]}
    )
    again = Match.model_validate_json(legacy.model_dump_json(by_alias=True))
    assert again == legacy


def test_unknown_hole_outcome_is_rejected():
    with pytest.raises(ValidationError):
        Match.model_validate({"id": "m1", "roundNumber": 1, "holeResults": {"1": "birdie"}})


def test_legacy_document_is_normalized():
    tournament = decode_tournament(json.dumps(_legacy_document()))

    assert tournament.teams[0].players == []
    assert tournament.teams[1].players == []
    first, second = tournament.rounds
    assert second.matches == []
    match = first.matches[0]
    assert match.team2_players == []
    assert match.result == MatchResult.PENDING
    assert match.score == ""
    assert match.hole_results == {1: HoleOutcome.TEAM1, 3: HoleOutcome.HALVED}
    assert tournament.created_at == datetime(2024, 5, 1, 10, 0, 0, 123456, tzinfo=timezone.utc)
    assert tournament.updated_at.tzinfo is not None


def test_naive_timestamps_are_treated_as_utc():
    document = _legacy_document()
    document["createdAt"] = "2024-05-01T10:00:00"
    tournament = decode_tournament(json.dumps(document))
    assert tournament.created_at == datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)


def test_tournament_round_trip():
    tournament = make_tournament()
    tournament.created_at = tournament.updated_at = datetime(2024, 6, 1, tzinfo=timezone.utc)
    match = Match(
        id="m1",
        round_number=5,
        team1_players=[tournament.teams[0].players[0].id],
        team2_players=[tournament.teams[1].players[0].id],
        result=MatchResult.TEAM1,
        score="3 & 2",
        hole_results={1: HoleOutcome.TEAM1, 2: HoleOutcome.HALVED},
    )
    tournament.rounds[4].matches.append(match)

    assert decode_tournament(encode_tournament(tournament)) == tournament


def test_encoded_document_uses_stored_field_names():
    tournament = make_tournament()
    tournament.rounds[0].matches.append(
        Match(id="m1", round_number=1, hole_results={4: HoleOutcome.TEAM2})
    )
    document = json.loads(encode_tournament(tournament))

    assert set(document) == {"id", "name", "teams", "rounds"}
    player = document["teams"][0]["players"][0]
    assert set(player) == {"id", "name", "teamId"}
    round_doc = document["rounds"][0]
    assert round_doc["pointsPerMatch"] == 1.0
    assert round_doc["matches"][0]["holeResults"] == {"4": "team2"}
    assert round_doc["matches"][0]["team1Players"] == []


def test_tournament_requires_exactly_two_teams():
    document = _legacy_document()
    document["teams"] = document["teams"][:1]
    with pytest.raises(ValidationError):
        Tournament.model_validate(document)


def test_blank_user_email_means_unlinked():
    player = Player.model_validate({"id": "p1", "name": "Ann", "teamId": "t1", "userEmail": ""})
    assert player.user_email is None


def test_local_user_accepts_stored_names():
    user = LocalUser.model_validate(
        {
            "email": "ann@example.com",
            "name": "Ann",
            "passwordHash": "$2a$10$abc",
            "emailVerified": True,
            "confirmed": False,
            "verificationToken": "",
            "createdAt": "2024-05-01T10:00:00.5+02:00",
        }
    )
    assert user.email_verified is True
    assert user.created_at == datetime(2024, 5, 1, 8, 0, 0, 500000, tzinfo=timezone.utc)


def test_default_rounds_template():
    rounds = default_rounds()
    assert [r.number for r in rounds] == [1, 2, 3, 4, 5]
    assert [r.type for r in rounds] == [
        RoundType.LAUDERDALE,
        RoundType.FOURSOME,
        RoundType.FOURSOME,
        RoundType.FOURBALL,
        RoundType.SINGLES,
    ]
    assert [r.points_per_match for r in rounds] == [1.0, 0.5, 0.5, 1.0, 1.0]
    assert all(r.matches == [] for r in rounds)


def test_stored_local_user_without_name_decodes():
    user = LocalUser.model_validate({"email": "eve@example.com", "passwordHash": "h"})
    assert user.name == ""
    assert user.confirmed is False
