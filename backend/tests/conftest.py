import os
import sys

import fakeredis
import fakeredis.aioredis
import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from matchplay.models import Pairing, TeamRoster, Tournament  # noqa: E402
from matchplay.services.tournaments import apply_roster, new_tournament  # noqa: E402
from matchplay.stores import FileStore, MemoryStore, RedisStore  # noqa: E402

TEST_PREFIX = "test:"


@pytest.fixture
def anyio_backend():
    return "asyncio"


def fake_redis_client():
    """A FakeRedis client with its own server so tests never share keys."""

    return fakeredis.aioredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
def redis_client():
    return fake_redis_client()


@pytest.fixture(params=["memory", "file", "redis"])
def store(request, tmp_path):
    """Every backend, so contract tests run against each one."""

    if request.param == "memory":
        return MemoryStore()
    if request.param == "file":
        return FileStore(tmp_path / "data")
    return RedisStore(fake_redis_client(), prefix=TEST_PREFIX)


def make_tournament(tournament_id: str = "cup-2024") -> Tournament:
    """A tournament with four players per side and the default rounds."""

    tournament = new_tournament("Club Cup", "Eagles", "Hawks", tournament_id=tournament_id)
    return apply_roster(
        tournament,
        teams=[
            TeamRoster(name="Eagles", players=["Ann", "Bea", "Cal", "Dee"]),
            TeamRoster(name="Hawks", players=["Eve", "Fay", "Gus", "Hal"]),
        ],
    )


def singles_pairings(tournament: Tournament) -> list[Pairing]:
    eagles, hawks = tournament.teams
    return [
        Pairing(team1_players=[a.id], team2_players=[b.id])
        for a, b in zip(eagles.players, hawks.players)
    ]
