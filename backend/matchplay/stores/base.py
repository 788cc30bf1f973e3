"""Persistence contract shared by every tournament store."""

from __future__ import annotations

import asyncio
import weakref
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Iterable, Protocol, runtime_checkable

from pydantic import ValidationError

from ..exceptions import InvalidInput
from ..models import (
    HoleOutcome,
    LocalUser,
    MatchResult,
    Pairing,
    RegisteredUser,
    Tournament,
)


@runtime_checkable
class TournamentStore(Protocol):
    """Operations the HTTP and auth layers rely on.

    Tournament mutations load the whole document, apply a change and write
    it back while holding that tournament's exclusive lock, then return the
    updated tournament. Missing records raise a ``NotFoundError`` subclass,
    duplicates a ``ConflictError`` subclass and backend errors
    ``StorageFailure``.
    """

    async def create_tournament(self, tournament: Tournament) -> Tournament: ...

    async def get_tournament(self, tournament_id: str) -> Tournament: ...

    async def update_tournament(self, tournament: Tournament) -> Tournament: ...

    async def list_tournaments(self) -> list[Tournament]: ...

    async def delete_tournament(self, tournament_id: str) -> None: ...

    async def import_tournament(self, tournament: Tournament) -> Tournament: ...

    async def update_match_result(
        self,
        tournament_id: str,
        round_number: int,
        match_id: str,
        result: MatchResult | str,
        score: str,
    ) -> Tournament: ...

    async def set_round_pairings(
        self, tournament_id: str, round_number: int, pairings: Iterable[Pairing]
    ) -> Tournament: ...

    async def set_hole_result(
        self,
        tournament_id: str,
        round_number: int,
        match_id: str,
        hole: int,
        outcome: HoleOutcome | str,
    ) -> Tournament: ...

    async def link_player(
        self, tournament_id: str, player_id: str, email: str
    ) -> Tournament: ...

    async def register_user(self, user: RegisteredUser) -> None: ...

    async def list_registered_users(self) -> list[RegisteredUser]: ...

    async def create_local_user(self, user: LocalUser) -> LocalUser: ...

    async def get_local_user(self, email: str) -> LocalUser: ...

    async def verify_local_user(self, token: str) -> LocalUser: ...

    async def list_local_users(self) -> list[LocalUser]: ...

    async def confirm_local_user(self, email: str) -> LocalUser: ...

    async def delete_local_user(self, email: str) -> None: ...

    async def close(self) -> None: ...


_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def listing_order(tournament: Tournament) -> tuple[datetime, str]:
    """Sort key giving every backend the same oldest-first listing order."""

    return tournament.created_at or _EPOCH, tournament.id


def validated_copy(tournament: Tournament, **changes: object) -> Tournament:
    """Return a re-validated deep copy of ``tournament`` with ``changes`` applied.

    Pydantic only validates on construction, so a caller may have edited the
    model into a shape no backend can decode again (a third team, say).
    """

    data = tournament.model_dump()
    data.update(changes)
    try:
        return Tournament.model_validate(data)
    except ValidationError as exc:
        raise InvalidInput(f"invalid tournament {tournament.id!r}: {exc}") from exc


def tournament_lock_key(tournament_id: str) -> str:
    return f"tournament:{tournament_id}"


USERS_LOCK_KEY = "users"
LOCAL_USERS_LOCK_KEY = "local_users"


class KeyedLocks:
    """Exclusive ``asyncio`` locks handed out per key.

    Locks exist only while someone holds or waits on them, so the registry
    does not grow with the number of tournaments ever touched.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        async with lock:
            yield
