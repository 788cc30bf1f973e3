"""Process-local tournament store."""

from __future__ import annotations

import logging
from typing import Callable, Iterable

from ..exceptions import TournamentAlreadyExists, TournamentNotFound
from ..models import (
    HoleOutcome,
    LocalUser,
    MatchResult,
    Pairing,
    RegisteredUser,
    Tournament,
)
from ..services import accounts
from ..services.holes import apply_hole_result
from ..services.tournaments import link_player, replace_round_matches, set_match_result
from ..time_utils import utcnow
from .base import (
    LOCAL_USERS_LOCK_KEY,
    USERS_LOCK_KEY,
    KeyedLocks,
    listing_order,
    tournament_lock_key,
    validated_copy,
)

logger = logging.getLogger(__name__)


class MemoryStore:
    """Keeps every record in dictionaries owned by this instance.

    Stored values are never handed out: reads return deep copies and
    mutations work on a copy that replaces the stored value only once the
    change succeeded.
    """

    def __init__(self) -> None:
        self._tournaments: dict[str, Tournament] = {}
        self._users: dict[str, RegisteredUser] = {}
        self._local_users: dict[str, LocalUser] = {}
        self._locks = KeyedLocks()
        logger.info("Using in-memory store")

    async def _save_tournament(self, tournament: Tournament) -> None:
        self._tournaments[tournament.id] = tournament

    async def _mutate(
        self, tournament_id: str, change: Callable[[Tournament], object]
    ) -> Tournament:
        async with self._locks.hold(tournament_lock_key(tournament_id)):
            current = self._tournaments.get(tournament_id)
            if current is None:
                raise TournamentNotFound(tournament_id)
            working = current.model_copy(deep=True)
            change(working)
            working.updated_at = utcnow()
            await self._save_tournament(working)
            logger.debug("Updated tournament %s", tournament_id)
            return working.model_copy(deep=True)

    async def create_tournament(self, tournament: Tournament) -> Tournament:
        async with self._locks.hold(tournament_lock_key(tournament.id)):
            if tournament.id in self._tournaments:
                raise TournamentAlreadyExists(tournament.id)
            now = utcnow()
            stored = validated_copy(tournament, created_at=now, updated_at=now)
            await self._save_tournament(stored)
            return stored.model_copy(deep=True)

    async def get_tournament(self, tournament_id: str) -> Tournament:
        tournament = self._tournaments.get(tournament_id)
        if tournament is None:
            raise TournamentNotFound(tournament_id)
        return tournament.model_copy(deep=True)

    async def update_tournament(self, tournament: Tournament) -> Tournament:
        async with self._locks.hold(tournament_lock_key(tournament.id)):
            if tournament.id not in self._tournaments:
                raise TournamentNotFound(tournament.id)
            stored = validated_copy(tournament, updated_at=utcnow())
            await self._save_tournament(stored)
            return stored.model_copy(deep=True)

    async def list_tournaments(self) -> list[Tournament]:
        tournaments = [t.model_copy(deep=True) for t in self._tournaments.values()]
        return sorted(tournaments, key=listing_order)

    async def delete_tournament(self, tournament_id: str) -> None:
        async with self._locks.hold(tournament_lock_key(tournament_id)):
            if self._tournaments.pop(tournament_id, None) is None:
                raise TournamentNotFound(tournament_id)

    async def import_tournament(self, tournament: Tournament) -> Tournament:
        async with self._locks.hold(tournament_lock_key(tournament.id)):
            created = tournament.created_at or utcnow()
            stored = validated_copy(
                tournament, created_at=created, updated_at=tournament.updated_at or created
            )
            await self._save_tournament(stored)
            return stored.model_copy(deep=True)

    async def update_match_result(
        self,
        tournament_id: str,
        round_number: int,
        match_id: str,
        result: MatchResult | str,
        score: str,
    ) -> Tournament:
        return await self._mutate(
            tournament_id,
            lambda t: set_match_result(t, round_number, match_id, result, score),
        )

    async def set_round_pairings(
        self, tournament_id: str, round_number: int, pairings: Iterable[Pairing]
    ) -> Tournament:
        pairings = list(pairings)
        return await self._mutate(
            tournament_id, lambda t: replace_round_matches(t, round_number, pairings)
        )

    async def set_hole_result(
        self,
        tournament_id: str,
        round_number: int,
        match_id: str,
        hole: int,
        outcome: HoleOutcome | str,
    ) -> Tournament:
        return await self._mutate(
            tournament_id,
            lambda t: apply_hole_result(t, round_number, match_id, hole, outcome),
        )

    async def link_player(self, tournament_id: str, player_id: str, email: str) -> Tournament:
        return await self._mutate(tournament_id, lambda t: link_player(t, player_id, email))

    async def register_user(self, user: RegisteredUser) -> None:
        async with self._locks.hold(USERS_LOCK_KEY):
            self._users[user.email] = user.model_copy()

    async def list_registered_users(self) -> list[RegisteredUser]:
        return [user.model_copy() for user in self._users.values()]

    async def create_local_user(self, user: LocalUser) -> LocalUser:
        async with self._locks.hold(LOCAL_USERS_LOCK_KEY):
            return accounts.add_local_user(self._local_users, user).model_copy()

    async def get_local_user(self, email: str) -> LocalUser:
        return accounts.lookup_local_user(self._local_users, email).model_copy()

    async def verify_local_user(self, token: str) -> LocalUser:
        async with self._locks.hold(LOCAL_USERS_LOCK_KEY):
            key, user = accounts.find_by_token(self._local_users, token)
            verified = user.model_copy(update={"email_verified": True, "verification_token": ""})
            self._local_users[key] = verified
            return verified.model_copy()

    async def list_local_users(self) -> list[LocalUser]:
        return [user.model_copy() for user in self._local_users.values()]

    async def confirm_local_user(self, email: str) -> LocalUser:
        async with self._locks.hold(LOCAL_USERS_LOCK_KEY):
            user = accounts.lookup_local_user(self._local_users, email)
            confirmed = user.model_copy(update={"confirmed": True})
            self._local_users[accounts.account_key(email)] = confirmed
            return confirmed.model_copy()

    async def delete_local_user(self, email: str) -> None:
        async with self._locks.hold(LOCAL_USERS_LOCK_KEY):
            accounts.remove_local_user(self._local_users, email)

    async def close(self) -> None:
        return None
