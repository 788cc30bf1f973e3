"""Tournament store backed by a Redis server.

Keys (all under the configured prefix)::

    tournament:{id}   JSON document for one tournament
    tournaments       set of every stored tournament id
    users             hash of registered users keyed by email
    local_users       hash of local accounts keyed by lower-cased email

Every server call is bounded by ``operation_timeout``; transport errors and
timeouts surface as ``StorageFailure``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable

import redis.asyncio as redis
from redis.exceptions import RedisError

from ..codec import (
    decode_local_user,
    decode_registered_user,
    decode_tournament,
    encode_local_user,
    encode_registered_user,
    encode_tournament,
)
from ..config import canon_prefix
from ..exceptions import (
    LocalUserAlreadyExists,
    LocalUserNotFound,
    StorageFailure,
    TournamentAlreadyExists,
    TournamentNotFound,
)
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
    KeyedLocks,
    listing_order,
    tournament_lock_key,
    validated_copy,
)

logger = logging.getLogger(__name__)


class RedisStore:
    def __init__(
        self,
        client: redis.Redis,
        *,
        prefix: str = "matchplay:",
        operation_timeout: float | None = 5.0,
    ) -> None:
        self._redis = client
        self._prefix = canon_prefix(prefix)
        self._timeout = operation_timeout or None
        self._locks = KeyedLocks()
        logger.info("Using redis store (prefix: %s)", self._prefix)

    @classmethod
    def from_url(
        cls,
        url: str,
        *,
        prefix: str = "matchplay:",
        operation_timeout: float | None = 5.0,
    ) -> "RedisStore":
        client = redis.from_url(url, decode_responses=True)
        return cls(client, prefix=prefix, operation_timeout=operation_timeout)

    def _key(self, tournament_id: str) -> str:
        return f"{self._prefix}tournament:{tournament_id}"

    @property
    def _index_key(self) -> str:
        return f"{self._prefix}tournaments"

    @property
    def _users_key(self) -> str:
        return f"{self._prefix}users"

    @property
    def _local_users_key(self) -> str:
        return f"{self._prefix}local_users"

    async def _call(self, operation: str, identifier: str, awaitable: Awaitable[Any]) -> Any:
        try:
            return await asyncio.wait_for(awaitable, self._timeout)
        except asyncio.TimeoutError as exc:
            raise StorageFailure(operation, identifier, "timed out") from exc
        except RedisError as exc:
            raise StorageFailure(operation, identifier, str(exc)) from exc

    async def _load_tournament(self, tournament_id: str) -> Tournament:
        raw = await self._call(
            "reading tournament", tournament_id, self._redis.get(self._key(tournament_id))
        )
        if raw is None:
            raise TournamentNotFound(tournament_id)
        try:
            return decode_tournament(raw)
        except ValueError as exc:
            raise StorageFailure("decoding tournament", tournament_id, str(exc)) from exc

    async def _save_tournament(self, tournament: Tournament) -> None:
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.set(self._key(tournament.id), encode_tournament(tournament))
            pipe.sadd(self._index_key, tournament.id)
            await self._call("writing tournament", tournament.id, pipe.execute())

    async def _mutate(
        self, tournament_id: str, change: Callable[[Tournament], object]
    ) -> Tournament:
        async with self._locks.hold(tournament_lock_key(tournament_id)):
            tournament = await self._load_tournament(tournament_id)
            change(tournament)
            tournament.updated_at = utcnow()
            await self._save_tournament(tournament)
            logger.debug("Updated tournament %s", tournament_id)
            return tournament

    async def create_tournament(self, tournament: Tournament) -> Tournament:
        async with self._locks.hold(tournament_lock_key(tournament.id)):
            now = utcnow()
            stored = validated_copy(tournament, created_at=now, updated_at=now)
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.set(self._key(stored.id), encode_tournament(stored), nx=True)
                pipe.sadd(self._index_key, stored.id)
                created, _ = await self._call("creating tournament", stored.id, pipe.execute())
            if not created:
                raise TournamentAlreadyExists(stored.id)
            return stored

    async def get_tournament(self, tournament_id: str) -> Tournament:
        return await self._load_tournament(tournament_id)

    async def update_tournament(self, tournament: Tournament) -> Tournament:
        async with self._locks.hold(tournament_lock_key(tournament.id)):
            exists = await self._call(
                "updating tournament", tournament.id, self._redis.exists(self._key(tournament.id))
            )
            if not exists:
                raise TournamentNotFound(tournament.id)
            stored = validated_copy(tournament, updated_at=utcnow())
            await self._save_tournament(stored)
            return stored

    async def list_tournaments(self) -> list[Tournament]:
        ids = sorted(
            await self._call("listing tournaments", self._index_key, self._redis.smembers(self._index_key))
        )
        if not ids:
            return []
        raws = await self._call(
            "listing tournaments",
            self._index_key,
            self._redis.mget([self._key(tournament_id) for tournament_id in ids]),
        )
        tournaments = []
        for tournament_id, raw in zip(ids, raws):
            if raw is None:
                continue
            try:
                tournaments.append(decode_tournament(raw))
            except ValueError as exc:
                logger.warning("Skipping undecodable tournament %s: %s", tournament_id, exc)
        return sorted(tournaments, key=listing_order)

    async def delete_tournament(self, tournament_id: str) -> None:
        async with self._locks.hold(tournament_lock_key(tournament_id)):
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.delete(self._key(tournament_id))
                pipe.srem(self._index_key, tournament_id)
                deleted, _ = await self._call(
                    "deleting tournament", tournament_id, pipe.execute()
                )
            if not deleted:
                raise TournamentNotFound(tournament_id)

    async def import_tournament(self, tournament: Tournament) -> Tournament:
        async with self._locks.hold(tournament_lock_key(tournament.id)):
            created = tournament.created_at or utcnow()
            stored = validated_copy(
                tournament, created_at=created, updated_at=tournament.updated_at or created
            )
            await self._save_tournament(stored)
            return stored

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

    # Registered users

    async def register_user(self, user: RegisteredUser) -> None:
        await self._call(
            "registering user",
            user.email,
            self._redis.hset(self._users_key, user.email, encode_registered_user(user)),
        )

    async def list_registered_users(self) -> list[RegisteredUser]:
        raws = await self._call("listing users", self._users_key, self._redis.hvals(self._users_key))
        users = []
        for raw in raws:
            try:
                users.append(decode_registered_user(raw))
            except ValueError as exc:
                logger.warning("Skipping undecodable registered user: %s", exc)
        return users

    # Local accounts

    async def _load_local_user(self, email: str) -> LocalUser:
        raw = await self._call(
            "reading local user",
            email,
            self._redis.hget(self._local_users_key, accounts.account_key(email)),
        )
        if raw is None:
            raise LocalUserNotFound(email)
        try:
            return decode_local_user(raw)
        except ValueError as exc:
            raise StorageFailure("decoding local user", email, str(exc)) from exc

    async def _save_local_user(self, key: str, user: LocalUser) -> None:
        await self._call(
            "writing local user",
            key,
            self._redis.hset(self._local_users_key, key, encode_local_user(user)),
        )

    async def _load_local_users(self) -> dict[str, LocalUser]:
        raws = await self._call(
            "listing local users", self._local_users_key, self._redis.hgetall(self._local_users_key)
        )
        users = {}
        for key, raw in raws.items():
            try:
                users[key] = decode_local_user(raw)
            except ValueError as exc:
                logger.warning("Skipping undecodable local user %s: %s", key, exc)
        return users

    async def create_local_user(self, user: LocalUser) -> LocalUser:
        user = accounts.with_created_at(user)
        key = accounts.account_key(user.email)
        created = await self._call(
            "creating local user",
            key,
            self._redis.hsetnx(self._local_users_key, key, encode_local_user(user)),
        )
        if not created:
            raise LocalUserAlreadyExists(user.email)
        return user

    async def get_local_user(self, email: str) -> LocalUser:
        return await self._load_local_user(email)

    async def verify_local_user(self, token: str) -> LocalUser:
        async with self._locks.hold(LOCAL_USERS_LOCK_KEY):
            key, user = accounts.find_by_token(await self._load_local_users(), token)
            user.email_verified = True
            user.verification_token = ""
            await self._save_local_user(key, user)
            return user

    async def list_local_users(self) -> list[LocalUser]:
        return list((await self._load_local_users()).values())

    async def confirm_local_user(self, email: str) -> LocalUser:
        async with self._locks.hold(LOCAL_USERS_LOCK_KEY):
            user = await self._load_local_user(email)
            user.confirmed = True
            await self._save_local_user(accounts.account_key(email), user)
            return user

    async def delete_local_user(self, email: str) -> None:
        async with self._locks.hold(LOCAL_USERS_LOCK_KEY):
            removed = await self._call(
                "deleting local user",
                email,
                self._redis.hdel(self._local_users_key, accounts.account_key(email)),
            )
        if not removed:
            raise LocalUserNotFound(email)

    async def close(self) -> None:
        await self._redis.aclose()
