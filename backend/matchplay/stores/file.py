"""Tournament store keeping one JSON document per tournament on disk.

Layout inside the data directory::

    {tournament-id}.json    one document per tournament
    _users.json             registered users keyed by email
    _local_users.json       local accounts keyed by lower-cased email

Documents are written to a temporary sibling and renamed into place, so a
reader sees either the old or the new document, never a partial one.
"""

from __future__ import annotations

import logging
import os
import uuid
from pathlib import Path
from typing import Callable, Iterable, TypeVar

import aiofiles
import aiofiles.os

from ..codec import (
    decode_local_users,
    decode_registered_users,
    decode_tournament,
    encode_local_users,
    encode_registered_users,
    encode_tournament,
)
from ..exceptions import (
    InvalidInput,
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
    USERS_LOCK_KEY,
    KeyedLocks,
    listing_order,
    tournament_lock_key,
    validated_copy,
)

logger = logging.getLogger(__name__)

USERS_FILE = "_users.json"
LOCAL_USERS_FILE = "_local_users.json"

T = TypeVar("T")


class FileStore:
    def __init__(self, directory: str | os.PathLike[str]) -> None:
        self._dir = Path(directory)
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageFailure("creating data directory", str(self._dir), str(exc)) from exc
        self._locks = KeyedLocks()
        logger.info("Using file store (dir: %s)", self._dir)

    @property
    def directory(self) -> Path:
        return self._dir

    def _path(self, tournament_id: str) -> Path:
        if (
            not tournament_id
            or tournament_id.startswith((".", "_"))
            or "/" in tournament_id
            or "\\" in tournament_id
            or os.sep in tournament_id
            or "\x00" in tournament_id
        ):
            raise InvalidInput(f"invalid tournament id: {tournament_id!r}")
        return self._dir / f"{tournament_id}.json"

    async def _write_atomic(
        self, path: Path, data: str | bytes, operation: str, identifier: str
    ) -> None:
        if isinstance(data, str):
            data = data.encode("utf-8")
        tmp = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
        try:
            async with aiofiles.open(tmp, "wb") as fh:
                await fh.write(data)
            await aiofiles.os.replace(tmp, path)
        except OSError as exc:
            tmp.unlink(missing_ok=True)
            raise StorageFailure(operation, identifier, str(exc)) from exc
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise

    async def _read_bytes(self, path: Path, operation: str, identifier: str) -> bytes | None:
        try:
            async with aiofiles.open(path, "rb") as fh:
                return await fh.read()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageFailure(operation, identifier, str(exc)) from exc

    async def _exists(self, path: Path) -> bool:
        return await aiofiles.os.path.exists(path)

    async def _load_tournament(self, tournament_id: str) -> Tournament:
        raw = await self._read_bytes(
            self._path(tournament_id), "reading tournament", tournament_id
        )
        if raw is None:
            raise TournamentNotFound(tournament_id)
        try:
            return decode_tournament(raw)
        except ValueError as exc:
            raise StorageFailure("decoding tournament", tournament_id, str(exc)) from exc

    async def _save_tournament(self, tournament: Tournament) -> None:
        await self._write_atomic(
            self._path(tournament.id),
            encode_tournament(tournament, indent=2),
            "writing tournament",
            tournament.id,
        )

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
        path = self._path(tournament.id)
        async with self._locks.hold(tournament_lock_key(tournament.id)):
            if await self._exists(path):
                raise TournamentAlreadyExists(tournament.id)
            now = utcnow()
            stored = validated_copy(tournament, created_at=now, updated_at=now)
            await self._save_tournament(stored)
            return stored

    async def get_tournament(self, tournament_id: str) -> Tournament:
        return await self._load_tournament(tournament_id)

    async def update_tournament(self, tournament: Tournament) -> Tournament:
        path = self._path(tournament.id)
        async with self._locks.hold(tournament_lock_key(tournament.id)):
            if not await self._exists(path):
                raise TournamentNotFound(tournament.id)
            stored = validated_copy(tournament, updated_at=utcnow())
            await self._save_tournament(stored)
            return stored

    async def list_tournaments(self) -> list[Tournament]:
        try:
            names = await aiofiles.os.listdir(self._dir)
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise StorageFailure("listing data directory", str(self._dir), str(exc)) from exc

        tournaments = []
        for name in names:
            if not name.endswith(".json") or name.startswith(("_", ".")):
                continue
            tournament_id = name[: -len(".json")]
            try:
                tournaments.append(await self._load_tournament(tournament_id))
            except TournamentNotFound:
                continue
            except StorageFailure as exc:
                logger.warning("Skipping unreadable tournament file %s: %s", name, exc)
        return sorted(tournaments, key=listing_order)

    async def delete_tournament(self, tournament_id: str) -> None:
        path = self._path(tournament_id)
        async with self._locks.hold(tournament_lock_key(tournament_id)):
            try:
                await aiofiles.os.remove(path)
            except FileNotFoundError:
                raise TournamentNotFound(tournament_id) from None
            except OSError as exc:
                raise StorageFailure("deleting tournament", tournament_id, str(exc)) from exc

    async def import_tournament(self, tournament: Tournament) -> Tournament:
        self._path(tournament.id)
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

    @property
    def _users_path(self) -> Path:
        return self._dir / USERS_FILE

    async def _load_users(self) -> dict[str, RegisteredUser]:
        raw = await self._read_bytes(self._users_path, "reading users", USERS_FILE)
        if raw is None:
            return {}
        try:
            return decode_registered_users(raw)
        except ValueError as exc:
            raise StorageFailure("decoding users", USERS_FILE, str(exc)) from exc

    async def register_user(self, user: RegisteredUser) -> None:
        async with self._locks.hold(USERS_LOCK_KEY):
            users = await self._load_users()
            users[user.email] = user
            await self._write_atomic(
                self._users_path,
                encode_registered_users(users, indent=2),
                "writing users",
                USERS_FILE,
            )

    async def list_registered_users(self) -> list[RegisteredUser]:
        return list((await self._load_users()).values())

    # Local accounts

    @property
    def _local_users_path(self) -> Path:
        return self._dir / LOCAL_USERS_FILE

    async def _load_local_users(self) -> dict[str, LocalUser]:
        raw = await self._read_bytes(
            self._local_users_path, "reading local users", LOCAL_USERS_FILE
        )
        if raw is None:
            return {}
        try:
            return decode_local_users(raw)
        except ValueError as exc:
            raise StorageFailure("decoding local users", LOCAL_USERS_FILE, str(exc)) from exc

    async def _mutate_local_users(self, change: Callable[[dict[str, LocalUser]], T]) -> T:
        async with self._locks.hold(LOCAL_USERS_LOCK_KEY):
            users = await self._load_local_users()
            outcome = change(users)
            await self._write_atomic(
                self._local_users_path,
                encode_local_users(users, indent=2),
                "writing local users",
                LOCAL_USERS_FILE,
            )
            return outcome

    async def create_local_user(self, user: LocalUser) -> LocalUser:
        return await self._mutate_local_users(lambda users: accounts.add_local_user(users, user))

    async def get_local_user(self, email: str) -> LocalUser:
        return accounts.lookup_local_user(await self._load_local_users(), email)

    async def verify_local_user(self, token: str) -> LocalUser:
        return await self._mutate_local_users(
            lambda users: accounts.verify_local_user(users, token)
        )

    async def list_local_users(self) -> list[LocalUser]:
        return list((await self._load_local_users()).values())

    async def confirm_local_user(self, email: str) -> LocalUser:
        return await self._mutate_local_users(
            lambda users: accounts.confirm_local_user(users, email)
        )

    async def delete_local_user(self, email: str) -> None:
        await self._mutate_local_users(lambda users: accounts.remove_local_user(users, email))

    async def close(self) -> None:
        return None
