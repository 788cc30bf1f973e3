"""JSON encoding of stored documents.

All backends that serialise go through these helpers so schema upgrades of
older documents happen in exactly one place (the model validators). Decoding
failures surface as ``ValueError`` (pydantic's ``ValidationError`` included).
"""

from __future__ import annotations

from pydantic import TypeAdapter

from .models import LocalUser, RegisteredUser, Tournament

_REGISTERED_USERS = TypeAdapter(dict[str, RegisteredUser])
_LOCAL_USERS = TypeAdapter(dict[str, LocalUser])


def encode_tournament(tournament: Tournament, *, indent: int | None = None) -> str:
    return tournament.model_dump_json(by_alias=True, exclude_none=True, indent=indent)


def decode_tournament(raw: str | bytes) -> Tournament:
    return Tournament.model_validate_json(raw)


def encode_registered_user(user: RegisteredUser) -> str:
    return user.model_dump_json(by_alias=True)


def decode_registered_user(raw: str | bytes) -> RegisteredUser:
    return RegisteredUser.model_validate_json(raw)


def encode_registered_users(
    users: dict[str, RegisteredUser], *, indent: int | None = None
) -> bytes:
    return _REGISTERED_USERS.dump_json(users, by_alias=True, indent=indent)


def decode_registered_users(raw: str | bytes) -> dict[str, RegisteredUser]:
    return _REGISTERED_USERS.validate_json(raw)


def encode_local_user(user: LocalUser) -> str:
    return user.model_dump_json(by_alias=True, exclude_none=True)


def decode_local_user(raw: str | bytes) -> LocalUser:
    return LocalUser.model_validate_json(raw)


def encode_local_users(users: dict[str, LocalUser], *, indent: int | None = None) -> bytes:
    return _LOCAL_USERS.dump_json(users, by_alias=True, exclude_none=True, indent=indent)


def decode_local_users(raw: str | bytes) -> dict[str, LocalUser]:
    return _LOCAL_USERS.validate_json(raw)
