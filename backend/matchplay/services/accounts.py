"""Local-account registry helpers.

The registry is a mapping keyed by lower-cased email. Helpers modify the
mapping in place; the caller loads and stores it.
"""

from __future__ import annotations

from collections.abc import MutableMapping

from ..exceptions import LocalUserAlreadyExists, LocalUserNotFound, VerificationTokenNotFound
from ..models import LocalUser
from ..time_utils import utcnow

LocalUsers = MutableMapping[str, LocalUser]


def account_key(email: str) -> str:
    return email.strip().lower()


def with_created_at(user: LocalUser) -> LocalUser:
    if user.created_at is not None:
        return user.model_copy()
    return user.model_copy(update={"created_at": utcnow()})


def add_local_user(users: LocalUsers, user: LocalUser) -> LocalUser:
    key = account_key(user.email)
    if key in users:
        raise LocalUserAlreadyExists(user.email)
    user = with_created_at(user)
    users[key] = user
    return user


def lookup_local_user(users: LocalUsers, email: str) -> LocalUser:
    user = users.get(account_key(email))
    if user is None:
        raise LocalUserNotFound(email)
    return user


def find_by_token(users: LocalUsers, token: str) -> tuple[str, LocalUser]:
    if token:
        for key, user in users.items():
            if user.verification_token == token:
                return key, user
    raise VerificationTokenNotFound()


def verify_local_user(users: LocalUsers, token: str) -> LocalUser:
    """Mark the account holding ``token`` as verified and spend the token."""

    key, user = find_by_token(users, token)
    user.email_verified = True
    user.verification_token = ""
    users[key] = user
    return user


def confirm_local_user(users: LocalUsers, email: str) -> LocalUser:
    user = lookup_local_user(users, email)
    user.confirmed = True
    return user


def remove_local_user(users: LocalUsers, email: str) -> None:
    key = account_key(email)
    if key not in users:
        raise LocalUserNotFound(email)
    del users[key]
