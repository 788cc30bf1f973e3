"""Copy every record from one store into another."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..exceptions import DomainException

if TYPE_CHECKING:  # pragma: no cover
    from ..stores.base import TournamentStore

logger = logging.getLogger(__name__)


@dataclass
class MigrationReport:
    tournaments: int = 0
    registered_users: int = 0
    local_users: int = 0
    skipped: list[tuple[str, str, str]] = field(default_factory=list)

    def skip(self, kind: str, identifier: str, exc: Exception) -> None:
        logger.warning("Skipping %s %s: %s", kind, identifier, exc)
        self.skipped.append((kind, identifier, str(exc)))


async def copy_store(
    source: "TournamentStore",
    destination: "TournamentStore",
    *,
    dry_run: bool = False,
) -> MigrationReport:
    """Copy tournaments, registered users and local accounts.

    Tournaments keep their original timestamps. A record the destination
    rejects is reported in ``skipped`` and the copy carries on; failures to
    read from ``source`` propagate.
    """

    report = MigrationReport()

    for tournament in await source.list_tournaments():
        logger.info("Copying tournament %s (%s)", tournament.name, tournament.id)
        if not dry_run:
            try:
                await destination.import_tournament(tournament)
            except DomainException as exc:
                report.skip("tournament", tournament.id, exc)
                continue
        report.tournaments += 1

    for user in await source.list_registered_users():
        if not dry_run:
            try:
                await destination.register_user(user)
            except DomainException as exc:
                report.skip("registered user", user.email, exc)
                continue
        report.registered_users += 1

    for local_user in await source.list_local_users():
        if not dry_run:
            try:
                await destination.create_local_user(local_user)
            except DomainException as exc:
                report.skip("local user", local_user.email, exc)
                continue
        report.local_users += 1

    return report
