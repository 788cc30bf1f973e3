#!/usr/bin/env python3
"""Admin helper to copy a file-backed data directory into Redis."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os

from matchplay.config import StoreSettings, canon_prefix
from matchplay.stores import FileStore, RedisStore
from matchplay.services.migration import copy_store
from matchplay.utils.sentry import init_sentry


def _print_summary(tournaments) -> None:
    print(f"Tournaments: {len(tournaments)}")
    for t in tournaments:
        total_matches = sum(len(r.matches) for r in t.rounds)
        print(f"  {t.name} ({t.id})")
        if t.created_at is not None:
            print(f"    Created: {t.created_at:%Y-%m-%d %H:%M:%S}")
        print(f"    Teams: {t.team1_name} vs {t.team2_name}")
        print(f"    Players: {len(t.teams[0].players)} + {len(t.teams[1].players)}")
        print(f"    Rounds: {len(t.rounds)}, Matches: {total_matches}")
        for r in t.rounds:
            print(f"      Round {r.number} ({r.name}): {len(r.matches)} matches")


async def main() -> None:
    defaults = StoreSettings()
    parser = argparse.ArgumentParser(
        description="Copy tournaments, registered users and local accounts from a "
        "file-backed data directory into a Redis store."
    )
    parser.add_argument(
        "--data-dir",
        default=os.getenv("DATA_DIR") or defaults.data_dir,
        help="Source data directory (defaults to $DATA_DIR or ./data).",
    )
    parser.add_argument(
        "--redis-url",
        default=os.getenv("REDIS_URL") or defaults.redis_url,
        help="Destination Redis URL (defaults to $REDIS_URL).",
    )
    parser.add_argument(
        "--prefix",
        default=os.getenv("REDIS_KEY_PREFIX") or defaults.redis_prefix,
        help="Key prefix used in the destination.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List what would be copied without writing anything.",
    )

    args = parser.parse_args()
    args.prefix = canon_prefix(args.prefix)
    logging.basicConfig(level=logging.INFO)
    init_sentry()

    source = FileStore(args.data_dir)
    destination = RedisStore.from_url(args.redis_url, prefix=args.prefix)

    try:
        print(f"Migrating from {args.data_dir} -> {args.redis_url} (prefix: {args.prefix})\n")
        _print_summary(await source.list_tournaments())
        report = await copy_store(source, destination, dry_run=args.dry_run)
    finally:
        await destination.close()

    for kind, identifier, reason in report.skipped:
        print(f"SKIP {kind} {identifier}: {reason}")
    verb = "Would migrate" if args.dry_run else "Migrated"
    print(
        f"\nDone. {verb} {report.tournaments} tournament(s), "
        f"{report.registered_users} registered user(s), {report.local_users} local user(s)."
    )


if __name__ == "__main__":
    asyncio.run(main())
