# src/keygate_relay/scripts/purge_pending.py
"""
Operator job that removes abandoned pending requests.

Pending entries never expire on their own; run this from cron (or by hand)
to drop entries older than the retention window.
"""

from __future__ import annotations

import argparse
from datetime import timedelta

from keygate_relay.core.logging import configure_logging
from keygate_relay.core.settings import Settings, settings
from keygate_relay.services.state_store import StateStore
from keygate_relay.services.tracker import CompletionTracker


def purge(config: Settings, hours: int) -> int:
    """Open the configured store, purge stale pending entries and close it.

    Returns:
        Number of pending entries removed.
    """
    store = StateStore(
        config.database_url,
        echo=config.sql_debug,
        auto_create=config.auto_create_tables,
    )
    store.open()
    try:
        return CompletionTracker(store).purge_pending(timedelta(hours=hours))
    finally:
        store.close()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Purge stale pending unlock requests.")
    parser.add_argument(
        "--hours",
        type=int,
        default=settings.pending_retention_hours,
        help="Remove pending entries older than this many hours.",
    )
    args = parser.parse_args(argv)
    if args.hours < 0:
        parser.error("--hours must not be negative")

    configure_logging(settings)
    removed = purge(settings, args.hours)
    print(f"Removed {removed} stale pending request(s)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
