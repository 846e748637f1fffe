#!/usr/bin/env python3
"""CLI for Daily Tips operational tasks.

Usage:
    python -m cli <command>

Commands:
    stats USER_ID                 Print the user's computed progress statistics
    record USER_ID TIP_ID         Record a completion for the user
    logs USER_ID                  List the user's progress records
"""

import argparse
import asyncio
import json
import sys
from collections.abc import Awaitable, Callable
from typing import Any

from core import get_logger
from core.logger import configure_logging
from core.store import KeyValueStore, StoreUnavailableError, close_store, create_store
from services.progress_service import get_user_stats, list_records, record_and_refresh

logger = get_logger(__name__)


async def _with_store(action: Callable[[KeyValueStore], Awaitable[Any]]) -> Any:
    store = create_store()
    try:
        return await action(store)
    finally:
        await close_store(store)


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


def cmd_stats(user_id: str) -> int:
    """Print the user's computed progress statistics."""
    stats = asyncio.run(_with_store(lambda store: get_user_stats(store, user_id)))
    _print_json(stats.model_dump())
    return 0


def cmd_record(user_id: str, tip_id: str, notes: str | None) -> int:
    """Record a completion and print the refreshed statistics."""
    record, stats = asyncio.run(
        _with_store(lambda store: record_and_refresh(store, user_id, tip_id, notes))
    )
    _print_json({"record": record.model_dump(mode="json"), "stats": stats.model_dump()})
    return 0


def cmd_logs(user_id: str) -> int:
    """List the user's progress records, most recent first."""
    records = asyncio.run(_with_store(lambda store: list_records(store, user_id)))
    _print_json([r.model_dump(mode="json") for r in records])
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Daily Tips CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    stats_parser = subparsers.add_parser(
        "stats", help="Print the user's computed progress statistics"
    )
    stats_parser.add_argument("user_id")

    record_parser = subparsers.add_parser(
        "record", help="Record a completion for the user"
    )
    record_parser.add_argument("user_id")
    record_parser.add_argument("tip_id")
    record_parser.add_argument("--notes", default=None)

    logs_parser = subparsers.add_parser("logs", help="List the user's progress records")
    logs_parser.add_argument("user_id")

    args = parser.parse_args(argv)
    configure_logging(sys.stderr)

    try:
        if args.command == "stats":
            return cmd_stats(args.user_id)
        elif args.command == "record":
            return cmd_record(args.user_id, args.tip_id, args.notes)
        elif args.command == "logs":
            return cmd_logs(args.user_id)
    except ValueError as e:
        logger.error("cli.invalid_input", error=str(e))
        return 2
    except StoreUnavailableError as e:
        logger.error("cli.store_unavailable", error=str(e))
        return 1

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
