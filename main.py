"""PDB Outage Monitor -- entry point.

Assembles the event-driven pipeline:

    Gmail provider (one asyncio task per provider)
        -> dedup
        -> EventBus (asyncio.Queue fan-out)
        -> Consumer tasks (console log, outage store sync)

The outage sync consumer stores every event and recomputes the full
outage set from the stored history whenever its queue runs dry.

Commands:
    watch   poll the mailbox forever (default)
    sync    poll once, rebuild outages, exit
    report  print a daily/weekly/monthly/yearly report as JSON
"""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import httpx
from pydantic import ValidationError

from consumers.console import ConsoleConsumer
from consumers.outage_sync import OutageSyncConsumer
from core.config import Settings
from core.dedup import DeduplicationStore
from core.event_bus import EventBus
from core.registry import ProviderRegistry
from core.scheduler import Scheduler
from providers.gmail_provider import GmailProvider
from reports.scopes import Scope, resolve_selector
from reports.summary import build_report
from storage.sqlite_store import OutageStore

log = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Track power outages from PDB Down/Up notification mails",
    )
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("watch", help="poll the mailbox continuously")
    sub.add_parser("sync", help="poll the mailbox once and rebuild outages")

    report = sub.add_parser("report", help="print an outage report as JSON")
    report.add_argument(
        "--scope",
        choices=[s.value for s in Scope],
        default=Scope.DAILY.value,
    )
    report.add_argument("--year", type=int, default=None)
    report.add_argument("--month", type=int, default=None)
    report.add_argument("--day", type=int, default=None)
    report.add_argument(
        "--timezone",
        default=None,
        help="IANA timezone for the report window (default: configured timezone)",
    )
    report.add_argument(
        "--previous-day",
        action="store_true",
        help="report on the day before the selected (or current) day",
    )
    return parser


def build_registry(client: httpx.AsyncClient, settings: Settings) -> ProviderRegistry:
    registry = ProviderRegistry()
    registry.register(
        GmailProvider(
            client=client,
            client_id=settings.gmail_client_id or "",
            client_secret=settings.gmail_client_secret.get_secret_value(),
            refresh_token=settings.gmail_refresh_token.get_secret_value(),
            user=settings.gmail_user,
            label_name=settings.gmail_label_name,
            after=settings.gmail_after,
            page_size=settings.gmail_page_size,
            delay_seconds=settings.transmission_delay_seconds,
            poll_interval=settings.poll_interval_seconds,
        )
    )
    return registry


async def run_pipeline(
    settings: Settings,
    once: bool = False,
    registry: ProviderRegistry | None = None,
) -> None:
    tz = settings.tzinfo
    async with httpx.AsyncClient(timeout=30.0) as client:
        with OutageStore(settings.database_path) as store:
            bus = EventBus()
            # Messages already in the store are not republished after a restart.
            scheduler = Scheduler(
                registry=registry or build_registry(client, settings),
                dedup=DeduplicationStore(seen=store.source_ids()),
                bus=bus,
                concurrency_limit=settings.concurrency_limit,
            )

            sync = OutageSyncConsumer(queue=bus.subscribe(), store=store, tz=tz)
            consumers = [
                ConsoleConsumer(queue=bus.subscribe(), tz=tz),
                sync,
            ]
            consumer_tasks = [
                asyncio.create_task(c.run(), name=type(c).__name__)
                for c in consumers
            ]

            try:
                if once:
                    new_count = await scheduler.poll_once()
                    await bus.join()
                    if sync.rebuilds == 0:
                        await sync.rebuild()
                    log.info(
                        "Sync finished: %d new event(s), %d stored",
                        new_count,
                        store.event_count(),
                    )
                else:
                    await scheduler.run()
            finally:
                for task in consumer_tasks:
                    task.cancel()
                await asyncio.gather(*consumer_tasks, return_exceptions=True)


def run_report(settings: Settings, args: argparse.Namespace) -> int:
    try:
        tz = ZoneInfo(args.timezone) if args.timezone else settings.tzinfo
    except (ZoneInfoNotFoundError, ValueError):
        log.error("Unknown timezone: %s", args.timezone)
        return 2

    try:
        year, month, day = resolve_selector(
            tz,
            args.year,
            args.month,
            args.day,
            previous_day=args.previous_day,
        )
        with OutageStore(settings.database_path) as store:
            report = build_report(store, args.scope, year, month, day, tz)
    except ValueError as exc:
        log.error("Invalid report selector: %s", exc)
        return 2

    print(json.dumps(report, indent=2))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    command = args.command or "watch"

    try:
        settings = Settings()
    except ValidationError as exc:
        configure_logging("INFO")
        log.error("Invalid configuration:\n%s", exc)
        return 2
    configure_logging(settings.log_level)

    if command == "report":
        return run_report(settings, args)

    if not settings.gmail_configured:
        log.error(
            "Gmail credentials missing; set PDB_MONITOR_GMAIL_CLIENT_ID, "
            "PDB_MONITOR_GMAIL_CLIENT_SECRET and PDB_MONITOR_GMAIL_REFRESH_TOKEN"
        )
        return 2

    try:
        asyncio.run(run_pipeline(settings, once=command == "sync"))
    except KeyboardInterrupt:
        print("\nShutting down.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
