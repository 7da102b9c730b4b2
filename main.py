"""
main.py
-------
Command-line entry point for SubsTrack.

Responsibilities:
    - Initialize the database connection pool and schema.
    - Print a user's spend summary.
    - Rebuild the reminder schedule and list what it contains or what is due.

Usage:
    python main.py init-db
    python main.py summary <user_id>
    python main.py schedule [<user_id>]
    python main.py due
"""

import argparse
from datetime import datetime

from db.connection import init_pool, close_pool
from db.init_db import create_tables
from services.subscription_service import SubscriptionService
from utils.logger import get_logger

logger = get_logger(__name__)


def _rebuild_schedule(service: SubscriptionService, user_ids: list[str], now: datetime) -> None:
    """Reload every listed user's subscriptions so their reminders are current."""
    for user_id in user_ids:
        try:
            service.fetch_subscriptions(user_id, now)
        except Exception as e:
            logger.error(f"Failed to rebuild reminders for user {user_id}: {e}")


def run_summary(service: SubscriptionService, user_id: str, now: datetime) -> None:
    print(service.format_summary(user_id, now))


def run_schedule(service: SubscriptionService, user_id: str | None, now: datetime) -> None:
    user_ids = [user_id] if user_id else service.repo.get_user_ids()
    _rebuild_schedule(service, user_ids, now)
    scheduled = service.scheduler.get_scheduled(user_id)
    if not scheduled:
        print("📭 No reminders scheduled.")
        return
    for notification in scheduled:
        print(f"{notification.user_id} {notification}")


def run_due(service: SubscriptionService, now: datetime) -> None:
    _rebuild_schedule(service, service.repo.get_user_ids(), now)
    due = service.scheduler.get_due(now)
    logger.info(f"{len(due)} reminders due at {now:%Y-%m-%d %H:%M}")
    for notification in due:
        print(f"{notification.user_id} {notification}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="substrack", description="Subscription spend and reminders.")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init-db", help="create the database schema")

    summary = commands.add_parser("summary", help="show a user's monthly spend and upcoming bills")
    summary.add_argument("user_id")

    schedule = commands.add_parser("schedule", help="rebuild and list reminders")
    schedule.add_argument("user_id", nargs="?")

    commands.add_parser("due", help="list reminders that should fire now")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Parse arguments and run one command."""
    args = build_parser().parse_args(argv)

    # ── 1. Database setup ─────────────────────────────────
    init_pool()
    try:
        if args.command == "init-db":
            create_tables()
            return

        # ── 2. One clock reading for the whole run ────────
        now = datetime.now()
        service = SubscriptionService()

        # ── 3. Dispatch ───────────────────────────────────
        if args.command == "summary":
            run_summary(service, args.user_id, now)
        elif args.command == "schedule":
            run_schedule(service, args.user_id, now)
        elif args.command == "due":
            run_due(service, now)
    finally:
        # ── 4. Cleanup ────────────────────────────────────
        close_pool()


if __name__ == "__main__":
    main()
