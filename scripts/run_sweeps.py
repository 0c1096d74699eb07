"""Periodic maintenance jobs, meant to be run from cron.

``dispatch-due`` delivers scheduled communications whose date has passed and
``purge-expired`` deletes notifications past their expiry date.
"""

from __future__ import annotations

import argparse
import logging

from portal.application.use_cases.communications import dispatch_due_communications
from portal.application.use_cases.notifications import purge_expired_notifications
from portal.config import get_settings
from portal.infrastructure.database import SessionLocal, initialize_database
from portal.infrastructure.notifications import NullNotifier

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run communication maintenance sweeps.")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser(
        "dispatch-due", help="Send scheduled communications whose date has passed"
    )
    subparsers.add_parser("purge-expired", help="Delete expired notifications")
    subparsers.add_parser("all", help="Run every sweep")
    return parser.parse_args(argv)


def run(command: str) -> dict[str, int]:
    """Run the sweeps selected by ``command`` and return what each one did."""

    initialize_database()
    results: dict[str, int] = {}
    session = SessionLocal()
    try:
        if command in ("dispatch-due", "all"):
            # No websocket clients live in this process; pushes are skipped.
            dispatched = dispatch_due_communications(session, NullNotifier())
            results["dispatched"] = len(dispatched)
        if command in ("purge-expired", "all"):
            results["purged"] = purge_expired_notifications(session)
    finally:
        session.close()
    return results


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    results = run(args.command)
    for name, count in results.items():
        print(f"{name}: {count}")


if __name__ == "__main__":
    main()
