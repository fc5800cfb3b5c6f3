"""
Scheduler / deployment-hook entry point for ordering maintenance.

Examples:
    python -m ordinal_stage.scripts.maintenance migrate
    python -m ordinal_stage.scripts.maintenance fix-duplicates
    python -m ordinal_stage.scripts.maintenance sync
    python -m ordinal_stage.scripts.maintenance reset-flag order_migrated
"""

from __future__ import annotations

import argparse
import sys

from ordinal_stage.core.logging import configure_logging
from ordinal_stage.db.session import SessionLocal
from ordinal_stage.services.maintenance import STATUS_FAILED, MaintenanceReport, MaintenanceService
from ordinal_stage.services.migration_gate import KNOWN_FLAGS


def _print_report(report: MaintenanceReport) -> None:
    details = ", ".join(f"{key}={value}" for key, value in sorted(report.details.items()))
    print(f"[maintenance] {report.task}: {report.status}" + (f" ({details})" if details else ""))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run ordering maintenance tasks")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("migrate", help="Adopt legacy ordinals, reconcile and repair duplicates once")
    sub.add_parser("fix-duplicates", help="Run the duplicate sweep once")
    sub.add_parser("sync", help="Reconcile now, ignoring the read-path time window")
    reset = sub.add_parser("reset-flag", help="Clear a migration flag")
    reset.add_argument("name", choices=KNOWN_FLAGS)
    args = parser.parse_args(argv)

    configure_logging()
    db = SessionLocal()
    try:
        service = MaintenanceService(db)
        if args.command == "reset-flag":
            service.ensure_flags()
            service.reset_flag(args.name)
            print(f"[maintenance] reset {args.name}")
            return 0

        service.ensure_flags()
        if args.command == "migrate":
            reports = [service.migrate(), service.fix_duplicates()]
        elif args.command == "fix-duplicates":
            reports = [service.fix_duplicates()]
        else:
            reports = [service.sync(force=True)]
    finally:
        db.close()

    for report in reports:
        _print_report(report)
    return 1 if any(report.status == STATUS_FAILED for report in reports) else 0


if __name__ == "__main__":
    sys.exit(main())
