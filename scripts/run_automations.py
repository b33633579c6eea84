"""Run the scheduled automations once (absentee scan, birthdays).

Meant for cron: `APP_ENV=production python scripts/run_automations.py`.
Exits non-zero when an automation reports an error.
"""

from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
for p in (REPO_ROOT, REPO_ROOT / "src" / "church_crm"):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))

from dotenv import load_dotenv

from config import get_settings_module

from church_crm.common.logging import configure_logging
from church_crm.container import build_container


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--skip-absentees", action="store_true")
    parser.add_argument("--skip-birthdays", action="store_true")
    parser.add_argument("--dry-run", action="store_true", help="birthdays only: detect without sending")
    args = parser.parse_args()

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"), bool(getattr(settings, "JSON_LOGS", True)))
    container = build_container(
        store_backend=getattr(settings, "STORE_BACKEND", "memory"),
        db_config=getattr(settings, "DB_CONFIG", None),
    )

    failed = False
    if not args.skip_absentees:
        result = container.absentee_detector.run_absentee_automation()
        print(
            f"absentees: programs={result.programs_considered} found={result.absentees_found} "
            f"follow_ups={result.follow_ups_created}"
        )
        failed = failed or result.error is not None
    if not args.skip_birthdays:
        bresult = container.birthday_automation.run_birthday_automation(dry_run=args.dry_run)
        print(
            f"birthdays: scheduled={bresult.scheduled_count} sent={bresult.sent_count} "
            f"follow_ups={bresult.follow_ups_created}"
        )
        failed = failed or bresult.error is not None

    if failed:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
