"""Flag yesterday's records that were never clocked out.

Meant to run once a day (cron) after midnight in the tenant's timezone.
"""

from __future__ import annotations

import importlib
import logging
import sys
from datetime import timedelta
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
# Same import names as the installed distribution when run from a checkout.
for path in (REPO_ROOT, REPO_ROOT / "src" / "attendance_engine"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from dotenv import load_dotenv

from config import get_settings_module

from attendance_engine.common.datetime_utils import now_local
from attendance_engine.container import build_container
from attendance_engine.core.settings import EngineSettings

def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    logging.basicConfig(level=str(getattr(settings, "LOG_LEVEL", "INFO")).upper())

    container = build_container(db_config=settings.DB_CONFIG, settings=EngineSettings.from_module(settings))
    now = now_local(container.settings.tenant_timezone)
    work_date = now.date() - timedelta(days=1)

    outcomes = container.attendance_service.flag_missed_clock_outs(work_date, now=now)
    flagged = sum(1 for outcome in outcomes.values() if outcome.ok)
    print(f"OK: flagged {flagged}/{len(outcomes)} missed clock-outs for {work_date.isoformat()}")


if __name__ == "__main__":
    main()
