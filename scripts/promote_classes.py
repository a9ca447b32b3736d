"""Run the year-end promotion once, outside the web app."""
from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.school_roster.school_roster.container import build_container
from src.school_roster.school_roster.core.enums import PromotionOutcome


def main() -> int:
    settings = importlib.import_module(get_settings_module())
    logging.basicConfig(level=getattr(settings, "LOG_LEVEL", "INFO"))

    container = build_container(db_config=dict(settings.DB_CONFIG), settings=settings)
    report = container.promotion_service.promote_all()
    for line in report.logs:
        print(line)

    failed = report.count(PromotionOutcome.FAILED)
    print(f"Done: {len(report.results)} classes processed, {failed} failed")
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
