"""
Create the sheets the reminder app needs in the configured spreadsheet.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from reminder_backend.config import get_settings
from reminder_backend.dependencies import get_sheets_client
from reminder_backend.sheet_setup import initialize_sheets, resolve_journal_sheet

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Initialize reminder app sheets")
    parser.add_argument(
        "--archive-sheet",
        type=str,
        default=None,
        help="Override the archive sheet name",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    settings = get_settings()
    client = get_sheets_client()

    journal = resolve_journal_sheet(
        client, settings.thoughts_sheet_name, max_retries=settings.max_retries
    )
    created = initialize_sheets(
        client,
        archive_sheet_name=args.archive_sheet or settings.archive_sheet_name,
        max_retries=settings.max_retries,
    )
    if created:
        logger.info("Created sheets: %s", ", ".join(created))
    else:
        logger.info("All sheets already exist")
    logger.info("Journal sheet: %s", journal)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
