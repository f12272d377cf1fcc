#!/usr/bin/env python3
"""Assign (or report) the daily puzzle for a date. Defaults to today in UTC."""

import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import logging
from datetime import datetime, timezone

import structlog

from wordchains.config import settings
from wordchains.database import DailyLedgerStore, PuzzlePoolStore, StoreError
from wordchains.scheduling import DailyScheduler

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = structlog.get_logger(__name__)


def main(argv):
    """Assign the puzzle for ``argv[1]`` (YYYY-MM-DD)."""
    date_key = argv[1] if len(argv) > 1 else datetime.now(timezone.utc).date().isoformat()

    pool_store = PuzzlePoolStore()
    ledger = DailyLedgerStore()
    scheduler = DailyScheduler(pool_store=pool_store, ledger=ledger)

    try:
        view = scheduler.daily_puzzle(date_key)
    except ValueError as e:
        logger.error("Invalid date", date_key=date_key, error=str(e))
        return 1
    except StoreError as e:
        logger.error("Store unavailable", date_key=date_key, error=str(e))
        return 1
    finally:
        pool_store.close()
        ledger.close()

    if view is None:
        logger.warning("No puzzle available", date_key=date_key)
        return 1

    logger.info(
        "Daily puzzle",
        date_key=date_key,
        puzzle_id=view.id,
        puzzle_number=view.puzzle_number,
        warning=view.warning,
    )
    return 0


if __name__ == "__main__":
    exit_code = main(sys.argv)
    sys.exit(exit_code)
