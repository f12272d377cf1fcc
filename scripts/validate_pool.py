#!/usr/bin/env python3
"""Audit every stored puzzle and exit non-zero on blocking issues."""

import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import logging

import structlog

from wordchains.config import settings
from wordchains.database import PuzzlePoolStore, StoreError
from wordchains.rules.validator import CandidateValidator

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = structlog.get_logger(__name__)


def main():
    """Check all pool rows and print warnings and errors."""
    pool_store = PuzzlePoolStore()
    validator = CandidateValidator()

    try:
        entries = pool_store.list_puzzles()
    except StoreError as e:
        logger.error("Could not read the pool", error=str(e))
        return 1
    finally:
        pool_store.close()

    errors = []
    warnings = []
    for entry in entries:
        report = validator.audit_entry(entry)
        errors.extend(f"Puzzle {entry.id}: {issue.message}" for issue in report.errors)
        warnings.extend(f"Puzzle {entry.id}: {issue.message}" for issue in report.warnings)

    print(f"Checked {len(entries)} puzzles.")
    if warnings:
        print("\nWarnings:")
        for line in warnings:
            print(f"- {line}")
    if errors:
        print("\nErrors:")
        for line in errors:
            print(f"- {line}")
        return 1

    print("\nNo blocking issues found.")
    return 0


if __name__ == "__main__":
    exit_code = main()
    sys.exit(exit_code)
