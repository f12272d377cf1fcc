"""Daily scheduling, anti-repetition tracking and endless-mode ordering."""

from .dates import day_index, day_number_from_key, parse_date_key, recent_date_keys
from .recency import RecencyTracker, collect_banned
from .daily import DailyScheduler, select_daily, rotate, conflicts_with, SIMILARITY_GUARD_FALLBACK
from .endless import next_endless_puzzle

__all__ = [
    "day_index",
    "day_number_from_key",
    "parse_date_key",
    "recent_date_keys",
    "RecencyTracker",
    "collect_banned",
    "DailyScheduler",
    "select_daily",
    "rotate",
    "conflicts_with",
    "SIMILARITY_GUARD_FALLBACK",
    "next_endless_puzzle",
]
