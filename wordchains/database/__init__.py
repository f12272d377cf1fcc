"""Persistence layer for the Word Chains editorial engine."""

from .redis_store import RedisStore, StoreError
from .pool import PuzzlePoolStore
from .ledger import DailyLedgerStore

__all__ = ["RedisStore", "StoreError", "PuzzlePoolStore", "DailyLedgerStore"]
