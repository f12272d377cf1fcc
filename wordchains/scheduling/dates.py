"""UTC civil-date helpers for date keys (``YYYY-MM-DD``)."""

import re
from datetime import date, timedelta
from typing import List, Optional

_DATE_KEY = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_EPOCH = date(1970, 1, 1)


def parse_date_key(date_key: str) -> date:
    """Parse a date key, raising ValueError for anything but a real calendar date."""
    match = _DATE_KEY.match(date_key.strip()) if isinstance(date_key, str) else None
    if not match:
        raise ValueError(f"Invalid date key: {date_key!r}")
    year, month, day = (int(part) for part in match.groups())
    return date(year, month, day)


def day_index(date_key: str) -> int:
    """Whole days between the Unix epoch and UTC midnight of ``date_key``."""
    return (parse_date_key(date_key) - _EPOCH).days


def recent_date_keys(date_key: str, days: int) -> List[str]:
    """The ``days`` date keys immediately before ``date_key``, newest first."""
    base = parse_date_key(date_key)
    return [(base - timedelta(days=offset)).isoformat() for offset in range(1, days + 1)]


def day_number_from_key(date_key: str, launch_date_key: Optional[str]) -> Optional[int]:
    """Player-facing puzzle number for a date; None without a launch date."""
    if not launch_date_key or not launch_date_key.strip():
        return None
    return max(1, day_index(date_key) - day_index(launch_date_key) + 1)
