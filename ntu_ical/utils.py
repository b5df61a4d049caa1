from __future__ import annotations

import hashlib
import re
from datetime import date, datetime
from typing import Iterable
from zoneinfo import ZoneInfo

HHMM_REGEX = re.compile(r"^(?P<hour>\d{2})(?P<minute>\d{2})$")

DAY_PREFIXES = {
    "mon": 0,
    "tue": 1,
    "wed": 2,
    "thu": 3,
    "fri": 4,
    "sat": 5,
    "sun": 6,
}


def build_datetime(day: date, time_str: str, tz: ZoneInfo) -> datetime:
    match = HHMM_REGEX.match(time_str.strip())
    if not match:
        raise ValueError(f"Cannot parse time from '{time_str}'")
    hour, minute = int(match.group("hour")), int(match.group("minute"))
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=tz)


def parse_day_label(label: str) -> int:
    weekday = DAY_PREFIXES.get(label.strip().lower()[:3])
    if weekday is None:
        raise ValueError(f"Unknown weekday label '{label}'")
    return weekday


def hash_source(parts: Iterable[str]) -> str:
    hasher = hashlib.sha1()
    joined = "|".join(parts)
    hasher.update(joined.encode("utf-8"))
    return hasher.hexdigest()
