from __future__ import annotations

import re
from datetime import date, timedelta
from typing import List

from .config import Settings
from .models import CalendarEvent, ClassBlock, WeekRule
from .utils import build_datetime, hash_source, parse_day_label

# "wk1-6", "Wk 8", "wk2,4,6" (the ",4" and ",6" are separate annotations); no space after a comma
WEEK_REGEX = re.compile(
    r"(?:wk\s*|,)(?:(?P<range>\d+\s*-\s*\d+)|(?P<single>\d+))",
    re.IGNORECASE,
)
WK_TOKEN_REGEX = re.compile(r"\bwk", re.IGNORECASE)


def is_week_annotation(line: str) -> bool:
    return WEEK_REGEX.search(line) is not None


def starts_with_week_annotation(line: str) -> bool:
    return WEEK_REGEX.match(line.lstrip()) is not None


def parse_week_rules(detail: str) -> List[WeekRule]:
    rules: List[WeekRule] = []
    for match in WEEK_REGEX.finditer(detail or ""):
        if match.group("range"):
            first, last = (int(part) for part in match.group("range").split("-"))
            rules.append(WeekRule(first, last))
        else:
            week = int(match.group("single"))
            rules.append(WeekRule(week, week))
    return rules


def unmatched_annotations(detail: str) -> List[str]:
    """Return ``wk`` tokens that carry no usable week number or range."""
    unmatched: List[str] = []
    for match in WK_TOKEN_REGEX.finditer(detail or ""):
        if WEEK_REGEX.match(detail, match.start()):
            continue
        token = detail[match.start():].split(None, 1)[0]
        unmatched.append(token)
    return unmatched


def allowed_weeks(rules: List[WeekRule], semester_weeks: int = 13) -> List[int]:
    weeks = list(range(1, semester_weeks + 1))
    if not rules:
        return weeks
    return [week for week in weeks if any(rule.contains(week) for rule in rules)]


def week_date(week: int, day: str, settings: Settings) -> date:
    naive = settings.semester_start + timedelta(weeks=week - 1)
    monday = naive - timedelta(days=naive.weekday())
    lesson_date = monday + timedelta(days=parse_day_label(day))
    # weeks run Monday to Sunday, so SUN lands after SAT of the same teaching week
    # recess takes one calendar week without consuming a week number
    if lesson_date >= settings.recess_week:
        lesson_date += timedelta(weeks=1)
    return lesson_date


def expand_block(block: ClassBlock, settings: Settings) -> List[CalendarEvent]:
    rules = parse_week_rules(block.detail)
    events: List[CalendarEvent] = []
    for week in allowed_weeks(rules, settings.semester_weeks):
        lesson_date = week_date(week, block.day, settings)
        start = build_datetime(lesson_date, block.begin, settings.timezone)
        end = build_datetime(lesson_date, block.end, settings.timezone)
        uid = hash_source(
            [
                block.course,
                block.type or "",
                block.group or "",
                block.day,
                block.begin,
                block.end,
                block.raw,
                str(week),
            ]
        )
        events.append(
            CalendarEvent(
                summary=block.summary,
                start=start,
                end=end,
                uid=f"{uid}@ntu-ical",
                location=block.room,
                description=block.description or None,
            )
        )
    return events
