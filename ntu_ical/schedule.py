from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from ics import Calendar

from .config import Settings, get_settings
from .models import CalendarEvent, ScheduleReport
from .parser import (
    ParseError,
    decode_timetable,
    load_tables,
    parse_course_titles,
    parse_exam_entry,
    parse_exam_rows,
)
from .weeks import expand_block, unmatched_annotations

COURSES_TABLE = 0
TIMETABLE_TABLE = 1
EXAMS_TABLE = 2


def _class_events(tables, settings: Settings, report: ScheduleReport) -> List[CalendarEvent]:
    if len(tables) <= TIMETABLE_TABLE:
        raise ParseError(f"Expected timetable at table {TIMETABLE_TABLE}, found {len(tables)} tables")

    titles = parse_course_titles(tables[COURSES_TABLE]) if settings.course_titles else {}
    blocks, skipped = decode_timetable(tables[TIMETABLE_TABLE])
    report.skipped_blocks.extend(skipped)

    events: List[CalendarEvent] = []
    for block in blocks:
        block.name = titles.get(block.course)
        for token in unmatched_annotations(block.detail):
            logging.warning("Unrecognised week annotation '%s' in %s", token, block.course)
            report.unmatched_annotations.append(f"{block.course}: {token}")
        try:
            events.extend(expand_block(block, settings))
        except ValueError as exc:
            logging.warning("Skipping %s on %s %s-%s: %s", block.course, block.day, block.begin, block.end, exc)
            report.skipped_blocks.append(f"{block.course} {block.day} {block.begin}-{block.end}: {exc}")
    logging.info("Parsed %d class blocks into %d events", len(blocks), len(events))
    return events


def _exam_events(tables, settings: Settings, report: ScheduleReport) -> List[CalendarEvent]:
    if len(tables) <= EXAMS_TABLE:
        raise ParseError(f"Expected exam schedule at table {EXAMS_TABLE}, found {len(tables)} tables")

    events: List[CalendarEvent] = []
    for entry in parse_exam_rows(tables[EXAMS_TABLE]):
        event = parse_exam_entry(entry, settings.timezone)
        if event is None:
            logging.debug("Skipping exam row %s '%s'", entry.code, entry.date)
            report.skipped_exam_rows.append(f"{entry.code} {entry.date}".strip())
            continue
        events.append(event)
    logging.info("Parsed %d exams", len(events))
    return events


def build_events(html: str, settings: Settings) -> Tuple[List[CalendarEvent], ScheduleReport]:
    tables = load_tables(html)
    report = ScheduleReport()
    events: List[CalendarEvent] = []

    try:
        class_events = _class_events(tables, settings, report)
    except ParseError as exc:
        logging.error("Failed to parse timetable: %s", exc)
        report.errors.append(f"timetable: {exc}")
    else:
        report.class_events = len(class_events)
        events.extend(class_events)

    try:
        exam_events = _exam_events(tables, settings, report)
    except ParseError as exc:
        logging.error("Failed to parse exam schedule: %s", exc)
        report.errors.append(f"exams: {exc}")
    else:
        report.exam_events = len(exam_events)
        events.extend(exam_events)

    if report.skipped_exam_rows:
        logging.info("Skipped %d exam rows", len(report.skipped_exam_rows))
    return events, report


def build_calendar(events: List[CalendarEvent], settings: Settings) -> Calendar:
    calendar = Calendar(creator=settings.prod_id)
    for event in events:
        try:
            calendar.events.add(event.to_ics_event())
        except ValueError as exc:
            # ics rejects events ending before they begin
            logging.warning("Dropping %s %s-%s: %s", event.summary, event.start, event.end, exc)
    return calendar


def generate(html: str, settings: Optional[Settings] = None) -> Tuple[Calendar, ScheduleReport]:
    settings = settings or get_settings()
    events, report = build_events(html, settings)
    return build_calendar(events, settings), report
