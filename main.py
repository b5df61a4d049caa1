from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from pathlib import Path
from zoneinfo import ZoneInfo

from ntu_ical.config import get_settings, parse_config_date
from ntu_ical.schedule import generate


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Convert a semester timetable page to an iCalendar file")
    parser.add_argument("html", type=str, help="Saved timetable HTML page")
    parser.add_argument("-o", "--output", type=str, default="schedule.ics", help="Output .ics path")
    parser.add_argument("--semester-start", type=str, default=None, help="First day of week 1, DD-MM-YYYY")
    parser.add_argument("--recess-week", type=str, default=None, help="First day of recess week, DD-MM-YYYY")
    parser.add_argument("--weeks", type=int, default=None, help="Number of teaching weeks")
    parser.add_argument("--timezone", type=str, default=None, help="IANA timezone of the timetable")
    parser.add_argument("--course-titles", action="store_true", help="Prefix summaries with titles from the course list")
    parser.add_argument("--dry-run", action="store_true", help="Parse and report without writing the calendar")
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    settings = get_settings()
    if args.semester_start:
        settings = replace(settings, semester_start=parse_config_date(args.semester_start))
    if args.recess_week:
        settings = replace(settings, recess_week=parse_config_date(args.recess_week))
    if args.weeks is not None:
        settings = replace(settings, semester_weeks=args.weeks)
    if args.timezone:
        settings = replace(settings, timezone=ZoneInfo(args.timezone))
    if args.course_titles:
        settings = replace(settings, course_titles=True)

    html = Path(args.html).read_text(encoding="utf-8")
    calendar, report = generate(html, settings)

    for message in report.errors:
        logging.error("%s", message)
    if report.skipped_blocks or report.unmatched_annotations:
        logging.warning(
            "%d blocks skipped, %d week annotations not understood",
            len(report.skipped_blocks),
            len(report.unmatched_annotations),
        )
    logging.info("%d class events, %d exam events", report.class_events, report.exam_events)

    if not calendar.events:
        logging.warning("No events parsed; nothing to write")
        return 1

    if args.dry_run:
        logging.info("Dry run, not writing %s", args.output)
        return 0

    with open(args.output, "w", encoding="utf-8") as f:
        f.writelines(calendar.serialize_iter())
    logging.info("Wrote %s", args.output)
    return 0 if report.ok else 2


if __name__ == "__main__":
    raise SystemExit(main())
