from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import date, datetime
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

load_dotenv()

DATE_FORMAT = "%d-%m-%Y"


@dataclass
class Settings:
    semester_start: date
    recess_week: date
    timezone: ZoneInfo
    semester_weeks: int = 13
    prod_id: str = "-//ntu-ical//timetable//EN"
    course_titles: bool = False


def parse_config_date(value: str) -> date:
    return datetime.strptime(value.strip(), DATE_FORMAT).date()


def get_timezone() -> ZoneInfo:
    tz_name = os.getenv("TIMEZONE", "Asia/Singapore")
    try:
        return ZoneInfo(tz_name)
    except Exception:  # pragma: no cover
        logging.warning("Invalid TIMEZONE %s, falling back to Asia/Singapore", tz_name)
        return ZoneInfo("Asia/Singapore")


def get_settings() -> Settings:
    settings = Settings(
        semester_start=parse_config_date(os.getenv("SEMESTER_START", "12-08-2019")),
        recess_week=parse_config_date(os.getenv("RECESS_WEEK", "30-09-2019")),
        timezone=get_timezone(),
        semester_weeks=int(os.getenv("SEMESTER_WEEKS", "13")),
        prod_id=os.getenv("PROD_ID", "-//ntu-ical//timetable//EN"),
        course_titles=os.getenv("COURSE_TITLES", "").strip().lower() in ("1", "true", "yes"),
    )
    if settings.recess_week <= settings.semester_start:
        logging.warning(
            "RECESS_WEEK %s is not after SEMESTER_START %s", settings.recess_week, settings.semester_start
        )
    return settings
