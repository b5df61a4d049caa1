from datetime import date
from zoneinfo import ZoneInfo

import pytest

from ntu_ical.config import Settings


@pytest.fixture
def settings():
    return Settings(
        semester_start=date(2019, 8, 12),
        recess_week=date(2019, 9, 30),
        timezone=ZoneInfo("Asia/Singapore"),
    )
