"""Timetable page to iCalendar conversion."""
