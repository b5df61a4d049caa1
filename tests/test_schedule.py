"""End-to-end tests: timetable page in, calendar events out."""
from dataclasses import replace
from datetime import datetime

from ntu_ical.models import ExamEvent
from ntu_ical.schedule import build_events, generate

from .pages import courses_html, exam_html, grid_html, page_html

ONE_CLASS = grid_html(["MON"], [[(2, "CS101 LEC G1 LT1\nwk1-2")], []])
ONE_EXAM = exam_html([("CS101", "15-Nov-2019 0900-1100")])


def _classes(events):
    return [e for e in events if not isinstance(e, ExamEvent)]


def _exams(events):
    return [e for e in events if isinstance(e, ExamEvent)]


class TestBuildEvents:
    def test_single_class_two_weeks(self, settings):
        events, report = build_events(page_html(ONE_CLASS, exam_html([])), settings)
        tz = settings.timezone
        assert [(e.start, e.end) for e in events] == [
            (datetime(2019, 8, 12, 8, 0, tzinfo=tz), datetime(2019, 8, 12, 10, 0, tzinfo=tz)),
            (datetime(2019, 8, 19, 8, 0, tzinfo=tz), datetime(2019, 8, 19, 10, 0, tzinfo=tz)),
        ]
        assert {e.summary for e in events} == {"CS101 LEC G1"}
        assert {e.location for e in events} == {"LT1"}
        assert report.class_events == 2
        assert report.ok

    def test_exam_rows(self, settings):
        exams = exam_html([("CS101", "15-Nov-2019 0900-1100"), ("CS102", "garbage")])
        events, report = build_events(page_html(ONE_CLASS, exams), settings)
        [exam] = _exams(events)
        assert exam.summary == "CS101"
        assert exam.start == datetime(2019, 11, 15, 9, 0, tzinfo=settings.timezone)
        assert exam.end == datetime(2019, 11, 15, 11, 0, tzinfo=settings.timezone)
        assert report.exam_events == 1
        assert report.skipped_exam_rows == ["CS102 garbage"]

    def test_course_titles_ignored_by_default(self, settings):
        html = page_html(ONE_CLASS, ONE_EXAM, courses_html([("CS101", "Introduction to Computing")]))
        events, _ = build_events(html, settings)
        assert {e.summary for e in _classes(events)} == {"CS101 LEC G1"}

    def test_course_titles_fill_summary(self, settings):
        html = page_html(ONE_CLASS, ONE_EXAM, courses_html([("CS101", "Introduction to Computing")]))
        events, _ = build_events(html, replace(settings, course_titles=True))
        assert {e.summary for e in _classes(events)} == {"CS101: Introduction to Computing LEC G1"}

    def test_broken_timetable_keeps_exams(self, settings):
        broken = grid_html(["MON"], [[(5, "CS101 LEC G1 LT1")]])
        events, report = build_events(page_html(broken, ONE_EXAM), settings)
        assert _classes(events) == []
        assert len(_exams(events)) == 1
        assert len(report.errors) == 1
        assert report.errors[0].startswith("timetable")

    def test_missing_exam_table_keeps_classes(self, settings):
        html = f"<html><body>{courses_html()}{ONE_CLASS}</body></html>"
        events, report = build_events(html, settings)
        assert len(events) == 2
        assert report.errors[0].startswith("exams")

    def test_no_tables(self, settings):
        events, report = build_events("<html><body><p>Session expired</p></body></html>", settings)
        assert events == []
        assert len(report.errors) == 2

    def test_unknown_day_skips_block(self, settings):
        grid = grid_html(["MON", "TBA"], [[(1, "CS101 LEC G1 LT1\nwk1"), (1, "CS102 LEC G1 LT2\nwk1")]])
        events, report = build_events(page_html(grid, ONE_EXAM), settings)
        assert [e.summary for e in _classes(events)] == ["CS101 LEC G1"]
        assert len(report.skipped_blocks) == 1

    def test_unmatched_annotation_reported(self, settings):
        grid = grid_html(["MON"], [[(1, "CS101 LEC G1 LT1 wkTBC")]])
        events, report = build_events(page_html(grid, ONE_EXAM), settings)
        assert len(_classes(events)) == 13
        assert report.unmatched_annotations == ["CS101: wkTBC"]

    def test_idempotent(self, settings):
        grid = grid_html(
            ["MON", "TUE"],
            [
                [(2, "CS101 LEC G1 LT1\nwk1-6\nCS102 TUT T1 TR1\nwk2,4"), None],
                [(1, "MH1812 LEC G2 LT2")],
            ],
        )
        html = page_html(grid, ONE_EXAM)
        first, _ = build_events(html, settings)
        second, _ = build_events(html, settings)
        assert first == second
        assert len(first) == 6 + 2 + 13 + 1


class TestGenerate:
    def test_calendar(self, settings):
        calendar, report = generate(page_html(ONE_CLASS, ONE_EXAM), settings)
        assert len(calendar.events) == 3
        assert report.class_events == 2
        assert report.exam_events == 1
        serialized = "".join(calendar.serialize_iter())
        assert settings.prod_id in serialized
        assert "SUMMARY:CS101 LEC G1" in serialized
        assert "LOCATION:LT1" in serialized
