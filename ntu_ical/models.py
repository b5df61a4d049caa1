from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from ics import Event


@dataclass
class RawBlock:
    day: str
    begin: str
    end: str
    raw: str


@dataclass
class ClassBlock:
    day: str
    begin: str
    end: str
    course: str
    type: Optional[str]
    group: Optional[str]
    room: Optional[str]
    detail: str
    raw: str
    name: Optional[str] = None

    @property
    def summary(self) -> str:
        tail = " ".join(part for part in (self.type, self.group) if part)
        if self.name:
            return f"{self.course}: {self.name} {tail}".strip()
        return f"{self.course} {tail}".strip()

    @property
    def description(self) -> str:
        lines = [
            self.group and f"Group: {self.group}",
            self.room and f"Location: {self.room}",
            self.detail and f"Detail: {self.detail}",
        ]
        return "\n".join(line for line in lines if line)


@dataclass(frozen=True)
class WeekRule:
    first: int
    last: int

    def contains(self, week: int) -> bool:
        return self.first <= week <= self.last


@dataclass(frozen=True)
class CalendarEvent:
    summary: str
    start: datetime
    end: datetime
    uid: str
    location: Optional[str] = None
    description: Optional[str] = None

    def to_ics_event(self) -> Event:
        event = Event()
        event.name = self.summary
        event.begin = self.start
        event.end = self.end
        event.uid = self.uid
        if self.location:
            event.location = self.location
        if self.description:
            event.description = self.description
        return event


@dataclass(frozen=True)
class ExamEvent(CalendarEvent):
    pass


@dataclass
class ExamEntry:
    code: str
    date: str


@dataclass
class ScheduleReport:
    class_events: int = 0
    exam_events: int = 0
    skipped_blocks: List[str] = field(default_factory=list)
    skipped_exam_rows: List[str] = field(default_factory=list)
    unmatched_annotations: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors
