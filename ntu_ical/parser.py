from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo

from bs4 import BeautifulSoup, Tag

from .models import ClassBlock, ExamEntry, ExamEvent, RawBlock
from .utils import build_datetime, hash_source
from .weeks import is_week_annotation, starts_with_week_annotation

EXAM_DATE_FORMAT = "%d-%b-%Y"
EXAM_TIME_REGEX = re.compile(r"^(?P<begin>\d{4})-(?P<end>\d{4})$")
COURSE_CODE_REGEX = re.compile(r"^[A-Z]{1,4}\d{3,4}[A-Z]?$")


class ParseError(Exception):
    pass


class BlockParseError(ParseError):
    pass


def load_tables(html: str) -> List[Tag]:
    soup = BeautifulSoup(html, "lxml")
    for br in soup.find_all("br"):
        br.replace_with("\n")
    return soup.find_all("table")


def _cells(row: Tag) -> List[Tag]:
    return row.find_all(["td", "th"], recursive=False)


def _extract_text(node) -> str:
    return node.get_text().strip() if node else ""


def _first_cell_text(row: Tag) -> str:
    cells = _cells(row)
    return _extract_text(cells[0]) if cells else ""


def _rowspan(cell: Tag) -> int:
    value = cell.get("rowspan")
    try:
        rowspan = int(str(value).strip())
    except ValueError:
        raise ParseError(f"Invalid rowspan '{value}'")
    if rowspan < 1:
        raise ParseError(f"Invalid rowspan '{value}'")
    return rowspan


def decode_grid(table: Tag) -> List[RawBlock]:
    rows = table.find_all("tr")
    if not rows:
        raise ParseError("Timetable has no rows")

    days = [_extract_text(cell) for cell in _cells(rows[0])[1:]]
    active = [0] * len(days)
    blocks: List[RawBlock] = []

    for row_idx in range(1, len(rows)):
        row = rows[row_idx]
        decayed = [max(0, remaining - 1) for remaining in active]
        for raw_index, cell in enumerate(_cells(row)[1:]):
            if not cell.has_attr("rowspan"):
                continue
            # spans started in earlier rows hide a <td> for every column they cover
            target = raw_index + sum(
                1 for col, remaining in enumerate(active) if remaining > 0 and col <= raw_index
            )
            if target >= len(days):
                raise ParseError(f"Row {row_idx}: cell {raw_index} resolves to column {target} without a weekday")

            rowspan = _rowspan(cell)
            last_idx = row_idx + rowspan - 1
            if last_idx >= len(rows):
                raise ParseError(f"Row {row_idx}: rowspan {rowspan} runs past the last row")

            begin = _first_cell_text(row).split("-")[0].strip()
            end = _first_cell_text(rows[last_idx]).split("-")[-1].strip()
            text = _extract_text(cell)
            if text:
                blocks.append(RawBlock(day=days[target], begin=begin, end=end, raw=text))
            decayed[target] = rowspan - 1
        active = decayed
    return blocks


def split_block(raw_block: RawBlock) -> List[ClassBlock]:
    lines = [line.strip() for line in raw_block.raw.split("\n") if line.strip()]
    if not lines:
        return []
    if starts_with_week_annotation(lines[0]):
        raise BlockParseError(f"{raw_block.day} {raw_block.begin}: cell starts with annotation '{lines[0]}'")

    sections: List[List[str]] = []
    for line in lines:
        if sections and is_week_annotation(line):
            sections[-1].append(line)
        else:
            sections.append([line])

    class_blocks: List[ClassBlock] = []
    for main, *annotations in sections:
        tokens = main.split()
        course, type_, group, room = (tokens + [None] * 4)[:4]
        extra = " ".join(tokens[4:])
        detail = "\n".join(part for part in [*annotations, extra] if part)
        class_blocks.append(
            ClassBlock(
                day=raw_block.day,
                begin=raw_block.begin,
                end=raw_block.end,
                course=course,
                type=type_,
                group=group,
                room=room,
                detail=detail,
                raw=" ".join([main, *annotations]),
            )
        )
    return class_blocks


def merge_blocks(blocks: List[ClassBlock]) -> List[ClassBlock]:
    by_end: Dict[Tuple[str, str, str], ClassBlock] = {}
    by_begin: Dict[Tuple[str, str, str], ClassBlock] = {}
    for block in blocks:
        by_end[(block.day, block.end, block.raw)] = block
        by_begin[(block.day, block.begin, block.raw)] = block

    merged: List[ClassBlock] = []
    claimed: set[int] = set()
    for block in blocks:
        predecessor = by_end.get((block.day, block.begin, block.raw))
        if predecessor is not None and predecessor is not block:
            continue
        claimed.add(id(block))
        tail = block
        while True:
            successor = by_begin.get((block.day, tail.end, block.raw))
            if successor is None or id(successor) in claimed:
                break
            claimed.add(id(successor))
            tail = successor
        block.end = tail.end
        merged.append(block)

    # chains without a head (cyclic times) pass through unchanged
    for block in blocks:
        if id(block) not in claimed:
            logging.debug("Block %s %s-%s has no chain head", block.day, block.begin, block.end)
            merged.append(block)
    return merged


def decode_timetable(table: Tag) -> Tuple[List[ClassBlock], List[str]]:
    class_blocks: List[ClassBlock] = []
    skipped: List[str] = []
    for raw_block in decode_grid(table):
        try:
            class_blocks.extend(split_block(raw_block))
        except BlockParseError as exc:
            logging.warning("Skipping cell: %s", exc)
            skipped.append(str(exc))
    return merge_blocks(class_blocks), skipped


def parse_course_titles(table: Tag) -> Dict[str, str]:
    titles: Dict[str, str] = {}
    for row in table.find_all("tr"):
        cells = _cells(row)
        if len(cells) < 2:
            continue
        code = _extract_text(cells[0])
        title = " ".join(_extract_text(cells[1]).split())
        if COURSE_CODE_REGEX.match(code) and title:
            titles.setdefault(code, title)
    return titles


def parse_exam_rows(table: Tag) -> List[ExamEntry]:
    entries: List[ExamEntry] = []
    for row in table.find_all("tr")[1:-1]:
        cells = _cells(row)
        code = _extract_text(cells[1]) if len(cells) > 1 else ""
        date = _extract_text(cells[4]) if len(cells) > 4 else ""
        entries.append(ExamEntry(code=code, date=date))
    return entries


def parse_exam_entry(entry: ExamEntry, tz: ZoneInfo) -> Optional[ExamEvent]:
    parts = entry.date.split()
    if len(parts) < 2:
        return None
    raw_date, raw_time = parts[0], parts[1]
    try:
        exam_date = datetime.strptime(raw_date, EXAM_DATE_FORMAT).date()
    except ValueError:
        return None
    match = EXAM_TIME_REGEX.match(raw_time)
    if not match:
        return None
    try:
        start = build_datetime(exam_date, match.group("begin"), tz)
        end = build_datetime(exam_date, match.group("end"), tz)
    except ValueError:
        return None
    uid = hash_source(["exam", entry.code, entry.date])
    return ExamEvent(summary=entry.code, start=start, end=end, uid=f"{uid}@ntu-ical")
