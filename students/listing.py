"""
Search, level filter, sort and pagination over an in-memory list of records.

All functions here are pure and never raise on an empty collection.
"""
import json
import math
from dataclasses import dataclass, field

STUDENT_SEARCH_FIELDS = ('fullName', 'code', 'phoneNumber', 'level', 'church')
ATTENDANCE_SEARCH_FIELDS = ('fullName', 'code', 'church')

PAGE_SIZE = 20
WINDOW_SIZE = 5

ASCENDING = 'ascending'
DESCENDING = 'descending'

ALL_LEVELS = [
    "حضانة",
    "أولى ابتدائى",
    "ثانية ابتدائى",
    "ثالثة ابتدائى",
    "رابعة ابتدائى",
    "خامسة ابتدائى",
    "سادسة ابتدائى",
    "اعدادى",
    "ثانوى ",
    "جامعة أو خريج",
]


def _text(value):
    if value is None:
        return ''
    return str(value)


def filter_records(records, term, fields=STUDENT_SEARCH_FIELDS):
    """Records where any of ``fields`` contains ``term`` (case-insensitive)."""
    term = (term or '').strip().lower()
    if not term:
        return list(records)
    return [r for r in records if any(term in _text(r.get(f)).lower() for f in fields)]


def filter_by_levels(records, levels):
    levels = {level for level in (levels or []) if level}
    if not levels:
        return list(records)
    return [r for r in records if r.get('level') in levels]


def _sort_value(record, key):
    return record.get(key) or ''


def _mixed_sort_value(value):
    # numbers stay numeric and "" ranks with them as zero; other values compare as text
    if value == '':
        return (0, 0, '')
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (0, value, '')
    return (1, 0, _text(value))


def sort_records(records, key, direction=ASCENDING):
    """
    Stable single-key sort. Missing and empty values (``None``, ``0``, ``False``)
    sort as ``""``. A column mixing types that cannot be compared orders numbers
    numerically ahead of text, with ``""`` ranked as zero.
    """
    records = list(records)
    if not key:
        return records
    reverse = direction == DESCENDING
    try:
        return sorted(records, key=lambda r: _sort_value(r, key), reverse=reverse)
    except TypeError:
        return sorted(records, key=lambda r: _mixed_sort_value(_sort_value(r, key)), reverse=reverse)


@dataclass
class Page:
    items: list
    number: int
    total_pages: int
    count: int
    start: int
    end: int
    pages: list = field(default_factory=list)


def page_window(current, total_pages, size=WINDOW_SIZE):
    """Page numbers to show around ``current``."""
    if total_pages <= size:
        return list(range(1, total_pages + 1))
    half = size // 2
    if current <= half + 1:
        return list(range(1, size + 1))
    if current >= total_pages - half:
        return list(range(total_pages - size + 1, total_pages + 1))
    return list(range(current - half, current + half + 1))


def paginate(records, page=1, page_size=PAGE_SIZE):
    """Slice one 1-based page; pages outside ``1..total_pages`` are clamped."""
    records = list(records)
    count = len(records)
    total_pages = max(1, math.ceil(count / page_size))
    try:
        page = int(page)
    except (TypeError, ValueError):
        page = 1
    page = min(max(page, 1), total_pages)
    offset = (page - 1) * page_size
    items = records[offset:offset + page_size]
    return Page(
        items=items,
        number=page,
        total_pages=total_pages,
        count=count,
        start=offset + 1 if items else 0,
        end=offset + len(items),
        pages=page_window(page, total_pages),
    )


def available_levels(records):
    levels = set(ALL_LEVELS)
    levels.update(r.get('level') for r in records if r.get('level'))
    return sorted(levels)


def matches_any_value(record, term):
    """Free-text match over every value of ``record``; nested values are searched as JSON."""
    term = (term or '').strip().lower()
    if not term:
        return True
    for value in record.values():
        if isinstance(value, (dict, list)):
            text = json.dumps(value, ensure_ascii=False)
        else:
            text = _text(value)
        if term in text.lower():
            return True
    return False


class ListState:
    """
    What a list view is currently showing. A new search term sends the view
    back to page 1; sorting and level changes keep the current page.
    """

    def __init__(self, search='', levels=None, sort_key=None, direction=ASCENDING, page=1,
                 search_fields=STUDENT_SEARCH_FIELDS, page_size=PAGE_SIZE):
        self.search = search or ''
        self.levels = list(levels or [])
        self.sort_key = sort_key
        self.direction = direction
        self.page = page
        self.search_fields = search_fields
        self.page_size = page_size

    def set_search(self, term):
        term = term or ''
        if term != self.search:
            self.search = term
            self.page = 1

    def set_levels(self, levels):
        self.levels = list(levels or [])

    def set_page(self, page):
        self.page = page

    def request_sort(self, key):
        if self.sort_key == key:
            self.direction = DESCENDING if self.direction == ASCENDING else ASCENDING
        else:
            self.sort_key = key
            self.direction = ASCENDING

    def apply(self, records):
        records = filter_records(records, self.search, self.search_fields)
        records = filter_by_levels(records, self.levels)
        return sort_records(records, self.sort_key, self.direction)

    def page_of(self, records):
        page = paginate(self.apply(records), self.page, self.page_size)
        self.page = page.number
        return page
