"""Due-date normalization - pure, no I/O dependencies.

Task records coming from the task service carry their due date in one of
several fields and in one of several shapes (ISO strings, epoch millisecond
strings, Jackson-style date arrays, date-part objects). Everything here turns
that into a naive local ``datetime`` or an explicit "unparseable" result.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from email.utils import parsedate_to_datetime
from enum import Enum
from typing import Any

# Checked in this order. The first present field wins, even if it fails to parse.
DUE_DATE_FIELDS = ("formattedDueDate", "dueDate", "dueDateTime", "due")

# Epoch strings are milliseconds. Anything shorter than this looks like seconds.
MIN_EPOCH_MS_DIGITS = 11

GENERIC_FORMATS = (
    "%Y-%m-%d %H:%M",
    "%Y/%m/%d",
    "%Y/%m/%d %H:%M",
    "%Y/%m/%d %H:%M:%S",
    "%m/%d/%Y",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %I:%M %p",
    "%b %d, %Y",
    "%b %d, %Y, %I:%M %p",
    "%B %d, %Y",
    "%B %d, %Y %H:%M",
    "%d %b %Y",
    "%d %B %Y",
)


class DueDateStatus(Enum):
    VALID = "valid"
    INVALID = "invalid"
    ABSENT = "absent"


@dataclass(frozen=True)
class ParsedDueDate:
    """Result of normalizing a task's due date."""

    instant: datetime | None
    status: DueDateStatus
    raw: Any = None

    @property
    def is_valid(self) -> bool:
        return self.status is DueDateStatus.VALID

    @classmethod
    def absent(cls) -> "ParsedDueDate":
        return cls(instant=None, status=DueDateStatus.ABSENT)

    @classmethod
    def invalid(cls, raw: Any) -> "ParsedDueDate":
        return cls(instant=None, status=DueDateStatus.INVALID, raw=raw)


def _is_present(value: Any) -> bool:
    return value is not None and value != ""


def find_due_candidate(record: Mapping) -> tuple[str | None, Any]:
    """Return (field name, value) of the first present due-date field."""
    for field_name in DUE_DATE_FIELDS:
        value = record.get(field_name)
        if _is_present(value):
            return field_name, value
    return None, None


def select_due_candidate(record: Mapping) -> Any:
    """Return the value of the first present due-date field, or None."""
    return find_due_candidate(record)[1]


def _to_local(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone().replace(tzinfo=None)


def _parse_iso(value: str) -> datetime | None:
    try:
        return _to_local(datetime.fromisoformat(value))
    except (ValueError, OverflowError):
        # Offsets can push an in-range date past datetime.min or datetime.max
        return None


def _parse_epoch_ms(value: str | int) -> datetime | None:
    try:
        digits = value if isinstance(value, str) else str(abs(value))
        if len(digits) < MIN_EPOCH_MS_DIGITS:
            return None
        return datetime.fromtimestamp(int(value) / 1000)
    except (OverflowError, OSError, ValueError):
        return None


def _parse_generic(value: str) -> datetime | None:
    text = value.strip()
    if not text:
        return None

    parsed = _parse_iso(text)
    if parsed is not None:
        return parsed

    for fmt in GENERIC_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    # RFC 2822, e.g. "Sat, 15 Mar 2025 09:30:00 +0000"
    try:
        return _to_local(parsedate_to_datetime(text))
    except (TypeError, ValueError, IndexError, OverflowError):
        return None


def _parse_string(value: str) -> datetime | None:
    if "T" in value:
        parsed = _parse_iso(value)
        if parsed is not None:
            return parsed
    if value.isascii() and value.isdigit():
        return _parse_epoch_ms(value)
    return _parse_generic(value)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _build_local(
    year: Any, month: Any, day: Any, hour: Any = 0, minute: Any = 0, second: Any = 0, microsecond: Any = 0
) -> datetime | None:
    parts = (year, month, day, hour, minute, second, microsecond)
    if not all(_is_int(p) for p in parts):
        return None
    try:
        return datetime(year, month, day, hour, minute, second, microsecond)
    except (ValueError, OverflowError):
        return None


def _parse_sequence(value: list | tuple) -> datetime | None:
    # Jackson serializes LocalDateTime as [y, m, d, h, min, s, nanos]
    if len(value) < 3:
        return None
    parts = list(value[:7]) + [0] * (7 - min(len(value), 7))
    year, month, day, hour, minute, second, nanos = parts
    if not _is_int(nanos):
        return None
    return _build_local(year, month, day, hour, minute, second, nanos // 1000)


def _parse_mapping(value: Mapping) -> datetime | None:
    if any(value.get(key) is None for key in ("year", "month", "day")):
        return None
    return _build_local(
        value["year"],
        value["month"],
        value["day"],
        value.get("hour") or 0,
        value.get("minute") or 0,
        value.get("second") or 0,
    )


def parse_due_value(value: Any) -> ParsedDueDate:
    """
    Parse one due-date value of unknown shape.

    Pure function - never raises. Returns an ABSENT result for None/"" and an
    INVALID result for anything no shape rule can turn into a datetime.
    """
    if not _is_present(value):
        return ParsedDueDate.absent()

    instant = None
    if isinstance(value, str):
        instant = _parse_string(value)
    elif _is_int(value):
        instant = _parse_epoch_ms(value)
    elif isinstance(value, Mapping):
        instant = _parse_mapping(value)
    elif isinstance(value, (list, tuple)):
        instant = _parse_sequence(value)

    if instant is None:
        return ParsedDueDate.invalid(value)
    return ParsedDueDate(instant=instant, status=DueDateStatus.VALID, raw=value)


def normalize_due_date(source: Any) -> ParsedDueDate:
    """
    Normalize the due date of a Task or of a raw API record.

    Raw records go through fixed-precedence candidate selection first. A present
    but malformed first candidate is NOT skipped in favour of a later one.
    """
    if isinstance(source, Mapping):
        value = select_due_candidate(source)
    else:
        value = getattr(source, "due_date_raw", None)
    return parse_due_value(value)
