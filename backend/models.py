import datetime as dt
import logging
import math
import re
from typing import Any, List, Optional

from dateutil import parser as date_parser
from pydantic import BaseModel, Field, field_validator


logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

# Matches the way browsers print a calendar date, e.g. "Sun Jan 15 2023".
DATE_FORMAT = "%a %b %d %Y"


class UserCreate(BaseModel):
    username: str = Field(..., min_length=1)

    @field_validator("username", mode="before")
    @classmethod
    def number_as_text(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class UserOut(BaseModel):
    id: str
    username: str


class ExerciseCreate(BaseModel):
    description: Optional[str] = None
    duration: Optional[int] = None  # minutes
    date: dt.date


class ExerciseOut(BaseModel):
    id: str  # owning user's id
    username: str
    date: str
    duration: Optional[int] = None
    description: Optional[str] = None


class LogEntry(BaseModel):
    description: Optional[str] = None
    duration: Optional[int] = None
    date: str


class ExerciseLog(BaseModel):
    username: str
    count: int
    id: str
    log: List[LogEntry] = []


def parse_int(value: Any) -> Optional[int]:
    """Coerce a form/query value to an int by its leading digits.

    "30" -> 30, "30.7" -> 30, 30.7 -> 30, "abc" -> None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    match = _LEADING_INT.match(str(value))
    if not match:
        return None
    return int(match.group(1))


def parse_date(value: Any) -> Optional[dt.date]:
    """Parse a date string into a calendar date, or None if it isn't one.

    Accepts ISO dates and datetimes as well as looser forms such as
    "2023/01/15", "January 15, 2023" and DATE_FORMAT output. Datetimes with
    an offset are read in UTC.
    """
    if value is None:
        return None
    if isinstance(value, dt.datetime):
        parsed = value
    elif isinstance(value, dt.date):
        return value
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            parsed = date_parser.parse(text)
        except (ValueError, OverflowError):
            return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(dt.timezone.utc)
    return parsed.date()


def today() -> dt.date:
    return dt.datetime.now(dt.timezone.utc).date()


def resolve_exercise_date(value: Any) -> dt.date:
    """Date to record for a new exercise; falls back to today (UTC)."""
    parsed = parse_date(value)
    if parsed is None:
        if value not in (None, ""):
            logger.warning("Unparsable exercise date %r, using today", value)
        return today()
    return parsed


def to_datetime(day: dt.date) -> dt.datetime:
    # Mongo has no date-only type; a day is stored as UTC midnight.
    return dt.datetime.combine(day, dt.time.min, tzinfo=dt.timezone.utc)


def format_date(value: Any) -> str:
    return value.strftime(DATE_FORMAT)
