"""
dates.py - Date handling for CSV date columns

Timestamps travel through the backup XML as strings: a Unix timestamp such
as "1772927940", or "0" meaning "not set". normalize_date() turns the loose
strings people type into spreadsheets into that canonical form, and
resolve_dates() applies the per-activity fallbacks Moodle expects.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

UNSET = "0"
STRICT_FORMAT = "%Y-%m-%d %H:%M"
WEEK_SECONDS = 7 * 86400

# "0" or a ten-digit-ish epoch value; shorter digit runs are left to dateutil
_CANONICAL_RE = re.compile(r"^(0|\d{9,})$")

# 3000-01-01 00:00 UTC; larger digit runs are typos, not timestamps
MAX_TIMESTAMP = 32503680000


def _strict_parse(value: str) -> Optional[str]:
    """Parse "YYYY-MM-DD HH:MM" in local time; None if it does not fit exactly."""
    try:
        dt = datetime.strptime(value, STRICT_FORMAT)
    except ValueError:
        return None
    return str(int(dt.timestamp()))


def _lenient_parse(value: str) -> Optional[str]:
    try:
        ts = int(date_parser.parse(value).timestamp())
    except (ValueError, OverflowError, OSError):
        return None
    if ts <= 0:
        return None
    return str(ts)


def normalize_date(value: Optional[str], default_time: str = "00:00") -> str:
    """
    Convert a date cell into a Unix timestamp string, or "0" when unset.

    Accepted input, tried in order:
      - blank                       -> "0"
      - "YYYY-MM-DD HH:MM"          -> strict parse, local time
      - "YYYY-MM-DD"                -> default_time appended, strict parse
      - an integer timestamp string -> returned as-is ("0" stays "0")
      - anything else               -> best-effort parse via dateutil

    Never raises. Unparseable input logs a warning and yields "0".
    """
    s = (value or "").strip()
    if not s:
        return UNSET

    ts = _strict_parse(s)
    if ts is not None:
        return ts

    ts = _strict_parse(f"{s} {default_time}")
    if ts is not None:
        return ts

    if _CANONICAL_RE.match(s):
        if int(s) <= MAX_TIMESTAMP:
            return str(int(s))
        logger.warning("Timestamp '%s' is out of range - expected a date before year 3000", s)
        return UNSET

    ts = _lenient_parse(s)
    if ts is not None:
        return ts

    logger.warning(
        "Invalid date format '%s' - expected YYYY-MM-DD or YYYY-MM-DD HH:MM", s
    )
    return UNSET


def is_set(ts: str) -> bool:
    return ts != UNSET


@dataclass(frozen=True)
class ResolvedDates:
    """Dates after fallbacks, all canonical timestamp strings."""
    start: str
    end: str
    cutoff: str
    grading_due: str = UNSET


def resolve_dates(activity_type: str, start: str, end: str, cutoff: str, now: int) -> ResolvedDates:
    """
    Apply the fallback chain for one activity.

    assign:  start -> now, end (due) -> now + 7 days,
             cutoff -> the end value as given (so "0" when no end was given),
             grading due -> due + 7 days
    forum:   cutoff -> end
    others:  unchanged
    """
    if activity_type == "assign":
        allow_from = start if is_set(start) else str(now)
        due = end if is_set(end) else str(now + WEEK_SECONDS)
        cut = cutoff if is_set(cutoff) else end
        grading_due = str(int(due) + WEEK_SECONDS)
        return ResolvedDates(start=allow_from, end=due, cutoff=cut, grading_due=grading_due)

    if activity_type == "forum":
        return ResolvedDates(start=start, end=end, cutoff=cutoff if is_set(cutoff) else end)

    return ResolvedDates(start=start, end=end, cutoff=cutoff)
