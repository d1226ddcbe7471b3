"""
Date/time normalization for the session forms and tables.

Instants are always timezone-aware datetimes. Naive input is read as local
time; stored values travel as UTC ISO 8601.
"""
from __future__ import annotations

import re
from datetime import datetime, timezone

# "YYYY-MM-DD hh:mm[:ss[.fff]][Z|±hh:mm]" with a space or "T" separator
_INPUT_RE = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})[T ]"
    r"(?P<time>\d{2}:\d{2})"
    r"(?P<seconds>:\d{2}(?:\.\d{1,6})?)?"
    r"(?P<offset>Z|[+-]\d{2}:?\d{2})?$",
    re.IGNORECASE,
)


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def parse_datetime(text: str | None) -> datetime | None:
    """
    Parse a loosely formatted date-time into an aware datetime.

    Accepts "2025-09-23T18:30", "2025-09-23 18:30", "2025-09-23 18:30:00",
    and the same with a "Z" or "+02:00" suffix. Missing seconds count as
    ":00". Returns None for empty or unparsable text.
    """
    s = (text or "").strip()
    if not s:
        return None

    m = _INPUT_RE.match(s)
    if not m:
        return None

    offset = m.group("offset") or ""
    if offset.upper() == "Z":
        offset = "+00:00"
    elif offset and ":" not in offset:
        offset = f"{offset[:3]}:{offset[3:]}"

    candidate = f"{m.group('date')}T{m.group('time')}{m.group('seconds') or ':00'}{offset}"
    try:
        dt = datetime.fromisoformat(candidate)
    except ValueError:
        return None

    if dt.tzinfo is None:
        # naive -> local wall clock
        dt = dt.astimezone()
    return dt


def to_editable_text(dt: datetime | None) -> str:
    """Local "YYYY-MM-DDThh:mm" for edit fields; "" when absent. Drops seconds."""
    if dt is None:
        return ""
    return dt.astimezone().strftime("%Y-%m-%dT%H:%M")


def to_iso(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat()


def format_datetime(dt: datetime) -> str:
    """Human readable local date-time, e.g. "Jan 1, 2025, 09:00 AM"."""
    local = dt.astimezone()
    return f"{local.strftime('%b')} {local.day}, {local.year}, {local.strftime('%I:%M %p')}"


def format_elapsed(seconds: int) -> str:
    seconds = max(0, int(seconds))
    h, rem = divmod(seconds, 3600)
    m, s = divmod(rem, 60)
    return f"{h:02d}:{m:02d}:{s:02d}"
