from __future__ import annotations

from datetime import datetime

# en-US month names, independent of the process LC_TIME.
_MONTHS_EN_US = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


def local_now() -> datetime:
    """Current wall-clock instant as an aware datetime in the local timezone."""
    return datetime.now().astimezone()


def format_long_date(d: datetime) -> str:
    """en-US long date style, e.g. 'January 5, 2024'."""
    return f"{_MONTHS_EN_US[d.month - 1]} {d.day}, {d.year}"


def format_long_time(d: datetime) -> str:
    """
    en-US long time style, e.g. '3:04:05 PM PST'.

    The zone is the datetime's abbreviation; naive datetimes are treated as
    local time.
    """
    if d.tzinfo is None:
        d = d.astimezone()
    hour12 = d.hour % 12 or 12
    meridiem = "AM" if d.hour < 12 else "PM"
    text = f"{hour12}:{d.minute:02d}:{d.second:02d} {meridiem}"
    tzname = d.tzname()
    if tzname:
        text = f"{text} {tzname}"
    return text


def format_long_datetime(d: datetime) -> str:
    """Long date and long time joined the en-US way: '<date> at <time>'."""
    return f"{format_long_date(d)} at {format_long_time(d)}"


def millisecond_of_second(d: datetime) -> int:
    return d.microsecond // 1000


def render_tick_line(d: datetime) -> str:
    """The output line for one tick, without trailing newline."""
    return f"{format_long_datetime(d)}, {millisecond_of_second(d)}ms"
