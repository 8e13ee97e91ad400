# scheduling/slots.py

import re

# "9:05" and "09:05" are both accepted; labels always come out zero-padded.
HHMM_PATTERN = r"^([01]?\d|2[0-3]):([0-5]\d)$"

_TIME_RE = re.compile(HHMM_PATTERN)


def parse_hhmm(value):
    """'09:30' → 570 (minutes since midnight). Raises ValueError on anything else."""
    match = _TIME_RE.match(value or "")
    if not match:
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")
    return int(match.group(1)) * 60 + int(match.group(2))


def format_hhmm(minutes):
    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}:{mins:02d}"


def normalize_hhmm(value):
    """'9:30' → '09:30'."""
    return format_hhmm(parse_hhmm(value))


def generate_time_slots(start_time, end_time, duration):
    """
    Bookable slot labels between start_time and end_time.

    A slot is emitted while its *start* is before end_time, so the last slot
    may run past end_time:

        generate_time_slots("09:50", "10:10", 30)  →  ["09:50"]

    An empty or inverted window, or a non-positive duration, gives [].
    """
    start = parse_hhmm(start_time)
    end   = parse_hhmm(end_time)
    if duration is None or duration <= 0 or end <= start:
        return []
    return [format_hhmm(minute) for minute in range(start, end, duration)]
