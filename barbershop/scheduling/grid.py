# barbershop/scheduling/grid.py

from typing import List, Optional

from ..core import TimeRange, format_minutes, parse_time


def generate_time_slots(
    start_time: str,
    end_time: str,
    duration: int,
    break_start: Optional[str] = None,
    break_end: Optional[str] = None,
) -> List[str]:
    """Candidate start times ("HH:MM") for a working interval.

    Starts at ``start_time`` and steps by ``duration``; a candidate is kept
    when ``[start, start + duration)`` ends by ``end_time`` and does not touch
    the break. Nothing is filtered for the past or for existing bookings.
    """
    if duration <= 0:
        raise ValueError("duration must be a positive number of minutes")

    break_range = None
    if break_start and break_end:
        break_range = TimeRange.from_times(break_start, break_end)

    slots = []
    current = parse_time(start_time)
    end = parse_time(end_time)
    while current + duration <= end:
        slot = TimeRange(current, current + duration)
        if break_range is None or not slot.overlaps(break_range):
            slots.append(format_minutes(current))
        current += duration
    return slots
