# barbershop/core.py

from datetime import datetime, timedelta
from typing import Iterable, List, Tuple


def overlaps(start_a, end_a, start_b, end_b) -> bool:
    # half-open intervals: [start, end)
    return start_a < end_b and start_b < end_a


def overlaps_any(start, end, intervals: Iterable[Tuple[datetime, datetime]]) -> bool:
    return any(overlaps(start, end, busy_start, busy_end) for busy_start, busy_end in intervals)


def slot_grid(block_start: datetime, block_end: datetime, duration_minutes: int, step_minutes: int) -> List[datetime]:
    """Start times every ``step_minutes`` from block start while start + duration fits the block."""
    duration = timedelta(minutes=duration_minutes)
    step = timedelta(minutes=step_minutes)

    starts = []
    current = block_start
    while current + duration <= block_end:
        starts.append(current)
        current += step
    return starts
