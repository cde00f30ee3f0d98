"""Duration arithmetic over timestamp pairs.

All results are integer milliseconds.
"""

from collections.abc import Iterable
from datetime import datetime, timedelta
from typing import Optional

from time_ledger.core.models import Break, Entry

MS_PER_MINUTE = 60 * 1000
MS_PER_HOUR = 60 * MS_PER_MINUTE


def duration_ms(
    start: datetime, end: Optional[datetime], now: Optional[datetime] = None
) -> int:
    """Elapsed milliseconds between two timestamps.

    Args:
        start: Start of the span
        end: End of the span, or None if still open
        now: Fallback end for open spans

    Returns:
        Milliseconds from start to end (or now). 0 if the span is open and no
        fallback is given.
    """
    stop = end if end is not None else now
    if stop is None:
        return 0
    return (stop - start) // timedelta(milliseconds=1)


def net_work_ms(entry_ms: int, breaks_ms: int) -> int:
    """Work time once breaks are removed, never negative."""
    return max(0, entry_ms - breaks_ms)


def breaks_total_ms(breaks: Iterable[Break], now: Optional[datetime] = None) -> int:
    """Sum of break durations; open breaks run until ``now``."""
    return sum(duration_ms(b.start_time, b.end_time, now) for b in breaks)


def format_duration(ms: int) -> str:
    """Format milliseconds as ``"Xh YYm"``.

    Hours and minutes are floored; seconds are truncated, never rounded.

    Example:
        >>> format_duration(7 * MS_PER_HOUR + 5 * MS_PER_MINUTE + 59_999)
        '7h 05m'
    """
    ms = max(0, int(ms))
    hours = ms // MS_PER_HOUR
    minutes = (ms % MS_PER_HOUR) // MS_PER_MINUTE
    return f"{hours}h {minutes:02d}m"


def live_totals(entry: Entry, now: datetime) -> tuple[int, int, int]:
    """Elapsed, break and worked time of an entry as of ``now``.

    Worked time is clamped at zero so that a display refreshed while a break
    is being closed never reads negative.

    Returns:
        Tuple of (elapsed_ms, break_ms, worked_ms)
    """
    elapsed = max(0, duration_ms(entry.start_time, entry.end_time, now))
    on_break = breaks_total_ms(entry.breaks, now)
    return elapsed, on_break, net_work_ms(elapsed, on_break)
