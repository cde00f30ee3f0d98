"""Report aggregation and rendering for time tracking data."""

import calendar
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Optional

from rich.console import Console  # type: ignore[import-not-found]
from rich.table import Table  # type: ignore[import-not-found]
from rich.text import Text  # type: ignore[import-not-found]

from time_ledger.core.clock import Clock, SystemClock
from time_ledger.core.durations import breaks_total_ms, duration_ms, format_duration, net_work_ms
from time_ledger.core.errors import ValidationError
from time_ledger.core.models import EntryStatus, ReportType
from time_ledger.core.storage import StorageManager
from time_ledger.core.timezone import day_bounds, local_date, to_local


@dataclass
class ReportRow:
    """Computed figures for one completed entry."""

    entry_id: int
    date: date
    start_time: datetime
    end_time: datetime
    duration_ms: int
    breaks_ms: int
    net_work_ms: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.entry_id,
            "date": self.date.isoformat(),
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "duration": self.duration_ms,
            "breaks": self.breaks_ms,
            "net_work": self.net_work_ms,
        }


@dataclass
class ReportSummary:
    """Totals over every row of a report."""

    total_duration_ms: int = 0
    total_breaks_ms: int = 0
    total_net_work_ms: int = 0
    days_worked: int = 0
    average_daily_work_ms: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_duration": self.total_duration_ms,
            "total_breaks": self.total_breaks_ms,
            "total_net_work": self.total_net_work_ms,
            "days_worked": self.days_worked,
            "average_daily_work": self.average_daily_work_ms,
        }


@dataclass
class ReportData:
    """A report over a date range: rows newest first plus a summary."""

    report_type: ReportType
    start_date: date
    end_date: date
    timezone: str
    entries: list[ReportRow] = field(default_factory=list)
    summary: ReportSummary = field(default_factory=ReportSummary)

    def to_dict(self) -> dict[str, Any]:
        return {
            "report_type": self.report_type.value,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "timezone": self.timezone,
            "entries": [row.to_dict() for row in self.entries],
            "summary": self.summary.to_dict(),
        }


def default_range(report_type: ReportType, today: date) -> tuple[date, date]:
    """Date range a report type covers around ``today``.

    Daily covers today, weekly the Monday-to-Sunday week, monthly the
    calendar month.
    """
    if report_type is ReportType.DAILY:
        return today, today
    if report_type is ReportType.WEEKLY:
        monday = today - timedelta(days=today.weekday())
        return monday, monday + timedelta(days=6)
    last_day = calendar.monthrange(today.year, today.month)[1]
    return today.replace(day=1), today.replace(day=last_day)


class ReportAggregator:
    """Compute per-entry and summary statistics over a date range."""

    def __init__(self, storage: StorageManager, clock: Optional[Clock] = None):
        self.storage = storage
        self.clock = clock or SystemClock()

    def generate(
        self,
        user_id: int,
        start_date: date,
        end_date: date,
        report_type: ReportType = ReportType.DAILY,
    ) -> ReportData:
        """Build a report of completed entries starting within the range.

        Args:
            user_id: Owner of the entries
            start_date: First calendar day (inclusive, user's timezone)
            end_date: Last calendar day (inclusive, user's timezone)
            report_type: Label only; does not affect which entries are selected

        Returns:
            Report data with rows ordered most recent start first

        Raises:
            ValidationError: If the range is reversed
        """
        if end_date < start_date:
            raise ValidationError("Report end date must not be before its start date")

        now = self.clock.now()
        with self.storage.transaction() as repo:
            tz_name = repo.get_settings(user_id).timezone
            range_start, range_end = day_bounds(start_date, end_date, tz_name)
            entries = repo.query_entries(
                user_id, start=range_start, end=range_end, status=EntryStatus.COMPLETED
            )

        rows = []
        for entry in entries:
            total = duration_ms(entry.start_time, entry.end_time)
            on_break = breaks_total_ms(entry.breaks, now)
            rows.append(
                ReportRow(
                    entry_id=entry.id,
                    date=local_date(entry.start_time, tz_name),
                    start_time=entry.start_time,
                    end_time=entry.end_time,  # type: ignore[arg-type]
                    duration_ms=total,
                    breaks_ms=on_break,
                    net_work_ms=net_work_ms(total, on_break),
                )
            )
        rows.sort(key=lambda r: r.start_time, reverse=True)

        return ReportData(
            report_type=report_type,
            start_date=start_date,
            end_date=end_date,
            timezone=tz_name,
            entries=rows,
            summary=summarize(rows),
        )


def summarize(rows: list[ReportRow]) -> ReportSummary:
    """Totals over report rows. An empty list gives an all-zero summary."""
    total_duration = sum(r.duration_ms for r in rows)
    total_breaks = sum(r.breaks_ms for r in rows)
    total_net = net_work_ms(total_duration, total_breaks)
    days_worked = len({r.date for r in rows})
    average = total_net // days_worked if days_worked else 0
    return ReportSummary(
        total_duration_ms=total_duration,
        total_breaks_ms=total_breaks,
        total_net_work_ms=total_net,
        days_worked=days_worked,
        average_daily_work_ms=average,
    )


class ReportRenderer:
    """Display report data in the terminal."""

    def __init__(self, console: Optional[Console] = None):
        """Initialize report renderer.

        Args:
            console: Rich console for output. Creates default if None.
        """
        self.console = console or Console()

    def render(self, report: ReportData, title: Optional[str] = None) -> None:
        """Print the summary table followed by one row per entry.

        Args:
            report: Report to display
            title: Heading. Defaults to the report type and range
        """
        if title is None:
            title = (
                f"{report.report_type.value.capitalize()} report "
                f"{report.start_date.isoformat()} - {report.end_date.isoformat()}"
            )
        self.console.print(f"\n[bold cyan]Time Ledger - {title}[/bold cyan]\n")

        if not report.entries:
            self.console.print("[yellow]No completed entries found for this period[/yellow]")
            return

        summary = report.summary
        overview_table = Table(show_header=False, box=None, padding=(0, 2))
        overview_table.add_column(style="dim")
        overview_table.add_column(style="bold")

        overview_table.add_row("Total Time:", format_duration(summary.total_duration_ms))
        overview_table.add_row("Breaks:", format_duration(summary.total_breaks_ms))
        overview_table.add_row("Net Work:", format_duration(summary.total_net_work_ms))
        overview_table.add_row("Days Worked:", str(summary.days_worked))
        overview_table.add_row("Daily Average:", format_duration(summary.average_daily_work_ms))

        if summary.total_duration_ms > 0:
            work_pct = (summary.total_net_work_ms / summary.total_duration_ms) * 100
            overview_table.add_row("Work Ratio:", f"{work_pct:.1f}%")

        self.console.print(overview_table)
        self.console.print()

        entries_table = Table(title="Entries")
        entries_table.add_column("Date", style="cyan")
        entries_table.add_column("Time", style="cyan")
        entries_table.add_column("Duration", style="magenta", justify="right")
        entries_table.add_column("Breaks", style="yellow", justify="right")
        entries_table.add_column("Net Work", style="green", justify="right")
        entries_table.add_column("Bar", style="blue")

        longest = max(r.duration_ms for r in report.entries) or 1
        for row in report.entries:
            start = to_local(row.start_time, report.timezone).strftime("%H:%M")
            end = to_local(row.end_time, report.timezone).strftime("%H:%M")
            entries_table.add_row(
                row.date.isoformat(),
                f"{start} → {end}",
                format_duration(row.duration_ms),
                format_duration(row.breaks_ms),
                format_duration(row.net_work_ms),
                self._create_bar(row.net_work_ms / longest * 100),
            )

        self.console.print(entries_table)

    def _create_bar(self, percentage: float, width: int = 25) -> Text:
        """Create a visual bar for percentage display.

        Args:
            percentage: Percentage value (0-100)
            width: Width of the bar in characters

        Returns:
            Rich Text object with colored bar
        """
        filled = int((percentage / 100) * width)
        empty = width - filled

        bar = Text()
        bar.append("█" * filled, style="blue")
        bar.append("░" * empty, style="dim")

        return bar
