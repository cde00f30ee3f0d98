"""Pydantic models for API requests and responses.

This module defines the data models used for API requests and responses.
All models use Pydantic for automatic validation and serialization.
"""

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, Field  # type: ignore[import-untyped]

from time_ledger.core.durations import format_duration
from time_ledger.core.entries import BreakDraft
from time_ledger.core.models import ReportType

# ============================================================================
# Response Models
# ============================================================================


class BreakResponse(BaseModel):
    """Response model for a break."""

    id: int
    time_entry_id: int
    start_time: datetime
    end_time: Optional[datetime] = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True

    @classmethod
    def from_break(cls, item):  # type: ignore[no-untyped-def]
        return cls(
            id=item.id,
            time_entry_id=item.time_entry_id,
            start_time=item.start_time,
            end_time=item.end_time,
        )


class EntryResponse(BaseModel):
    """Response model for a time entry with its breaks."""

    id: int
    user_id: int
    start_time: datetime
    end_time: Optional[datetime] = None
    status: str
    breaks: list[BreakResponse] = Field(default_factory=list)

    class Config:
        """Pydantic configuration."""

        from_attributes = True

    @classmethod
    def from_entry(cls, entry):  # type: ignore[no-untyped-def]
        """Create response from Entry model.

        Args:
            entry: Entry instance from core.models

        Returns:
            EntryResponse instance
        """
        return cls(
            id=entry.id,
            user_id=entry.user_id,
            start_time=entry.start_time,
            end_time=entry.end_time,
            status=entry.status.value,
            breaks=[BreakResponse.from_break(b) for b in entry.breaks],
        )


class SessionStateResponse(BaseModel):
    """Current session state with live totals."""

    state: str = Field(..., description="idle, working or break")
    entry: Optional[EntryResponse] = None
    open_break: Optional[BreakResponse] = None
    elapsed_ms: int = 0
    break_ms: int = 0
    worked_ms: int = 0
    worked_display: str = Field("0h 00m", description="Worked time as 'Xh YYm'")

    @classmethod
    def from_state(cls, active):  # type: ignore[no-untyped-def]
        return cls(
            state=active.state.value,
            entry=EntryResponse.from_entry(active.entry) if active.entry else None,
            open_break=BreakResponse.from_break(active.open_break) if active.open_break else None,
            elapsed_ms=active.elapsed_ms,
            break_ms=active.break_ms,
            worked_ms=active.worked_ms,
            worked_display=format_duration(active.worked_ms),
        )


class ReportRowResponse(BaseModel):
    """One completed entry in a report. Durations are milliseconds."""

    id: int
    date: date
    start_time: datetime
    end_time: datetime
    duration: int
    breaks: int
    net_work: int


class ReportSummaryResponse(BaseModel):
    """Report totals. Durations are milliseconds."""

    total_duration: int
    total_breaks: int
    total_net_work: int
    days_worked: int
    average_daily_work: int


class ReportResponse(BaseModel):
    """Response model for a report over a date range."""

    report_type: ReportType
    start_date: date
    end_date: date
    timezone: str
    entries: list[ReportRowResponse]
    summary: ReportSummaryResponse

    @classmethod
    def from_report(cls, report):  # type: ignore[no-untyped-def]
        return cls(
            report_type=report.report_type,
            start_date=report.start_date,
            end_date=report.end_date,
            timezone=report.timezone,
            entries=[
                ReportRowResponse(
                    id=row.entry_id,
                    date=row.date,
                    start_time=row.start_time,
                    end_time=row.end_time,
                    duration=row.duration_ms,
                    breaks=row.breaks_ms,
                    net_work=row.net_work_ms,
                )
                for row in report.entries
            ],
            summary=ReportSummaryResponse(**report.summary.to_dict()),
        )


class SharedReportResponse(BaseModel):
    """Response model for a shared report."""

    id: int
    share_token: str
    report_type: ReportType
    start_date: date
    end_date: date
    expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True

    @classmethod
    def from_shared(cls, shared):  # type: ignore[no-untyped-def]
        return cls(
            id=shared.id,
            share_token=shared.share_token,
            report_type=shared.report_type,
            start_date=shared.start_date,
            end_date=shared.end_date,
            expires_at=shared.expires_at,
            created_at=shared.created_at,
        )


class SharedReportViewResponse(BaseModel):
    """A resolved share: its query and the live report."""

    report: SharedReportResponse
    report_data: ReportResponse

    @classmethod
    def from_view(cls, view):  # type: ignore[no-untyped-def]
        return cls(
            report=SharedReportResponse.from_shared(view.report),
            report_data=ReportResponse.from_report(view.data),
        )


class SettingsResponse(BaseModel):
    """Response model for user settings."""

    user_id: int
    working_hours: int
    timezone: str
    auto_detect_breaks: bool
    enable_notifications: bool
    enable_email_notifications: bool
    allow_sharing: bool
    share_duration_days: int
    theme: str

    class Config:
        """Pydantic configuration."""

        from_attributes = True


# ============================================================================
# Request Models
# ============================================================================


class BreakInput(BaseModel):
    """A break as edited in an entry form."""

    id: Optional[int] = Field(None, description="Existing break id; omit for new breaks")
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    is_new: bool = Field(True, description="Break is not stored yet")
    is_deleted: bool = Field(False, description="Break was removed in the form")

    def to_draft(self) -> BreakDraft:
        return BreakDraft(
            start_time=self.start_time,
            end_time=self.end_time,
            id=self.id,
            is_new=self.is_new,
            is_deleted=self.is_deleted,
        )


class CreateEntryRequest(BaseModel):
    """Request model for creating a manual entry.

    Times without an offset are read in the user's timezone.
    """

    start_time: datetime
    end_time: Optional[datetime] = None
    breaks: list[BreakInput] = Field(default_factory=list)


class UpdateEntryRequest(BaseModel):
    """Request model for editing an entry and reconciling its breaks."""

    start_time: datetime
    end_time: Optional[datetime] = None
    breaks: list[BreakInput] = Field(default_factory=list)


class CreateShareRequest(BaseModel):
    """Request model for sharing a report."""

    report_type: ReportType = ReportType.WEEKLY
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    expires_in_days: Optional[int] = Field(
        None, description="Days until expiry; 0 never expires; omit for the settings default"
    )


class UpdateSettingsRequest(BaseModel):
    """Partial settings update. Omitted or null fields stay unchanged."""

    working_hours: Optional[int] = None
    timezone: Optional[str] = None
    auto_detect_breaks: Optional[bool] = None
    enable_notifications: Optional[bool] = None
    enable_email_notifications: Optional[bool] = None
    allow_sharing: Optional[bool] = None
    share_duration_days: Optional[int] = None
    theme: Optional[str] = None

    def present_fields(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


# ============================================================================
# System Models
# ============================================================================


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(..., description="Health status (healthy, degraded)")
    timestamp: datetime = Field(..., description="Current server time")
    version: str = Field(..., description="API version")
    storage: str = Field(..., description="Storage state (open, closed)")

