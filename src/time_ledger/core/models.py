"""Core data models for time tracking."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional


class EntryStatus(str, Enum):
    """Lifecycle of a time entry, derived from its end time."""

    ACTIVE = "active"
    COMPLETED = "completed"


class SessionState(str, Enum):
    """State of a user's work session."""

    IDLE = "idle"
    WORKING = "working"
    BREAK = "break"


class ReportType(str, Enum):
    """Granularity label of a report."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


THEMES = ("light", "dark", "system")


@dataclass
class Break:
    """A pause within a time entry.

    Attributes:
        id: Database identifier
        time_entry_id: Parent entry identifier
        start_time: When the break started (aware UTC)
        end_time: When the break ended (None while on break)
        created_at: When this record was created
        updated_at: Last update time
    """

    id: int
    time_entry_id: int
    start_time: datetime
    end_time: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        """Check if the break is still running."""
        return self.end_time is None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "time_entry_id": self.time_entry_id,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
        }


@dataclass
class Entry:
    """Time entry representing one continuous work session.

    Attributes:
        id: Database identifier
        user_id: Owner of the entry
        start_time: Clock-in time (aware UTC)
        end_time: Clock-out time (None while the session is running)
        breaks: Breaks taken during the entry, ordered by start time
        created_at: When this record was created
        updated_at: Last update time
    """

    id: int
    user_id: int
    start_time: datetime
    end_time: Optional[datetime] = None
    breaks: list[Break] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def status(self) -> EntryStatus:
        """Derived status: active iff the entry has no end time."""
        return EntryStatus.ACTIVE if self.end_time is None else EntryStatus.COMPLETED

    @property
    def is_running(self) -> bool:
        """Check if this entry is currently running."""
        return self.end_time is None

    @property
    def open_break(self) -> Optional[Break]:
        """The break currently in progress, if any."""
        for item in self.breaks:
            if item.is_open:
                return item
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "status": self.status.value,
            "breaks": [b.to_dict() for b in self.breaks],
        }


@dataclass
class UserSettings:
    """Per-user preferences, created with defaults on first read."""

    user_id: int
    working_hours: int = 8
    timezone: str = "UTC"
    auto_detect_breaks: bool = False
    enable_notifications: bool = True
    enable_email_notifications: bool = False
    allow_sharing: bool = True
    share_duration_days: int = 7
    theme: str = "system"
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "user_id": self.user_id,
            "working_hours": self.working_hours,
            "timezone": self.timezone,
            "auto_detect_breaks": self.auto_detect_breaks,
            "enable_notifications": self.enable_notifications,
            "enable_email_notifications": self.enable_email_notifications,
            "allow_sharing": self.allow_sharing,
            "share_duration_days": self.share_duration_days,
            "theme": self.theme,
        }


@dataclass
class SettingsPatch:
    """Partial update of user settings. ``None`` means "leave unchanged"."""

    working_hours: Optional[int] = None
    timezone: Optional[str] = None
    auto_detect_breaks: Optional[bool] = None
    enable_notifications: Optional[bool] = None
    enable_email_notifications: Optional[bool] = None
    allow_sharing: Optional[bool] = None
    share_duration_days: Optional[int] = None
    theme: Optional[str] = None

    def present_fields(self) -> dict[str, Any]:
        """Fields that carry a value, by name."""
        return {k: v for k, v in self.__dict__.items() if v is not None}

    def is_empty(self) -> bool:
        return not self.present_fields()


@dataclass
class SharedReport:
    """A shareable, optionally expiring reference to a report query."""

    id: int
    user_id: int
    share_token: str
    report_type: ReportType
    start_date: date
    end_date: date
    expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        """Check whether the share has expired relative to ``now``."""
        return self.expires_at is not None and self.expires_at < now

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "share_token": self.share_token,
            "report_type": self.report_type.value,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass
class ActiveState:
    """Read-only view of a user's current session at a point in time.

    The millisecond totals are derived for display and never written back.
    """

    state: SessionState
    entry: Optional[Entry] = None
    open_break: Optional[Break] = None
    elapsed_ms: int = 0
    break_ms: int = 0
    worked_ms: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "state": self.state.value,
            "entry": self.entry.to_dict() if self.entry else None,
            "open_break": self.open_break.to_dict() if self.open_break else None,
            "elapsed_ms": self.elapsed_ms,
            "break_ms": self.break_ms,
            "worked_ms": self.worked_ms,
        }
