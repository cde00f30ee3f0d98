"""Facade over the core services used by the CLI and the REST API.

Every method returns a :class:`~time_ledger.core.errors.Result`; classified
failures become ``Result.fail`` with their message and kind, anything else is
logged and reported as a generic failure.
"""

import logging
from collections.abc import Callable, Sequence
from datetime import date, datetime
from typing import Any, Optional, Union

from time_ledger.analysis.reports import ReportAggregator, default_range
from time_ledger.analysis.sharing import ShareTokenIssuer
from time_ledger.core.clock import Clock, SystemClock
from time_ledger.core.config import ConfigManager
from time_ledger.core.entries import BreakDraft, ManualEntryService
from time_ledger.core.errors import PersistenceError, Result, TimeLedgerError, ValidationError
from time_ledger.core.models import ReportType, SettingsPatch
from time_ledger.core.settings import SettingsService
from time_ledger.core.storage import StorageManager
from time_ledger.core.timezone import local_date, to_utc
from time_ledger.core.tracker import WorkSessionTracker

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR = "An unexpected error occurred"


def parse_report_type(value: Union[str, ReportType]) -> ReportType:
    """Coerce a report type name.

    Raises:
        ValidationError: If the name is unknown
    """
    if isinstance(value, ReportType):
        return value
    try:
        return ReportType(str(value).lower())
    except ValueError:
        choices = ", ".join(t.value for t in ReportType)
        raise ValidationError(f"Report type must be one of: {choices}")


class TimeLedgerService:
    """Single entry point to tracking, editing, reporting, sharing and settings."""

    def __init__(
        self,
        storage: StorageManager,
        clock: Optional[Clock] = None,
        token_bytes: int = 8,
        max_token_attempts: int = 3,
    ):
        """Initialize the service.

        Args:
            storage: Storage manager; opened lazily by :meth:`open`
            clock: Time source. Defaults to system time
            token_bytes: Random bytes per share token
            max_token_attempts: Retries on share token collisions
        """
        self.storage = storage
        self.clock = clock or SystemClock()
        self.tracker = WorkSessionTracker(storage, self.clock)
        self.entries = ManualEntryService(storage)
        self.settings = SettingsService(storage)
        self.reports = ReportAggregator(storage, self.clock)
        self.sharing = ShareTokenIssuer(
            storage,
            aggregator=self.reports,
            clock=self.clock,
            token_bytes=token_bytes,
            max_attempts=max_token_attempts,
        )

    @classmethod
    def from_config(cls, config: ConfigManager, clock: Optional[Clock] = None) -> "TimeLedgerService":
        """Build a service from the ``database`` and ``sharing`` config sections."""
        storage = StorageManager(
            config.database_url(),
            echo=config.get("database.echo", False),
            settings_defaults=config.settings_defaults(),
        )
        return cls(
            storage,
            clock=clock,
            token_bytes=config.get("sharing.token_bytes", 8),
            max_token_attempts=config.get("sharing.max_token_attempts", 3),
        )

    def open(self) -> "TimeLedgerService":
        self.storage.open()
        return self

    def close(self) -> None:
        self.storage.close()

    def __enter__(self) -> "TimeLedgerService":
        return self.open()

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _run(self, operation: str, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Result:
        try:
            return Result.ok(func(*args, **kwargs))
        except PersistenceError as e:
            return Result.fail(e.message, e.kind)
        except TimeLedgerError as e:
            logger.warning(f"{operation} rejected ({e.kind}): {e.message}")
            return Result.fail(e.message, e.kind)
        except Exception:
            logger.exception(f"Unexpected failure in {operation}")
            return Result.fail(UNEXPECTED_ERROR)

    def _timezone(self, user_id: int) -> str:
        return self.settings.get(user_id).timezone

    def _localize(
        self,
        user_id: int,
        start_time: Optional[datetime],
        end_time: Optional[datetime],
        breaks: Sequence[BreakDraft],
    ) -> tuple[Optional[datetime], Optional[datetime], list[BreakDraft]]:
        """Convert every datetime to aware UTC, reading naive ones in the user's timezone."""
        values = [start_time, end_time]
        for draft in breaks:
            values.extend([draft.start_time, draft.end_time])
        tz_name = "UTC"
        if any(v is not None and v.tzinfo is None for v in values):
            tz_name = self._timezone(user_id)

        def convert(value: Optional[datetime]) -> Optional[datetime]:
            return to_utc(value, tz_name) if value is not None else None

        drafts = [
            BreakDraft(
                start_time=convert(d.start_time),
                end_time=convert(d.end_time),
                id=d.id,
                is_new=d.is_new,
                is_deleted=d.is_deleted,
            )
            for d in breaks
        ]
        return convert(start_time), convert(end_time), drafts

    # Work session

    def start(self, user_id: int) -> Result:
        return self._run("start", self.tracker.start, user_id)

    def start_break(self, user_id: int) -> Result:
        return self._run("start_break", self.tracker.start_break, user_id)

    def end_break(self, user_id: int) -> Result:
        return self._run("end_break", self.tracker.end_break, user_id)

    def end(self, user_id: int) -> Result:
        return self._run("end", self.tracker.end, user_id)

    def get_active_state(self, user_id: int) -> Result:
        return self._run("get_active_state", self.tracker.get_active_state, user_id)

    # Manual entries

    def create_entry(
        self,
        user_id: int,
        start_time: Optional[datetime],
        end_time: Optional[datetime],
        breaks: Sequence[BreakDraft] = (),
    ) -> Result:
        """Create an entry with breaks. Naive times are in the user's timezone."""

        def create() -> Any:
            start, end, drafts = self._localize(user_id, start_time, end_time, breaks)
            return self.entries.create(user_id, start, end, drafts)

        return self._run("create_entry", create)

    def update_entry(
        self,
        user_id: int,
        entry_id: int,
        start_time: Optional[datetime],
        end_time: Optional[datetime],
        breaks: Sequence[BreakDraft] = (),
    ) -> Result:
        """Edit an entry and reconcile its breaks. Naive times are in the user's timezone."""

        def update() -> Any:
            start, end, drafts = self._localize(user_id, start_time, end_time, breaks)
            return self.entries.update(user_id, entry_id, start, end, drafts)

        return self._run("update_entry", update)

    def get_entry(self, user_id: int, entry_id: int) -> Result:
        return self._run("get_entry", self.entries.get, user_id, entry_id)

    def delete_entry(self, user_id: int, entry_id: int) -> Result:
        return self._run("delete_entry", self.entries.delete, user_id, entry_id)

    def recent_entries(self, user_id: int, limit: int = 10) -> Result:
        return self._run("recent_entries", self.entries.recent, user_id, limit)

    # Reports and sharing

    def today(self, user_id: int) -> Result:
        """Current calendar date in the user's timezone."""
        return self._run("today", self._today, user_id)

    def _today(self, user_id: int) -> date:
        return local_date(self.clock.now(), self._timezone(user_id))

    def generate_report(
        self,
        user_id: int,
        report_type: Union[str, ReportType] = ReportType.DAILY,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Result:
        """Report over a date range.

        Missing dates default to the range of ``report_type`` around today.
        """

        def generate() -> Any:
            kind = parse_report_type(report_type)
            start, end = self._resolve_range(user_id, kind, start_date, end_date)
            return self.reports.generate(user_id, start, end, kind)

        return self._run("generate_report", generate)

    def _resolve_range(
        self,
        user_id: int,
        kind: ReportType,
        start_date: Optional[date],
        end_date: Optional[date],
    ) -> tuple[date, date]:
        if start_date is not None and end_date is not None:
            return start_date, end_date
        default_start, default_end = default_range(kind, self._today(user_id))
        if start_date is None and end_date is None:
            return default_start, default_end
        if start_date is None:
            return default_range(kind, end_date)[0], end_date  # type: ignore[arg-type]
        return start_date, default_range(kind, start_date)[1]

    def share_report(
        self,
        user_id: int,
        report_type: Union[str, ReportType],
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        expires_in_days: Optional[int] = None,
    ) -> Result:
        """Issue a share token for a report query."""

        def share() -> Any:
            kind = parse_report_type(report_type)
            start, end = self._resolve_range(user_id, kind, start_date, end_date)
            return self.sharing.issue(user_id, kind, start, end, expires_in_days)

        return self._run("share_report", share)

    def resolve_share(self, share_token: str) -> Result:
        return self._run("resolve_share", self.sharing.resolve, share_token)

    def revoke_share(self, user_id: int, share_token: str) -> Result:
        return self._run("revoke_share", self.sharing.revoke, share_token, user_id)

    def list_shares(self, user_id: int) -> Result:
        return self._run("list_shares", self.sharing.list, user_id)

    # Settings

    def get_settings(self, user_id: int) -> Result:
        return self._run("get_settings", self.settings.get, user_id)

    def update_settings(self, user_id: int, patch: Union[SettingsPatch, dict[str, Any]]) -> Result:
        """Apply a partial settings update given as a patch or a field mapping."""

        def update() -> Any:
            if isinstance(patch, dict):
                unknown = sorted(set(patch) - set(SettingsPatch.__dataclass_fields__))
                if unknown:
                    raise ValidationError(f"Unknown settings: {', '.join(unknown)}")
                return self.settings.update(user_id, SettingsPatch(**patch))
            return self.settings.update(user_id, patch)

        return self._run("update_settings", update)
