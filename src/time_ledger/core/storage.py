"""SQLAlchemy storage manager with transactional units of work."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy import create_engine, event, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload, sessionmaker
from sqlalchemy.pool import StaticPool

from time_ledger.core.errors import ConflictError, NotFoundOrForbidden, PersistenceError
from time_ledger.core.models import (
    Break,
    Entry,
    EntryStatus,
    ReportType,
    SettingsPatch,
    SharedReport,
    UserSettings,
)
from time_ledger.core.schema import (
    Base,
    BreakRow,
    SharedReportRow,
    TimeEntryRow,
    UserSettingsRow,
)

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS: dict[str, Any] = {
    "working_hours": 8,
    "timezone": "UTC",
    "auto_detect_breaks": False,
    "enable_notifications": True,
    "enable_email_notifications": False,
    "allow_sharing": True,
    "share_duration_days": 7,
    "theme": "system",
}


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _to_break(row: BreakRow) -> Break:
    return Break(
        id=row.id,
        time_entry_id=row.time_entry_id,
        start_time=row.start_time,
        end_time=row.end_time,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _to_entry(row: TimeEntryRow) -> Entry:
    return Entry(
        id=row.id,
        user_id=row.user_id,
        start_time=row.start_time,
        end_time=row.end_time,
        breaks=sorted((_to_break(b) for b in row.breaks), key=lambda b: b.start_time),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _to_settings(row: UserSettingsRow) -> UserSettings:
    return UserSettings(
        user_id=row.user_id,
        working_hours=row.working_hours,
        timezone=row.timezone,
        auto_detect_breaks=row.auto_detect_breaks,
        enable_notifications=row.enable_notifications,
        enable_email_notifications=row.enable_email_notifications,
        allow_sharing=row.allow_sharing,
        share_duration_days=row.share_duration_days,
        theme=row.theme,
        updated_at=row.updated_at,
    )


def _to_shared_report(row: SharedReportRow) -> SharedReport:
    return SharedReport(
        id=row.id,
        user_id=row.user_id,
        share_token=row.share_token,
        report_type=ReportType(row.report_type),
        start_date=row.start_date,
        end_date=row.end_date,
        expires_at=row.expires_at,
        created_at=row.created_at,
    )


class LedgerRepository:
    """Persistence operations bound to one open transaction.

    Obtain instances from :meth:`StorageManager.transaction`; every change made
    through one repository commits or rolls back together.
    """

    def __init__(self, session: Session, settings_defaults: Optional[dict[str, Any]] = None):
        self.session = session
        self.settings_defaults = {**DEFAULT_SETTINGS, **(settings_defaults or {})}

    def _flush(self, conflict_message: str) -> None:
        """Flush pending changes, reporting unique-index violations as conflicts."""
        try:
            self.session.flush()
        except IntegrityError as e:
            logger.warning(f"Integrity violation: {conflict_message} ({e.orig})")
            raise ConflictError(conflict_message) from e

    def _entry_row(self, entry_id: int, user_id: int) -> TimeEntryRow:
        row = self.session.get(TimeEntryRow, entry_id)
        if row is None or row.user_id != user_id:
            raise NotFoundOrForbidden("Time entry not found or access denied")
        return row

    def _expire_breaks(self, entry_id: int) -> None:
        # A loaded parent keeps its old break collection until expired.
        parent = self.session.get(TimeEntryRow, entry_id)
        if parent is not None:
            self.session.expire(parent, ["breaks"])

    def _break_row(self, break_id: int, user_id: int) -> BreakRow:
        stmt = (
            select(BreakRow)
            .join(TimeEntryRow, BreakRow.time_entry_id == TimeEntryRow.id)
            .where(BreakRow.id == break_id, TimeEntryRow.user_id == user_id)
        )
        row = self.session.scalars(stmt).first()
        if row is None:
            raise NotFoundOrForbidden("Break not found or access denied")
        return row

    # Entry operations

    def create_entry(self, user_id: int, start: datetime, end: Optional[datetime]) -> Entry:
        """Insert a time entry.

        Raises:
            ConflictError: If the entry would be a second active entry for the user
        """
        row = TimeEntryRow(user_id=user_id, start_time=start, end_time=end)
        self.session.add(row)
        self._flush("A work session is already active")
        return _to_entry(row)

    def get_entry(self, entry_id: int, user_id: int) -> Entry:
        """Load an entry owned by ``user_id`` together with its breaks."""
        return _to_entry(self._entry_row(entry_id, user_id))

    def get_active_entry(self, user_id: int) -> Optional[Entry]:
        """The user's entry without an end time, if any."""
        stmt = (
            select(TimeEntryRow)
            .options(selectinload(TimeEntryRow.breaks))
            .where(TimeEntryRow.user_id == user_id, TimeEntryRow.end_time.is_(None))
        )
        row = self.session.scalars(stmt).first()
        return _to_entry(row) if row else None

    def update_entry(
        self, entry_id: int, user_id: int, start: datetime, end: Optional[datetime]
    ) -> Entry:
        """Replace the start and end time of an owned entry."""
        row = self._entry_row(entry_id, user_id)
        row.start_time = start
        row.end_time = end
        self._flush("A work session is already active")
        return _to_entry(row)

    def delete_entry(self, entry_id: int, user_id: int) -> None:
        """Delete an owned entry and all of its breaks."""
        row = self._entry_row(entry_id, user_id)
        self.session.delete(row)
        self.session.flush()

    def query_entries(
        self,
        user_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        status: Optional[EntryStatus] = None,
        limit: Optional[int] = None,
    ) -> list[Entry]:
        """Entries of a user, most recent start first.

        Args:
            user_id: Owner of the entries
            start: Only entries starting at or after this instant
            end: Only entries starting strictly before this instant
            status: Only active or only completed entries
            limit: Maximum number of entries to return

        Returns:
            List of entries with their breaks
        """
        stmt = (
            select(TimeEntryRow)
            .options(selectinload(TimeEntryRow.breaks))
            .where(TimeEntryRow.user_id == user_id)
        )
        if start is not None:
            stmt = stmt.where(TimeEntryRow.start_time >= start)
        if end is not None:
            stmt = stmt.where(TimeEntryRow.start_time < end)
        if status is EntryStatus.ACTIVE:
            stmt = stmt.where(TimeEntryRow.end_time.is_(None))
        elif status is EntryStatus.COMPLETED:
            stmt = stmt.where(TimeEntryRow.end_time.is_not(None))
        stmt = stmt.order_by(TimeEntryRow.start_time.desc(), TimeEntryRow.id.desc())
        if limit:
            stmt = stmt.limit(limit)
        return [_to_entry(row) for row in self.session.scalars(stmt)]

    def recent_entries(self, user_id: int, limit: int = 10) -> list[Entry]:
        """The ``limit`` most recent entries of a user."""
        return self.query_entries(user_id, limit=limit)

    # Break operations

    def create_break(self, entry_id: int, start: datetime, end: Optional[datetime]) -> Break:
        """Insert a break under an entry.

        Raises:
            ConflictError: If the entry would get a second open break
        """
        row = BreakRow(time_entry_id=entry_id, start_time=start, end_time=end)
        self.session.add(row)
        self._flush("A break is already in progress")
        self._expire_breaks(entry_id)
        return _to_break(row)

    def get_open_break(self, entry_id: int) -> Optional[Break]:
        """The break of ``entry_id`` without an end time, if any."""
        stmt = select(BreakRow).where(
            BreakRow.time_entry_id == entry_id, BreakRow.end_time.is_(None)
        )
        row = self.session.scalars(stmt).first()
        return _to_break(row) if row else None

    def get_break(self, break_id: int, user_id: int) -> Break:
        """Load a break whose entry is owned by ``user_id``."""
        return _to_break(self._break_row(break_id, user_id))

    def update_break(
        self, break_id: int, user_id: int, start: datetime, end: Optional[datetime]
    ) -> Break:
        """Replace the start and end time of a break on an owned entry."""
        row = self._break_row(break_id, user_id)
        row.start_time = start
        row.end_time = end
        self._flush("A break is already in progress")
        return _to_break(row)

    def delete_break(self, break_id: int, user_id: int) -> None:
        """Delete a break on an owned entry."""
        row = self._break_row(break_id, user_id)
        entry_id = row.time_entry_id
        self.session.delete(row)
        self.session.flush()
        self._expire_breaks(entry_id)

    # Settings operations

    def get_settings(self, user_id: int) -> UserSettings:
        """Load user settings, creating them with defaults if absent."""
        row = self.session.get(UserSettingsRow, user_id)
        if row is None:
            row = UserSettingsRow(user_id=user_id, **self.settings_defaults)
            self.session.add(row)
            self._flush("Settings were created concurrently")
            logger.info(f"Created default settings for user {user_id}")
        return _to_settings(row)

    def upsert_settings(self, user_id: int, patch: SettingsPatch) -> UserSettings:
        """Apply the present fields of ``patch`` to the user's settings."""
        self.get_settings(user_id)
        row = self.session.get(UserSettingsRow, user_id)
        for name, value in patch.present_fields().items():
            setattr(row, name, value)
        self.session.flush()
        return _to_settings(row)

    # Shared report operations

    def create_shared_report(
        self,
        user_id: int,
        share_token: str,
        report_type: ReportType,
        start_date: date,
        end_date: date,
        expires_at: Optional[datetime],
    ) -> SharedReport:
        """Insert a shared report.

        Raises:
            ConflictError: If the token is already taken
        """
        row = SharedReportRow(
            user_id=user_id,
            share_token=share_token,
            report_type=report_type.value,
            start_date=start_date,
            end_date=end_date,
            expires_at=expires_at,
        )
        self.session.add(row)
        self._flush("Share token already exists")
        return _to_shared_report(row)

    def get_shared_report_by_token(self, share_token: str) -> SharedReport:
        """Look up a shared report by its token."""
        stmt = select(SharedReportRow).where(SharedReportRow.share_token == share_token)
        row = self.session.scalars(stmt).first()
        if row is None:
            raise NotFoundOrForbidden("Shared report not found")
        return _to_shared_report(row)

    def list_shared_reports(self, user_id: int) -> list[SharedReport]:
        """Shared reports of a user, newest first."""
        stmt = (
            select(SharedReportRow)
            .where(SharedReportRow.user_id == user_id)
            .order_by(SharedReportRow.created_at.desc(), SharedReportRow.id.desc())
        )
        return [_to_shared_report(row) for row in self.session.scalars(stmt)]

    def delete_shared_report(self, report_id: int, user_id: int) -> None:
        """Delete a shared report owned by ``user_id``."""
        row = self.session.get(SharedReportRow, report_id)
        if row is None or row.user_id != user_id:
            raise NotFoundOrForbidden("Shared report not found or access denied")
        self.session.delete(row)
        self.session.flush()


class StorageManager:
    """Owns the database engine and hands out transactional repositories.

    The handle has an explicit lifecycle: :meth:`open` at process start and
    :meth:`close` at shutdown. It is passed to every service that needs it.
    """

    def __init__(
        self,
        database_url: str = "sqlite://",
        echo: bool = False,
        settings_defaults: Optional[dict[str, Any]] = None,
    ):
        """Initialize storage manager.

        Args:
            database_url: SQLAlchemy database URL. Defaults to in-memory SQLite
            echo: Log every SQL statement
            settings_defaults: Overrides for lazily created user settings
        """
        self.database_url = database_url
        self.echo = echo
        self.settings_defaults = settings_defaults or {}
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker[Session]] = None

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def open(self) -> "StorageManager":
        """Create the engine and make sure the schema exists."""
        if self._engine is not None:
            return self

        kwargs: dict[str, Any] = {"echo": self.echo}
        if self.database_url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if self.database_url in ("sqlite://", "sqlite:///:memory:"):
                kwargs["poolclass"] = StaticPool

        try:
            engine = create_engine(self.database_url, **kwargs)
            if engine.dialect.name == "sqlite":
                event.listen(engine, "connect", _enable_sqlite_foreign_keys)
            Base.metadata.create_all(engine)
        except SQLAlchemyError as e:
            logger.error(f"Failed to open database {self.database_url}: {e}")
            raise PersistenceError("Storage is unavailable") from e

        self._engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)
        logger.info(f"Storage opened ({engine.dialect.name})")
        return self

    def close(self) -> None:
        """Dispose the engine and its connection pool."""
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("Storage closed")

    def __enter__(self) -> "StorageManager":
        return self.open()

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @contextmanager
    def transaction(self) -> Iterator[LedgerRepository]:
        """Run a unit of work: commit on success, roll back on any error.

        Raises:
            PersistenceError: If storage is closed or the database fails
        """
        if self._session_factory is None:
            raise PersistenceError("Storage is not open")

        session = self._session_factory()
        try:
            yield LedgerRepository(session, self.settings_defaults)
            session.commit()
        except IntegrityError as e:
            session.rollback()
            logger.warning(f"Transaction rejected by constraint: {e.orig}")
            raise ConflictError("The change conflicts with existing data") from e
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Storage failure: {e}")
            raise PersistenceError("Storage operation failed") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
