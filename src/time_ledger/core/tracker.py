"""Work session state machine: idle, working and on break."""

import logging
from typing import Optional

from time_ledger.core.clock import Clock, SystemClock
from time_ledger.core.durations import live_totals
from time_ledger.core.errors import ConflictError
from time_ledger.core.models import ActiveState, Break, Entry, SessionState
from time_ledger.core.storage import LedgerRepository, StorageManager

logger = logging.getLogger(__name__)


class WorkSessionTracker:
    """Core time tracking functionality.

    Every transition is stamped with the injected clock at the moment of the
    call and runs in a single storage transaction.
    """

    def __init__(self, storage: StorageManager, clock: Optional[Clock] = None):
        """Initialize time tracker.

        Args:
            storage: Open storage manager
            clock: Time source for transition timestamps. Defaults to system time
        """
        self.storage = storage
        self.clock = clock or SystemClock()

    def _require_active(self, repo: LedgerRepository, user_id: int) -> Entry:
        entry = repo.get_active_entry(user_id)
        if entry is None:
            raise ConflictError("No active work session")
        return entry

    def start(self, user_id: int) -> Entry:
        """Clock in: idle -> working.

        Args:
            user_id: User starting the session

        Returns:
            Created entry

        Raises:
            ConflictError: If a session is already active
        """
        now = self.clock.now()
        with self.storage.transaction() as repo:
            if repo.get_active_entry(user_id) is not None:
                raise ConflictError("A work session is already active")
            entry = repo.create_entry(user_id, now, None)

        logger.info(f"User {user_id} started entry {entry.id}")
        return entry

    def start_break(self, user_id: int) -> Break:
        """Pause the session: working -> break.

        Raises:
            ConflictError: If there is no active session or a break is already open
        """
        now = self.clock.now()
        with self.storage.transaction() as repo:
            entry = self._require_active(repo, user_id)
            if repo.get_open_break(entry.id) is not None:
                raise ConflictError("A break is already in progress")
            item = repo.create_break(entry.id, now, None)

        logger.info(f"User {user_id} started break {item.id} on entry {entry.id}")
        return item

    def end_break(self, user_id: int) -> Break:
        """Resume work: break -> working.

        Raises:
            ConflictError: If there is no active session or no open break
        """
        now = self.clock.now()
        with self.storage.transaction() as repo:
            entry = self._require_active(repo, user_id)
            open_break = repo.get_open_break(entry.id)
            if open_break is None:
                raise ConflictError("No break is in progress")
            item = repo.update_break(open_break.id, user_id, open_break.start_time, now)

        logger.info(f"User {user_id} ended break {item.id}")
        return item

    def end(self, user_id: int) -> Entry:
        """Clock out: working or break -> idle.

        An open break is closed at the same instant as the entry, so no
        completed entry keeps a dangling break.

        Raises:
            ConflictError: If there is no active session
        """
        now = self.clock.now()
        with self.storage.transaction() as repo:
            entry = self._require_active(repo, user_id)
            open_break = repo.get_open_break(entry.id)
            if open_break is not None:
                repo.update_break(open_break.id, user_id, open_break.start_time, now)
            repo.update_entry(entry.id, user_id, entry.start_time, now)
            completed = repo.get_entry(entry.id, user_id)

        logger.info(f"User {user_id} completed entry {completed.id}")
        return completed

    def get_active_state(self, user_id: int) -> ActiveState:
        """Current session state with live totals as of now.

        The totals are a derived view for display only.
        """
        now = self.clock.now()
        with self.storage.transaction() as repo:
            entry = repo.get_active_entry(user_id)

        if entry is None:
            return ActiveState(state=SessionState.IDLE)

        elapsed, on_break, worked = live_totals(entry, now)
        open_break = entry.open_break
        return ActiveState(
            state=SessionState.BREAK if open_break else SessionState.WORKING,
            entry=entry,
            open_break=open_break,
            elapsed_ms=elapsed,
            break_ms=on_break,
            worked_ms=worked,
        )
