"""Manual creation and editing of time entries with their breaks."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from time_ledger.core.errors import ConflictError, NotFoundOrForbidden, ValidationError
from time_ledger.core.models import Entry
from time_ledger.core.storage import StorageManager

logger = logging.getLogger(__name__)


@dataclass
class BreakDraft:
    """A break as submitted from an entry form.

    Attributes:
        start_time: Break start
        end_time: Break end (None if still running)
        id: Existing break identifier, None for breaks added in the form
        is_new: Break was added in the form and is not stored yet
        is_deleted: Break was removed in the form
    """

    start_time: Optional[datetime]
    end_time: Optional[datetime] = None
    id: Optional[int] = None
    is_new: bool = True
    is_deleted: bool = False

    @property
    def is_discarded(self) -> bool:
        """Added and removed before saving: never stored."""
        return self.is_new and self.is_deleted


def validate_entry_window(
    start_time: Optional[datetime],
    end_time: Optional[datetime],
    breaks: Sequence[tuple[Optional[datetime], Optional[datetime]]],
    stored_breaks: Sequence[tuple[datetime, Optional[datetime]]] = (),
) -> None:
    """Check an entry and the breaks it will keep.

    Submitted breaks must lie strictly inside the entry. Stored breaks that are
    kept unchanged may touch its bounds, as happens when a session is ended
    during a break.

    Args:
        start_time: Entry start
        end_time: Entry end, None for a running entry
        breaks: (start, end) pairs of new or edited breaks
        stored_breaks: (start, end) pairs of unchanged stored breaks

    Raises:
        ValidationError: If any time range is invalid
    """
    if start_time is None:
        raise ValidationError("Start time is required")
    if end_time is not None and not start_time < end_time:
        raise ValidationError("End time must be after start time")

    spans = []
    for break_start, break_end in breaks:
        _check_break(start_time, end_time, break_start, break_end, strict=True)
        spans.append((break_start, break_end))
    for break_start, break_end in stored_breaks:
        _check_break(start_time, end_time, break_start, break_end, strict=False)
        spans.append((break_start, break_end))

    spans.sort(key=lambda span: span[0])
    for (_, prev_end), (next_start, _) in zip(spans, spans[1:]):
        if prev_end is None:
            raise ValidationError("Only the latest break can still be running")
        if next_start < prev_end:
            raise ValidationError("Breaks must not overlap")


def _check_break(
    start_time: datetime,
    end_time: Optional[datetime],
    break_start: Optional[datetime],
    break_end: Optional[datetime],
    strict: bool,
) -> None:
    if break_start is None:
        raise ValidationError("Break start time is required")
    if break_end is not None and not break_start < break_end:
        raise ValidationError("Break end time must be after break start time")
    inside = start_time < break_start if strict else start_time <= break_start
    if not inside:
        raise ValidationError("Breaks must be within the work period")
    if end_time is not None:
        if break_end is None:
            raise ValidationError("A completed entry cannot contain an open break")
        inside = break_end < end_time if strict else break_end <= end_time
        if not inside:
            raise ValidationError("Breaks must be within the work period")


class ManualEntryService:
    """Create, edit and delete entries as one atomic unit with their breaks."""

    def __init__(self, storage: StorageManager):
        self.storage = storage

    def create(
        self,
        user_id: int,
        start_time: Optional[datetime],
        end_time: Optional[datetime],
        breaks: Sequence[BreakDraft] = (),
    ) -> Entry:
        """Create an entry with its breaks.

        Args:
            user_id: Owner of the entry
            start_time: Entry start
            end_time: Entry end, None to create a running entry
            breaks: Breaks to add; drafts flagged deleted are skipped

        Returns:
            Created entry with its breaks

        Raises:
            ValidationError: If a time range is invalid
            ConflictError: If a running entry would duplicate an active one
        """
        kept = [b for b in breaks if not b.is_deleted]
        validate_entry_window(start_time, end_time, [(b.start_time, b.end_time) for b in kept])

        with self.storage.transaction() as repo:
            entry = repo.create_entry(user_id, start_time, end_time)
            for draft in kept:
                repo.create_break(entry.id, draft.start_time, draft.end_time)
            created = repo.get_entry(entry.id, user_id)

        logger.info(f"User {user_id} created entry {created.id} with {len(kept)} breaks")
        return created

    def update(
        self,
        user_id: int,
        entry_id: int,
        start_time: Optional[datetime],
        end_time: Optional[datetime],
        breaks: Sequence[BreakDraft] = (),
    ) -> Entry:
        """Edit an entry and reconcile its breaks.

        Stored breaks not mentioned in ``breaks`` stay as they are. Drafts with
        an id are updated in place or deleted; new drafts are inserted; drafts
        that are both new and deleted are dropped.

        Raises:
            NotFoundOrForbidden: If the entry or a referenced break is not the user's
            ConflictError: If the entry is still running
            ValidationError: If a time range is invalid
        """
        with self.storage.transaction() as repo:
            current = repo.get_entry(entry_id, user_id)
            if current.is_running:
                raise ConflictError("Finish the running session before editing it")

            stored = {b.id: b for b in current.breaks}
            updates: dict[int, BreakDraft] = {}
            deletes: set[int] = set()
            inserts: list[BreakDraft] = []
            for draft in breaks:
                if draft.is_discarded:
                    continue
                if draft.is_new:
                    inserts.append(draft)
                    continue
                if draft.id is None or draft.id not in stored:
                    raise NotFoundOrForbidden("Break not found or access denied")
                if draft.is_deleted:
                    deletes.add(draft.id)
                else:
                    updates[draft.id] = draft

            # Drafts that resubmit a stored break as is count as unchanged.
            updates = {
                break_id: draft
                for break_id, draft in updates.items()
                if (draft.start_time, draft.end_time)
                != (stored[break_id].start_time, stored[break_id].end_time)
            }
            submitted = [(d.start_time, d.end_time) for d in updates.values()]
            submitted.extend((d.start_time, d.end_time) for d in inserts)
            unchanged = [
                (item.start_time, item.end_time)
                for break_id, item in stored.items()
                if break_id not in deletes and break_id not in updates
            ]
            validate_entry_window(start_time, end_time, submitted, unchanged)

            for break_id in deletes:
                repo.delete_break(break_id, user_id)
            # Close breaks before opening any, so at most one is open at each step.
            for break_id, draft in sorted(updates.items(), key=lambda kv: kv[1].end_time is None):
                repo.update_break(break_id, user_id, draft.start_time, draft.end_time)
            repo.update_entry(entry_id, user_id, start_time, end_time)
            for draft in inserts:
                repo.create_break(entry_id, draft.start_time, draft.end_time)
            updated = repo.get_entry(entry_id, user_id)

        logger.info(
            f"User {user_id} edited entry {entry_id}: "
            f"{len(updates)} updated, {len(inserts)} added, {len(deletes)} removed breaks"
        )
        return updated

    def get(self, user_id: int, entry_id: int) -> Entry:
        """Load an entry of the user with its breaks.

        Raises:
            NotFoundOrForbidden: If the entry is not the user's
        """
        with self.storage.transaction() as repo:
            return repo.get_entry(entry_id, user_id)

    def delete(self, user_id: int, entry_id: int) -> None:
        """Delete an entry and its breaks.

        Raises:
            NotFoundOrForbidden: If the entry is not the user's
        """
        with self.storage.transaction() as repo:
            repo.delete_entry(entry_id, user_id)
        logger.info(f"User {user_id} deleted entry {entry_id}")

    def recent(self, user_id: int, limit: int = 10) -> list[Entry]:
        """Most recent entries of a user, newest first."""
        with self.storage.transaction() as repo:
            return repo.recent_entries(user_id, limit)
