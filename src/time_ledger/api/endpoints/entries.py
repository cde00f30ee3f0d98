"""Entry endpoints for manual creation, editing and deletion."""

from fastapi import APIRouter, Depends, Query, status  # type: ignore[import-untyped]

from time_ledger.api.auth import get_current_user
from time_ledger.api.dependencies import get_service, unwrap
from time_ledger.api.models import CreateEntryRequest, EntryResponse, UpdateEntryRequest
from time_ledger.service import TimeLedgerService

router = APIRouter()


@router.get("", response_model=list[EntryResponse])
async def list_entries(
    limit: int = Query(10, ge=1, le=1000, description="Maximum number of entries to return"),
    service: TimeLedgerService = Depends(get_service),
    user_id: int = Depends(get_current_user),
) -> list[EntryResponse]:
    """Most recent entries, newest first.

    Example:
        >>> GET /api/v1/entries?limit=5
    """
    entries = unwrap(service.recent_entries(user_id, limit))
    return [EntryResponse.from_entry(e) for e in entries]


@router.post("", response_model=EntryResponse, status_code=status.HTTP_201_CREATED)
async def create_entry(
    request: CreateEntryRequest,
    service: TimeLedgerService = Depends(get_service),
    user_id: int = Depends(get_current_user),
) -> EntryResponse:
    """Create an entry with its breaks.

    Example:
        >>> POST /api/v1/entries
        {
            "start_time": "2025-11-16T09:00:00",
            "end_time": "2025-11-16T17:00:00",
            "breaks": [{"start_time": "2025-11-16T12:00:00", "end_time": "2025-11-16T13:00:00"}]
        }
    """
    entry = unwrap(
        service.create_entry(
            user_id,
            request.start_time,
            request.end_time,
            [b.to_draft() for b in request.breaks],
        )
    )
    return EntryResponse.from_entry(entry)


@router.get("/{entry_id}", response_model=EntryResponse)
async def get_entry(
    entry_id: int,
    service: TimeLedgerService = Depends(get_service),
    user_id: int = Depends(get_current_user),
) -> EntryResponse:
    """Get one entry with its breaks."""
    return EntryResponse.from_entry(unwrap(service.get_entry(user_id, entry_id)))


@router.put("/{entry_id}", response_model=EntryResponse)
async def update_entry(
    entry_id: int,
    request: UpdateEntryRequest,
    service: TimeLedgerService = Depends(get_service),
    user_id: int = Depends(get_current_user),
) -> EntryResponse:
    """Edit a completed entry and reconcile its breaks.

    Breaks with ``is_new`` are inserted, breaks with an ``id`` and
    ``is_deleted`` are removed, other breaks with an ``id`` are updated.
    """
    entry = unwrap(
        service.update_entry(
            user_id,
            entry_id,
            request.start_time,
            request.end_time,
            [b.to_draft() for b in request.breaks],
        )
    )
    return EntryResponse.from_entry(entry)


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_entry(
    entry_id: int,
    service: TimeLedgerService = Depends(get_service),
    user_id: int = Depends(get_current_user),
) -> None:
    """Delete an entry and its breaks."""
    unwrap(service.delete_entry(user_id, entry_id))
