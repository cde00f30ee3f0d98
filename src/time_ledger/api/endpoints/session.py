"""Work session endpoints: clock in, breaks and clock out."""

from fastapi import APIRouter, Depends, status  # type: ignore[import-untyped]

from time_ledger.api.auth import get_current_user
from time_ledger.api.dependencies import get_service, unwrap
from time_ledger.api.models import BreakResponse, EntryResponse, SessionStateResponse
from time_ledger.service import TimeLedgerService

router = APIRouter()


@router.get("", response_model=SessionStateResponse)
async def get_session(
    service: TimeLedgerService = Depends(get_service),
    user_id: int = Depends(get_current_user),
) -> SessionStateResponse:
    """Current session state with live elapsed, break and worked time.

    Example:
        >>> GET /api/v1/session
        {"state": "working", "worked_ms": 5400000, "worked_display": "1h 30m", ...}
    """
    return SessionStateResponse.from_state(unwrap(service.get_active_state(user_id)))


@router.post("/start", response_model=EntryResponse, status_code=status.HTTP_201_CREATED)
async def start_session(
    service: TimeLedgerService = Depends(get_service),
    user_id: int = Depends(get_current_user),
) -> EntryResponse:
    """Clock in. Fails with 409 if a session is already active."""
    return EntryResponse.from_entry(unwrap(service.start(user_id)))


@router.post("/break", response_model=BreakResponse, status_code=status.HTTP_201_CREATED)
async def start_break(
    service: TimeLedgerService = Depends(get_service),
    user_id: int = Depends(get_current_user),
) -> BreakResponse:
    """Start a break. Fails with 409 when idle or already on break."""
    return BreakResponse.from_break(unwrap(service.start_break(user_id)))


@router.post("/resume", response_model=BreakResponse)
async def end_break(
    service: TimeLedgerService = Depends(get_service),
    user_id: int = Depends(get_current_user),
) -> BreakResponse:
    """End the open break. Fails with 409 when not on break."""
    return BreakResponse.from_break(unwrap(service.end_break(user_id)))


@router.post("/end", response_model=EntryResponse)
async def end_session(
    service: TimeLedgerService = Depends(get_service),
    user_id: int = Depends(get_current_user),
) -> EntryResponse:
    """Clock out, closing any open break at the same instant."""
    return EntryResponse.from_entry(unwrap(service.end(user_id)))
