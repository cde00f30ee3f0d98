"""User settings endpoints."""

from fastapi import APIRouter, Depends  # type: ignore[import-untyped]

from time_ledger.api.auth import get_current_user
from time_ledger.api.dependencies import get_service, unwrap
from time_ledger.api.models import SettingsResponse, UpdateSettingsRequest
from time_ledger.service import TimeLedgerService

router = APIRouter()


@router.get("", response_model=SettingsResponse)
async def get_settings(
    service: TimeLedgerService = Depends(get_service),
    user_id: int = Depends(get_current_user),
) -> SettingsResponse:
    """The caller's settings, created with defaults on first read."""
    return SettingsResponse(**unwrap(service.get_settings(user_id)).to_dict())


@router.patch("", response_model=SettingsResponse)
async def update_settings(
    request: UpdateSettingsRequest,
    service: TimeLedgerService = Depends(get_service),
    user_id: int = Depends(get_current_user),
) -> SettingsResponse:
    """Change only the fields present in the request.

    Example:
        >>> PATCH /api/v1/settings
        {"timezone": "America/Sao_Paulo", "share_duration_days": 30}
    """
    settings = unwrap(service.update_settings(user_id, request.present_fields()))
    return SettingsResponse(**settings.to_dict())
