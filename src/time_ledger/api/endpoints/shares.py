"""Share token endpoints.

``router`` manages the caller's shares; ``public_router`` serves shared
reports to anyone holding a token.
"""

from fastapi import APIRouter, Depends, status  # type: ignore[import-untyped]

from time_ledger.api.auth import get_current_user
from time_ledger.api.dependencies import get_service, unwrap
from time_ledger.api.models import CreateShareRequest, SharedReportResponse, SharedReportViewResponse
from time_ledger.service import TimeLedgerService

router = APIRouter()
public_router = APIRouter()


@router.get("", response_model=list[SharedReportResponse])
async def list_shares(
    service: TimeLedgerService = Depends(get_service),
    user_id: int = Depends(get_current_user),
) -> list[SharedReportResponse]:
    """The caller's shared reports, newest first."""
    return [SharedReportResponse.from_shared(s) for s in unwrap(service.list_shares(user_id))]


@router.post("", response_model=SharedReportResponse, status_code=status.HTTP_201_CREATED)
async def create_share(
    request: CreateShareRequest,
    service: TimeLedgerService = Depends(get_service),
    user_id: int = Depends(get_current_user),
) -> SharedReportResponse:
    """Issue a share token for a report query.

    Example:
        >>> POST /api/v1/shares
        {"report_type": "weekly", "expires_in_days": 7}
    """
    shared = unwrap(
        service.share_report(
            user_id,
            request.report_type,
            request.start_date,
            request.end_date,
            request.expires_in_days,
        )
    )
    return SharedReportResponse.from_shared(shared)


@router.delete("/{share_token}", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_share(
    share_token: str,
    service: TimeLedgerService = Depends(get_service),
    user_id: int = Depends(get_current_user),
) -> None:
    """Revoke a share token immediately."""
    unwrap(service.revoke_share(user_id, share_token))


@public_router.get("/{share_token}", response_model=SharedReportViewResponse)
async def view_shared_report(
    share_token: str,
    service: TimeLedgerService = Depends(get_service),
) -> SharedReportViewResponse:
    """Live report behind a share token.

    Note:
        This endpoint is public. Unknown tokens give 404, expired ones 410.
    """
    return SharedReportViewResponse.from_view(unwrap(service.resolve_share(share_token)))
