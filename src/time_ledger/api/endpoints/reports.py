"""Report endpoints."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query  # type: ignore[import-untyped]

from time_ledger.api.auth import get_current_user
from time_ledger.api.dependencies import get_service, unwrap
from time_ledger.api.models import ReportResponse
from time_ledger.core.models import ReportType
from time_ledger.service import TimeLedgerService

router = APIRouter()


@router.get("", response_model=ReportResponse)
async def get_report(
    report_type: ReportType = Query(ReportType.DAILY, description="daily, weekly or monthly"),
    from_date: Optional[date] = Query(None, description="Start date (YYYY-MM-DD)"),
    to_date: Optional[date] = Query(None, description="End date (YYYY-MM-DD)"),
    service: TimeLedgerService = Depends(get_service),
    user_id: int = Depends(get_current_user),
) -> ReportResponse:
    """Report of completed entries over a date range.

    Missing dates default to the current day, week or month of the
    report type in the user's timezone.

    Example:
        >>> GET /api/v1/reports?report_type=weekly&from_date=2025-11-10&to_date=2025-11-16
    """
    report = unwrap(service.generate_report(user_id, report_type, from_date, to_date))
    return ReportResponse.from_report(report)
