"""Dependency injection for FastAPI endpoints.

The application keeps one open :class:`TimeLedgerService` and its
:class:`ConfigManager` in ``app.state``; endpoints receive them through
these functions.
"""

from typing import Any, NoReturn

from fastapi import HTTPException, Request, status  # type: ignore[import-untyped]

from time_ledger.core.config import ConfigManager
from time_ledger.core.errors import Result
from time_ledger.service import TimeLedgerService

STATUS_BY_KIND = {
    "validation": status.HTTP_400_BAD_REQUEST,
    "not_found": status.HTTP_404_NOT_FOUND,
    "conflict": status.HTTP_409_CONFLICT,
    "expired": status.HTTP_410_GONE,
    "persistence": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_config(request: Request) -> ConfigManager:
    """Configuration manager stored on the application."""
    config: ConfigManager = request.app.state.config
    return config


def get_service(request: Request) -> TimeLedgerService:
    """Ledger service stored on the application."""
    service: TimeLedgerService = request.app.state.service
    return service


def raise_for_result(result: Result) -> NoReturn:
    """Raise the HTTP error matching a failed result's kind."""
    code = STATUS_BY_KIND.get(result.error_kind or "", status.HTTP_500_INTERNAL_SERVER_ERROR)
    raise HTTPException(status_code=code, detail=result.error)


def unwrap(result: Result) -> Any:
    """Data of a successful result.

    Raises:
        HTTPException: With the status code of the failure kind
    """
    if not result.success:
        raise_for_result(result)
    return result.data
