"""Share tokens granting read-only access to a report query."""

import logging
import secrets
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Optional

from time_ledger.analysis.reports import ReportAggregator, ReportData
from time_ledger.core.clock import Clock, SystemClock
from time_ledger.core.errors import ConflictError, ExpiredError, ValidationError
from time_ledger.core.models import ReportType, SharedReport
from time_ledger.core.storage import StorageManager

logger = logging.getLogger(__name__)

MIN_TOKEN_BYTES = 8


@dataclass
class SharedReportView:
    """A resolved share: the stored query plus freshly computed data."""

    report: SharedReport
    data: ReportData

    def to_dict(self) -> dict[str, Any]:
        return {"report": self.report.to_dict(), "report_data": self.data.to_dict()}


class ShareTokenIssuer:
    """Issue, resolve and revoke share tokens.

    Reports behind a token are computed on every resolve, so a share shows
    live data until it expires.
    """

    def __init__(
        self,
        storage: StorageManager,
        aggregator: Optional[ReportAggregator] = None,
        clock: Optional[Clock] = None,
        token_bytes: int = MIN_TOKEN_BYTES,
        max_attempts: int = 3,
    ):
        """Initialize share token issuer.

        Args:
            storage: Open storage manager
            aggregator: Report aggregator used on resolve
            clock: Time source for expiry. Defaults to system time
            token_bytes: Random bytes per token (at least 8)
            max_attempts: Insert attempts before giving up on token collisions
        """
        self.storage = storage
        self.clock = clock or SystemClock()
        self.aggregator = aggregator or ReportAggregator(storage, self.clock)
        self.token_bytes = max(MIN_TOKEN_BYTES, token_bytes)
        self.max_attempts = max(1, max_attempts)

    def _new_token(self) -> str:
        return secrets.token_hex(self.token_bytes)

    def issue(
        self,
        user_id: int,
        report_type: ReportType,
        start_date: date,
        end_date: date,
        expires_in_days: Optional[int] = None,
    ) -> SharedReport:
        """Create a share for a report query.

        Args:
            user_id: Owner of the report
            report_type: Report granularity label
            start_date: First day of the report
            end_date: Last day of the report
            expires_in_days: Days until expiry; 0 or less never expires; None
                uses the user's default share duration

        Returns:
            Stored shared report with its token

        Raises:
            ValidationError: If sharing is disabled or the range is reversed
        """
        if end_date < start_date:
            raise ValidationError("Report end date must not be before its start date")

        with self.storage.transaction() as repo:
            settings = repo.get_settings(user_id)
        if not settings.allow_sharing:
            raise ValidationError("Report sharing is disabled in your settings")

        days = settings.share_duration_days if expires_in_days is None else expires_in_days
        expires_at = self.clock.now() + timedelta(days=days) if days > 0 else None

        for attempt in range(1, self.max_attempts + 1):
            try:
                with self.storage.transaction() as repo:
                    shared = repo.create_shared_report(
                        user_id, self._new_token(), report_type, start_date, end_date, expires_at
                    )
            except ConflictError:
                logger.warning(f"Share token collision (attempt {attempt})")
                if attempt == self.max_attempts:
                    raise
                continue
            logger.info(f"User {user_id} shared {report_type.value} report {shared.id}")
            return shared

        raise ConflictError("Could not allocate a share token")

    def resolve(self, share_token: str) -> SharedReportView:
        """Look up a share and compute its report.

        Raises:
            NotFoundOrForbidden: If the token is unknown
            ExpiredError: If the share has expired
        """
        with self.storage.transaction() as repo:
            shared = repo.get_shared_report_by_token(share_token)

        if shared.is_expired(self.clock.now()):
            raise ExpiredError("Shared report has expired")

        data = self.aggregator.generate(
            shared.user_id, shared.start_date, shared.end_date, shared.report_type
        )
        return SharedReportView(report=shared, data=data)

    def revoke(self, share_token: str, user_id: int) -> None:
        """Delete a share immediately.

        Raises:
            NotFoundOrForbidden: If the token is unknown or not the user's
        """
        with self.storage.transaction() as repo:
            shared = repo.get_shared_report_by_token(share_token)
            repo.delete_shared_report(shared.id, user_id)
        logger.info(f"User {user_id} revoked shared report {shared.id}")

    def list(self, user_id: int) -> list[SharedReport]:
        """Shares of a user, newest first."""
        with self.storage.transaction() as repo:
            return repo.list_shared_reports(user_id)
