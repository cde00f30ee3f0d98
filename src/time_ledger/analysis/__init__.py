"""Reports and report sharing."""

from time_ledger.analysis.reports import ReportAggregator, ReportData, ReportRenderer
from time_ledger.analysis.sharing import SharedReportView, ShareTokenIssuer

__all__ = ["ReportAggregator", "ReportData", "ReportRenderer", "ShareTokenIssuer", "SharedReportView"]
