"""Error taxonomy and the uniform result returned to presentation layers."""

from dataclasses import dataclass
from typing import Any, Optional


class TimeLedgerError(Exception):
    """Base class for all classified core failures.

    Attributes:
        kind: Machine-readable error kind
        message: User-displayable message
    """

    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TimeLedgerError):
    """Bad input shape or time range (e.g. end before start)."""

    kind = "validation"


class NotFoundOrForbidden(TimeLedgerError):
    """Entity is missing or not owned by the caller.

    Both cases share one error so that callers cannot learn whether it exists.
    """

    kind = "not_found"


class ConflictError(TimeLedgerError):
    """The operation would violate a work-session invariant."""

    kind = "conflict"


class ExpiredError(TimeLedgerError):
    """A share token is past its expiration."""

    kind = "expired"


class PersistenceError(TimeLedgerError):
    """Underlying storage failure. The message is always generic."""

    kind = "persistence"


@dataclass
class Result:
    """Outcome of a core operation: ``{success, data}`` or ``{success, error}``."""

    success: bool
    data: Any = None
    error: Optional[str] = None
    error_kind: Optional[str] = None

    @classmethod
    def ok(cls, data: Any = None) -> "Result":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, kind: str = TimeLedgerError.kind) -> "Result":
        return cls(success=False, error=error, error_kind=kind)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire shape used by presentation layers."""
        if self.success:
            return {"success": True, "data": self.data}
        return {"success": False, "error": self.error}
