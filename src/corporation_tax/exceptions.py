"""Domain exception hierarchy for Corporation Tax.

All domain-specific exceptions inherit from CorporationTaxError.
This allows catching all application errors with a single base class
while preserving specificity for individual error types.
"""

from typing import Any


class CorporationTaxError(Exception):
    """Base exception for all Corporation Tax errors.

    Includes an error_code for machine-readable output and extra context.
    """

    error_code: str = "CT_ERROR"

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for structured output."""
        return {
            "error": self.error_code,
            "message": self.message,
            "context": self.context,
        }


# =============================================================================
# Period Errors
# =============================================================================


class PeriodError(CorporationTaxError, ValueError):
    """Base exception for calendar period errors."""

    error_code = "PERIOD_ERROR"


class InvalidMonthError(PeriodError):
    """Raised when a month falls outside 1..12."""

    error_code = "INVALID_MONTH"

    def __init__(self, month: int) -> None:
        super().__init__(f"Invalid month: {month}", context={"month": month})


class InvalidFormatError(PeriodError):
    """Raised when a period string is not of the form YYYY-MM."""

    error_code = "INVALID_FORMAT"

    def __init__(self, text: str) -> None:
        super().__init__(
            f"Illegal period format: {text!r} (expected YYYY-MM)",
            context={"text": text},
        )


class InvalidRangeError(PeriodError):
    """Raised when a period range is reversed or cannot be bounded."""

    error_code = "INVALID_RANGE"


# =============================================================================
# Money Errors
# =============================================================================


class MoneyError(CorporationTaxError, ValueError):
    """Base exception for fixed-point money errors."""

    error_code = "MONEY_ERROR"


class PrecisionLossError(MoneyError):
    """Raised when an amount carries more than two fractional digits."""

    error_code = "PRECISION_LOSS"

    def __init__(self, value: str) -> None:
        super().__init__(
            f"Amount {value} has more than 2 fractional digits",
            context={"value": value},
        )


class MoneyOverflowError(MoneyError):
    """Raised when a scaled amount leaves the signed 64-bit range."""

    error_code = "MONEY_OVERFLOW"

    def __init__(self, scaled: int) -> None:
        super().__init__(
            f"Scaled amount {scaled} overflows a signed 64-bit integer",
            context={"scaled": str(scaled)},
        )


# =============================================================================
# Classification Errors
# =============================================================================


class ClassificationError(CorporationTaxError):
    """Base exception for journal entry attribution errors."""

    error_code = "CLASSIFICATION_ERROR"


class MissingPartyError(ClassificationError):
    """Raised when a rule needs a party id the entry does not carry."""

    error_code = "MISSING_PARTY"

    def __init__(self, entry_id: int, ref_type: str, slot: str) -> None:
        super().__init__(
            f"Journal entry {entry_id} ({ref_type}) has no {slot} party",
            context={"entry_id": entry_id, "ref_type": ref_type, "slot": slot},
        )


class UnresolvedActorError(ClassificationError):
    """Raised when an id is neither a known character nor a corporation."""

    error_code = "UNRESOLVED_ACTOR"

    def __init__(self, actor_id: int, kind: str = "actor") -> None:
        super().__init__(
            f"Unknown {kind} id: {actor_id}",
            context={"actor_id": actor_id, "kind": kind},
        )


# =============================================================================
# Accrual Errors
# =============================================================================


class AccrualError(CorporationTaxError):
    """Base exception for tax accrual errors."""

    error_code = "ACCRUAL_ERROR"


class MissingTaxParametersError(AccrualError):
    """Raised when no tax parameters are configured for a period."""

    error_code = "MISSING_TAX_PARAMETERS"

    def __init__(self, year: int, month: int) -> None:
        super().__init__(
            f"No tax parameters found, year:{year}, month:{month}",
            context={"year": year, "month": month},
        )


class InvalidTaxParametersError(AccrualError, ValueError):
    """Raised when tax parameters or performance points are out of range."""

    error_code = "INVALID_TAX_PARAMETERS"

    def __init__(self, field: str, value: Any) -> None:
        super().__init__(
            f"Invalid {field}: {value}",
            context={"field": field, "value": str(value)},
        )


# =============================================================================
# Store Errors
# =============================================================================


class RepositoryError(CorporationTaxError):
    """Base exception for persistent store errors."""

    error_code = "REPOSITORY_ERROR"


class NotFoundError(RepositoryError):
    """Raised when a required record does not exist."""

    error_code = "NOT_FOUND"

    def __init__(self, kind: str, key: Any) -> None:
        super().__init__(
            f"{kind} not found: {key}", context={"kind": kind, "key": str(key)}
        )


class ConflictError(RepositoryError):
    """Raised when a write collides with an existing record."""

    error_code = "CONFLICT"

    def __init__(self, kind: str, key: Any) -> None:
        super().__init__(
            f"{kind} already exists: {key}", context={"kind": kind, "key": str(key)}
        )


# =============================================================================
# Ledger Source Errors
# =============================================================================


class LedgerFetchError(CorporationTaxError):
    """Raised when the ledger source answers with a non-success status."""

    error_code = "LEDGER_FETCH_ERROR"

    def __init__(
        self, operation: str, detail: str, status_code: int | None = None
    ) -> None:
        super().__init__(
            f"{operation}: {detail}",
            context={"operation": operation, "status_code": status_code},
        )
        self.status_code = status_code
