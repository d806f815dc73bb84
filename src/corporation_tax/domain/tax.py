"""Tax reference data and computed accrual rows."""

from dataclasses import dataclass, field
from decimal import Decimal

from corporation_tax.domain.value_objects import Money, Period
from corporation_tax.exceptions import InvalidTaxParametersError, PrecisionLossError


def points_from_scaled(scaled: int) -> Decimal:
    """Performance points are stored in hundredths of a point."""
    return Decimal(scaled).scaleb(-2)


def points_to_scaled(points: Decimal | int | str) -> int:
    value = points if isinstance(points, Decimal) else Decimal(str(points))
    if not value.is_finite():
        raise InvalidTaxParametersError("performance points", points)
    scaled = value.scaleb(2)
    if scaled != scaled.to_integral_value():
        raise PrecisionLossError(str(points))
    return int(scaled)


@dataclass(frozen=True, slots=True)
class TaxParameters:
    """Per-period tax settings.

    ``performance_rate`` is charged per point of shortfall below
    ``performance_standard``. Neither charge may be negative.

    Raises:
        InvalidTaxParametersError: On a negative flat charge or rate, or a
            standard that is not a finite number.
    """

    period: Period
    flat_charge: Money
    performance_rate: Money
    performance_standard: Decimal

    def __post_init__(self) -> None:
        if not isinstance(self.performance_standard, Decimal):
            object.__setattr__(
                self, "performance_standard", Decimal(str(self.performance_standard))
            )
        if self.flat_charge.is_negative:
            raise InvalidTaxParametersError("flat charge", self.flat_charge)
        if self.performance_rate.is_negative:
            raise InvalidTaxParametersError("performance rate", self.performance_rate)
        if not self.performance_standard.is_finite():
            raise InvalidTaxParametersError(
                "performance standard", self.performance_standard
            )


@dataclass(frozen=True, slots=True)
class TaxableFlags:
    flat: bool = False
    performance: bool = False

    @classmethod
    def none(cls) -> "TaxableFlags":
        return cls(False, False)

    @property
    def any(self) -> bool:
        return self.flat or self.performance


@dataclass(frozen=True, slots=True)
class PerformanceScore:
    character_id: int
    period: Period
    points: Decimal

    def __post_init__(self) -> None:
        if not isinstance(self.points, Decimal):
            object.__setattr__(self, "points", Decimal(str(self.points)))


@dataclass(frozen=True, slots=True)
class Liability:
    flat_charge: Money = field(default_factory=Money.zero)
    performance_charge: Money = field(default_factory=Money.zero)

    @property
    def total(self) -> Money:
        return self.flat_charge + self.performance_charge


@dataclass(frozen=True, slots=True)
class MonthlyTax:
    """One user's accrual row for a single period."""

    period: Period
    flat_charge: Money
    performance_charge: Money
    amount_paid: Money

    @property
    def amount_due(self) -> Money:
        return self.flat_charge + self.performance_charge

    @property
    def balance(self) -> Money:
        return self.amount_due - self.amount_paid


@dataclass
class UserTaxSummary:
    user_id: int
    display_name: str
    rows: list[MonthlyTax] = field(default_factory=list)

    @property
    def total_due(self) -> Money:
        return Money.total(row.amount_due for row in self.rows)

    @property
    def total_paid(self) -> Money:
        return Money.total(row.amount_paid for row in self.rows)

    @property
    def unpaid_total(self) -> Money:
        """Negative when the user has overpaid (a credit)."""
        return self.total_due - self.total_paid
