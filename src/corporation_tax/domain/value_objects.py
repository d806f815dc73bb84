from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from enum import Enum

from corporation_tax.exceptions import (
    InvalidFormatError,
    InvalidMonthError,
    InvalidRangeError,
    MoneyError,
    MoneyOverflowError,
    PrecisionLossError,
)

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
_SCALE = 100
_WIDE_PRECISION = 60


class JournalRefType(int, Enum):
    """Upstream wallet journal reference types.

    The value is the numeric code stored in the journal table; the wire
    name is the lower-case member name.
    """

    PLAYER_TRADING = 1
    MARKET_TRANSACTION = 2
    GM_CASH_TRANSFER = 3
    MISSION_REWARD = 7
    CLONE_ACTIVATION = 8
    INHERITANCE = 9
    PLAYER_DONATION = 10
    CORPORATION_PAYMENT = 11
    DOCKING_FEE = 12
    OFFICE_RENTAL_FEE = 13
    FACTORY_SLOT_RENTAL_FEE = 14
    REPAIR_BILL = 15
    BOUNTY = 16
    BOUNTY_PRIZE = 17
    INSURANCE = 19
    MISSION_EXPIRATION = 20
    MISSION_COMPLETION = 21
    SHARES = 22
    COURIER_MISSION_ESCROW = 23
    MISSION_COST = 24
    AGENT_MISCELLANEOUS = 25
    LP_STORE = 26
    AGENT_LOCATION_SERVICES = 27
    AGENT_DONATION = 28
    AGENT_SECURITY_SERVICES = 29
    AGENT_MISSION_COLLATERAL_PAID = 30
    AGENT_MISSION_COLLATERAL_REFUNDED = 31
    AGENTS_PREWARD = 32
    AGENT_MISSION_REWARD = 33
    AGENT_MISSION_TIME_BONUS_REWARD = 34
    CSPA = 35
    CSPAOFFLINEREFUND = 36
    CORPORATION_ACCOUNT_WITHDRAWAL = 37
    CORPORATION_DIVIDEND_PAYMENT = 38
    CORPORATION_REGISTRATION_FEE = 39
    CORPORATION_LOGO_CHANGE_COST = 40
    RELEASE_OF_IMPOUNDED_PROPERTY = 41
    MARKET_ESCROW = 42
    AGENT_SERVICES_RENDERED = 43
    MARKET_FINE_PAID = 44
    CORPORATION_LIQUIDATION = 45
    BROKERS_FEE = 46
    CORPORATION_BULK_PAYMENT = 47
    ALLIANCE_REGISTRATION_FEE = 48
    WAR_FEE = 49
    ALLIANCE_MAINTAINANCE_FEE = 50
    CONTRABAND_FINE = 51
    CLONE_TRANSFER = 52
    ACCELERATION_GATE_FEE = 53
    TRANSACTION_TAX = 54
    JUMP_CLONE_INSTALLATION_FEE = 55
    MANUFACTURING = 56
    RESEARCHING_TECHNOLOGY = 57
    RESEARCHING_TIME_PRODUCTIVITY = 58
    RESEARCHING_MATERIAL_PRODUCTIVITY = 59
    COPYING = 60
    REVERSE_ENGINEERING = 62
    CONTRACT_AUCTION_BID = 63
    CONTRACT_AUCTION_BID_REFUND = 64
    CONTRACT_COLLATERAL = 65
    CONTRACT_REWARD_REFUND = 66
    CONTRACT_AUCTION_SOLD = 67
    CONTRACT_REWARD = 68
    CONTRACT_COLLATERAL_REFUND = 69
    CONTRACT_COLLATERAL_PAYOUT = 70
    CONTRACT_PRICE = 71
    CONTRACT_BROKERS_FEE = 72
    CONTRACT_SALES_TAX = 73
    CONTRACT_DEPOSIT = 74
    CONTRACT_DEPOSIT_SALES_TAX = 75
    CONTRACT_AUCTION_BID_CORP = 77
    CONTRACT_COLLATERAL_DEPOSITED_CORP = 78
    CONTRACT_PRICE_PAYMENT_CORP = 79
    CONTRACT_BROKERS_FEE_CORP = 80
    CONTRACT_DEPOSIT_CORP = 81
    CONTRACT_DEPOSIT_REFUND = 82
    CONTRACT_REWARD_DEPOSITED = 83
    CONTRACT_REWARD_DEPOSITED_CORP = 84
    BOUNTY_PRIZES = 85
    ADVERTISEMENT_LISTING_FEE = 86
    MEDAL_CREATION = 87
    MEDAL_ISSUED = 88
    DNA_MODIFICATION_FEE = 90
    SOVEREIGNITY_BILL = 91
    BOUNTY_PRIZE_CORPORATION_TAX = 92
    AGENT_MISSION_REWARD_CORPORATION_TAX = 93
    AGENT_MISSION_TIME_BONUS_REWARD_CORPORATION_TAX = 94
    UPKEEP_ADJUSTMENT_FEE = 95
    PLANETARY_IMPORT_TAX = 96
    PLANETARY_EXPORT_TAX = 97
    PLANETARY_CONSTRUCTION = 98
    CORPORATE_REWARD_PAYOUT = 99
    BOUNTY_SURCHARGE = 101
    CONTRACT_REVERSAL = 102
    CORPORATE_REWARD_TAX = 103
    STORE_PURCHASE = 106
    STORE_PURCHASE_REFUND = 107
    DATACORE_FEE = 112
    WAR_FEE_SURRENDER = 113
    WAR_ALLY_CONTRACT = 114
    BOUNTY_REIMBURSEMENT = 115
    KILL_RIGHT_FEE = 116
    SECURITY_PROCESSING_FEE = 117
    INDUSTRY_JOB_TAX = 120
    INFRASTRUCTURE_HUB_MAINTENANCE = 122
    ASSET_SAFETY_RECOVERY_TAX = 123
    OPPORTUNITY_REWARD = 124
    PROJECT_DISCOVERY_REWARD = 125
    PROJECT_DISCOVERY_TAX = 126
    REPROCESSING_TAX = 127
    JUMP_CLONE_ACTIVATION_FEE = 128
    OPERATION_BONUS = 129
    RESOURCE_WARS_REWARD = 131
    DUEL_WAGER_ESCROW = 132
    DUEL_WAGER_PAYMENT = 133
    DUEL_WAGER_REFUND = 134
    REACTION = 135
    EXTERNAL_TRADE_FREEZE = 136
    EXTERNAL_TRADE_THAW = 137
    EXTERNAL_TRADE_DELIVERY = 138
    SEASON_CHALLENGE_REWARD = 139
    SKILL_PURCHASE = 141
    ITEM_TRADER_PAYMENT = 142
    FLUX_TICKET_SALE = 143
    FLUX_PAYOUT = 144
    FLUX_TAX = 145
    FLUX_TICKET_REPAYMENT = 146
    REDEEMED_ISK_TOKEN = 147
    DAILY_CHALLENGE_REWARD = 148
    MARKET_PROVIDER_TAX = 149
    ESS_ESCROW_TRANSFER = 155
    MILESTONE_REWARD_PAYMENT = 156
    UNDER_CONSTRUCTION = 166
    ALLIGNMENT_BASED_GATE_TOLL = 168
    PROJECT_PAYOUTS = 170
    INSURGENCY_CORRUPTION_CONTRIBUTION_REWARD = 172
    INSURGENCY_SUPPRESSION_CONTRIBUTION_REWARD = 173
    DAILY_GOAL_PAYOUTS = 174
    DAILY_GOAL_PAYOUTS_TAX = 175
    COSMETIC_MARKET_COMPONENT_ITEM_PURCHASE = 178
    COSMETIC_MARKET_SKIN_SALE_BROKER_FEE = 179
    COSMETIC_MARKET_SKIN_PURCHASE = 180
    COSMETIC_MARKET_SKIN_SALE = 181
    COSMETIC_MARKET_SKIN_SALE_TAX = 182
    COSMETIC_MARKET_SKIN_TRANSACTION = 183
    SKYHOOK_CLAIM_FEE = 184
    AIR_CAREER_PROGRAM_REWARD = 185
    FREELANCE_JOBS_DURATION_FEE = 186
    FREELANCE_JOBS_BROADCASTING_FEE = 187
    FREELANCE_JOBS_REWARD_ESCROW = 188
    FREELANCE_JOBS_REWARD = 189
    FREELANCE_JOBS_ESCROW_REFUND = 190
    FREELANCE_JOBS_REWARD_CORPORATION_TAX = 191
    GM_PLEX_FEE_REFUND = 192

    @property
    def wire_name(self) -> str:
        return self.name.lower()

    @property
    def display_name(self) -> str:
        return self.name.replace("_", " ").title()

    @classmethod
    def from_wire(cls, name: str) -> "JournalRefType":
        try:
            return cls[name.upper()]
        except KeyError:
            raise ValueError(f"Unknown journal ref_type: {name}") from None

    @classmethod
    def from_code(cls, code: int) -> "JournalRefType":
        try:
            return cls(code)
        except ValueError:
            raise ValueError(f"Unknown journal ref_type code: {code}") from None


class ContextIdType(int, Enum):
    STRUCTURE_ID = 1
    STATION_ID = 2
    MARKET_TRANSACTION_ID = 3
    CHARACTER_ID = 4
    CORPORATION_ID = 5
    ALLIANCE_ID = 6
    EVE_SYSTEM = 7
    INDUSTRY_JOB_ID = 8
    CONTRACT_ID = 9
    PLANET_ID = 10
    SYSTEM_ID = 11
    TYPE_ID = 12

    @property
    def wire_name(self) -> str:
        return self.name.lower()

    @classmethod
    def from_wire(cls, name: str) -> "ContextIdType":
        try:
            return cls[name.upper()]
        except KeyError:
            raise ValueError(f"Unknown context_id_type: {name}") from None


class ActorKind(str, Enum):
    INDIVIDUAL = "individual"
    ORGANIZATION = "organization"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class ActorRef:
    """Outcome of resolving a party id against the actor registries."""

    kind: ActorKind
    actor_id: int

    @classmethod
    def individual(cls, actor_id: int) -> "ActorRef":
        return cls(ActorKind.INDIVIDUAL, actor_id)

    @classmethod
    def organization(cls, actor_id: int) -> "ActorRef":
        return cls(ActorKind.ORGANIZATION, actor_id)

    @classmethod
    def unknown(cls, actor_id: int) -> "ActorRef":
        return cls(ActorKind.UNKNOWN, actor_id)

    @property
    def is_known(self) -> bool:
        return self.kind is not ActorKind.UNKNOWN


@dataclass(frozen=True, slots=True, order=True)
class Money:
    """Exact amount with two fractional digits, held as a scaled integer.

    ``Money(12723)`` is 127.23. The scaled value must fit a signed 64-bit
    integer, which is also how it is stored.
    """

    cents: int

    def __post_init__(self) -> None:
        if isinstance(self.cents, bool) or not isinstance(self.cents, int):
            raise TypeError(f"Money expects a scaled int, got {self.cents!r}")
        if not INT64_MIN <= self.cents <= INT64_MAX:
            raise MoneyOverflowError(self.cents)

    @classmethod
    def from_decimal(cls, value: Decimal | str | int) -> "Money":
        """Build from a decimal form such as ``Decimal("127.23")`` or ``"127.23"``.

        Raises:
            PrecisionLossError: If the value has more than two fractional digits.
            MoneyError: If the value is not a finite number.
        """
        try:
            amount = value if isinstance(value, Decimal) else Decimal(str(value))
        except InvalidOperation:
            raise MoneyError(f"Invalid amount: {value!r}") from None
        if not amount.is_finite():
            raise MoneyError(f"Invalid amount: {value!r}")

        with localcontext() as ctx:
            ctx.prec = _WIDE_PRECISION
            scaled = amount * _SCALE
            if scaled != scaled.to_integral_value():
                raise PrecisionLossError(str(value))
            return cls(int(scaled))

    @classmethod
    def zero(cls) -> "Money":
        return cls(0)

    @classmethod
    def total(cls, amounts: Iterable["Money"]) -> "Money":
        result = cls.zero()
        for amount in amounts:
            result = result + amount
        return result

    def to_decimal(self) -> Decimal:
        return Decimal(self.cents).scaleb(-2)

    def to_float(self) -> float:
        """Lossy conversion for display and spreadsheet cells only."""
        return float(self.to_decimal())

    def multiply(self, rate: Decimal | int | str) -> "Money":
        """Multiply by a non-negative rate, rounding half-up to the cent."""
        factor = rate if isinstance(rate, Decimal) else Decimal(str(rate))
        if not factor.is_finite() or factor < 0:
            raise MoneyError(f"Rate must be a non-negative number, got {rate!r}")
        with localcontext() as ctx:
            ctx.prec = _WIDE_PRECISION
            product = (Decimal(self.cents) * factor).quantize(
                Decimal(1), rounding=ROUND_HALF_UP
            )
        return Money(int(product))

    def __add__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.cents + other.cents)

    def __sub__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.cents - other.cents)

    def __mul__(self, rate: Decimal | int) -> "Money":
        if isinstance(rate, Money):
            return NotImplemented
        return self.multiply(rate)

    __rmul__ = __mul__

    def __neg__(self) -> "Money":
        return Money(-self.cents)

    def __str__(self) -> str:
        return str(self.to_decimal())

    @property
    def is_zero(self) -> bool:
        return self.cents == 0

    @property
    def is_positive(self) -> bool:
        return self.cents > 0

    @property
    def is_negative(self) -> bool:
        return self.cents < 0


@dataclass(frozen=True, slots=True, order=True)
class Period:
    """A calendar month, ordered by (year, month)."""

    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise InvalidMonthError(self.month)

    @classmethod
    def parse(cls, text: str) -> "Period":
        """Parse the canonical ``YYYY-MM`` form.

        The separator is the last dash, so negative years such as
        ``-0044-03`` parse as well.
        """
        year_str, sep, month_str = text.strip().rpartition("-")
        if not sep or not year_str or not month_str:
            raise InvalidFormatError(text)
        try:
            year = int(year_str)
            month = int(month_str)
        except ValueError:
            raise InvalidFormatError(text) from None
        return cls(year, month)

    def add_months(self, months: int) -> "Period":
        year, month_index = divmod(self.year * 12 + self.month - 1 + months, 12)
        return Period(year, month_index + 1)

    def lower_bound(self) -> datetime:
        """First instant of the month (inclusive), UTC."""
        try:
            return datetime(self.year, self.month, 1, tzinfo=UTC)
        except (ValueError, OverflowError):
            raise InvalidRangeError(
                f"Period {self} has no calendar bound",
                context={"year": self.year, "month": self.month},
            ) from None

    def upper_bound(self) -> datetime:
        """First instant of the following month (exclusive), UTC."""
        return self.add_months(1).lower_bound()

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


class PeriodRange:
    """Inclusive run of consecutive periods; iterating twice restarts it.

    Raises:
        InvalidRangeError: If start is after end.
    """

    __slots__ = ("start", "end")

    def __init__(self, start: Period, end: Period) -> None:
        if start > end:
            raise InvalidRangeError(
                f"Period range start {start} is after end {end}",
                context={"start": str(start), "end": str(end)},
            )
        self.start = start
        self.end = end

    def __iter__(self) -> Iterator[Period]:
        current = self.start
        while current <= self.end:
            yield current
            current = current.add_months(1)

    def __len__(self) -> int:
        return (self.end.year - self.start.year) * 12 + (
            self.end.month - self.start.month
        ) + 1

    def __contains__(self, period: object) -> bool:
        return isinstance(period, Period) and self.start <= period <= self.end

    def __repr__(self) -> str:
        return f"PeriodRange({self.start}, {self.end})"


__all__ = [
    "ActorKind",
    "ActorRef",
    "ContextIdType",
    "JournalRefType",
    "Money",
    "Period",
    "PeriodRange",
]
