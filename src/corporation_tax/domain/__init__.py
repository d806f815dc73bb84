from corporation_tax.domain.actors import Character, Corporation, User
from corporation_tax.domain.journal import LedgerEntry
from corporation_tax.domain.tax import (
    Liability,
    MonthlyTax,
    PerformanceScore,
    TaxableFlags,
    TaxParameters,
    UserTaxSummary,
)
from corporation_tax.domain.value_objects import (
    ActorKind,
    ActorRef,
    ContextIdType,
    JournalRefType,
    Money,
    Period,
    PeriodRange,
)

__all__ = [
    "ActorKind",
    "ActorRef",
    "Character",
    "ContextIdType",
    "Corporation",
    "JournalRefType",
    "LedgerEntry",
    "Liability",
    "Money",
    "MonthlyTax",
    "PerformanceScore",
    "Period",
    "PeriodRange",
    "TaxableFlags",
    "TaxParameters",
    "User",
    "UserTaxSummary",
]
