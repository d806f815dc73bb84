from corporation_tax.domain.actors import Character, Corporation, User
from corporation_tax.domain.journal import LedgerEntry
from corporation_tax.domain.value_objects import (
    ActorKind,
    ActorRef,
    JournalRefType,
    Money,
    Period,
    PeriodRange,
)

__all__ = [
    "ActorKind",
    "ActorRef",
    "Character",
    "Corporation",
    "JournalRefType",
    "LedgerEntry",
    "Money",
    "Period",
    "PeriodRange",
    "User",
]

__version__ = "0.1.0"
