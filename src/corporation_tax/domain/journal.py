"""Corporation wallet journal entries."""

from dataclasses import dataclass
from datetime import UTC, datetime

from corporation_tax.domain.value_objects import ContextIdType, JournalRefType, Money


@dataclass(frozen=True, slots=True)
class LedgerEntry:
    """One wallet journal line as delivered by the ledger source.

    Entries are immutable once ingested; ``entry_id`` is globally unique and
    non-decreasing in upstream order.
    """

    entry_id: int
    date: datetime
    ref_type: JournalRefType
    description: str
    amount: Money | None = None
    balance: Money | None = None
    context_id: int | None = None
    context_id_type: ContextIdType | None = None
    reason: str | None = None
    first_party_id: int | None = None
    second_party_id: int | None = None
    tax: Money | None = None
    tax_receiver_id: int | None = None

    def __post_init__(self) -> None:
        if self.date.tzinfo is None:
            object.__setattr__(self, "date", self.date.replace(tzinfo=UTC))

    @property
    def signed_amount(self) -> Money:
        return self.amount if self.amount is not None else Money.zero()

    @property
    def timestamp(self) -> int:
        """Epoch seconds, the form used for range scans."""
        return int(self.date.timestamp())
