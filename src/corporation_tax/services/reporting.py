"""Row builders for the wallet journal and tax reports."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from corporation_tax.domain.tax import UserTaxSummary
from corporation_tax.domain.value_objects import (
    ActorRef,
    JournalRefType,
    Money,
    PeriodRange,
)
from corporation_tax.exceptions import MissingPartyError
from corporation_tax.logging_config import get_logger
from corporation_tax.repositories.interfaces import JournalRepository
from corporation_tax.services.actor_directory import ActorDirectory
from corporation_tax.services.aggregation import TaxAggregator
from corporation_tax.services.journal_classifier import JournalClassifier

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class JournalReportRow:
    entry_id: int
    date: datetime
    ref_type: JournalRefType
    amount: Money | None
    balance: Money | None
    actor: ActorRef | None
    actor_name: str | None
    description: str
    reason: str | None = None


class ReportingService:
    """Assembles ordered rows for the report renderer."""

    def __init__(
        self,
        journal_repo: JournalRepository,
        classifier: JournalClassifier,
        directory: ActorDirectory,
        aggregator: TaxAggregator,
    ) -> None:
        self._journal_repo = journal_repo
        self._classifier = classifier
        self._directory = directory
        self._aggregator = aggregator

    def journal_rows(self, lower: datetime, upper: datetime) -> list[JournalReportRow]:
        """Journal rows with ``lower <= date < upper``, oldest first.

        An entry missing the party its rule needs is still reported, with no
        attributed actor.
        """
        rows: list[JournalReportRow] = []
        for entry in self._journal_repo.list_in_range(lower, upper):
            actor: ActorRef | None
            try:
                actor = self._classifier.classify(entry).actor
            except MissingPartyError as e:
                logger.warning("journal_entry_unattributed", **e.context)
                actor = None

            rows.append(
                JournalReportRow(
                    entry_id=entry.entry_id,
                    date=entry.date,
                    ref_type=entry.ref_type,
                    amount=entry.amount,
                    balance=entry.balance,
                    actor=actor,
                    actor_name=self._directory.name_of(actor) if actor else None,
                    description=entry.description,
                    reason=entry.reason,
                )
            )

        logger.info(
            "journal_rows_built",
            rows=len(rows),
            lower=lower.isoformat(),
            upper=upper.isoformat(),
        )
        return rows

    def tax_summaries(self, periods: PeriodRange) -> list[UserTaxSummary]:
        return self._aggregator.all_users(periods)
