"""Folds per-period accruals and payments into per-user summaries."""

from corporation_tax.domain.tax import MonthlyTax, UserTaxSummary
from corporation_tax.domain.value_objects import (
    ActorKind,
    JournalRefType,
    Money,
    Period,
    PeriodRange,
)
from corporation_tax.exceptions import MissingPartyError
from corporation_tax.logging_config import get_logger
from corporation_tax.repositories.interfaces import (
    CharacterRepository,
    JournalRepository,
    UserRepository,
)
from corporation_tax.services.accrual import AccrualCalculator
from corporation_tax.services.actor_directory import ActorDirectory
from corporation_tax.services.journal_classifier import JournalClassifier

logger = get_logger(__name__)


class TaxAggregator:
    """Builds accrual rows and unpaid totals for users over a period range.

    Payments are positive donation entries attributed to one of the user's
    characters. Totals are read from the journal on every call. Within one
    ``all_users`` call each period's donations are folded once and shared by
    every user.
    """

    def __init__(
        self,
        journal_repo: JournalRepository,
        character_repo: CharacterRepository,
        user_repo: UserRepository,
        classifier: JournalClassifier,
        calculator: AccrualCalculator,
        directory: ActorDirectory,
    ) -> None:
        self._journal_repo = journal_repo
        self._character_repo = character_repo
        self._user_repo = user_repo
        self._classifier = classifier
        self._calculator = calculator
        self._directory = directory

    def paid_by_character(self, period: Period) -> dict[int, Money]:
        """Donation totals of the period keyed by donating character id."""
        paid: dict[int, Money] = {}
        entries = self._journal_repo.list_in_range(
            period.lower_bound(),
            period.upper_bound(),
            ref_type=JournalRefType.PLAYER_DONATION,
        )
        for entry in entries:
            try:
                classification = self._classifier.classify(entry)
            except MissingPartyError as e:
                logger.warning("donation_without_donor", **e.context)
                continue

            actor = classification.actor
            if actor is None or actor.kind is not ActorKind.INDIVIDUAL:
                continue
            if not classification.amount.is_positive:
                continue
            paid[actor.actor_id] = (
                paid.get(actor.actor_id, Money.zero()) + classification.amount
            )
        return paid

    def amount_paid(
        self,
        user_id: int,
        period: Period,
        paid: dict[int, Money] | None = None,
    ) -> Money:
        if paid is None:
            paid = self.paid_by_character(period)
        return Money.total(
            paid.get(character.character_id, Money.zero())
            for character in self._character_repo.list_by_user(user_id)
        )

    def monthly_tax(
        self,
        user_id: int,
        period: Period,
        paid: dict[int, Money] | None = None,
    ) -> MonthlyTax:
        liability = self._calculator.liability_for(user_id, period)
        return MonthlyTax(
            period=period,
            flat_charge=liability.flat_charge,
            performance_charge=liability.performance_charge,
            amount_paid=self.amount_paid(user_id, period, paid),
        )

    def user_summary(
        self,
        user_id: int,
        periods: PeriodRange,
        paid_by_period: dict[Period, dict[int, Money]] | None = None,
    ) -> UserTaxSummary:
        """Rows for each period in ascending order plus the unpaid total.

        Raises:
            NotFoundError: If the user has no displayable name
            MissingTaxParametersError: If a charged period has no parameters
        """
        if paid_by_period is None:
            paid_by_period = {}
        summary = UserTaxSummary(
            user_id=user_id,
            display_name=self._directory.user_display_name(user_id),
        )
        for period in periods:
            summary.rows.append(
                self.monthly_tax(user_id, period, paid_by_period.get(period))
            )
        return summary

    def all_users(self, periods: PeriodRange) -> list[UserTaxSummary]:
        paid_by_period = {period: self.paid_by_character(period) for period in periods}
        summaries = [
            self.user_summary(user_id, periods, paid_by_period)
            for user_id in self._user_repo.list_ids()
        ]
        logger.info(
            "tax_summaries_built",
            users=len(summaries),
            start=str(periods.start),
            end=str(periods.end),
        )
        return summaries
