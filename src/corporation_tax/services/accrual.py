"""Per-user, per-period tax liability."""

from decimal import Decimal

from corporation_tax.domain.tax import Liability, TaxableFlags, TaxParameters
from corporation_tax.domain.value_objects import Money, Period
from corporation_tax.exceptions import MissingTaxParametersError
from corporation_tax.logging_config import get_logger
from corporation_tax.repositories.interfaces import (
    CharacterRepository,
    TaxReferenceRepository,
)

logger = get_logger(__name__)


def compute_liability(
    period: Period,
    parameters: TaxParameters | None,
    flags: TaxableFlags,
    score: Decimal,
) -> Liability:
    """Compute the flat and performance charges for one period.

    Args:
        period: Period being assessed
        parameters: Tax parameters for the period, or None if not configured
        flags: Which charges apply to the user this period
        score: The user's summed performance score

    Returns:
        Liability with both charges; neither is ever negative

    Raises:
        MissingTaxParametersError: If a charge applies but parameters are None
    """
    if not flags.any:
        return Liability()

    if parameters is None:
        raise MissingTaxParametersError(period.year, period.month)

    flat_charge = parameters.flat_charge if flags.flat else Money.zero()

    performance_charge = Money.zero()
    shortfall = parameters.performance_standard - score
    if flags.performance and shortfall > 0:
        performance_charge = parameters.performance_rate.multiply(shortfall)

    return Liability(flat_charge=flat_charge, performance_charge=performance_charge)


class AccrualCalculator:
    """Looks up reference data and computes a user's liability for a period."""

    def __init__(
        self,
        tax_repo: TaxReferenceRepository,
        character_repo: CharacterRepository,
    ) -> None:
        self._tax_repo = tax_repo
        self._character_repo = character_repo

    def taxable_flags(self, user_id: int, period: Period) -> TaxableFlags:
        """Flags for the user; a missing record means no charge applies."""
        flags = self._tax_repo.get_taxable_flags(user_id, period)
        return flags if flags is not None else TaxableFlags.none()

    def user_score(self, user_id: int, period: Period) -> Decimal:
        """Sum of performance points over the user's characters."""
        total = Decimal(0)
        for character in self._character_repo.list_by_user(user_id):
            score = self._tax_repo.get_score(character.character_id, period)
            if score is not None:
                total += score.points
        return total

    def liability_for(self, user_id: int, period: Period) -> Liability:
        flags = self.taxable_flags(user_id, period)
        if not flags.any:
            return Liability()

        parameters = self._tax_repo.get_tax_parameters(period)
        if parameters is None:
            logger.warning(
                "tax_parameters_missing", user_id=user_id, period=str(period)
            )
            raise MissingTaxParametersError(period.year, period.month)

        score = self.user_score(user_id, period) if flags.performance else Decimal(0)
        liability = compute_liability(period, parameters, flags, score)
        logger.debug(
            "liability_computed",
            user_id=user_id,
            period=str(period),
            flat_charge=str(liability.flat_charge),
            performance_charge=str(liability.performance_charge),
        )
        return liability
