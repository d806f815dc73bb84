"""Attribution of wallet journal entries to a responsible actor.

Attribution is driven by a closed table from journal ref type to one of a
handful of rule shapes. Ref types missing from the table fall back to
resolving the second party through the identity lookup.
"""

from dataclasses import dataclass
from enum import Enum

from corporation_tax.domain.journal import LedgerEntry
from corporation_tax.domain.value_objects import ActorRef, JournalRefType, Money
from corporation_tax.exceptions import MissingPartyError
from corporation_tax.services.actor_directory import IdentityLookup


class ClassificationRule(str, Enum):
    """How a ref type picks its party and decides the actor kind."""

    FIRST_PARTY_INDIVIDUAL = "first_party_individual"
    SIGNED_PARTY_ORGANIZATION = "signed_party_organization"
    SECOND_PARTY_INDIVIDUAL = "second_party_individual"
    SIGNED_PARTY_RESOLVED = "signed_party_resolved"
    SECOND_PARTY_RESOLVED = "second_party_resolved"


RULES: dict[JournalRefType, ClassificationRule] = {
    JournalRefType.PLAYER_DONATION: ClassificationRule.FIRST_PARTY_INDIVIDUAL,
    JournalRefType.OFFICE_RENTAL_FEE: ClassificationRule.SIGNED_PARTY_ORGANIZATION,
    JournalRefType.AGENT_MISSION_REWARD: ClassificationRule.SECOND_PARTY_INDIVIDUAL,
    JournalRefType.AGENT_MISSION_TIME_BONUS_REWARD: (
        ClassificationRule.SECOND_PARTY_INDIVIDUAL
    ),
    JournalRefType.BOUNTY_PRIZES: ClassificationRule.SECOND_PARTY_INDIVIDUAL,
    JournalRefType.PROJECT_DISCOVERY_REWARD: ClassificationRule.SECOND_PARTY_INDIVIDUAL,
    JournalRefType.ESS_ESCROW_TRANSFER: ClassificationRule.SECOND_PARTY_INDIVIDUAL,
    JournalRefType.DAILY_GOAL_PAYOUTS: ClassificationRule.SECOND_PARTY_INDIVIDUAL,
    JournalRefType.CORPORATION_ACCOUNT_WITHDRAWAL: (
        ClassificationRule.SIGNED_PARTY_RESOLVED
    ),
    JournalRefType.CORPORATION_DIVIDEND_PAYMENT: (
        ClassificationRule.SECOND_PARTY_RESOLVED
    ),
}

DEFAULT_RULE = ClassificationRule.SECOND_PARTY_RESOLVED


def rule_for(ref_type: JournalRefType) -> ClassificationRule:
    return RULES.get(ref_type, DEFAULT_RULE)


@dataclass(frozen=True, slots=True)
class Classification:
    """Attributed actor (None when unattributed) and the entry's signed amount."""

    actor: ActorRef | None
    amount: Money

    @property
    def is_attributed(self) -> bool:
        return self.actor is not None


class JournalClassifier:
    """Classifies journal entries using the ref type rule table.

    Attributes:
        identity_lookup: Resolves ids whose kind the ref type does not fix
    """

    def __init__(self, identity_lookup: IdentityLookup) -> None:
        self._identity_lookup = identity_lookup

    def classify(self, entry: LedgerEntry) -> Classification:
        """Attribute an entry to an actor.

        Args:
            entry: The journal entry to classify

        Returns:
            Classification with the actor (or None) and the signed amount

        Raises:
            MissingPartyError: If the rule needs a party the entry lacks
        """
        amount = entry.signed_amount
        rule = rule_for(entry.ref_type)

        if rule is ClassificationRule.FIRST_PARTY_INDIVIDUAL:
            party_id = self._party(entry, "first")
            return Classification(ActorRef.individual(party_id), amount)

        if rule is ClassificationRule.SIGNED_PARTY_ORGANIZATION:
            party_id = self._signed_party(entry)
            return Classification(ActorRef.organization(party_id), amount)

        if rule is ClassificationRule.SECOND_PARTY_INDIVIDUAL:
            party_id = self._party(entry, "second")
            return Classification(ActorRef.individual(party_id), amount)

        if rule is ClassificationRule.SIGNED_PARTY_RESOLVED:
            party_id = self._signed_party(entry)
        else:
            party_id = self._party(entry, "second")
        return Classification(self._resolve(party_id), amount)

    def _resolve(self, party_id: int) -> ActorRef | None:
        actor = self._identity_lookup.resolve(party_id)
        return actor if actor.is_known else None

    def _signed_party(self, entry: LedgerEntry) -> int:
        # Non-negative amounts point at the first party
        slot = "second" if entry.signed_amount.is_negative else "first"
        return self._party(entry, slot)

    @staticmethod
    def _party(entry: LedgerEntry, slot: str) -> int:
        party_id = entry.first_party_id if slot == "first" else entry.second_party_id
        if party_id is None:
            raise MissingPartyError(entry.entry_id, entry.ref_type.wire_name, slot)
        return party_id
