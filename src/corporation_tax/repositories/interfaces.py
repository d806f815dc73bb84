from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal

from corporation_tax.domain.actors import Character, Corporation, User
from corporation_tax.domain.journal import LedgerEntry
from corporation_tax.domain.tax import PerformanceScore, TaxableFlags, TaxParameters
from corporation_tax.domain.value_objects import JournalRefType, Period


class JournalRepository(ABC):
    @abstractmethod
    def exists(self, entry_id: int) -> bool:
        pass

    @abstractmethod
    def add(self, entry: LedgerEntry, *, commit: bool = True) -> None:
        pass

    @abstractmethod
    def commit(self) -> None:
        pass

    @abstractmethod
    def rollback(self) -> None:
        """Discard writes made since the last commit."""

    @abstractmethod
    def get(self, entry_id: int) -> LedgerEntry | None:
        pass

    @abstractmethod
    def count(self) -> int:
        pass

    @abstractmethod
    def list_in_range(
        self,
        lower: datetime,
        upper: datetime,
        ref_type: JournalRefType | None = None,
    ) -> Iterable[LedgerEntry]:
        """Entries with ``lower <= date < upper``, oldest first."""
        pass

    @abstractmethod
    def distinct_party_ids(self) -> set[int]:
        pass


class CharacterRepository(ABC):
    @abstractmethod
    def get(self, character_id: int) -> Character | None:
        pass

    @abstractmethod
    def upsert(self, character: Character) -> None:
        pass

    @abstractmethod
    def list_by_user(self, user_id: int) -> Iterable[Character]:
        pass

    @abstractmethod
    def main_for_user(self, user_id: int) -> Character | None:
        pass

    @abstractmethod
    def assign_user(
        self, character_id: int, user_id: int | None, is_main: bool = False
    ) -> None:
        pass


class CorporationRepository(ABC):
    @abstractmethod
    def get(self, corporation_id: int) -> Corporation | None:
        pass

    @abstractmethod
    def upsert(self, corporation: Corporation) -> None:
        pass


class UserRepository(ABC):
    @abstractmethod
    def add(self, user: User) -> User:
        pass

    @abstractmethod
    def get(self, user_id: int) -> User | None:
        pass

    @abstractmethod
    def list_ids(self) -> list[int]:
        pass


class TaxReferenceRepository(ABC):
    @abstractmethod
    def get_tax_parameters(self, period: Period) -> TaxParameters | None:
        pass

    @abstractmethod
    def set_tax_parameters(self, parameters: TaxParameters) -> None:
        pass

    @abstractmethod
    def get_taxable_flags(self, user_id: int, period: Period) -> TaxableFlags | None:
        pass

    @abstractmethod
    def set_taxable_flags(
        self, user_id: int, period: Period, flags: TaxableFlags
    ) -> None:
        pass

    @abstractmethod
    def get_score(
        self, character_id: int, period: Period
    ) -> PerformanceScore | None:
        pass

    @abstractmethod
    def set_score(self, character_id: int, period: Period, points: Decimal) -> None:
        pass
