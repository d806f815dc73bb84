from datetime import UTC, datetime
from decimal import Decimal

import pytest

from corporation_tax.domain.actors import Character, Corporation, User
from corporation_tax.domain.journal import LedgerEntry
from corporation_tax.domain.tax import TaxableFlags, TaxParameters
from corporation_tax.domain.value_objects import JournalRefType, Money, Period
from corporation_tax.repositories.sqlite import (
    SQLiteCharacterRepository,
    SQLiteCorporationRepository,
    SQLiteDatabase,
    SQLiteJournalRepository,
    SQLiteTaxReferenceRepository,
    SQLiteUserRepository,
)
from corporation_tax.services.accrual import AccrualCalculator
from corporation_tax.services.actor_directory import ActorDirectory
from corporation_tax.services.aggregation import TaxAggregator
from corporation_tax.services.journal_classifier import JournalClassifier

CORPORATION_ID = 98762057
ALICE_MAIN = 2112000001
ALICE_ALT = 2112000002
BOB_MAIN = 2112000003
OTHER_CORPORATION = 98000001


def make_entry(
    entry_id: int,
    ref_type: JournalRefType = JournalRefType.PLAYER_DONATION,
    amount: str | None = "100.00",
    first_party_id: int | None = None,
    second_party_id: int | None = None,
    date: datetime | None = None,
    description: str = "",
) -> LedgerEntry:
    """Create a LedgerEntry for testing."""
    return LedgerEntry(
        entry_id=entry_id,
        date=date or datetime(2025, 11, 15, 12, 0, tzinfo=UTC),
        ref_type=ref_type,
        description=description or f"{ref_type.display_name} #{entry_id}",
        amount=Money.from_decimal(amount) if amount is not None else None,
        balance=Money.from_decimal("1000000.00"),
        first_party_id=first_party_id,
        second_party_id=second_party_id,
    )


@pytest.fixture
def db() -> SQLiteDatabase:
    database = SQLiteDatabase(":memory:")
    database.initialize()
    return database


@pytest.fixture
def journal_repo(db: SQLiteDatabase) -> SQLiteJournalRepository:
    return SQLiteJournalRepository(db)


@pytest.fixture
def character_repo(db: SQLiteDatabase) -> SQLiteCharacterRepository:
    return SQLiteCharacterRepository(db)


@pytest.fixture
def corporation_repo(db: SQLiteDatabase) -> SQLiteCorporationRepository:
    return SQLiteCorporationRepository(db)


@pytest.fixture
def user_repo(db: SQLiteDatabase) -> SQLiteUserRepository:
    return SQLiteUserRepository(db)


@pytest.fixture
def tax_repo(db: SQLiteDatabase) -> SQLiteTaxReferenceRepository:
    return SQLiteTaxReferenceRepository(db)


@pytest.fixture
def directory(
    character_repo: SQLiteCharacterRepository,
    corporation_repo: SQLiteCorporationRepository,
    user_repo: SQLiteUserRepository,
) -> ActorDirectory:
    return ActorDirectory(character_repo, corporation_repo, user_repo)


@pytest.fixture
def classifier(directory: ActorDirectory) -> JournalClassifier:
    return JournalClassifier(directory)


@pytest.fixture
def calculator(
    tax_repo: SQLiteTaxReferenceRepository,
    character_repo: SQLiteCharacterRepository,
) -> AccrualCalculator:
    return AccrualCalculator(tax_repo, character_repo)


@pytest.fixture
def aggregator(
    journal_repo: SQLiteJournalRepository,
    character_repo: SQLiteCharacterRepository,
    user_repo: SQLiteUserRepository,
    classifier: JournalClassifier,
    calculator: AccrualCalculator,
    directory: ActorDirectory,
) -> TaxAggregator:
    return TaxAggregator(
        journal_repo=journal_repo,
        character_repo=character_repo,
        user_repo=user_repo,
        classifier=classifier,
        calculator=calculator,
        directory=directory,
    )


@pytest.fixture
def members(
    user_repo: SQLiteUserRepository,
    character_repo: SQLiteCharacterRepository,
    corporation_repo: SQLiteCorporationRepository,
) -> dict[str, int]:
    """Two users: Alice with a main and an alt, Bob with a main only."""
    alice = user_repo.add(User(nickname="alice", group_nickname="Alice"))
    bob = user_repo.add(User(nickname="bob", group_nickname="Bob"))

    for character_id, name in (
        (ALICE_MAIN, "Alice Main"),
        (ALICE_ALT, "Alice Alt"),
        (BOB_MAIN, "Bob Main"),
    ):
        character_repo.upsert(
            Character(
                character_id=character_id,
                name=name,
                corporation_id=CORPORATION_ID,
                birthday=datetime(2020, 1, 1, tzinfo=UTC),
            )
        )

    assert alice.id is not None and bob.id is not None
    character_repo.assign_user(ALICE_MAIN, alice.id, is_main=True)
    character_repo.assign_user(ALICE_ALT, alice.id)
    character_repo.assign_user(BOB_MAIN, bob.id, is_main=True)

    corporation_repo.upsert(
        Corporation(corporation_id=CORPORATION_ID, name="Home Corp", ticker="HOME")
    )
    corporation_repo.upsert(
        Corporation(corporation_id=OTHER_CORPORATION, name="Other Corp", ticker="OTHR")
    )
    return {"alice": alice.id, "bob": bob.id}


@pytest.fixture
def november() -> Period:
    return Period(2025, 11)


@pytest.fixture
def november_parameters(
    tax_repo: SQLiteTaxReferenceRepository, november: Period
) -> TaxParameters:
    parameters = TaxParameters(
        period=november,
        flat_charge=Money.from_decimal("50.00"),
        performance_rate=Money.from_decimal("5.00"),
        performance_standard=Decimal("100"),
    )
    tax_repo.set_tax_parameters(parameters)
    return parameters


@pytest.fixture
def flat_only() -> TaxableFlags:
    return TaxableFlags(flat=True, performance=False)
