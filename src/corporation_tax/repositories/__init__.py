from corporation_tax.repositories.interfaces import (
    CharacterRepository,
    CorporationRepository,
    JournalRepository,
    TaxReferenceRepository,
    UserRepository,
)
from corporation_tax.repositories.sqlite import (
    SQLiteCharacterRepository,
    SQLiteCorporationRepository,
    SQLiteDatabase,
    SQLiteJournalRepository,
    SQLiteTaxReferenceRepository,
    SQLiteUserRepository,
)

__all__ = [
    "CharacterRepository",
    "CorporationRepository",
    "JournalRepository",
    "TaxReferenceRepository",
    "UserRepository",
    "SQLiteCharacterRepository",
    "SQLiteCorporationRepository",
    "SQLiteDatabase",
    "SQLiteJournalRepository",
    "SQLiteTaxReferenceRepository",
    "SQLiteUserRepository",
]
