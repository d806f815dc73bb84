"""SQLite implementations of repository interfaces."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterable
from datetime import UTC, datetime
from decimal import Decimal
from pathlib import Path

from corporation_tax.domain.actors import Character, Corporation, User
from corporation_tax.domain.journal import LedgerEntry
from corporation_tax.domain.tax import (
    PerformanceScore,
    TaxableFlags,
    TaxParameters,
    points_from_scaled,
    points_to_scaled,
)
from corporation_tax.domain.value_objects import (
    ContextIdType,
    JournalRefType,
    Money,
    Period,
)
from corporation_tax.exceptions import ConflictError, RepositoryError
from corporation_tax.repositories.interfaces import (
    CharacterRepository,
    CorporationRepository,
    JournalRepository,
    TaxReferenceRepository,
    UserRepository,
)


def _to_epoch(moment: datetime) -> int:
    return int(moment.timestamp())


def _from_epoch(seconds: int) -> datetime:
    return datetime.fromtimestamp(seconds, tz=UTC)


def _cents(money: Money | None) -> int | None:
    return None if money is None else money.cents


def _money(cents: int | None) -> Money | None:
    return None if cents is None else Money(cents)


class SQLiteDatabase:
    """SQLite database connection manager."""

    def __init__(
        self, path: str | Path = ":memory:", check_same_thread: bool = True
    ) -> None:
        self._path = str(path)
        self._check_same_thread = check_same_thread
        self._connection: sqlite3.Connection | None = None

    def get_connection(self) -> sqlite3.Connection:
        """Get or create the database connection."""
        if self._connection is None:
            self._connection = sqlite3.connect(
                self._path, check_same_thread=self._check_same_thread
            )
            self._connection.row_factory = sqlite3.Row
            self._connection.execute("PRAGMA foreign_keys = ON")
        return self._connection

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def initialize(self) -> None:
        """Create all database tables."""
        conn = self.get_connection()
        conn.executescript(
            """
            -- Members
            CREATE TABLE IF NOT EXISTS users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                external_id TEXT,
                nickname TEXT,
                group_nickname TEXT
            );

            -- Individuals
            CREATE TABLE IF NOT EXISTS characters (
                character_id INTEGER PRIMARY KEY,
                alliance_id INTEGER,
                corporation_id INTEGER NOT NULL,
                birthday INTEGER NOT NULL,
                name TEXT NOT NULL,
                user_id INTEGER,
                main INTEGER NOT NULL DEFAULT 0,
                FOREIGN KEY (user_id) REFERENCES users(id)
            );
            CREATE INDEX IF NOT EXISTS index_characters_name ON characters(name);
            CREATE INDEX IF NOT EXISTS index_characters_user_id ON characters(user_id);

            -- Organizations
            CREATE TABLE IF NOT EXISTS corporations (
                corporation_id INTEGER PRIMARY KEY,
                name TEXT NOT NULL,
                ticker TEXT NOT NULL,
                date_founded INTEGER,
                description TEXT
            );

            -- Wallet journal; amounts in hundredths, dates in epoch seconds
            CREATE TABLE IF NOT EXISTS corporation_wallet_journal (
                id INTEGER PRIMARY KEY,
                date INTEGER NOT NULL,
                description TEXT NOT NULL,
                ref_type INTEGER NOT NULL,
                amount INTEGER,
                balance INTEGER,
                context_id INTEGER,
                context_id_type INTEGER,
                reason TEXT,
                first_party_id INTEGER,
                second_party_id INTEGER,
                tax INTEGER,
                tax_receiver_id INTEGER
            );
            CREATE INDEX IF NOT EXISTS index_corporation_wallet_journal_date
                ON corporation_wallet_journal(date);

            -- Performance points in hundredths of a point
            CREATE TABLE IF NOT EXISTS pap_journal (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                character_id INTEGER NOT NULL,
                year INTEGER NOT NULL,
                month INTEGER NOT NULL,
                pap INTEGER NOT NULL,
                UNIQUE(character_id, year, month)
            );
            CREATE INDEX IF NOT EXISTS index_pap_journal_character_id
                ON pap_journal(character_id);

            CREATE TABLE IF NOT EXISTS taxable_list (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL,
                year INTEGER NOT NULL,
                month INTEGER NOT NULL,
                poll_tax INTEGER NOT NULL,
                pap_tax INTEGER NOT NULL,
                UNIQUE(user_id, year, month)
            );
            CREATE INDEX IF NOT EXISTS index_taxable_list_user_id
                ON taxable_list(user_id);

            -- poll_tax and pap_tax in hundredths; pap_standard in hundredths of a point
            CREATE TABLE IF NOT EXISTS tax_parameters (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                year INTEGER NOT NULL,
                month INTEGER NOT NULL,
                poll_tax INTEGER NOT NULL,
                pap_tax INTEGER NOT NULL,
                pap_standard INTEGER NOT NULL,
                UNIQUE(year, month)
            );
            """
        )
        conn.commit()


class SQLiteJournalRepository(JournalRepository):
    def __init__(self, db: SQLiteDatabase) -> None:
        self._db = db

    def exists(self, entry_id: int) -> bool:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT 1 FROM corporation_wallet_journal WHERE id = ?", (entry_id,)
        ).fetchone()
        return row is not None

    def add(self, entry: LedgerEntry, *, commit: bool = True) -> None:
        conn = self._db.get_connection()
        try:
            conn.execute(
                """
                INSERT INTO corporation_wallet_journal (
                    id, date, description, ref_type, amount, balance,
                    context_id, context_id_type, reason, first_party_id,
                    second_party_id, tax, tax_receiver_id
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.entry_id,
                    entry.timestamp,
                    entry.description,
                    entry.ref_type.value,
                    _cents(entry.amount),
                    _cents(entry.balance),
                    entry.context_id,
                    entry.context_id_type.value if entry.context_id_type else None,
                    entry.reason,
                    entry.first_party_id,
                    entry.second_party_id,
                    _cents(entry.tax),
                    entry.tax_receiver_id,
                ),
            )
        except sqlite3.IntegrityError as e:
            if self.exists(entry.entry_id):
                raise ConflictError("Journal entry", entry.entry_id) from None
            raise RepositoryError(
                f"Journal entry {entry.entry_id} rejected: {e}",
                context={"entry_id": entry.entry_id},
            ) from e
        if commit:
            conn.commit()

    def commit(self) -> None:
        self._db.get_connection().commit()

    def rollback(self) -> None:
        self._db.get_connection().rollback()

    def get(self, entry_id: int) -> LedgerEntry | None:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM corporation_wallet_journal WHERE id = ?", (entry_id,)
        ).fetchone()
        if row is None:
            return None
        return self._row_to_entry(row)

    def count(self) -> int:
        conn = self._db.get_connection()
        row = conn.execute("SELECT COUNT(*) FROM corporation_wallet_journal").fetchone()
        return int(row[0])

    def list_in_range(
        self,
        lower: datetime,
        upper: datetime,
        ref_type: JournalRefType | None = None,
    ) -> Iterable[LedgerEntry]:
        conn = self._db.get_connection()
        query = """
            SELECT * FROM corporation_wallet_journal
            WHERE date >= ? AND date < ?
        """
        params: list[int] = [_to_epoch(lower), _to_epoch(upper)]

        if ref_type is not None:
            query += " AND ref_type = ?"
            params.append(ref_type.value)

        query += " ORDER BY date, id"
        rows = conn.execute(query, params).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def distinct_party_ids(self) -> set[int]:
        conn = self._db.get_connection()
        rows = conn.execute(
            """
            SELECT first_party_id AS party_id FROM corporation_wallet_journal
            WHERE first_party_id IS NOT NULL
            UNION
            SELECT second_party_id AS party_id FROM corporation_wallet_journal
            WHERE second_party_id IS NOT NULL
            """
        ).fetchall()
        return {int(row["party_id"]) for row in rows}

    def _row_to_entry(self, row: sqlite3.Row) -> LedgerEntry:
        context_id_type = row["context_id_type"]
        return LedgerEntry(
            entry_id=row["id"],
            date=_from_epoch(row["date"]),
            ref_type=JournalRefType.from_code(row["ref_type"]),
            description=row["description"],
            amount=_money(row["amount"]),
            balance=_money(row["balance"]),
            context_id=row["context_id"],
            context_id_type=(
                ContextIdType(context_id_type) if context_id_type is not None else None
            ),
            reason=row["reason"],
            first_party_id=row["first_party_id"],
            second_party_id=row["second_party_id"],
            tax=_money(row["tax"]),
            tax_receiver_id=row["tax_receiver_id"],
        )


class SQLiteCharacterRepository(CharacterRepository):
    def __init__(self, db: SQLiteDatabase) -> None:
        self._db = db

    def get(self, character_id: int) -> Character | None:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM characters WHERE character_id = ?", (character_id,)
        ).fetchone()
        if row is None:
            return None
        return self._row_to_character(row)

    def upsert(self, character: Character) -> None:
        """Insert or refresh public details; user ownership is kept as stored."""
        conn = self._db.get_connection()
        conn.execute(
            """
            INSERT INTO characters (character_id, alliance_id, corporation_id,
                                    birthday, name, user_id, main)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(character_id) DO UPDATE SET
                alliance_id = excluded.alliance_id,
                corporation_id = excluded.corporation_id,
                birthday = excluded.birthday,
                name = excluded.name
            """,
            (
                character.character_id,
                character.alliance_id,
                character.corporation_id,
                _to_epoch(character.birthday),
                character.name,
                character.user_id,
                1 if character.is_main else 0,
            ),
        )
        conn.commit()

    def list_by_user(self, user_id: int) -> Iterable[Character]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM characters WHERE user_id = ? ORDER BY character_id",
            (user_id,),
        ).fetchall()
        return [self._row_to_character(row) for row in rows]

    def main_for_user(self, user_id: int) -> Character | None:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM characters WHERE user_id = ? AND main = 1 LIMIT 1",
            (user_id,),
        ).fetchone()
        if row is None:
            return None
        return self._row_to_character(row)

    def assign_user(
        self, character_id: int, user_id: int | None, is_main: bool = False
    ) -> None:
        conn = self._db.get_connection()
        if is_main and user_id is not None:
            # A user has at most one main character
            conn.execute(
                "UPDATE characters SET main = 0 WHERE user_id = ?", (user_id,)
            )
        conn.execute(
            "UPDATE characters SET user_id = ?, main = ? WHERE character_id = ?",
            (user_id, 1 if is_main else 0, character_id),
        )
        conn.commit()

    def _row_to_character(self, row: sqlite3.Row) -> Character:
        return Character(
            character_id=row["character_id"],
            name=row["name"],
            corporation_id=row["corporation_id"],
            birthday=_from_epoch(row["birthday"]),
            alliance_id=row["alliance_id"],
            user_id=row["user_id"],
            is_main=bool(row["main"]),
        )


class SQLiteCorporationRepository(CorporationRepository):
    def __init__(self, db: SQLiteDatabase) -> None:
        self._db = db

    def get(self, corporation_id: int) -> Corporation | None:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM corporations WHERE corporation_id = ?", (corporation_id,)
        ).fetchone()
        if row is None:
            return None
        date_founded = row["date_founded"]
        return Corporation(
            corporation_id=row["corporation_id"],
            name=row["name"],
            ticker=row["ticker"],
            date_founded=_from_epoch(date_founded) if date_founded is not None else None,
            description=row["description"],
        )

    def upsert(self, corporation: Corporation) -> None:
        conn = self._db.get_connection()
        conn.execute(
            """
            INSERT INTO corporations (corporation_id, name, ticker,
                                      date_founded, description)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(corporation_id) DO UPDATE SET
                name = excluded.name,
                ticker = excluded.ticker,
                date_founded = excluded.date_founded,
                description = excluded.description
            """,
            (
                corporation.corporation_id,
                corporation.name,
                corporation.ticker,
                _to_epoch(corporation.date_founded)
                if corporation.date_founded
                else None,
                corporation.description,
            ),
        )
        conn.commit()


class SQLiteUserRepository(UserRepository):
    def __init__(self, db: SQLiteDatabase) -> None:
        self._db = db

    def add(self, user: User) -> User:
        conn = self._db.get_connection()
        try:
            cursor = conn.execute(
                """
                INSERT INTO users (id, external_id, nickname, group_nickname)
                VALUES (?, ?, ?, ?)
                """,
                (user.id, user.external_id, user.nickname, user.group_nickname),
            )
        except sqlite3.IntegrityError:
            raise ConflictError("User", user.id) from None
        conn.commit()
        user.id = cursor.lastrowid if user.id is None else user.id
        return user

    def get(self, user_id: int) -> User | None:
        conn = self._db.get_connection()
        row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        if row is None:
            return None
        return User(
            id=row["id"],
            external_id=row["external_id"],
            nickname=row["nickname"],
            group_nickname=row["group_nickname"],
        )

    def list_ids(self) -> list[int]:
        conn = self._db.get_connection()
        rows = conn.execute("SELECT id FROM users ORDER BY id").fetchall()
        return [int(row["id"]) for row in rows]


class SQLiteTaxReferenceRepository(TaxReferenceRepository):
    def __init__(self, db: SQLiteDatabase) -> None:
        self._db = db

    def get_tax_parameters(self, period: Period) -> TaxParameters | None:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM tax_parameters WHERE year = ? AND month = ?",
            (period.year, period.month),
        ).fetchone()
        if row is None:
            return None
        return TaxParameters(
            period=period,
            flat_charge=Money(row["poll_tax"]),
            performance_rate=Money(row["pap_tax"]),
            performance_standard=points_from_scaled(row["pap_standard"]),
        )

    def set_tax_parameters(self, parameters: TaxParameters) -> None:
        conn = self._db.get_connection()
        conn.execute(
            """
            INSERT INTO tax_parameters (year, month, poll_tax, pap_tax, pap_standard)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(year, month) DO UPDATE SET
                poll_tax = excluded.poll_tax,
                pap_tax = excluded.pap_tax,
                pap_standard = excluded.pap_standard
            """,
            (
                parameters.period.year,
                parameters.period.month,
                parameters.flat_charge.cents,
                parameters.performance_rate.cents,
                points_to_scaled(parameters.performance_standard),
            ),
        )
        conn.commit()

    def get_taxable_flags(self, user_id: int, period: Period) -> TaxableFlags | None:
        conn = self._db.get_connection()
        row = conn.execute(
            """
            SELECT poll_tax, pap_tax FROM taxable_list
            WHERE user_id = ? AND year = ? AND month = ?
            """,
            (user_id, period.year, period.month),
        ).fetchone()
        if row is None:
            return None
        return TaxableFlags(flat=bool(row["poll_tax"]), performance=bool(row["pap_tax"]))

    def set_taxable_flags(
        self, user_id: int, period: Period, flags: TaxableFlags
    ) -> None:
        conn = self._db.get_connection()
        conn.execute(
            """
            INSERT INTO taxable_list (user_id, year, month, poll_tax, pap_tax)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(user_id, year, month) DO UPDATE SET
                poll_tax = excluded.poll_tax,
                pap_tax = excluded.pap_tax
            """,
            (
                user_id,
                period.year,
                period.month,
                1 if flags.flat else 0,
                1 if flags.performance else 0,
            ),
        )
        conn.commit()

    def get_score(
        self, character_id: int, period: Period
    ) -> PerformanceScore | None:
        conn = self._db.get_connection()
        row = conn.execute(
            """
            SELECT pap FROM pap_journal
            WHERE character_id = ? AND year = ? AND month = ?
            """,
            (character_id, period.year, period.month),
        ).fetchone()
        if row is None:
            return None
        return PerformanceScore(
            character_id=character_id,
            period=period,
            points=points_from_scaled(row["pap"]),
        )

    def set_score(self, character_id: int, period: Period, points: Decimal) -> None:
        conn = self._db.get_connection()
        conn.execute(
            """
            INSERT INTO pap_journal (character_id, year, month, pap)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(character_id, year, month) DO UPDATE SET
                pap = excluded.pap
            """,
            (character_id, period.year, period.month, points_to_scaled(points)),
        )
        conn.commit()
