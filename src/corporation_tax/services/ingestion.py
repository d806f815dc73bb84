"""Ingestion of the corporation wallet journal and actor directory refresh.

This service:
- Walks journal pages from the ledger source until it runs out of pages
- Inserts entries whose id is not yet stored, skipping the rest
- Collects party ids seen in the journal and looks up the unknown ones
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from corporation_tax.clients.esi import CharacterInfo, CorporationInfo
from corporation_tax.domain.actors import Character, Corporation
from corporation_tax.domain.journal import LedgerEntry
from corporation_tax.exceptions import UnresolvedActorError
from corporation_tax.logging_config import LogContext, get_logger
from corporation_tax.repositories.interfaces import (
    CharacterRepository,
    CorporationRepository,
    JournalRepository,
)
from corporation_tax.services.actor_directory import IdentityLookup

logger = get_logger(__name__)


class LedgerSource(Protocol):
    """Protocol for the paged journal feed and public actor lookups."""

    def get_corporation_wallet_journal(
        self, corporation_id: int, division: int, page: int
    ) -> list[LedgerEntry] | None:
        """Entries of one page, or None past the last page."""
        ...

    def get_character_public_information(
        self, character_id: int
    ) -> CharacterInfo | None:
        ...

    def get_corporation_information(
        self, corporation_id: int
    ) -> CorporationInfo | None:
        ...


@dataclass
class IngestionResult:
    """Result summary from a journal sync."""

    pages: int = 0
    inserted: int = 0
    skipped: int = 0


class JournalIngestionService:
    """Copies the wallet journal into the store and keeps actors resolvable.

    Each page is committed on its own. A failing page fetch propagates and
    leaves earlier pages in place.
    """

    def __init__(
        self,
        journal_repo: JournalRepository,
        character_repo: CharacterRepository,
        corporation_repo: CorporationRepository,
        identity_lookup: IdentityLookup,
        source: LedgerSource,
        *,
        corporation_id: int,
        division: int = 1,
        max_pages: int = 99,
        excluded_party_ids: Iterable[int] = (),
    ) -> None:
        self._journal_repo = journal_repo
        self._character_repo = character_repo
        self._corporation_repo = corporation_repo
        self._identity_lookup = identity_lookup
        self._source = source
        self._corporation_id = corporation_id
        self._division = division
        self._max_pages = max_pages
        self._excluded_party_ids = frozenset(excluded_party_ids)

    def ingest_page(self, entries: Iterable[LedgerEntry]) -> tuple[int, int]:
        """Insert entries not already stored, as one unit.

        Returns:
            Tuple of (inserted, skipped)

        Raises:
            RepositoryError: If an entry cannot be stored. Nothing from the
                page is kept.
        """
        inserted = 0
        skipped = 0
        seen: set[int] = set()

        try:
            for entry in entries:
                if entry.entry_id in seen or self._journal_repo.exists(entry.entry_id):
                    skipped += 1
                    continue
                self._journal_repo.add(entry, commit=False)
                seen.add(entry.entry_id)
                inserted += 1
        except Exception:
            self._journal_repo.rollback()
            logger.warning("journal_page_rolled_back", discarded=inserted)
            raise

        self._journal_repo.commit()
        return inserted, skipped

    def sync_wallet_journal(self) -> IngestionResult:
        result = IngestionResult()

        for page in range(1, self._max_pages + 1):
            with LogContext(page=page):
                entries = self._source.get_corporation_wallet_journal(
                    self._corporation_id, self._division, page
                )
                if entries is None:
                    logger.debug("journal_pages_exhausted")
                    break

                inserted, skipped = self.ingest_page(entries)
                result.pages += 1
                result.inserted += inserted
                result.skipped += skipped
                logger.info(
                    "journal_page_ingested", inserted=inserted, skipped=skipped
                )

        logger.info(
            "journal_sync_complete",
            corporation_id=self._corporation_id,
            division=self._division,
            pages=result.pages,
            inserted=result.inserted,
            skipped=result.skipped,
        )
        return result

    def collect_party_ids(self) -> set[int]:
        """Distinct first and second party ids, minus the excluded ids."""
        return self._journal_repo.distinct_party_ids() - self._excluded_party_ids

    def unknown_party_ids(self) -> list[int]:
        return sorted(
            party_id
            for party_id in self.collect_party_ids()
            if not self._identity_lookup.resolve(party_id).is_known
        )

    def refresh_unknown_actors(self) -> list[int]:
        """Look up every unresolvable party id, character first.

        Returns:
            Ids the ledger source knows neither as character nor corporation
        """
        still_unknown: list[int] = []

        for party_id in self.unknown_party_ids():
            character = self._source.get_character_public_information(party_id)
            if character is not None:
                self._character_repo.upsert(character.to_character(party_id))
                logger.info("character_added", character_id=party_id)
                continue

            corporation = self._source.get_corporation_information(party_id)
            if corporation is not None:
                self._corporation_repo.upsert(corporation.to_corporation(party_id))
                logger.info("corporation_added", corporation_id=party_id)
                continue

            still_unknown.append(party_id)

        if still_unknown:
            logger.warning("party_ids_unresolved", ids=still_unknown)
        return still_unknown

    def refresh_character(self, character_id: int) -> Character:
        info = self._source.get_character_public_information(character_id)
        if info is None:
            raise UnresolvedActorError(character_id, "character")
        character = info.to_character(character_id)
        self._character_repo.upsert(character)
        logger.info("character_refreshed", character_id=character_id)
        return character

    def refresh_corporation(self, corporation_id: int) -> Corporation:
        info = self._source.get_corporation_information(corporation_id)
        if info is None:
            raise UnresolvedActorError(corporation_id, "corporation")
        corporation = info.to_corporation(corporation_id)
        self._corporation_repo.upsert(corporation)
        logger.info("corporation_refreshed", corporation_id=corporation_id)
        return corporation
