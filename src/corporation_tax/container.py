"""Dependency wiring for Corporation Tax.

Usage:
    from corporation_tax.container import Container

    with Container(settings) as container:
        summaries = container.aggregator.all_users(periods)
"""

from functools import cached_property

from corporation_tax.config import Settings, get_settings
from corporation_tax.logging_config import get_logger
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
from corporation_tax.services.ingestion import JournalIngestionService, LedgerSource
from corporation_tax.services.journal_classifier import JournalClassifier
from corporation_tax.services.reporting import ReportingService

logger = get_logger(__name__)


class Container:
    """Lazily builds the database, repositories and services from settings.

    The container can be configured with custom settings for testing:

        container = Container(settings=Settings(sqlite_path=":memory:"))
    """

    def __init__(
        self, settings: Settings | None = None, database: SQLiteDatabase | None = None
    ) -> None:
        self._settings = settings or get_settings()
        self._database = database
        logger.debug(
            "container_created",
            environment=self._settings.environment.value,
            corporation_id=self._settings.corporation_id,
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    @cached_property
    def database(self) -> SQLiteDatabase:
        """The SQLite database, with its schema created on first access."""
        if self._database is None:
            db_path = str(self._settings.sqlite_path)
            logger.info("initializing_sqlite_database", path=db_path)
            self._database = SQLiteDatabase(db_path)
        self._database.initialize()
        return self._database

    @cached_property
    def journal_repo(self) -> SQLiteJournalRepository:
        return SQLiteJournalRepository(self.database)

    @cached_property
    def character_repo(self) -> SQLiteCharacterRepository:
        return SQLiteCharacterRepository(self.database)

    @cached_property
    def corporation_repo(self) -> SQLiteCorporationRepository:
        return SQLiteCorporationRepository(self.database)

    @cached_property
    def user_repo(self) -> SQLiteUserRepository:
        return SQLiteUserRepository(self.database)

    @cached_property
    def tax_repo(self) -> SQLiteTaxReferenceRepository:
        return SQLiteTaxReferenceRepository(self.database)

    @cached_property
    def directory(self) -> ActorDirectory:
        return ActorDirectory(
            self.character_repo, self.corporation_repo, self.user_repo
        )

    @cached_property
    def classifier(self) -> JournalClassifier:
        return JournalClassifier(self.directory)

    @cached_property
    def calculator(self) -> AccrualCalculator:
        return AccrualCalculator(self.tax_repo, self.character_repo)

    @cached_property
    def aggregator(self) -> TaxAggregator:
        return TaxAggregator(
            journal_repo=self.journal_repo,
            character_repo=self.character_repo,
            user_repo=self.user_repo,
            classifier=self.classifier,
            calculator=self.calculator,
            directory=self.directory,
        )

    @cached_property
    def reporting_service(self) -> ReportingService:
        return ReportingService(
            journal_repo=self.journal_repo,
            classifier=self.classifier,
            directory=self.directory,
            aggregator=self.aggregator,
        )

    def ingestion_service(self, source: LedgerSource) -> JournalIngestionService:
        """Ingestion bound to a ledger source and the configured corporation."""
        return JournalIngestionService(
            journal_repo=self.journal_repo,
            character_repo=self.character_repo,
            corporation_repo=self.corporation_repo,
            identity_lookup=self.directory,
            source=source,
            corporation_id=self._settings.corporation_id,
            division=self._settings.wallet_division,
            max_pages=self._settings.max_journal_pages,
            excluded_party_ids=self._settings.excluded_party_ids,
        )

    def close(self) -> None:
        if self._database is not None:
            logger.debug("closing_database_connection")
            self._database.close()

    def __enter__(self) -> "Container":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
