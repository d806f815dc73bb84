from corporation_tax.services.accrual import AccrualCalculator, compute_liability
from corporation_tax.services.actor_directory import ActorDirectory, IdentityLookup
from corporation_tax.services.aggregation import TaxAggregator
from corporation_tax.services.ingestion import (
    IngestionResult,
    JournalIngestionService,
    LedgerSource,
)
from corporation_tax.services.journal_classifier import (
    Classification,
    ClassificationRule,
    JournalClassifier,
)
from corporation_tax.services.reporting import JournalReportRow, ReportingService

__all__ = [
    "AccrualCalculator",
    "ActorDirectory",
    "Classification",
    "ClassificationRule",
    "IdentityLookup",
    "IngestionResult",
    "JournalClassifier",
    "JournalIngestionService",
    "JournalReportRow",
    "LedgerSource",
    "ReportingService",
    "TaxAggregator",
    "compute_liability",
]
