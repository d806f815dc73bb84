"""Tests for TaxAggregator."""

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from conftest import ALICE_ALT, ALICE_MAIN, BOB_MAIN, CORPORATION_ID, make_entry

from corporation_tax.domain.actors import User
from corporation_tax.domain.tax import TaxableFlags, TaxParameters
from corporation_tax.domain.value_objects import (
    JournalRefType,
    Money,
    Period,
    PeriodRange,
)
from corporation_tax.exceptions import MissingTaxParametersError, NotFoundError
from corporation_tax.repositories.sqlite import (
    SQLiteJournalRepository,
    SQLiteTaxReferenceRepository,
)
from corporation_tax.services.aggregation import TaxAggregator


def donation(entry_id: int, donor: int | None, amount: str, date: datetime | None = None):
    return make_entry(
        entry_id,
        JournalRefType.PLAYER_DONATION,
        amount,
        first_party_id=donor,
        second_party_id=CORPORATION_ID,
        date=date,
    )


class TestAmountPaid:
    def test_positive_donations_from_users_characters_count(
        self,
        aggregator: TaxAggregator,
        journal_repo: SQLiteJournalRepository,
        members: dict[str, int],
        november: Period,
    ):
        journal_repo.add(donation(1, ALICE_MAIN, "50.00"))
        journal_repo.add(donation(2, ALICE_ALT, "30.00"))
        journal_repo.add(donation(3, BOB_MAIN, "999.00"))

        assert aggregator.amount_paid(members["alice"], november) == Money.from_decimal(
            "80.00"
        )
        assert aggregator.amount_paid(members["bob"], november) == Money.from_decimal(
            "999.00"
        )

    def test_negative_donations_are_not_payments(
        self, aggregator, journal_repo, members, november
    ):
        journal_repo.add(donation(1, ALICE_MAIN, "50.00"))
        journal_repo.add(donation(2, ALICE_MAIN, "-20.00"))

        assert aggregator.amount_paid(members["alice"], november) == Money(5000)

    def test_other_ref_types_are_not_payments(
        self, aggregator, journal_repo, members, november
    ):
        journal_repo.add(
            make_entry(
                1,
                JournalRefType.CORPORATION_ACCOUNT_WITHDRAWAL,
                "75.00",
                first_party_id=ALICE_MAIN,
                second_party_id=CORPORATION_ID,
            )
        )

        assert aggregator.amount_paid(members["alice"], november).is_zero

    def test_donation_without_donor_is_skipped(
        self, aggregator, journal_repo, members, november
    ):
        journal_repo.add(donation(1, None, "50.00"))
        journal_repo.add(donation(2, ALICE_MAIN, "10.00"))

        assert aggregator.amount_paid(members["alice"], november) == Money(1000)

    def test_period_bounds_are_half_open(
        self, aggregator, journal_repo, members, november
    ):
        journal_repo.add(donation(1, ALICE_MAIN, "1.00", datetime(2025, 11, 1, tzinfo=UTC)))
        journal_repo.add(
            donation(2, ALICE_MAIN, "2.00", datetime(2025, 11, 30, 23, 59, 59, tzinfo=UTC))
        )
        journal_repo.add(donation(3, ALICE_MAIN, "4.00", datetime(2025, 12, 1, tzinfo=UTC)))
        journal_repo.add(
            donation(4, ALICE_MAIN, "8.00", datetime(2025, 10, 31, 23, 59, 59, tzinfo=UTC))
        )

        assert aggregator.amount_paid(members["alice"], november) == Money(300)
        assert aggregator.amount_paid(members["alice"], Period(2025, 12)) == Money(400)

    def test_newly_stored_donation_is_counted(
        self, aggregator, journal_repo, members, november
    ):
        journal_repo.add(donation(1, ALICE_MAIN, "10.00"))
        assert aggregator.amount_paid(members["alice"], november) == Money(1000)

        journal_repo.add(donation(2, ALICE_MAIN, "10.00"))
        assert aggregator.amount_paid(members["alice"], november) == Money(2000)


class TestMonthlyTax:
    def test_overpayment_gives_credit(
        self,
        aggregator: TaxAggregator,
        journal_repo: SQLiteJournalRepository,
        tax_repo: SQLiteTaxReferenceRepository,
        members: dict[str, int],
        november: Period,
        november_parameters,
        flat_only: TaxableFlags,
    ):
        tax_repo.set_taxable_flags(members["alice"], november, flat_only)
        journal_repo.add(donation(1, ALICE_MAIN, "80.00"))

        row = aggregator.monthly_tax(members["alice"], november)

        assert row.amount_due == Money.from_decimal("50.00")
        assert row.amount_paid == Money.from_decimal("80.00")
        assert row.balance == Money.from_decimal("-30.00")

    def test_untaxed_user_can_still_pay(self, aggregator, journal_repo, members, november):
        journal_repo.add(donation(1, BOB_MAIN, "25.00"))

        row = aggregator.monthly_tax(members["bob"], november)

        assert row.amount_due.is_zero
        assert row.amount_paid == Money(2500)


class TestUserSummary:
    def test_single_period_summary(
        self,
        aggregator,
        journal_repo,
        tax_repo,
        members,
        november,
        november_parameters,
        flat_only,
    ):
        tax_repo.set_taxable_flags(members["alice"], november, flat_only)
        journal_repo.add(donation(1, ALICE_MAIN, "80.00"))

        summary = aggregator.user_summary(members["alice"], PeriodRange(november, november))

        assert summary.display_name == "Alice Main"
        assert [row.period for row in summary.rows] == [november]
        assert summary.unpaid_total == Money.from_decimal("-30.00")

    def test_rows_are_in_ascending_period_order(
        self, aggregator, tax_repo, members, november, november_parameters
    ):
        december = Period(2025, 12)
        tax_repo.set_taxable_flags(members["bob"], november, TaxableFlags(flat=True))

        summary = aggregator.user_summary(members["bob"], PeriodRange(november, december))

        assert [row.period for row in summary.rows] == [november, december]
        assert summary.total_due == Money.from_decimal("50.00")
        assert summary.unpaid_total == Money.from_decimal("50.00")

    def test_unpaid_total_spans_periods(
        self, aggregator, journal_repo, tax_repo, members, november
    ):
        october = Period(2025, 10)
        for period, flat in ((october, "100.00"), (november, "40.00")):
            tax_repo.set_tax_parameters(
                TaxParameters(
                    period=period,
                    flat_charge=Money.from_decimal(flat),
                    performance_rate=Money.zero(),
                    performance_standard=Decimal(0),
                )
            )
            tax_repo.set_taxable_flags(members["bob"], period, TaxableFlags(flat=True))
        journal_repo.add(donation(1, BOB_MAIN, "60.00"))

        summary = aggregator.user_summary(members["bob"], PeriodRange(october, november))

        assert summary.total_due == Money.from_decimal("140.00")
        assert summary.total_paid == Money.from_decimal("60.00")
        assert summary.unpaid_total == Money.from_decimal("80.00")

    def test_missing_parameters_propagate(
        self, aggregator, tax_repo, members, november, flat_only
    ):
        tax_repo.set_taxable_flags(members["alice"], november, flat_only)

        with pytest.raises(MissingTaxParametersError):
            aggregator.user_summary(members["alice"], PeriodRange(november, november))

    def test_display_name_falls_back_to_group_nickname(
        self, aggregator, user_repo, november
    ):
        user = user_repo.add(User(nickname="carol", group_nickname="Carol"))

        summary = aggregator.user_summary(user.id, PeriodRange(november, november))

        assert summary.display_name == "Carol"

    def test_user_without_any_name_raises(self, aggregator, user_repo, november):
        user = user_repo.add(User(nickname="dave"))

        with pytest.raises(NotFoundError):
            aggregator.user_summary(user.id, PeriodRange(november, november))


class TestAllUsers:
    def test_summarizes_every_user(
        self, aggregator, journal_repo, tax_repo, members, november, november_parameters
    ):
        tax_repo.set_taxable_flags(members["alice"], november, TaxableFlags(flat=True))
        tax_repo.set_taxable_flags(members["bob"], november, TaxableFlags(flat=True))
        journal_repo.add(donation(1, BOB_MAIN, "50.00"))

        summaries = aggregator.all_users(PeriodRange(november, november))

        by_name = {summary.display_name: summary for summary in summaries}
        assert set(by_name) == {"Alice Main", "Bob Main"}
        assert by_name["Alice Main"].unpaid_total == Money.from_decimal("50.00")
        assert by_name["Bob Main"].unpaid_total.is_zero

    def test_no_users(self, aggregator, november):
        assert aggregator.all_users(PeriodRange(november, november)) == []

    def test_reads_each_period_once_for_all_users(
        self,
        journal_repo,
        character_repo,
        user_repo,
        classifier,
        calculator,
        directory,
        members,
        november,
    ):
        journal = MagicMock(wraps=journal_repo)
        aggregator = TaxAggregator(
            journal_repo=journal,
            character_repo=character_repo,
            user_repo=user_repo,
            classifier=classifier,
            calculator=calculator,
            directory=directory,
        )
        journal_repo.add(donation(1, ALICE_MAIN, "10.00"))

        summaries = aggregator.all_users(PeriodRange(november, Period(2025, 12)))

        assert len(summaries) == 2
        assert journal.list_in_range.call_count == 2

    def test_sees_donations_stored_between_calls(
        self, aggregator, journal_repo, members, november
    ):
        periods = PeriodRange(november, november)
        aggregator.all_users(periods)

        journal_repo.add(donation(1, BOB_MAIN, "50.00"))
        summaries = aggregator.all_users(periods)

        by_name = {summary.display_name: summary for summary in summaries}
        assert by_name["Bob Main"].total_paid == Money.from_decimal("50.00")
