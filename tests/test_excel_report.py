"""Tests for the openpyxl report renderer."""

from datetime import UTC, datetime, timedelta, timezone

import pytest
from openpyxl import load_workbook

from corporation_tax.domain.tax import MonthlyTax, UserTaxSummary
from corporation_tax.domain.value_objects import (
    ActorRef,
    JournalRefType,
    Money,
    Period,
    PeriodRange,
)
from corporation_tax.reports.excel import (
    GREEN_FILL,
    JOURNAL_HEADERS,
    JOURNAL_SHEET_TITLE,
    RED_FILL,
    TAX_SHEET_TITLE,
    journal_workbook,
    save_workbook,
    tax_workbook,
)
from corporation_tax.services.reporting import JournalReportRow

RED = RED_FILL.fgColor.rgb
GREEN = GREEN_FILL.fgColor.rgb


def journal_row(
    entry_id: int,
    ref_type: JournalRefType,
    amount: str | None,
    actor_name: str | None = None,
) -> JournalReportRow:
    return JournalReportRow(
        entry_id=entry_id,
        date=datetime(2025, 11, 3, 8, 30, tzinfo=UTC),
        ref_type=ref_type,
        amount=Money.from_decimal(amount) if amount is not None else None,
        balance=Money.from_decimal("1000.00"),
        actor=ActorRef.individual(1) if actor_name else None,
        actor_name=actor_name,
        description=f"entry {entry_id}",
    )


@pytest.fixture
def journal_sheet(tmp_path):
    rows = [
        journal_row(1, JournalRefType.PLAYER_DONATION, "100.00", "Alice Main"),
        journal_row(2, JournalRefType.OFFICE_RENTAL_FEE, "-25.00", "Other Corp"),
        journal_row(3, JournalRefType.BOUNTY_PRIZES, "50.00"),
        journal_row(4, JournalRefType.CORPORATION_ACCOUNT_WITHDRAWAL, "10.00"),
        journal_row(5, JournalRefType.MARKET_ESCROW, None),
    ]
    path = save_workbook(journal_workbook(rows), tmp_path / "out" / "journal.xlsx")
    return load_workbook(path)[JOURNAL_SHEET_TITLE]


class TestJournalSheet:
    def test_headers(self, journal_sheet):
        assert [cell.value for cell in journal_sheet[1]] == JOURNAL_HEADERS

    def test_row_values(self, journal_sheet):
        values = [cell.value for cell in journal_sheet[2]]

        assert values == [
            datetime(2025, 11, 3, 8, 30),
            "Player Donation",
            100.0,
            1000.0,
            "Alice Main",
            "entry 1",
        ]

    def test_unknown_actor_is_blank(self, journal_sheet):
        assert journal_sheet.cell(row=4, column=5).value in (None, "")

    def test_negative_rows_are_red(self, journal_sheet):
        assert journal_sheet.cell(row=3, column=1).fill.fgColor.rgb == RED
        assert journal_sheet.cell(row=3, column=6).fill.fgColor.rgb == RED

    def test_positive_donations_and_withdrawals_are_green(self, journal_sheet):
        assert journal_sheet.cell(row=2, column=3).fill.fgColor.rgb == GREEN
        assert journal_sheet.cell(row=5, column=3).fill.fgColor.rgb == GREEN

    def test_other_income_is_not_highlighted(self, journal_sheet):
        assert journal_sheet.cell(row=4, column=3).fill.fill_type is None
        assert journal_sheet.cell(row=6, column=3).fill.fill_type is None


class TestTaxSheet:
    @pytest.fixture
    def tax_sheet(self, tmp_path):
        november = Period(2025, 11)
        december = Period(2025, 12)
        owing = UserTaxSummary(
            user_id=1,
            display_name="Alice Main",
            rows=[
                MonthlyTax(
                    november,
                    flat_charge=Money(5000),
                    performance_charge=Money(20000),
                    amount_paid=Money(0),
                ),
                MonthlyTax(
                    december,
                    flat_charge=Money(5000),
                    performance_charge=Money(0),
                    amount_paid=Money(5000),
                ),
            ],
        )
        in_credit = UserTaxSummary(
            user_id=2,
            display_name="Bob Main",
            rows=[
                MonthlyTax(
                    november,
                    flat_charge=Money(5000),
                    performance_charge=Money(0),
                    amount_paid=Money(8000),
                ),
                MonthlyTax(
                    december,
                    flat_charge=Money(0),
                    performance_charge=Money(0),
                    amount_paid=Money(0),
                ),
            ],
        )
        workbook = tax_workbook([owing, in_credit], PeriodRange(november, december))
        path = save_workbook(workbook, tmp_path / "tax.xlsx")
        return load_workbook(path)[TAX_SHEET_TITLE]

    def test_merged_headers(self, tax_sheet):
        merged = {str(cell_range) for cell_range in tax_sheet.merged_cells.ranges}

        assert merged == {"A1:A2", "B1:B2", "C1:E1", "F1:H1"}

    def test_header_titles(self, tax_sheet):
        assert tax_sheet["A1"].value == "Main Character"
        assert tax_sheet["B1"].value == "Unpaid"
        assert tax_sheet["C1"].value == "2025-11"
        assert tax_sheet["F1"].value == "2025-12"
        assert [tax_sheet.cell(row=2, column=col).value for col in range(3, 9)] == [
            "Performance Tax",
            "Flat Tax",
            "Paid",
            "Performance Tax",
            "Flat Tax",
            "Paid",
        ]

    def test_user_rows(self, tax_sheet):
        assert [cell.value for cell in tax_sheet[3]] == [
            "Alice Main",
            250.0,
            200.0,
            50.0,
            0.0,
            0.0,
            50.0,
            50.0,
        ]
        assert tax_sheet["B4"].value == -30.0

    def test_positive_unpaid_is_red(self, tax_sheet):
        assert tax_sheet["B3"].fill.fgColor.rgb == RED
        assert tax_sheet["B4"].fill.fill_type is None

    def test_column_widths(self, tax_sheet):
        assert tax_sheet.column_dimensions["A"].width == 16
        assert tax_sheet.column_dimensions["H"].width == 16


class TestExcelDatetime:
    def test_dates_are_written_in_utc(self, tmp_path):
        shanghai = timezone(timedelta(hours=8))
        row = JournalReportRow(
            entry_id=1,
            date=datetime(2025, 11, 3, 16, 30, tzinfo=shanghai),
            ref_type=JournalRefType.PLAYER_DONATION,
            amount=Money(100),
            balance=None,
            actor=None,
            actor_name=None,
            description="",
        )
        path = save_workbook(journal_workbook([row]), tmp_path / "tz.xlsx")

        ws = load_workbook(path)[JOURNAL_SHEET_TITLE]
        assert ws["A2"].value == datetime(2025, 11, 3, 8, 30)
        assert ws["D2"].value is None
