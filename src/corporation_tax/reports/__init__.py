"""Spreadsheet rendering of report rows."""

from corporation_tax.reports.excel import (
    journal_workbook,
    save_workbook,
    tax_workbook,
    write_journal_sheet,
    write_tax_sheet,
)

__all__ = [
    "journal_workbook",
    "save_workbook",
    "tax_workbook",
    "write_journal_sheet",
    "write_tax_sheet",
]
