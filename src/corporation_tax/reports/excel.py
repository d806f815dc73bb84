"""Spreadsheet rendering of journal and tax report rows with openpyxl."""

from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Alignment, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from corporation_tax.domain.tax import UserTaxSummary
from corporation_tax.domain.value_objects import JournalRefType, PeriodRange
from corporation_tax.logging_config import get_logger
from corporation_tax.services.reporting import JournalReportRow

logger = get_logger(__name__)

RED_FILL = PatternFill("solid", start_color="FFFFC7CE", end_color="FFFFC7CE")
GREEN_FILL = PatternFill("solid", start_color="FFC6EFCE", end_color="FFC6EFCE")
CENTER = Alignment(horizontal="center", vertical="center")

DATE_FORMAT = "yyyy-mm-dd hh:mm:ss"
ISK_FORMAT = '#,##0.00 "ISK";-#,##0.00 "ISK";"-"'

JOURNAL_SHEET_TITLE = "Wallet Journal"
TAX_SHEET_TITLE = "Tax"
JOURNAL_HEADERS = ["Date", "Type", "Amount", "Balance", "Actor", "Description"]

# Income rows highlighted in the journal sheet
_HIGHLIGHTED_INCOME = frozenset(
    {JournalRefType.PLAYER_DONATION, JournalRefType.CORPORATION_ACCOUNT_WITHDRAWAL}
)


def _excel_datetime(moment: datetime) -> datetime:
    # Cells cannot hold tz-aware datetimes
    return moment.astimezone(UTC).replace(tzinfo=None)


def _row_fill(row: JournalReportRow) -> PatternFill | None:
    if row.amount is None:
        return None
    if row.amount.is_negative:
        return RED_FILL
    if row.amount.is_positive and row.ref_type in _HIGHLIGHTED_INCOME:
        return GREEN_FILL
    return None


def write_journal_sheet(ws: Worksheet, rows: Sequence[JournalReportRow]) -> None:
    for col, header in enumerate(JOURNAL_HEADERS, start=1):
        cell = ws.cell(row=1, column=col, value=header)
        cell.alignment = CENTER

    for index, row in enumerate(rows, start=2):
        values = [
            _excel_datetime(row.date),
            row.ref_type.display_name,
            row.amount.to_float() if row.amount is not None else None,
            row.balance.to_float() if row.balance is not None else None,
            row.actor_name or "",
            row.description,
        ]
        fill = _row_fill(row)
        for col, value in enumerate(values, start=1):
            cell = ws.cell(row=index, column=col, value=value)
            if col == 1:
                cell.number_format = DATE_FORMAT
            elif col in (3, 4):
                cell.number_format = ISK_FORMAT
            if fill is not None:
                cell.fill = fill


def write_tax_sheet(
    ws: Worksheet, summaries: Sequence[UserTaxSummary], periods: PeriodRange
) -> None:
    """Two header rows, then one row per user.

    Columns A and B hold the display name and the unpaid total; each period
    then takes three columns: performance charge, flat charge, amount paid.
    """
    for col, title in ((1, "Main Character"), (2, "Unpaid")):
        cell = ws.cell(row=1, column=col, value=title)
        cell.alignment = CENTER
        ws.merge_cells(start_row=1, start_column=col, end_row=2, end_column=col)

    for index, period in enumerate(periods):
        col = index * 3 + 3
        cell = ws.cell(row=1, column=col, value=str(period))
        cell.alignment = CENTER
        ws.merge_cells(start_row=1, start_column=col, end_row=1, end_column=col + 2)
        for offset, title in enumerate(("Performance Tax", "Flat Tax", "Paid")):
            ws.cell(row=2, column=col + offset, value=title).alignment = CENTER

    for row_index, summary in enumerate(summaries, start=3):
        ws.cell(row=row_index, column=1, value=summary.display_name)

        unpaid = summary.unpaid_total
        cell = ws.cell(row=row_index, column=2, value=unpaid.to_float())
        cell.number_format = ISK_FORMAT
        if unpaid.is_positive:
            cell.fill = RED_FILL

        for index, monthly in enumerate(summary.rows):
            col = index * 3 + 3
            amounts = (
                monthly.performance_charge,
                monthly.flat_charge,
                monthly.amount_paid,
            )
            for offset, amount in enumerate(amounts):
                cell = ws.cell(
                    row=row_index, column=col + offset, value=amount.to_float()
                )
                cell.number_format = ISK_FORMAT

    for col in range(1, ws.max_column + 1):
        ws.column_dimensions[get_column_letter(col)].width = 16


def journal_workbook(rows: Sequence[JournalReportRow]) -> Workbook:
    workbook = Workbook()
    ws = workbook.active
    ws.title = JOURNAL_SHEET_TITLE
    write_journal_sheet(ws, rows)
    return workbook


def tax_workbook(summaries: Sequence[UserTaxSummary], periods: PeriodRange) -> Workbook:
    workbook = Workbook()
    ws = workbook.active
    ws.title = TAX_SHEET_TITLE
    write_tax_sheet(ws, summaries, periods)
    return workbook


def save_workbook(workbook: Workbook, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    workbook.save(path)
    logger.info("workbook_saved", path=str(path), sheets=workbook.sheetnames)
    return path
