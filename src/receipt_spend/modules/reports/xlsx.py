from __future__ import annotations

import io
from datetime import date

from openpyxl import Workbook
from openpyxl.cell.rich_text import CellRichText, TextBlock
from openpyxl.cell.text import InlineFont
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from receipt_spend.modules.ledger.catalog import Section
from receipt_spend.modules.reports.layout import ReportRow, ReportSection, ReportTable

MONEY_FORMAT = "$#,##0.00"
MIN_DATA_ROWS = 10
FIRST_AMOUNT_COL = 3
LAST_COL = 7

COLUMN_WIDTHS = {"A": 13, "B": 55, "C": 16, "D": 15, "E": 16, "F": 19, "G": 15}
HEADER_FILLS = {
    Section.PROMOTION: PatternFill("solid", fgColor="1F4E79"),
    Section.OTHER: PatternFill("solid", fgColor="00A651"),
}
LABEL_FILL = PatternFill("solid", fgColor="D9E1F2")

_thin = Side(style="thin")
_medium = Side(style="medium")
GRID = Border(left=_thin, right=_thin, top=_thin, bottom=_thin)


def render_report_xlsx(table: ReportTable, *, submitted_on: date) -> bytes:
    """Render a laid-out report as a single-sheet workbook."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Expense Report"
    for letter, width in COLUMN_WIDTHS.items():
        ws.column_dimensions[letter].width = width

    _write_header(ws, table=table, submitted_on=submitted_on)

    row = 4
    promotion = table.section(Section.PROMOTION)
    row, promo_summary_row = _write_section(ws, section=promotion, start_row=row)

    # Promotion amounts are entered HST-inclusive; HST and net are filled in by accounting.
    for label in ("HST (G/L 2325-000)", "Net Amount (before HST)"):
        ws.cell(row=row, column=2, value=label).alignment = Alignment(horizontal="right")
        for col in _amount_columns(promotion):
            cell = ws.cell(row=row, column=col, value="-")
            cell.alignment = Alignment(horizontal="center")
            cell.border = GRID
        row += 1

    total_promo_row = row
    last_promo_col = get_column_letter(FIRST_AMOUNT_COL + len(promotion.codes) - 1)
    ws.merge_cells(start_row=row, start_column=1, end_row=row, end_column=LAST_COL - 1)
    label = ws.cell(row=row, column=1, value="TOTAL PROMOTION")
    label.font = Font(bold=True)
    label.alignment = Alignment(horizontal="right")
    total = ws.cell(
        row=row,
        column=LAST_COL,
        value=f"=SUM(C{promo_summary_row}:{last_promo_col}{promo_summary_row})",
    )
    _money_cell(total, bold=True)
    row += 2

    other = table.section(Section.OTHER)
    row, other_total_row = _write_section(ws, section=other, start_row=row)
    row += 1

    last_other_col = get_column_letter(FIRST_AMOUNT_COL + len(other.codes) - 1)
    ws.merge_cells(start_row=row, start_column=1, end_row=row, end_column=LAST_COL - 1)
    grand_label = ws.cell(row=row, column=1, value="GRAND TOTAL (Promotion + Other Expenses)")
    grand_label.font = Font(bold=True)
    grand_label.alignment = Alignment(horizontal="right")
    grand = ws.cell(
        row=row,
        column=LAST_COL,
        value=(
            f"=G{total_promo_row}+SUM(C{other_total_row}:{last_other_col}{other_total_row})"
        ),
    )
    _money_cell(grand, bold=True)
    row += 3

    _write_signatures(ws, row=row)

    out = io.BytesIO()
    wb.save(out)
    return out.getvalue()


def _write_header(ws: Worksheet, *, table: ReportTable, submitted_on: date) -> None:
    ws["A1"] = "Name:"
    ws["A1"].font = Font(bold=True)
    ws.merge_cells("B1:C1")
    ws["B1"] = table.name or None

    ws["E1"] = "Date Submitted:"
    ws["E1"].font = Font(bold=True)
    ws.merge_cells("F1:G1")
    ws["F1"] = submitted_on
    ws["F1"].number_format = "mmmm d yyyy"

    ws["A2"] = "Division to be charged:"
    ws["A2"].font = Font(bold=True)
    ws.merge_cells("B2:G2")
    ws["B2"] = table.department or None


def _amount_columns(section: ReportSection) -> range:
    return range(FIRST_AMOUNT_COL, FIRST_AMOUNT_COL + len(section.codes))


def _money_cell(cell, *, bold: bool = False) -> None:
    cell.number_format = MONEY_FORMAT
    cell.alignment = Alignment(horizontal="right")
    cell.border = GRID
    if bold:
        cell.font = Font(bold=True)


def _write_section(ws: Worksheet, *, section: ReportSection, start_row: int) -> tuple[int, int]:
    """Write one section; returns (next free row, row holding the column SUMs)."""
    last_col = FIRST_AMOUNT_COL + len(section.codes) - 1
    header_font = Font(bold=True, size=12, color="FFFFFF")
    fill = HEADER_FILLS[section.section]

    row = start_row
    ws.merge_cells(start_row=row, start_column=1, end_row=row, end_column=2)
    title = ws.cell(row=row, column=1, value=section.name)
    ws.merge_cells(start_row=row, start_column=FIRST_AMOUNT_COL, end_row=row, end_column=last_col)
    gl = ws.cell(row=row, column=FIRST_AMOUNT_COL, value="G/L ALLOCATION")
    for cell in (title, gl):
        cell.font = header_font
        cell.fill = fill
        cell.alignment = Alignment(horizontal="center", vertical="center")
    row += 1

    for col, code in zip(_amount_columns(section), section.codes, strict=True):
        cell = ws.cell(row=row, column=col, value=code.code if code.selectable else None)
        cell.font = Font(bold=True, size=10)
        cell.alignment = Alignment(horizontal="center")
        cell.border = GRID
    row += 1

    labels = ["DATE", "DESCRIPTION", *(c.category_name for c in section.codes)]
    for col, text in enumerate(labels, start=1):
        cell = ws.cell(row=row, column=col, value=text)
        cell.font = Font(bold=True, size=10)
        cell.fill = LABEL_FILL
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
        cell.border = GRID
    row += 1

    data_start = row
    n_rows = max(len(section.rows), MIN_DATA_ROWS)
    for idx in range(n_rows):
        report_row = section.rows[idx] if idx < len(section.rows) else None
        _write_data_row(ws, row=row, section=section, report_row=report_row)
        row += 1
    data_end = row - 1

    summary_row = row
    label = (
        "Total Promotion Expenses (incl. HST)"
        if section.section == Section.PROMOTION
        else "TOTAL"
    )
    label_cell = ws.cell(row=row, column=2, value=label)
    label_cell.font = Font(bold=True)
    label_cell.alignment = Alignment(horizontal="right")
    for col in _amount_columns(section):
        letter = get_column_letter(col)
        cell = ws.cell(row=row, column=col, value=f"=SUM({letter}{data_start}:{letter}{data_end})")
        _money_cell(cell, bold=True)
    for col in range(1, last_col + 1):
        cell = ws.cell(row=row, column=col)
        cell.border = Border(
            left=cell.border.left,
            right=cell.border.right,
            top=_medium,
            bottom=cell.border.bottom,
        )
    return row + 1, summary_row


def _write_data_row(
    ws: Worksheet, *, row: int, section: ReportSection, report_row: ReportRow | None
) -> None:
    date_cell = ws.cell(row=row, column=1)
    date_cell.alignment = Alignment(horizontal="center", vertical="center")
    date_cell.border = GRID
    desc_cell = ws.cell(row=row, column=2)
    desc_cell.alignment = Alignment(horizontal="left", vertical="center", wrap_text=True)
    desc_cell.border = GRID

    for col in _amount_columns(section):
        _money_cell(ws.cell(row=row, column=col))

    if report_row is None:
        return

    date_cell.value = report_row.date
    date_cell.number_format = "yyyy-mm-dd"
    desc_cell.value = _description_value(report_row)
    for col, code in zip(_amount_columns(section), section.codes, strict=True):
        amount = report_row.amounts.get(code.code)
        if amount is not None:
            ws.cell(row=row, column=col, value=float(amount))


def _description_value(report_row: ReportRow) -> CellRichText | str:
    text = report_row.description_text
    merchant = report_row.merchant
    if not merchant or not text.startswith(merchant):
        return text
    rest = text[len(merchant) :]
    bold = TextBlock(InlineFont(b=True), merchant)
    return CellRichText(bold, rest) if rest else CellRichText(bold)


def _write_signatures(ws: Worksheet, *, row: int) -> None:
    line = Border(top=_thin)
    for col in (1, 2):
        ws.cell(row=row, column=col).border = line
    for col in range(4, LAST_COL + 1):
        ws.cell(row=row, column=col).border = line
    ws.cell(row=row + 1, column=1, value="Signature of Claimant").font = Font(italic=True)
    ws.cell(row=row + 1, column=4, value="Department Head/Manager").font = Font(italic=True)
