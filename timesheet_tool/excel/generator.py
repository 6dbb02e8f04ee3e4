"""Layer 5 — Excel workbook generator.

Writes pre-computed export rows into an openpyxl workbook and applies the
presentation layer: borders, header and zebra fills, column widths, frozen
panes, print setup and currency formats. No totals are computed here and
Excel formulas are NOT used.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Optional

import openpyxl
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.page import PageMargins
from openpyxl.worksheet.worksheet import Worksheet

from timesheet_tool.excel.sheets import (
    TOTAL_LABEL,
    ExportDataset,
    ExportKind,
    SheetData,
    build_sheet,
)

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# Formatting constants
BORDER_SIDE = Side(style="thin", color="FFCBD5E1")
THIN_BORDER = Border(left=BORDER_SIDE, right=BORDER_SIDE, top=BORDER_SIDE, bottom=BORDER_SIDE)
HEADER_FILL = PatternFill(fill_type="solid", fgColor="FFE8F1FF")
ZEBRA_FILL = PatternFill(fill_type="solid", fgColor="FFF7F7F8")
HEADER_FONT = Font(name="Calibri", size=11, bold=True)
TOTAL_FONT = Font(name="Calibri", size=11, bold=True)
HEADER_ALIGN = Alignment(horizontal="center", vertical="center", wrap_text=True)
DATA_ALIGN = Alignment(horizontal="left", vertical="center", wrap_text=True)
EURO_FORMAT = '"€"0.00'

MAX_SHEET_TITLE = 31
MIN_COLUMN_WIDTH = 4
MAX_COLUMN_WIDTH = 40

# Payroll sheet: rate and cost columns (1-based)
PAYROLL_CURRENCY_COLUMNS = (3, 5)


@dataclass(frozen=True)
class WorkbookOptions:
    apply_print_setup: bool = True
    apply_colors: bool = True


def _write_sheet(ws: Worksheet, sheet: SheetData, options: WorkbookOptions) -> None:
    for row in sheet.rows:
        ws.append(row)

    if not sheet.rows:
        return

    column_count = len(sheet.rows[0])
    row_count = len(sheet.rows)

    ws.freeze_panes = "B2"

    for row_idx, row in enumerate(sheet.rows, start=1):
        for col_idx in range(1, len(row) + 1):
            cell = ws.cell(row=row_idx, column=col_idx)
            cell.border = THIN_BORDER
            if row_idx == 1:
                cell.font = HEADER_FONT
                cell.alignment = HEADER_ALIGN
                if options.apply_colors:
                    cell.fill = HEADER_FILL
            else:
                cell.alignment = DATA_ALIGN
                # zebra on every other body row, starting with the first
                if options.apply_colors and row_idx % 2 == 0:
                    cell.fill = ZEBRA_FILL

    # --- Column widths ---
    for col_idx in range(1, column_count + 1):
        longest = MIN_COLUMN_WIDTH
        for row in sheet.rows:
            if col_idx > len(row) or row[col_idx - 1] is None:
                continue
            longest = max(longest, len(str(row[col_idx - 1])))
        ws.column_dimensions[get_column_letter(col_idx)].width = min(MAX_COLUMN_WIDTH, longest + 2)

    if options.apply_print_setup and column_count > 0:
        last_col = get_column_letter(column_count)
        ws.print_area = f"A1:{last_col}{row_count}"
        ws.print_title_rows = "1:1"
        ws.page_setup.orientation = "landscape"
        ws.sheet_properties.pageSetUpPr.fitToPage = True
        ws.page_setup.fitToWidth = 1
        ws.page_setup.fitToHeight = 1
        ws.print_options.horizontalCentered = True
        ws.print_options.verticalCentered = False
        ws.page_margins = PageMargins(left=0.5, right=0.5, top=0.5, bottom=0.5, header=0.3, footer=0.3)


def _post_format(ws: Worksheet, kind: ExportKind) -> None:
    """Bold the TOTAL rows and apply euro formats on the payroll sheet."""
    for row in ws.iter_rows():
        first = row[0].value
        if isinstance(first, str) and first.strip().upper() == TOTAL_LABEL:
            for cell in row:
                cell.font = TOTAL_FONT

    if kind != ExportKind.PAYROLL:
        return

    for row in ws.iter_rows(min_row=2):
        for col_idx in PAYROLL_CURRENCY_COLUMNS:
            if col_idx > len(row):
                continue
            cell = row[col_idx - 1]
            if isinstance(cell.value, (int, float)):
                cell.number_format = EURO_FORMAT


def build_workbook(
    sheets: list[SheetData],
    kind: ExportKind,
    options: Optional[WorkbookOptions] = None,
) -> openpyxl.Workbook:
    options = options or WorkbookOptions()
    wb = openpyxl.Workbook()
    wb.remove(wb.active)

    for sheet in sheets:
        ws = wb.create_sheet(title=sheet.name[:MAX_SHEET_TITLE])
        _write_sheet(ws, sheet, options)
        _post_format(ws, kind)

    return wb


def generate_workbook(
    dataset: ExportDataset,
    kind: ExportKind,
    options: Optional[WorkbookOptions] = None,
) -> openpyxl.Workbook:
    sheet = build_sheet(dataset, kind)
    logger.info(
        "Building %s export for project %s (%s): %d rows",
        kind.value, dataset.project.id, dataset.period.value, len(sheet.rows),
    )
    return build_workbook([sheet], kind, options)


def workbook_bytes(
    dataset: ExportDataset,
    kind: ExportKind,
    options: Optional[WorkbookOptions] = None,
) -> bytes:
    buffer = BytesIO()
    generate_workbook(dataset, kind, options).save(buffer)
    return buffer.getvalue()


def generate_excel_report(
    dataset: ExportDataset,
    kind: ExportKind,
    output_path: str | Path,
    options: Optional[WorkbookOptions] = None,
) -> Path:
    """Write the requested export to ``output_path`` and return it."""
    output_path = Path(output_path)
    generate_workbook(dataset, kind, options).save(str(output_path))
    return output_path
