"""Spreadsheet export: row builders and workbook generator."""
from timesheet_tool.excel.generator import (
    XLSX_MEDIA_TYPE,
    WorkbookOptions,
    generate_excel_report,
    workbook_bytes,
)
from timesheet_tool.excel.sheets import (
    ExportKind,
    build_export_dataset,
    build_sheet,
    export_filename,
)

__all__ = [
    "XLSX_MEDIA_TYPE",
    "ExportKind",
    "WorkbookOptions",
    "build_export_dataset",
    "build_sheet",
    "export_filename",
    "generate_excel_report",
    "workbook_bytes",
]
