"""Timesheet aggregation, payroll/billing valuation and spreadsheet export."""

__version__ = "1.0.0"
