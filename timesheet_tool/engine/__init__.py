"""Aggregation, valuation and validation engines."""
from timesheet_tool.engine.aggregator import aggregate
from timesheet_tool.engine.dashboard import build_dashboard_snapshot
from timesheet_tool.engine.validator import validate_dataset, validate_entries
from timesheet_tool.engine.valuation import calculate_timesheet, value_aggregation

__all__ = [
    "aggregate",
    "build_dashboard_snapshot",
    "calculate_timesheet",
    "validate_dataset",
    "validate_entries",
    "value_aggregation",
]
