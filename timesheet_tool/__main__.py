"""CLI entry point.

Usage:
    python -m timesheet_tool export \
        --dataset "data.json" \
        --project-id 1 \
        --month 2026-03 \
        --kind payroll \
        --out "timesheet.xlsx" \
        --audit-out "Audit.json"

    python -m timesheet_tool dashboard \
        --dataset "data.json" \
        --mode quarter \
        --value 2026-Q1
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from timesheet_tool.config import configure_logging
from timesheet_tool.formatting import format_coverage, format_currency, format_duration
from timesheet_tool.models import DatasetValidationError, InvalidPeriodError, NotFoundError

app = typer.Typer(help="Timesheet aggregation, payroll estimates and spreadsheet exports.")


@app.command()
def export(
    dataset: str = typer.Option(..., "--dataset", help="Path to the JSON dataset"),
    project_id: int = typer.Option(..., "--project-id", help="Project to export"),
    month: str = typer.Option(..., "--month", help="Month to export (YYYY-MM)"),
    kind: str = typer.Option("payroll", "--kind", help="payroll, detail or global"),
    out: Optional[str] = typer.Option(None, "--out", help="Output Excel file path"),
    audit_out: Optional[str] = typer.Option(None, "--audit-out", help="Output audit JSON file path"),
    strict: bool = typer.Option(True, "--strict/--no-strict", help="Validate entries before exporting"),
    no_colors: bool = typer.Option(False, "--no-colors", help="Skip header and zebra fills"),
    no_print_setup: bool = typer.Option(False, "--no-print-setup", help="Skip print area and page setup"),
) -> None:
    """Compute a project's monthly timesheet and write the requested export."""
    from timesheet_tool.audit import generate_audit
    from timesheet_tool.engine import validate_dataset
    from timesheet_tool.excel import (
        ExportKind,
        WorkbookOptions,
        build_export_dataset,
        export_filename,
        generate_excel_report,
    )
    from timesheet_tool.store import TimesheetStore, read_dataset

    configure_logging()

    try:
        export_kind = ExportKind(kind)
    except ValueError:
        typer.echo(f"ERROR: Unsupported export kind: {kind}", err=True)
        raise typer.Exit(1)

    out_path = Path(out or export_filename(project_id, month, export_kind))

    try:
        typer.echo(f"Loading dataset: {dataset}")
        raw = read_dataset(dataset)
        store = TimesheetStore.from_dict(raw)
        data = store.load_timesheet(project_id, month)
        typer.echo(f"  Project: {data.project.name} ({data.project.client_label})")
        typer.echo(f"  Period: {data.period.label}")
        typer.echo(f"  Assigned workers: {len(data.assigned_workers)}")

        if strict:
            typer.echo("\nRunning strict validation...")
            validate_dataset(raw, store, data.period)
            typer.echo("  Validation PASSED")

        typer.echo("\nCalculating...")
        export_data = build_export_dataset(data)
        valuation = export_data.valuation
        for cost in valuation.worker_costs:
            typer.echo(
                f"  {cost.worker.export_name}: {format_duration(cost.hours)} "
                f"({cost.worked_days} j) -> {format_currency(cost.total_cost)}"
            )
        typer.echo(f"\n  Total hours: {format_duration(valuation.total_hours)}")
        typer.echo(f"  Invoice estimate: {format_currency(valuation.invoice_estimate)}")
        typer.echo(f"  Payroll estimate: {format_currency(valuation.payroll_estimate)}")
        typer.echo(f"  Margin estimate: {format_currency(valuation.margin_estimate)}")
        typer.echo(f"  Payroll coverage: {format_coverage(valuation.payroll_coverage)}")

        options = WorkbookOptions(apply_print_setup=not no_print_setup, apply_colors=not no_colors)
        typer.echo(f"\nGenerating {export_kind.value} export: {out_path}...")
        generate_excel_report(export_data, export_kind, out_path, options)
        typer.echo(f"  Excel report saved to: {out_path}")

        if audit_out:
            generate_audit(export_data, audit_out)
            typer.echo(f"  Audit file saved to: {audit_out}")

        typer.echo("\nSUCCESS: Export generated.")

    except DatasetValidationError as e:
        typer.echo("\nDATASET VALIDATION FAILED:", err=True)
        for error in e.errors:
            typer.echo(f"  ERROR: {error}", err=True)
        raise typer.Exit(1)

    except (NotFoundError, InvalidPeriodError, OSError) as e:
        typer.echo(f"\nERROR: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def dashboard(
    dataset: str = typer.Option(..., "--dataset", help="Path to the JSON dataset"),
    mode: str = typer.Option("month", "--mode", help="month or quarter"),
    value: Optional[str] = typer.Option(None, "--value", help="YYYY-MM or YYYY-Qn (default: current month)"),
) -> None:
    """Print the account-wide dashboard snapshot for a month or a quarter."""
    from timesheet_tool.engine import build_dashboard_snapshot
    from timesheet_tool.periods import sanitize_period
    from timesheet_tool.store import load_store

    configure_logging()

    try:
        store = load_store(dataset)
    except DatasetValidationError as e:
        typer.echo("DATASET VALIDATION FAILED:", err=True)
        for error in e.errors:
            typer.echo(f"  ERROR: {error}", err=True)
        raise typer.Exit(1)
    except OSError as e:
        typer.echo(f"ERROR: {e}", err=True)
        raise typer.Exit(1)

    period = sanitize_period(mode, value)
    snapshot = build_dashboard_snapshot(store, period)

    typer.echo(f"Dashboard: {period.label}")
    typer.echo(f"  Amount to invoice: {format_currency(snapshot.amount_to_invoice)}")
    typer.echo(f"  Amount to pay:     {format_currency(snapshot.amount_to_pay)}")
    typer.echo(f"  Billable hours:    {format_duration(snapshot.billable_hours)}")
    typer.echo(f"  Estimated margin:  {format_currency(snapshot.estimated_margin)}")
    typer.echo(f"  Active projects: {snapshot.active_projects}, active workers: {snapshot.active_workers}")

    typer.echo("\nTop clients:")
    for client in snapshot.top_clients:
        typer.echo(f"  {client.label}: {format_currency(client.amount)} ({format_duration(client.hours)})")

    typer.echo("\nTop projects:")
    for project in snapshot.top_projects:
        typer.echo(
            f"  {project.label}: {format_currency(project.amount)}, "
            f"margin {format_currency(project.margin)}"
        )

    if snapshot.alerts:
        typer.echo("\nAlerts:")
        for alert in snapshot.alerts:
            typer.echo(f"  [{alert.type}] {alert.title}: {alert.description}")


if __name__ == "__main__":
    app()
