# app/services/dashboard.py
"""Read-only Dashboard sheet: the derived progress series laid out per cable type."""
from __future__ import annotations

from typing import Any, List, Tuple

from app.schemas.progress import Project
from app.services.aggregator import ProgressSummary, TypeMetrics
from app.store.base import INFO_MARKER, TabularStore

DASHBOARD_SHEET = "Dashboard"
TOTAL_COLUMN = "Total"

KM_DECIMALS = 3
PCT_DECIMALS = 4

# (series, row label)
DASHBOARD_ROWS: Tuple[Tuple[str, str], ...] = (
    ("boqTotalKm", "BOQ Total (km)"),
    ("deliveredKm", "Delivered (km)"),
    ("pendingKm", "Pending (km)"),
    ("pulledKm", "Pulled (km)"),
    ("deliveredMinusPulledKm", "Delivered - Pulled (km)"),
    ("remainingVsBoqKm", "Remaining vs BOQ (km)"),
    ("lastWeekKm", "Last Week (km)"),
    ("thisWeekKm", "This Week (km)"),
    ("deliveryPct", "Delivery %"),
    ("pullingPct", "Pulling %"),
    ("srnDeliveryCount", "SRN Deliveries"),
)


def _fmt(series: str, value: Any) -> Any:
    if series == "srnDeliveryCount":
        return int(value)
    decimals = PCT_DECIMALS if series.endswith("Pct") else KM_DECIMALS
    # + 0.0 turns -0.0 into 0.0 so identical inputs render identically
    return round(float(value), decimals) + 0.0


def _heading(project: Project) -> str:
    name = project.name or "Cable installation"
    as_of = f" as of {project.as_of}" if project.as_of else ""
    return f"{INFO_MARKER} {name}{as_of}. Regenerated on every save; do not edit."


def build_dashboard(project: Project, summary: ProgressSummary) -> Tuple[List[str], List[Tuple[str, List[Any]]]]:
    """Return (column keys, metric rows) for the Dashboard sheet."""
    if not summary.configured:
        return [], [(f"{INFO_MARKER} {summary.message}", [])]

    columns: List[TypeMetrics] = [summary.by_type[t] for t in summary.types]
    columns.append(summary.totals())
    keys = [*summary.types, TOTAL_COLUMN]

    rows: List[Tuple[str, List[Any]]] = [(_heading(project), [None] * len(keys))]
    for series, label in DASHBOARD_ROWS:
        rows.append((label, [_fmt(series, m.get(series)) for m in columns]))
    return keys, rows


def write_dashboard(store: TabularStore, project: Project, summary: ProgressSummary) -> None:
    keys, rows = build_dashboard(project, summary)
    store.put_transposed(DASHBOARD_SHEET, keys, rows)


__all__ = ["DASHBOARD_ROWS", "DASHBOARD_SHEET", "TOTAL_COLUMN", "build_dashboard", "write_dashboard"]
