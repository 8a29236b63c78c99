# app/services/reconcile.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, List, Optional, Sequence, Tuple

import structlog

from app.observability.metrics import DASHBOARD_REFRESH_FAILURES, SECTION_WRITES
from app.schemas.progress import (
    SECTIONS,
    FullModel,
    ManualOverride,
    Project,
    Snapshot,
    default_snapshot_id,
    section_from_json,
)
from app.services.aggregator import ProgressSummary, derive_metrics
from app.services.codec import read_model, read_section, write_section
from app.services.dashboard import write_dashboard
from app.store.base import TabularStore
from app.utils.dates import format_day_first

logger = structlog.get_logger(__name__)

# sections the derived metrics depend on
DERIVED_FROM = ("project", "boq", "srn", "manual")


@dataclass
class WriteResult:
    success: bool = True
    sections: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_json(self) -> dict:
        out: dict[str, Any] = {"success": self.success}
        if self.warnings:
            out["warnings"] = list(self.warnings)
        return out


class ReconciliationController:
    """
    Full read, full write and partial write of the progress model.

    Writes happen in two phases: the primary sections present in the payload are
    persisted first, in ``SECTIONS`` order; then the Dashboard is re-derived and
    written. A Dashboard failure is logged and reported as a warning, the write
    itself still succeeds.
    """

    def __init__(self, store: TabularStore) -> None:
        self.store = store

    # -- reads --------------------------------------------------------------

    def read_all(self) -> FullModel:
        return read_model(self.store, SECTIONS)

    def summary(self) -> Tuple[Project, ProgressSummary]:
        model = read_model(self.store, DERIVED_FROM)
        return model.project, derive_metrics(model.project, model.boq, model.srn, model.manual)

    # -- writes -------------------------------------------------------------

    def write_all(self, model: FullModel, only: Optional[Iterable[str]] = None) -> WriteResult:
        """
        Persist every section present in ``model`` (restricted to ``only`` when given);
        absent sections are left untouched in the store.
        """
        allowed = set(only) if only is not None else None
        targets = [s for s in model.present_sections() if allowed is None or s in allowed]

        type_order = self._type_order(model, targets)
        for section in targets:
            write_section(self.store, section, getattr(model, section), type_order)
            SECTION_WRITES.labels(section=section).inc()
            logger.info("reconcile.section_written", section=section)

        result = WriteResult(sections=targets)
        try:
            summary = self.refresh_dashboard(model)
        except Exception as ex:
            DASHBOARD_REFRESH_FAILURES.inc()
            logger.exception("reconcile.dashboard_refresh_failed", error=str(ex))
            result.warnings.append(f"Dashboard refresh failed: {ex}")
        else:
            logger.info(
                "reconcile.dashboard_refreshed",
                configured=summary.configured,
                types=len(getattr(summary, "types", [])),
            )
        logger.info("reconcile.write_completed", sections=result.sections, warnings=len(result.warnings))
        return result

    def write_partial(self, section: str, payload: Any) -> WriteResult:
        """
        Replace one section and re-derive. The current model is read first; a read
        failure propagates instead of silently treating the payload as the whole model.

        Only the replaced section is rewritten, except that a project whose type list
        changed also rewrites BOQ and Manual so their columns follow the new order,
        as a full write of the merged model would.
        """
        if section not in SECTIONS:
            raise ValueError(f"Unknown sheetKey: {section}")
        value = section_from_json(section, payload)
        current = self.read_all()

        only = [section]
        if section == "project" and value.type_names != current.project.type_names:
            only += ["boq", "manual"]
        return self.write_all(current.with_section(section, value), only=only)

    def refresh_dashboard(self, model: FullModel) -> ProgressSummary:
        """Derive from ``model``, falling back to stored values for sections it lacks."""
        missing = [s for s in DERIVED_FROM if getattr(model, s) is None]
        stored = read_model(self.store, missing)
        effective = {s: getattr(model, s) if getattr(model, s) is not None else getattr(stored, s) for s in DERIVED_FROM}

        summary = derive_metrics(effective["project"], effective["boq"], effective["srn"], effective["manual"])
        write_dashboard(self.store, effective["project"], summary)
        return summary

    # -- snapshots ----------------------------------------------------------

    def take_snapshot(self, week_label: Optional[str] = None, today: Optional[date] = None) -> Tuple[Snapshot, WriteResult]:
        """Append the current cumulative pulled metres per type to the snapshot history."""
        current = self.read_all()
        today = today or date.today()
        iso_year, iso_week, _ = today.isocalendar()

        pulled = {
            t: (current.manual.get(t) or ManualOverride()).pulled
            for t in current.project.type_names
        }
        last_id = max((s.id for s in current.snapshots), default=0)
        snapshot = Snapshot(
            id=max(default_snapshot_id(), last_id + 1),
            week_label=week_label or f"{iso_year}-W{iso_week:02d}",
            date=format_day_first(today),
            pulled=pulled,
            total=sum(pulled.values()),
        )

        merged = current.with_section("snapshots", [*current.snapshots, snapshot])
        result = self.write_all(merged, only=["snapshots"])
        logger.info("snapshot.taken", snapshot_id=snapshot.id, week=snapshot.week_label, total=snapshot.total)
        return snapshot, result

    # -- helpers ------------------------------------------------------------

    def _type_order(self, model: FullModel, targets: Sequence[str]) -> List[str]:
        if model.project is not None:
            return model.project.type_names
        if not {"boq", "manual"} & set(targets):
            return []
        return read_section(self.store, "project").type_names


__all__ = ["DERIVED_FROM", "ReconciliationController", "WriteResult"]
