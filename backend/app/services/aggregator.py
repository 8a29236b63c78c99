# app/services/aggregator.py
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Union

from app.schemas.progress import (
    AutoDelivered,
    BoqEntry,
    ManualOverride,
    Project,
    SrnRecord,
)
from app.utils.numeric import safe_divide, to_km

# camelCase names of the per-type series, in display order
SERIES = (
    "boqTotalKm",
    "deliveredKm",
    "pendingKm",
    "pulledKm",
    "deliveredMinusPulledKm",
    "remainingVsBoqKm",
    "lastWeekKm",
    "thisWeekKm",
    "deliveryPct",
    "pullingPct",
    "srnDeliveryCount",
)

_FIELD_BY_SERIES = {
    "boqTotalKm": "boq_total_km",
    "deliveredKm": "delivered_km",
    "pendingKm": "pending_km",
    "pulledKm": "pulled_km",
    "deliveredMinusPulledKm": "delivered_minus_pulled_km",
    "remainingVsBoqKm": "remaining_vs_boq_km",
    "lastWeekKm": "last_week_km",
    "thisWeekKm": "this_week_km",
    "deliveryPct": "delivery_pct",
    "pullingPct": "pulling_pct",
    "srnDeliveryCount": "srn_delivery_count",
}


@dataclass
class TypeMetrics:
    boq_total_km: float = 0.0
    delivered_km: float = 0.0
    pending_km: float = 0.0
    pulled_km: float = 0.0
    delivered_minus_pulled_km: float = 0.0
    remaining_vs_boq_km: float = 0.0
    last_week_km: float = 0.0
    this_week_km: float = 0.0
    delivery_pct: float = 0.0
    pulling_pct: float = 0.0
    srn_delivery_count: int = 0
    # "manual" when an explicit delivered override was used, "srn" when summed
    delivered_source: str = "srn"

    def get(self, series: str):
        return getattr(self, _FIELD_BY_SERIES[series])

    def to_json(self) -> dict:
        out = {name: self.get(name) for name in SERIES}
        out["deliveredSource"] = self.delivered_source
        return out


def _resolve(
    boq_total_km: float,
    delivered_km: float,
    pulled_km: float,
    last_week_km: float,
    this_week_km: float,
    srn_delivery_count: int,
    delivered_source: str,
) -> TypeMetrics:
    # Pending and remaining are not clamped: negatives mean over-delivery/over-pull.
    return TypeMetrics(
        boq_total_km=boq_total_km,
        delivered_km=delivered_km,
        pending_km=boq_total_km - delivered_km,
        pulled_km=pulled_km,
        delivered_minus_pulled_km=delivered_km - pulled_km,
        remaining_vs_boq_km=boq_total_km - pulled_km,
        last_week_km=last_week_km,
        this_week_km=this_week_km,
        delivery_pct=(safe_divide(delivered_km, boq_total_km) or 0.0) if boq_total_km > 0 else 0.0,
        pulling_pct=(safe_divide(pulled_km, boq_total_km) or 0.0) if boq_total_km > 0 else 0.0,
        srn_delivery_count=srn_delivery_count,
        delivered_source=delivered_source,
    )


@dataclass
class DerivedMetrics:
    types: List[str]
    by_type: Dict[str, TypeMetrics] = field(default_factory=dict)

    configured = True

    def series(self, name: str) -> Dict[str, float]:
        return {t: self.by_type[t].get(name) for t in self.types}

    def totals(self) -> TypeMetrics:
        rows = [self.by_type[t] for t in self.types]
        return _resolve(
            boq_total_km=sum(r.boq_total_km for r in rows),
            delivered_km=sum(r.delivered_km for r in rows),
            pulled_km=sum(r.pulled_km for r in rows),
            last_week_km=sum(r.last_week_km for r in rows),
            this_week_km=sum(r.this_week_km for r in rows),
            srn_delivery_count=sum(r.srn_delivery_count for r in rows),
            delivered_source="mixed" if len({r.delivered_source for r in rows}) > 1 else (
                rows[0].delivered_source if rows else "srn"
            ),
        )

    def to_json(self) -> dict:
        return {
            "configured": True,
            "types": list(self.types),
            "metrics": {t: self.by_type[t].to_json() for t in self.types},
            "totals": self.totals().to_json(),
        }


@dataclass
class NotConfigured:
    """No cable types are configured yet; distinct from a table of zero metrics."""

    message: str = "No cable types configured."

    configured = False

    def to_json(self) -> dict:
        return {"configured": False, "message": self.message, "types": [], "metrics": {}}


ProgressSummary = Union[DerivedMetrics, NotConfigured]


def derive_metrics(
    project: Project,
    boq: Optional[Mapping[str, BoqEntry]],
    srn: Optional[Sequence[SrnRecord]],
    manual: Optional[Mapping[str, ManualOverride]],
) -> ProgressSummary:
    """
    Compute the per-type progress series over ``project.types`` (order preserved).

    Delivered length comes from the manual override when it is explicit, otherwise
    from the sum of SRN lengths for that type. All quantities are stored in metres
    and reported in km.
    """
    types = project.type_names
    if not types:
        return NotConfigured()

    boq = boq or {}
    manual = manual or {}

    srn_sum: Dict[str, float] = defaultdict(float)
    srn_count: Dict[str, int] = defaultdict(int)
    for rec in srn or []:
        srn_sum[rec.type] += rec.length
        srn_count[rec.type] += 1

    by_type: Dict[str, TypeMetrics] = {}
    for t in types:
        entry = boq.get(t)
        override = manual.get(t) or ManualOverride()

        if isinstance(override.delivered, AutoDelivered):
            delivered_km, source = to_km(srn_sum.get(t, 0.0)), "srn"
        else:
            delivered_km, source = to_km(override.delivered.metres), "manual"

        by_type[t] = _resolve(
            boq_total_km=to_km(entry.total if entry else 0.0),
            delivered_km=delivered_km,
            pulled_km=to_km(override.pulled),
            last_week_km=to_km(override.last_week),
            this_week_km=to_km(override.this_week),
            srn_delivery_count=srn_count.get(t, 0),
            delivered_source=source,
        )

    return DerivedMetrics(types=types, by_type=by_type)


__all__ = [
    "DerivedMetrics",
    "NotConfigured",
    "ProgressSummary",
    "SERIES",
    "TypeMetrics",
    "derive_metrics",
]
