# app/schemas/progress.py
"""
Domain model for cable installation progress.

The JSON shape produced by ``to_json`` / accepted by ``from_json`` is the wire
payload used by the ``/exec`` endpoint and the UI:

    {
      "project":   {"name", "startDate", "targetDate", "asOf", "types": [{"name", "color"}]},
      "boq":       {<type>: {"total", "color"}},
      "srn":       [{"type", "date", "length", "ref"}],
      "manual":    {<type>: {"delivered", "pulled", "lastWeek", "thisWeek"}},
      "snapshots": [{"id", "weekLabel", "date", "pulled": {<type>: metres}, "total"}]
    }

``from_json`` is tolerant: wrong container types and unparseable numbers fall back
to empty/zero defaults instead of raising.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Union

from app.utils.dates import normalize_date
from app.utils.numeric import coerce_float, coerce_int

SECTIONS = ("project", "boq", "srn", "manual", "snapshots")

AUTO_MARKER = "auto"


def _num(value: Any) -> float:
    out = coerce_float(value)
    return out if out is not None else 0.0


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def default_snapshot_id() -> int:
    return int(datetime.now(timezone.utc).timestamp() * 1000)


# ---------------------------------------------------------------------------
# Delivered: Auto | Explicit(metres)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AutoDelivered:
    """Delivered length is the sum of the SRN log for the type."""

    def to_json(self) -> None:
        return None

    def to_cell(self) -> str:
        return AUTO_MARKER


@dataclass(frozen=True)
class ExplicitDelivered:
    metres: float

    def to_json(self) -> float:
        return self.metres

    def to_cell(self) -> float:
        return self.metres


AUTO = AutoDelivered()
Delivered = Union[AutoDelivered, ExplicitDelivered]


def decode_delivered(value: Any) -> Delivered:
    """
    Empty, missing, the literal "null" and any casing of "auto" mean AUTO.
    Everything else is an explicit number; garbage is an explicit 0, not AUTO.
    """
    if isinstance(value, (AutoDelivered, ExplicitDelivered)):
        return value
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return AUTO
    if isinstance(value, str):
        text = value.strip()
        if not text or text == "null" or text.lower() == AUTO_MARKER:
            return AUTO
    return ExplicitDelivered(_num(value))


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------

@dataclass
class CableType:
    name: str
    color: str = ""

    @classmethod
    def from_json(cls, data: Any) -> Optional["CableType"]:
        if isinstance(data, Mapping):
            name = _text(data.get("name"))
            color = _text(data.get("color"))
        else:
            name, color = _text(data), ""
        return cls(name=name, color=color) if name else None

    def to_json(self) -> dict:
        return {"name": self.name, "color": self.color}


@dataclass
class Project:
    name: str = ""
    start_date: str = ""
    target_date: str = ""
    as_of: str = ""
    types: List[CableType] = field(default_factory=list)

    @property
    def type_names(self) -> List[str]:
        return [t.name for t in self.types]

    @classmethod
    def from_json(cls, data: Any) -> "Project":
        data = _mapping(data)
        types: List[CableType] = []
        seen: set[str] = set()
        raw_types = data.get("types")
        for item in raw_types if isinstance(raw_types, list) else []:
            ct = CableType.from_json(item)
            if ct is None or ct.name in seen:
                continue
            seen.add(ct.name)
            types.append(ct)
        return cls(
            name=_text(data.get("name")),
            start_date=_text(data.get("startDate")),
            target_date=_text(data.get("targetDate")),
            as_of=_text(data.get("asOf")),
            types=types,
        )

    def to_json(self) -> dict:
        return {
            "name": self.name,
            "startDate": self.start_date,
            "targetDate": self.target_date,
            "asOf": self.as_of,
            "types": [t.to_json() for t in self.types],
        }


@dataclass
class BoqEntry:
    total: float = 0.0
    color: str = ""

    @classmethod
    def from_json(cls, data: Any) -> "BoqEntry":
        data = _mapping(data)
        return cls(total=_num(data.get("total")), color=_text(data.get("color")))

    def to_json(self) -> dict:
        return {"total": self.total, "color": self.color}


@dataclass
class SrnRecord:
    type: str
    date: str = ""
    length: float = 0.0
    ref: str = ""

    @classmethod
    def from_json(cls, data: Any) -> Optional["SrnRecord"]:
        """Rows without a type are kept (they count towards no type); non-objects are not rows."""
        if not isinstance(data, Mapping):
            return None
        return cls(
            type=_text(data.get("type")),
            date=normalize_date(data.get("date")),
            length=_num(data.get("length")),
            ref=_text(data.get("ref")),
        )

    def to_json(self) -> dict:
        return {"type": self.type, "date": self.date, "length": self.length, "ref": self.ref}


@dataclass
class ManualOverride:
    delivered: Delivered = AUTO
    pulled: float = 0.0
    last_week: float = 0.0
    this_week: float = 0.0

    @classmethod
    def from_json(cls, data: Any) -> "ManualOverride":
        data = _mapping(data)
        return cls(
            delivered=decode_delivered(data.get("delivered")),
            pulled=_num(data.get("pulled")),
            last_week=_num(data.get("lastWeek")),
            this_week=_num(data.get("thisWeek")),
        )

    def to_json(self) -> dict:
        return {
            "delivered": self.delivered.to_json(),
            "pulled": self.pulled,
            "lastWeek": self.last_week,
            "thisWeek": self.this_week,
        }


@dataclass
class Snapshot:
    id: int
    week_label: str = ""
    date: str = ""
    pulled: Dict[str, float] = field(default_factory=dict)
    total: float = 0.0

    @classmethod
    def from_json(cls, data: Any) -> "Snapshot":
        data = _mapping(data)
        snap_id = coerce_int(data.get("id"))
        return cls(
            id=snap_id if snap_id is not None else default_snapshot_id(),
            week_label=_text(data.get("weekLabel")),
            date=_text(data.get("date")),
            pulled={str(k): _num(v) for k, v in _mapping(data.get("pulled")).items()},
            total=_num(data.get("total")),
        )

    def to_json(self) -> dict:
        return {
            "id": self.id,
            "weekLabel": self.week_label,
            "date": self.date,
            "pulled": dict(self.pulled),
            "total": self.total,
        }


Boq = Dict[str, BoqEntry]
Manual = Dict[str, ManualOverride]


# ---------------------------------------------------------------------------
# Full model (sections are optional: absent == not part of this payload)
# ---------------------------------------------------------------------------

def section_from_json(section: str, payload: Any):
    if section == "project":
        return Project.from_json(payload)
    if section == "boq":
        return {str(k): BoqEntry.from_json(v) for k, v in _mapping(payload).items()}
    if section == "manual":
        return {str(k): ManualOverride.from_json(v) for k, v in _mapping(payload).items()}
    if section == "srn":
        records = (SrnRecord.from_json(r) for r in (payload if isinstance(payload, list) else []))
        return [r for r in records if r is not None]
    if section == "snapshots":
        return [Snapshot.from_json(s) for s in (payload if isinstance(payload, list) else [])]
    raise ValueError(f"Unknown section: {section}")


def section_to_json(section: str, value) -> Any:
    if section == "project":
        return value.to_json()
    if section in ("boq", "manual"):
        return {k: v.to_json() for k, v in value.items()}
    if section in ("srn", "snapshots"):
        return [v.to_json() for v in value]
    raise ValueError(f"Unknown section: {section}")


@dataclass
class FullModel:
    project: Optional[Project] = None
    boq: Optional[Boq] = None
    srn: Optional[List[SrnRecord]] = None
    manual: Optional[Manual] = None
    snapshots: Optional[List[Snapshot]] = None

    @classmethod
    def from_json(cls, data: Any) -> "FullModel":
        data = _mapping(data)
        # a section sent as null is treated as absent, never as an empty table
        return cls(**{s: section_from_json(s, data[s]) for s in SECTIONS if data.get(s) is not None})

    def to_json(self) -> dict:
        return {
            s: section_to_json(s, getattr(self, s))
            for s in SECTIONS
            if getattr(self, s) is not None
        }

    def present_sections(self) -> List[str]:
        return [s for s in SECTIONS if getattr(self, s) is not None]

    def with_section(self, section: str, value) -> "FullModel":
        if section not in SECTIONS:
            raise ValueError(f"Unknown section: {section}")
        return replace(self, **{section: value})


__all__ = [
    "AUTO",
    "AUTO_MARKER",
    "AutoDelivered",
    "Boq",
    "BoqEntry",
    "CableType",
    "Delivered",
    "ExplicitDelivered",
    "FullModel",
    "Manual",
    "ManualOverride",
    "Project",
    "SECTIONS",
    "Snapshot",
    "SrnRecord",
    "decode_delivered",
    "default_snapshot_id",
    "section_from_json",
    "section_to_json",
]
