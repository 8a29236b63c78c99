# app/services/codec.py
"""
Domain codec: typed progress model <-> tabular store.

Two physical layouts are used:

* row-per-record (SRN, Snapshots): fixed column order, one record per row;
  rows whose first cell starts with the info marker are help text and skipped.
* transposed (BOQ, Manual): cable types are the header columns and each
  physical row is one metric. ``untranspose`` / ``transpose`` are shared by both.

Config is a Key/Value table whose values are JSON encoded.

Decoding never raises on cell content: malformed cells fall back to defaults.
Exceptions raised by the store itself are propagated to the caller.
"""
from __future__ import annotations

import json
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from app.schemas.progress import (
    Boq,
    BoqEntry,
    FullModel,
    Manual,
    ManualOverride,
    Project,
    Snapshot,
    SrnRecord,
)
from app.store.base import Table, TabularStore, Transposed, info_row, is_info_cell
from app.utils.dates import normalize_date

CONFIG_SHEET = "Config"
BOQ_SHEET = "BOQ"
SRN_SHEET = "SRN"
MANUAL_SHEET = "Manual"
SNAPSHOTS_SHEET = "Snapshots"

CONFIG_COLUMNS = ["Key", "Value"]
SRN_COLUMNS = ["Type", "Date", "Length (m)", "Ref"]
SNAPSHOT_COLUMNS = ["ID", "Week", "Date", "Pulled (m)", "Total (m)"]

# (field, row label) in physical row order
BOQ_METRICS: Tuple[Tuple[str, str], ...] = (
    ("total", "BOQ Total (m)"),
    ("color", "Color"),
)
MANUAL_METRICS: Tuple[Tuple[str, str], ...] = (
    ("delivered", "Delivered (m)"),
    ("pulled", "Pulled (m)"),
    ("lastWeek", "Last Week (m)"),
    ("thisWeek", "This Week (m)"),
)

CONFIG_DEFAULTS: Dict[str, Any] = {
    "name": "",
    "startDate": "",
    "targetDate": "",
    "asOf": "",
    "types": [],
}

SRN_HELP = "One row per delivery. Date as DD/MM/YYYY, length in metres."
SNAPSHOT_HELP = "Weekly history of cumulative pulled metres. Append only."

Metrics = Sequence[Tuple[str, str]]


# ---------------------------------------------------------------------------
# Generic transposition
# ---------------------------------------------------------------------------

def column_order(present: Sequence[str], order: Sequence[str] = ()) -> List[str]:
    """Keys of ``present`` in caller order; keys the caller did not list are appended."""
    present_set = set(present)
    ordered = [k for k in dict.fromkeys(order) if k in present_set]
    seen = set(ordered)
    ordered += [k for k in present if k not in seen]
    return ordered


def untranspose(table: Optional[Transposed], metrics: Metrics) -> Dict[str, Dict[str, Any]]:
    """
    metric rows x type columns -> {type: {field: raw cell}}.
    Unknown metric labels and info rows are ignored; missing cells read as None.
    """
    if table is None:
        return {}
    label_to_field = {label.strip().lower(): f for f, label in metrics}

    by_metric: Dict[str, Dict[str, Any]] = {}
    for label, values in table.metric_rows:
        if is_info_cell(label):
            continue
        field = label_to_field.get(label.strip().lower())
        if field is None:
            continue
        by_metric[field] = {
            key: values[i] if i < len(values) else None
            for i, key in enumerate(table.column_keys)
        }

    out: Dict[str, Dict[str, Any]] = {}
    for key in table.column_keys:
        if not key or is_info_cell(key) or key in out:
            continue
        out[key] = {f: by_metric.get(f, {}).get(key) for f, _ in metrics}
    return out


def transpose(
    records: Mapping[str, Mapping[str, Any]],
    metrics: Metrics,
    order: Sequence[str] = (),
) -> Transposed:
    """{type: {field: value}} -> one physical row per metric, columns in ``order``."""
    keys = column_order(list(records.keys()), order)
    rows = [(label, [records[k].get(f) for k in keys]) for f, label in metrics]
    return Transposed(column_keys=keys, metric_rows=rows)


# ---------------------------------------------------------------------------
# Config / Project
# ---------------------------------------------------------------------------

def parse_json_cell(value: Any) -> Any:
    """JSON-decode text cells; anything that does not parse is kept as the raw value."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()[:10]
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except ValueError:
        return value


def decode_config(table: Optional[Table]) -> Dict[str, Any]:
    config = {k: (list(v) if isinstance(v, list) else v) for k, v in CONFIG_DEFAULTS.items()}
    if table is None:
        return config
    for row in table.rows:
        if not row or is_info_cell(row[0]):
            continue
        key = "" if row[0] is None else str(row[0]).strip()
        if not key:
            continue
        config[key] = parse_json_cell(row[1] if len(row) > 1 else None)
    return config


def decode_project(table: Optional[Table]) -> Project:
    return Project.from_json(decode_config(table))


def encode_project(project: Project) -> List[List[str]]:
    return [[key, json.dumps(value)] for key, value in project.to_json().items()]


# ---------------------------------------------------------------------------
# BOQ / Manual (transposed)
# ---------------------------------------------------------------------------

def decode_boq(table: Optional[Transposed]) -> Boq:
    return {k: BoqEntry.from_json(v) for k, v in untranspose(table, BOQ_METRICS).items()}


def encode_boq(boq: Boq, order: Sequence[str] = ()) -> Transposed:
    records = {k: {"total": e.total, "color": e.color} for k, e in boq.items()}
    return transpose(records, BOQ_METRICS, order)


def decode_manual(table: Optional[Transposed]) -> Manual:
    return {k: ManualOverride.from_json(v) for k, v in untranspose(table, MANUAL_METRICS).items()}


def encode_manual(manual: Manual, order: Sequence[str] = ()) -> Transposed:
    records = {
        k: {
            "delivered": m.delivered.to_cell(),
            "pulled": m.pulled,
            "lastWeek": m.last_week,
            "thisWeek": m.this_week,
        }
        for k, m in manual.items()
    }
    return transpose(records, MANUAL_METRICS, order)


# ---------------------------------------------------------------------------
# SRN / Snapshots (row-per-record)
# ---------------------------------------------------------------------------

def _data_rows(table: Optional[Table]) -> List[List[Any]]:
    if table is None:
        return []
    out = []
    for row in table.rows:
        if not row or is_info_cell(row[0]):
            continue
        if all(v is None or (isinstance(v, str) and not v.strip()) for v in row):
            continue
        out.append(list(row))
    return out


def _cell(row: Sequence[Any], idx: int) -> Any:
    return row[idx] if idx < len(row) else None


def decode_srn(table: Optional[Table]) -> List[SrnRecord]:
    records = []
    for row in _data_rows(table):
        rec = SrnRecord.from_json(
            {
                "type": _cell(row, 0),
                "date": _cell(row, 1),
                "length": _cell(row, 2),
                "ref": _cell(row, 3),
            }
        )
        if rec is not None:
            records.append(rec)
    return records


def encode_srn(records: Sequence[SrnRecord]) -> List[List[Any]]:
    rows: List[List[Any]] = [info_row(SRN_HELP)]
    rows += [[r.type, normalize_date(r.date), r.length, r.ref] for r in records]
    return rows


def decode_snapshots(table: Optional[Table]) -> List[Snapshot]:
    snapshots = []
    for row in _data_rows(table):
        pulled = parse_json_cell(_cell(row, 3))
        raw_date = _cell(row, 2)
        snapshots.append(
            Snapshot.from_json(
                {
                    "id": _cell(row, 0),
                    "weekLabel": _cell(row, 1),
                    # text is kept as written; only dates the host converted are formatted back
                    "date": normalize_date(raw_date) if isinstance(raw_date, (date, datetime)) else raw_date,
                    "pulled": pulled if isinstance(pulled, dict) else {},
                    "total": _cell(row, 4),
                }
            )
        )
    return snapshots


def encode_snapshots(snapshots: Sequence[Snapshot]) -> List[List[Any]]:
    rows: List[List[Any]] = [info_row(SNAPSHOT_HELP)]
    rows += [
        [s.id, s.week_label, s.date, json.dumps(s.pulled), s.total]
        for s in snapshots
    ]
    return rows


# ---------------------------------------------------------------------------
# Store-level helpers used by the reconciliation controller
# ---------------------------------------------------------------------------

def read_section(store: TabularStore, section: str):
    if section == "project":
        return decode_project(store.get_table(CONFIG_SHEET))
    if section == "boq":
        return decode_boq(store.get_transposed(BOQ_SHEET))
    if section == "srn":
        return decode_srn(store.get_table(SRN_SHEET))
    if section == "manual":
        return decode_manual(store.get_transposed(MANUAL_SHEET))
    if section == "snapshots":
        return decode_snapshots(store.get_table(SNAPSHOTS_SHEET))
    raise ValueError(f"Unknown section: {section}")


def write_section(store: TabularStore, section: str, value, type_order: Sequence[str] = ()) -> None:
    if section == "project":
        store.put_table(CONFIG_SHEET, CONFIG_COLUMNS, encode_project(value), text_columns=CONFIG_COLUMNS)
    elif section == "boq":
        t = encode_boq(value, type_order)
        store.put_transposed(BOQ_SHEET, t.column_keys, t.metric_rows)
    elif section == "srn":
        store.put_table(SRN_SHEET, SRN_COLUMNS, encode_srn(value), text_columns=["Date", "Ref"])
    elif section == "manual":
        t = encode_manual(value, type_order)
        store.put_transposed(MANUAL_SHEET, t.column_keys, t.metric_rows)
    elif section == "snapshots":
        store.put_table(
            SNAPSHOTS_SHEET,
            SNAPSHOT_COLUMNS,
            encode_snapshots(value),
            text_columns=["Week", "Date", "Pulled (m)"],
        )
    else:
        raise ValueError(f"Unknown section: {section}")


def read_model(store: TabularStore, sections: Sequence[str]) -> FullModel:
    return FullModel(**{s: read_section(store, s) for s in sections})


__all__ = [
    "BOQ_METRICS",
    "BOQ_SHEET",
    "CONFIG_SHEET",
    "MANUAL_METRICS",
    "MANUAL_SHEET",
    "SNAPSHOTS_SHEET",
    "SRN_SHEET",
    "column_order",
    "decode_boq",
    "decode_config",
    "decode_manual",
    "decode_project",
    "decode_snapshots",
    "decode_srn",
    "encode_boq",
    "encode_manual",
    "encode_project",
    "encode_snapshots",
    "encode_srn",
    "parse_json_cell",
    "read_model",
    "read_section",
    "transpose",
    "untranspose",
    "write_section",
]
