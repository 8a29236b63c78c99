from __future__ import annotations

import copy
from datetime import date

import pytest

from app.schemas.progress import FullModel, Project, Snapshot
from app.services.dashboard import DASHBOARD_SHEET
from app.services.reconcile import ReconciliationController
from app.store import MemoryStore, StoreError


class FailingDashboardStore(MemoryStore):
    def write_grid(self, name, grid, text_columns=()):
        if name == DASHBOARD_SHEET:
            raise StoreError("sheet is protected")
        super().write_grid(name, grid, text_columns)


class UnreadableStore(MemoryStore):
    def read_grid(self, name):
        raise StoreError("backend offline")


def _dashboard_rows(store):
    return {row[0]: row[1:] for row in store.grids[DASHBOARD_SHEET]}


def test_write_then_read_round_trip(seeded, sample_payload):
    assert seeded.read_all().to_json() == FullModel.from_json(sample_payload).to_json()


def test_read_of_empty_store_gives_defaults(controller):
    model = controller.read_all().to_json()
    assert model["project"]["types"] == []
    assert model["boq"] == {}
    assert model["srn"] == []
    assert model["manual"] == {}
    assert model["snapshots"] == []


def test_absent_sections_are_not_written(controller, store, sample_payload):
    store.grids["Snapshots"] = [["ID", "Week", "Date", "Pulled (m)", "Total (m)"], ["keep me"]]
    payload = {"project": sample_payload["project"], "boq": sample_payload["boq"]}

    result = controller.write_all(FullModel.from_json(payload))

    assert result.success
    assert result.sections == ["project", "boq"]
    assert store.writes == ["Config", "BOQ", DASHBOARD_SHEET]
    assert store.grids["Snapshots"][1] == ["keep me"]


def test_write_all_is_idempotent(seeded, store, sample_payload):
    before = copy.deepcopy(store.grids)
    seeded.write_all(FullModel.from_json(sample_payload))
    assert store.grids == before


def test_dashboard_values(seeded, store):
    grid = store.grids[DASHBOARD_SHEET]
    assert grid[0] == ["Metric", "HV", "LV", "FO", "Total"]
    assert grid[1][0].startswith("ℹ Substation 3 Cabling as of 2024-03-15")

    rows = _dashboard_rows(store)
    assert rows["BOQ Total (km)"] == [1.0, 2.5, 0.0, 3.5]
    assert rows["Delivered (km)"] == [0.5, 1.0, 0.12, 1.62]
    assert rows["Pending (km)"] == [0.5, 1.5, -0.12, 1.88]
    assert rows["Pulled (km)"] == [0.3, 0.6, 0.0, 0.9]
    assert rows["Delivery %"] == [0.5, 0.4, 0.0, 0.4629]
    assert rows["SRN Deliveries"] == [2, 1, 0, 3]


def test_dashboard_when_no_types_configured(controller, store):
    controller.write_all(FullModel(project=Project(name="Empty")))
    assert store.grids[DASHBOARD_SHEET] == [["Metric"], ["ℹ No cable types configured."]]


def test_dashboard_failure_is_a_warning(sample_payload):
    store = FailingDashboardStore()
    result = ReconciliationController(store).write_all(FullModel.from_json(sample_payload))

    assert result.success is True
    assert result.warnings == ["Dashboard refresh failed: sheet is protected"]
    assert result.to_json() == {"success": True, "warnings": result.warnings}
    assert DASHBOARD_SHEET not in store.grids
    assert set(store.grids) == {"Config", "BOQ", "SRN", "Manual", "Snapshots"}


def test_write_partial_leaves_other_tables_byte_identical(seeded, store):
    before = copy.deepcopy(store.grids)
    store.writes.clear()

    result = seeded.write_partial("srn", [{"type": "HV", "date": "19/03/2024", "length": 250, "ref": "SRN-009"}])

    assert result.success and not result.warnings
    assert store.writes == ["SRN", DASHBOARD_SHEET]
    for name in ("Config", "BOQ", "Manual", "Snapshots"):
        assert store.grids[name] == before[name]

    rows = _dashboard_rows(store)
    assert rows["Delivered (km)"][0] == 0.25
    assert rows["SRN Deliveries"] == [1, 0, 0, 1]


def test_write_partial_explicit_override_changes_dashboard(seeded, store):
    manual = seeded.read_all().to_json()["manual"]
    manual["HV"]["delivered"] = 200

    seeded.write_partial("manual", manual)

    assert _dashboard_rows(store)["Delivered (km)"][0] == 0.2
    assert seeded.read_all().manual["HV"].delivered.metres == 200.0


def test_write_partial_surfaces_read_failure():
    store = UnreadableStore()
    with pytest.raises(StoreError):
        ReconciliationController(store).write_partial("boq", {"HV": {"total": 10}})
    assert store.writes == []


def test_write_partial_rejects_unknown_section(seeded, store):
    store.writes.clear()
    with pytest.raises(ValueError, match="Unknown sheetKey: dashboard"):
        seeded.write_partial("dashboard", {})
    assert store.writes == []


def test_take_snapshot_appends_current_pulled(seeded, store):
    snapshot, result = seeded.take_snapshot(today=date(2024, 3, 15))

    assert result.success
    assert snapshot.week_label == "2024-W11"
    assert snapshot.date == "15/03/2024"
    assert snapshot.pulled == {"HV": 300.0, "LV": 600.0, "FO": 0.0}
    assert snapshot.total == 900.0
    assert snapshot.id > 1

    history = seeded.read_all().snapshots
    assert [s.week_label for s in history] == ["2024-W10", "2024-W11"]
    assert history[-1] == snapshot


def test_take_snapshot_ids_increase(controller):
    controller.write_all(FullModel(snapshots=[Snapshot(id=10**15, week_label="far", date="01/01/2024")]))
    snapshot, _ = controller.take_snapshot(week_label="manual label")
    assert snapshot.id == 10**15 + 1
    assert snapshot.week_label == "manual label"


def test_null_sections_are_left_untouched(seeded, store):
    before = copy.deepcopy(store.grids)
    store.writes.clear()

    result = seeded.write_all(FullModel.from_json({"manual": {}, "snapshots": None, "project": None}))

    assert result.sections == ["manual"]
    assert store.writes == ["Manual", DASHBOARD_SHEET]
    assert store.grids["Snapshots"] == before["Snapshots"]
    assert store.grids["Config"] == before["Config"]
    model = seeded.read_all()
    assert len(model.snapshots) == 1
    assert model.project.type_names == ["HV", "LV", "FO"]


def test_srn_rows_without_type_survive_write_all(controller, sample_payload):
    sample_payload["srn"].append({"type": "", "date": "20/03/2024", "length": 75, "ref": "unassigned"})
    controller.write_all(FullModel.from_json(sample_payload))

    srn = controller.read_all().srn
    assert len(srn) == 4
    assert srn[-1].ref == "unassigned"
    _, summary = controller.summary()
    assert summary.totals().srn_delivery_count == 3


def test_partial_project_with_new_type_order_reorders_transposed_tables(seeded, store, sample_payload):
    store.writes.clear()
    project = sample_payload["project"]
    project["types"] = list(reversed(project["types"]))

    seeded.write_partial("project", project)

    assert store.writes == ["Config", "BOQ", "Manual", DASHBOARD_SHEET]
    assert store.grids["BOQ"][0] == ["Metric", "FO", "LV", "HV"]
    assert store.grids["Manual"][0] == ["Metric", "FO", "LV", "HV"]
    assert store.grids[DASHBOARD_SHEET][0] == ["Metric", "FO", "LV", "HV", "Total"]


def test_partial_project_with_same_types_writes_config_only(seeded, store, sample_payload):
    before = copy.deepcopy(store.grids)
    store.writes.clear()
    project = dict(sample_payload["project"], asOf="2024-03-22")

    seeded.write_partial("project", project)

    assert store.writes == ["Config", DASHBOARD_SHEET]
    assert store.grids["BOQ"] == before["BOQ"]
    assert seeded.read_all().project.as_of == "2024-03-22"
