import pytest

from tracker.ingest import UnknownModuleError
from tracker.metrics_cost import compute_cost
from tracker.metrics_manpower import compute_manpower
from tracker.modules import REQUIRED_FIELDS
from tracker.store import JsonSpecStore, SpecStore


def test_json_store_round_trip(tmp_path, manpower_rows, now):
    store = JsonSpecStore(tmp_path)
    spec = compute_manpower(manpower_rows, now=now)
    store.save("manpower", spec)
    assert (tmp_path / "default" / "manpower.json").exists()
    assert store.get("manpower") == spec
    assert store.get("cost") is None
    assert store.modules() == ["manpower"]


def test_latest_upload_wins(tmp_path, manpower_rows, now):
    store = JsonSpecStore(tmp_path)
    store.save("manpower", compute_manpower(manpower_rows, now=now))
    newer = compute_manpower(manpower_rows[:1], now="2024-03-02T08:00:00Z")
    store.save("manpower", newer)
    assert store.get("manpower").last_updated == "2024-03-02T08:00:00Z"


def test_projects_are_separate(tmp_path, cost_rows, now):
    store = JsonSpecStore(tmp_path)
    store.save("cost", compute_cost(cost_rows, now=now), project_id="tower-a")
    assert store.get("cost", "tower-a") is not None
    assert store.get("cost") is None
    assert store.modules("tower-b") == []


def test_records_beside_spec(tmp_path, manpower_rows):
    store = JsonSpecStore(tmp_path)
    path = store.save_records("manpower", manpower_rows, REQUIRED_FIELDS["manpower"])
    assert path.name == "manpower.rows.csv"
    assert store.load_records("manpower") == manpower_rows
    assert store.load_records("cost") == []


def test_unknown_module_rejected(tmp_path, manpower_rows, now):
    with pytest.raises(UnknownModuleError):
        JsonSpecStore(tmp_path).save("safety", compute_manpower(manpower_rows, now=now))


def test_memory_store(manpower_rows, now):
    store = SpecStore()
    spec = compute_manpower(manpower_rows, now=now)
    store.save("manpower", spec, "p1")
    assert store.get("manpower", "p1") is spec
    assert store.modules("p1") == ["manpower"]
    assert store.get("manpower") is None


def test_specs_for_project(tmp_path, manpower_rows, cost_rows, now):
    store = JsonSpecStore(tmp_path)
    store.save("manpower", compute_manpower(manpower_rows, now=now))
    store.save("cost", compute_cost(cost_rows, now=now))
    (tmp_path / "default" / "notes.json").write_text("{}", encoding="utf-8")
    specs = store.specs()
    assert sorted(specs) == ["cost", "manpower"]
    assert specs["cost"].kpi("total_budget").value == "3000"
    assert store.specs("tower-b") == {}
