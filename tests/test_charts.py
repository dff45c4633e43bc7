from tracker.charts import long_frame, spec_charts, to_vega_spec
from tracker.metrics_equipment import compute_equipment
from tracker.metrics_manpower import compute_manpower


def test_line_chart(manpower_rows, now):
    spec = compute_manpower(manpower_rows, now=now)
    vega = to_vega_spec(spec.visual("timeline"))
    assert vega["mark"]["type"] == "line"
    assert vega["encoding"]["color"]["scale"]["domain"] == ["Planned", "Actual"]
    assert vega["encoding"]["color"]["scale"]["range"] == ["#4B9EFF", "#FF6A00"]


def test_grouped_and_stacked_bars(manpower_rows, equipment_rows, now):
    bar = to_vega_spec(compute_manpower(manpower_rows, now=now).visual("discipline_bar"))
    assert bar["mark"]["type"] == "bar"
    assert "xOffset" in bar["encoding"]
    stacked = to_vega_spec(compute_equipment(equipment_rows, now=now).visual("status_bar"))
    assert stacked["encoding"]["y"]["stack"] == "zero"
    assert "xOffset" not in stacked["encoding"]


def test_long_frame(manpower_rows, now):
    df = long_frame(compute_manpower(manpower_rows, now=now).visual("discipline_bar"))
    assert len(df) == 4
    civil = df[df["discipline"] == "Civil"].set_index("series")["value"].to_dict()
    assert civil == {"Planned": 15, "Actual": 13}


def test_tables_have_no_chart(manpower_rows, now):
    spec = compute_manpower(manpower_rows, now=now)
    assert to_vega_spec(spec.visual("detail_table")) is None
    assert set(spec_charts(spec)) == {"timeline", "discipline_bar"}


def test_empty_visual_still_renders(now):
    vega = to_vega_spec(compute_manpower([], now=now).visual("timeline"))
    assert vega["mark"]["type"] == "line"
