import pandas as pd
import streamlit as st
from contextlib import contextmanager
from typing import List, Optional

from tracker.charts import build_chart
from tracker.config import configure_logging, get_settings
from tracker.filters import SpecFilters, apply_filters, normalize_filters
from tracker.ingest import IngestError
from tracker.modules import MODULE_LABELS, MODULES, REQUIRED_FIELDS
from tracker.overview import compute_overview
from tracker.pipeline import build_dashboard
from tracker.query import answer
from tracker.report import render_report, report_name
from tracker.spec import KPI, DashboardSpec, Visual
from tracker.store import DEFAULT_PROJECT, JsonSpecStore

settings = get_settings()
configure_logging(settings.log_level)
store = JsonSpecStore(settings.data_dir)

STATUS_COLORS = {"good": "#16a34a", "warning": "#ca8a04", "danger": "#dc2626", "neutral": "#6b7280"}
OVERVIEW = "overview"
PAGE_LABELS = {OVERVIEW: "Overview", **MODULE_LABELS}


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #6b7280;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;margin-bottom: 8px;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card'><div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_filter_summary(filters: SpecFilters) -> str:
    disc_chip = f"Disciplines: {', '.join(filters.disciplines)}" if filters.disciplines else "Disciplines: All"
    date_chip = f"Dates: {filters.date_from or '…'} to {filters.date_to or '…'}" if filters.date_from or filters.date_to else "Dates: All"
    return "".join([f"<span class='chip'>{txt}</span>" for txt in [disc_chip, date_chip]])


def render_page_header(title: str, breadcrumb: str, filter_summary_html: str, report_csv: Optional[str] = None, report_file: str = "report.csv"):
    inject_base_styles()
    c1, c2 = st.columns([7, 3])
    with c1:
        st.markdown(
            f"<div class='app-top-bar'><div class='breadcrumb'>{breadcrumb}</div><div class='page-title'>{title}</div></div>",
            unsafe_allow_html=True,
        )
    with c2:
        if report_csv:
            st.download_button("Export Report", data=report_csv.encode("utf-8"), file_name=report_file, mime="text/csv")
    st.markdown(f"<div class='chip-row'>{filter_summary_html}</div>", unsafe_allow_html=True)


def render_kpis(kpis: List[KPI], highlight: Optional[str] = None):
    cols = st.columns(max(len(kpis), 1))
    for col, k in zip(cols, kpis):
        label = f"★ {k.label}" if k.id == highlight else k.label
        col.metric(label, f"{k.value}{k.unit or ''}", delta=k.delta, delta_color="off", help=k.sub_label)
        col.markdown(
            f"<span style='color:{STATUS_COLORS.get(k.status, '#6b7280')};font-size:0.8rem;'>{k.status}</span>",
            unsafe_allow_html=True,
        )


def render_visual(visual: Visual):
    with card(visual.title):
        if visual.type == "table":
            if not visual.data:
                st.info("No rows for the selected filters.")
                return
            df = pd.DataFrame([dict(r) for r in visual.data])
            keys = [c.key for c in visual.columns if c.key in df.columns]
            display = df[keys].rename(columns={c.key: c.label for c in visual.columns})
            st.dataframe(display, use_container_width=True, hide_index=True)
            return
        chart = build_chart(visual)
        if chart is None or not visual.data:
            st.info("Not enough data for this chart.")
        else:
            st.altair_chart(chart, use_container_width=True)


def render_overview(project_id: str):
    overview = compute_overview(store.specs(project_id))
    render_page_header("Overview", f"{project_id} / Overview", "")
    color = STATUS_COLORS.get(overview.health_status, "#6b7280")
    c1, c2 = st.columns([3, 7])
    with c1:
        with card("Project Health"):
            st.markdown(f"<span style='color:{color};font-size:2rem;font-weight:700;'>{overview.health_score}%</span>", unsafe_allow_html=True)
            st.caption(f"{len(overview.modules_loaded)} of {len(MODULES)} modules loaded")
    with c2:
        with card("Modules"):
            st.markdown(
                "".join(
                    f"<span class='chip'>{MODULE_LABELS[m]}: {'loaded' if m in overview.modules_loaded else 'no data'}</span>"
                    for m in MODULES
                ),
                unsafe_allow_html=True,
            )
    if not overview.modules_loaded:
        st.info("No data loaded. Upload a file for any module to see the project overview.")
        return
    render_kpis(list(overview.kpis))
    with card("Insights"):
        for line in overview.insights:
            st.markdown(f"- {line}")


# ---------- UI setup ----------
st.set_page_config(page_title="Site Tracker Dashboard", layout="wide")

st.title("Site Tracker Dashboard")
st.caption("Upload a project tracking spreadsheet to build the module dashboard.")

with st.sidebar:
    st.markdown("### Module")
    page = st.radio("Module", [OVERVIEW, *MODULES], format_func=lambda m: PAGE_LABELS[m], index=0)
    project_id = st.text_input("Project", DEFAULT_PROJECT) or DEFAULT_PROJECT

if page == OVERVIEW:
    render_overview(project_id)
    st.stop()
module = page

with st.sidebar:
    st.markdown("---")
    st.markdown("### Upload")
    uploaded = st.file_uploader("CSV or XLSX", type=["csv", "xlsx"])
    st.caption(f"Expected columns: {', '.join(REQUIRED_FIELDS[module])}")
    if uploaded is not None and st.button("Build dashboard"):
        try:
            result, built = build_dashboard(module, uploaded.getvalue(), uploaded.name, max_bytes=settings.max_upload_bytes)
        except IngestError as exc:
            st.error(str(exc))
        else:
            store.save(module, built, project_id)
            store.save_records(module, result.rows, REQUIRED_FIELDS[module], project_id)
            st.success(f"Processed {len(result.rows)} rows.")

spec: Optional[DashboardSpec] = store.get(module, project_id)

if spec is None:
    render_page_header(MODULE_LABELS[module], f"{project_id} / {MODULE_LABELS[module]}", format_filter_summary(SpecFilters()))
    st.info("No data loaded. Upload a file to build this dashboard.")
    st.stop()

with st.sidebar:
    st.markdown("---")
    st.markdown("### Filters")
    selected_disciplines = st.multiselect("Disciplines", options=list(spec.meta.disciplines), default=[])
    date_from = st.text_input("From date", spec.meta.date_min)
    date_to = st.text_input("To date", spec.meta.date_max)

filters = normalize_filters(
    {"disciplines": selected_disciplines, "date_from": date_from, "date_to": date_to},
    meta=spec.meta,
)
view = apply_filters(spec, filters)

render_page_header(
    MODULE_LABELS[module],
    f"{project_id} / {MODULE_LABELS[module]}",
    format_filter_summary(filters),
    report_csv=render_report(spec, module, filters),
    report_file=report_name(module),
)
st.caption(f"Last updated {spec.last_updated} · {spec.meta.date_min or 'N/A'} to {spec.meta.date_max or 'N/A'}")

question = st.text_input("Ask about this dashboard", "", placeholder="summarize, what's behind schedule?, what equipment is idle?")
reply = answer(question, spec, module) if question else None

render_kpis(list(view.kpis), highlight=reply.highlight_kpi_id if reply else None)
if reply is not None:
    st.info(reply.message)

charts = [v for v in view.visuals if v.type != "table"]
chart_cols = st.columns(2)
for i, v in enumerate(charts):
    with chart_cols[i % 2]:
        render_visual(v)
for v in view.visuals:
    if v.type == "table":
        render_visual(v)

with card("Insights"):
    if not view.insights:
        st.success("No insights for this upload.")
    for line in view.insights:
        st.markdown(f"- {line}")
