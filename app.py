import logging
from contextlib import contextmanager
from datetime import date
from typing import Any, Dict, List, Optional

import pandas as pd
import streamlit as st

from capacity_core.data import empty_context, load_capacity_data, prepare_context
from capacity_core.export import export_report
from capacity_core.filters import (
    ALL,
    CAPACITY_STATUS_LABELS,
    CAPACITY_STATUS_OPTIONS,
    TIMEFRAME_LABELS,
    TIMEFRAME_OPTIONS,
    CapacityFilters,
)
from capacity_core.metrics_capacity import compute_capacity_overview
from capacity_core.models import Consultant
from capacity_core.schemas import CapacityFiltersModel, filters_from_model
from capacity_core.workload import MAX_RECOMMENDED_LOAD

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

EXPORT_BUTTONS = [("csv", "Export CSV"), ("excel", "Export Excel"), ("xlsx", "Export XLSX"), ("json", "Export JSON")]
ROLE_CHIP_CLASS = {"Lead": "chip-green", "Co-Lead": "chip-blue", "Strategic Advisor": "chip-yellow"}


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-header {display: flex;justify-content: space-between;align-items: center;margin-bottom: 8px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        .chip-red {background: #fee2e2;color: #991b1b;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;}
        .chip-green {background: #dcfce7;color: #166534;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;}
        .chip-blue {background: #dbeafe;color: #1e40af;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;}
        .chip-yellow {background: #fef9c3;color: #854d0e;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(
        f"""
        <div class="card">
          <div class="card-header">
            <div class="card-title">{title}</div>
          </div>
        """,
        unsafe_allow_html=True,
    )
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_filter_summary(filters: CapacityFilters) -> str:
    line_chip = "Business Line: All" if filters.business_line == ALL else f"Business Line: {filters.business_line}"
    time_chip = TIMEFRAME_LABELS.get(filters.timeframe, "All Time")
    status_chip = CAPACITY_STATUS_LABELS.get(filters.capacity_status, "All Statuses")
    search_chip = f"Search: {filters.consultant_search}" if filters.consultant_search else "Search: none"
    return "".join([f"<span class='chip'>{txt}</span>" for txt in [line_chip, time_chip, status_chip, search_chip]])


def toggle_consultant(name: str) -> None:
    current = st.session_state.get("expanded_consultant")
    st.session_state["expanded_consultant"] = None if current == name else name


def project_table(consultant: Consultant) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Project": p.project_name,
                "Role": p.role,
                "Business Line": p.business_line,
                "Timeline": f"{p.start_date or ''} - {p.end_date or ''}",
            }
            for p in consultant.projects
        ],
        columns=["Project", "Role", "Business Line", "Timeline"],
    )


def render_role_chips(consultant: Consultant):
    roles = sorted({p.role for p in consultant.projects})
    if roles:
        st.markdown(
            "<div class='chip-row'>"
            + "".join(f"<span class='{ROLE_CHIP_CLASS.get(r, 'chip')}'>{r}</span>" for r in roles)
            + "</div>",
            unsafe_allow_html=True,
        )


def render_consultant(consultant: Consultant, idx: int, expanded: Optional[str], chart_spec: Optional[Dict[str, Any]]):
    is_open = expanded == consultant.name
    badge_class = "chip-red" if consultant.current_load >= MAX_RECOMMENDED_LOAD else "chip-green"
    cols = st.columns([6, 2, 1])
    cols[0].markdown(f"**{consultant.name}**")
    cols[1].markdown(
        f"<span class='{badge_class}'>{consultant.current_load} Active Projects</span>",
        unsafe_allow_html=True,
    )
    cols[2].button(
        "▲" if is_open else "▼",
        key=f"toggle-{idx}",
        on_click=toggle_consultant,
        args=(consultant.name,),
    )
    if not is_open:
        return

    st.markdown("**12-Month Capacity Timeline**")
    if chart_spec is not None:
        st.vega_lite_chart(chart_spec, use_container_width=True)

    st.markdown("**Current Projects**")
    render_role_chips(consultant)
    if consultant.projects:
        st.dataframe(project_table(consultant), use_container_width=True, hide_index=True)
    else:
        st.info("No projects match the selected filters.")


# ---------- UI setup ----------
st.set_page_config(page_title="Consultant Capacity Dashboard", layout="wide")
inject_base_styles()
st.title("Consultant Capacity Dashboard")
st.caption("Upload a HubSpot deals export to project each consultant's workload over the next 12 months.")

if "capacity_data" not in st.session_state:
    st.session_state["capacity_data"] = empty_context()
    st.session_state["upload_key"] = None
    st.session_state["expanded_consultant"] = None

today = date.today()
upload_col, filter_col = st.columns([1, 2])

with upload_col:
    uploaded = st.file_uploader("Upload Hubspot CSV", type=["csv"])
    if uploaded is not None:
        key = (getattr(uploaded, "file_id", None), uploaded.name, uploaded.size)
        if key != st.session_state["upload_key"]:
            with st.spinner("Loading data, please wait..."):
                st.session_state["capacity_data"] = load_capacity_data(uploaded, today=today)
            st.session_state["upload_key"] = key
            st.session_state["expanded_consultant"] = None

data_ctx = st.session_state["capacity_data"]
business_line_options: List[str] = [ALL] + list(data_ctx.get("business_lines") or [])

with filter_col:
    with card("Filters"):
        grid = st.columns(2)
        business_line = grid[0].selectbox(
            "Business Line",
            options=business_line_options,
            format_func=lambda v: "All Business Lines" if v == ALL else v,
        )
        timeframe = grid[1].selectbox(
            "Timeframe", options=TIMEFRAME_OPTIONS, format_func=lambda v: TIMEFRAME_LABELS[v]
        )
        grid = st.columns(2)
        capacity_status = grid[0].selectbox(
            "Capacity Status", options=CAPACITY_STATUS_OPTIONS, format_func=lambda v: CAPACITY_STATUS_LABELS[v]
        )
        consultant_search = grid[1].text_input("Search Consultant", "", placeholder="Search by name...")

filters = filters_from_model(
    CapacityFiltersModel(
        business_line=business_line,
        timeframe=timeframe,
        capacity_status=capacity_status,
        consultant_search=consultant_search,
    )
)
ctx = prepare_context(filters, data_ctx, today=today)
filtered: List[Consultant] = ctx["filtered_consultants"]

with filter_col:
    btn_cols = st.columns(len(EXPORT_BUTTONS))
    for col, (fmt, label) in zip(btn_cols, EXPORT_BUTTONS):
        payload = export_report(filtered, fmt, today=today)
        if payload is None:
            continue
        col.download_button(label, data=payload.data, file_name=payload.filename, mime=payload.mime, key=f"export-{fmt}")

st.markdown(f"<div class='chip-row'>{format_filter_summary(filters)}</div>", unsafe_allow_html=True)

if ctx["error"]:
    st.error(ctx["error"])

if not ctx["consultants"]:
    if not ctx["error"]:
        st.info("No data loaded yet. Upload a HubSpot deals export (.csv) to get started.")
    st.stop()

overview = compute_capacity_overview(filters, ctx, expanded=st.session_state.get("expanded_consultant"))
kpis = overview["kpis"]
with card("Capacity KPIs"):
    cols = st.columns(5)
    cols[0].metric("Consultants", f"{kpis['consultants']} / {kpis['total_consultants']}")
    cols[1].metric("Available", f"{kpis['available']}", help="Current-month weighted load below 80% of the recommended maximum.")
    cols[2].metric("At Capacity", f"{kpis['at-capacity']}", help="Current-month weighted load between 80% and 100% of the recommended maximum.")
    cols[3].metric("Over Capacity", f"{kpis['over-capacity']}", help=f"Current-month weighted load above {MAX_RECOMMENDED_LOAD:g}.")
    cols[4].metric("Active Projects", f"{kpis['active_projects']}", help="Projects whose contract dates include today, summed over the consultants shown.")

if not filtered:
    st.info("No consultants match the selected filters.")
for idx, consultant in enumerate(filtered):
    with st.container(border=True):
        render_consultant(consultant, idx, overview["expanded"], overview["chart"])
