from __future__ import annotations

from typing import Any, Dict

import altair as alt
import pandas as pd

from capacity_core.models import Consultant

alt.data_transformers.disable_max_rows()

LOAD_LABEL = "Project Load"
CAPACITY_LABEL = "Available Capacity"
SERIES_COLORS = {LOAD_LABEL: "#8884d8", CAPACITY_LABEL: "#82ca9d"}


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def timeline_frame(consultant: Consultant) -> pd.DataFrame:
    """Long-form frame: two rows (load, capacity) per timeline month."""
    rows = []
    for m in consultant.timeline:
        active = ", ".join(f"{d.name} ({d.role})" for d in m.details) or "None"
        for series, value in ((LOAD_LABEL, m.weighted_load), (CAPACITY_LABEL, m.capacity)):
            rows.append(
                {
                    "month": m.month,
                    "series": series,
                    "value": value,
                    "weighted_load": m.weighted_load,
                    "capacity": m.capacity,
                    "active_projects": active,
                }
            )
    return pd.DataFrame(rows, columns=["month", "series", "value", "weighted_load", "capacity", "active_projects"])


def timeline_chart(consultant: Consultant, *, height: int = 256) -> alt.Chart:
    df = timeline_frame(consultant)
    month_order = [m.month for m in consultant.timeline]
    return (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=alt.X("month:N", title="Month", sort=month_order),
            xOffset=alt.XOffset("series:N", sort=list(SERIES_COLORS)),
            y=alt.Y("value:Q", title="Load"),
            color=alt.Color(
                "series:N",
                title=None,
                scale=alt.Scale(domain=list(SERIES_COLORS), range=list(SERIES_COLORS.values())),
                legend=alt.Legend(orient="bottom"),
            ),
            tooltip=[
                alt.Tooltip("month:N", title="Month"),
                alt.Tooltip("weighted_load:Q", title="Weighted Load"),
                alt.Tooltip("capacity:Q", title=CAPACITY_LABEL),
                alt.Tooltip("active_projects:N", title="Active Projects"),
            ],
        )
        .properties(height=height)
    )
