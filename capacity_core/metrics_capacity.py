from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional

from capacity_core.charts import timeline_chart, to_vega_spec
from capacity_core.filters import ALL, CAPACITY_STATUS_OPTIONS, CapacityFilters, consultant_status
from capacity_core.models import Consultant


def compute_capacity_overview(
    filters: CapacityFilters,
    ctx: Dict[str, Any],
    *,
    expanded: Optional[str] = None,
) -> Dict[str, Any]:
    filtered: List[Consultant] = list(ctx.get("filtered_consultants") or [])
    thresholds = filters.thresholds

    status_counts = {s: 0 for s in CAPACITY_STATUS_OPTIONS if s != ALL}
    rows = []
    for c in filtered:
        status = consultant_status(c, thresholds)
        status_counts[status] += 1
        snapshot = c.current_month
        rows.append(
            {
                "name": c.name,
                "current_load": c.current_load,
                "weighted_load": snapshot.weighted_load if snapshot else 0.0,
                "capacity": snapshot.capacity if snapshot else thresholds.max_recommended_load,
                "status": status,
                "project_count": len(c.projects),
                "overloaded": c.current_load >= thresholds.max_recommended_load,
            }
        )

    chart = None
    if expanded:
        match = next((c for c in filtered if c.name == expanded), None)
        if match is not None:
            chart = to_vega_spec(timeline_chart(match))

    return {
        "filters": asdict(filters),
        "kpis": {
            "consultants": len(filtered),
            "total_consultants": len(ctx.get("consultants") or []),
            "active_projects": sum(c.current_load for c in filtered),
            **status_counts,
        },
        "consultants": rows,
        "expanded": expanded if chart is not None else None,
        "chart": chart,
    }
