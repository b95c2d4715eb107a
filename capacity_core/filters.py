from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Iterable, List, Optional

from dateutil.relativedelta import relativedelta

from capacity_core.models import Consultant
from capacity_core.workload import MAX_RECOMMENDED_LOAD, parse_date


logger = logging.getLogger(__name__)

ALL = "all"
TIMEFRAME_OPTIONS = [ALL, "3months", "6months", "12months"]
CAPACITY_STATUS_OPTIONS = [ALL, "available", "at-capacity", "over-capacity"]

TIMEFRAME_LABELS = {
    ALL: "All Time",
    "3months": "Next 3 Months",
    "6months": "Next 6 Months",
    "12months": "Next 12 Months",
}
CAPACITY_STATUS_LABELS = {
    ALL: "All Statuses",
    "available": "Available Capacity",
    "at-capacity": "At Capacity",
    "over-capacity": "Over Capacity",
}


@dataclass(frozen=True)
class CapacityThresholds:
    max_recommended_load: float = MAX_RECOMMENDED_LOAD
    at_capacity_ratio: float = 0.8

    @property
    def at_capacity_floor(self) -> float:
        return self.max_recommended_load * self.at_capacity_ratio


@dataclass(frozen=True)
class CapacityFilters:
    business_line: str = ALL
    timeframe: str = ALL
    capacity_status: str = ALL
    consultant_search: str = ""
    thresholds: CapacityThresholds = field(default_factory=CapacityThresholds)


def timeframe_months(timeframe: str) -> Optional[int]:
    if timeframe == ALL or not timeframe.endswith("months"):
        return None
    try:
        return int(timeframe[: -len("months")])
    except ValueError:
        return None


def _normalize_timeframe(value: object) -> str:
    if isinstance(value, int) and not isinstance(value, bool):
        value = f"{value}months"
    text = str(value or ALL).strip().lower()
    return text if text in TIMEFRAME_OPTIONS else ALL


def normalize_filters(raw: dict) -> CapacityFilters:
    business_line = raw.get("business_line")
    business_line = str(business_line).strip() if business_line is not None else ""
    if not business_line:
        business_line = ALL

    capacity_status = str(raw.get("capacity_status") or ALL).strip().lower()
    if capacity_status not in CAPACITY_STATUS_OPTIONS:
        capacity_status = ALL

    consultant_search = (raw.get("consultant_search") or "").strip()

    t = raw.get("thresholds") or {}
    thresholds = CapacityThresholds(
        max_recommended_load=float(t.get("max_recommended_load", MAX_RECOMMENDED_LOAD)),
        at_capacity_ratio=float(t.get("at_capacity_ratio", 0.8)),
    )
    return CapacityFilters(
        business_line=business_line,
        timeframe=_normalize_timeframe(raw.get("timeframe")),
        capacity_status=capacity_status,
        consultant_search=consultant_search,
        thresholds=thresholds,
    )


def capacity_status(load: float, thresholds: CapacityThresholds = CapacityThresholds()) -> str:
    if load > thresholds.max_recommended_load:
        return "over-capacity"
    if load >= thresholds.at_capacity_floor:
        return "at-capacity"
    return "available"


def consultant_status(consultant: Consultant, thresholds: CapacityThresholds = CapacityThresholds()) -> str:
    snapshot = consultant.current_month
    return capacity_status(snapshot.weighted_load if snapshot else 0.0, thresholds)


def apply_filters(
    consultants: Iterable[Consultant],
    filters: CapacityFilters,
    *,
    today: Optional[date] = None,
) -> List[Consultant]:
    filtered = list(consultants)

    if filters.business_line != ALL:
        filtered = [
            replace(c, projects=[p for p in c.projects if p.business_line == filters.business_line])
            for c in filtered
        ]

    months = timeframe_months(filters.timeframe)
    if months is not None:
        cutoff = (today or date.today()) + relativedelta(months=months)

        def ends_by_cutoff(end_date: Optional[str]) -> bool:
            end = parse_date(end_date)
            return end is not None and end <= cutoff

        filtered = [replace(c, projects=[p for p in c.projects if ends_by_cutoff(p.end_date)]) for c in filtered]

    if filters.capacity_status != ALL:
        filtered = [c for c in filtered if consultant_status(c, filters.thresholds) == filters.capacity_status]

    if filters.consultant_search:
        q = filters.consultant_search.lower()
        filtered = [c for c in filtered if q in c.name.lower()]

    logger.debug("filters %s kept %d consultants", filters, len(filtered))
    return filtered
