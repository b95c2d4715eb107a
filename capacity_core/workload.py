from __future__ import annotations

import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd
from dateutil.relativedelta import relativedelta

from capacity_core.models import Consultant, MonthlySnapshot, ProjectAssignment, ProjectRow, ProjectSummary


logger = logging.getLogger(__name__)

ROLE_WEIGHTS: Dict[str, float] = {
    "Lead": 1.0,
    "Co-Lead": 0.7,
    "Strategic Advisor": 0.3,
    "Supporting": 0.2,
}

# ProjectRow attribute -> role category
ROLE_FIELDS: Dict[str, str] = {
    "project_lead": "Lead",
    "project_co_lead": "Co-Lead",
    "strategic_advisors": "Strategic Advisor",
    "supporting_consultants": "Supporting",
}

MAX_RECOMMENDED_LOAD = 8.0
TIMELINE_MONTHS = 12
NAME_DELIMITER = ";"
MONTH_LABEL_FMT = "%b %y"


def _is_missing(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def split_consultants(value: object) -> List[str]:
    if _is_missing(value):
        return []
    return [name.strip() for name in str(value).split(NAME_DELIMITER) if name.strip()]


def parse_date(value: object) -> Optional[date]:
    """Parse a free-text date; ``None`` when blank or unparseable."""
    if _is_missing(value):
        return None
    try:
        ts = pd.to_datetime(str(value).strip(), errors="coerce")
    except (TypeError, ValueError, OverflowError):
        return None
    if ts is None or pd.isna(ts):
        return None
    return ts.date()


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def role_weight(role: str) -> float:
    return ROLE_WEIGHTS.get(role, 0.0)


def month_starts(today: date, count: int = TIMELINE_MONTHS) -> List[date]:
    first = today.replace(day=1)
    return [first + relativedelta(months=i) for i in range(count)]


def assignment_window(assignment: ProjectAssignment) -> Optional[Tuple[date, date]]:
    start = parse_date(assignment.start_date)
    end = parse_date(assignment.end_date)
    if start is None or end is None:
        return None
    return start, end


def is_active(assignment: ProjectAssignment, on: date) -> bool:
    window = assignment_window(assignment)
    if window is None:
        return False
    start, end = window
    return start <= on <= end


def generate_monthly_timeline(
    projects: Iterable[ProjectAssignment],
    today: date,
    *,
    max_load: float = MAX_RECOMMENDED_LOAD,
    months: int = TIMELINE_MONTHS,
) -> List[MonthlySnapshot]:
    projects = list(projects)
    windows = [(p, assignment_window(p)) for p in projects]

    timeline: List[MonthlySnapshot] = []
    for month in month_starts(today, months):
        active = [p for p, w in windows if w is not None and w[0] <= month <= w[1]]
        weighted_load = round_half_up(sum(role_weight(p.role) for p in active), 1) or 0.0
        timeline.append(
            MonthlySnapshot(
                month=month.strftime(MONTH_LABEL_FMT),
                projects=len(active),
                weighted_load=weighted_load,
                capacity=round_half_up(max(0.0, max_load - weighted_load), 1),
                details=[ProjectSummary(name=p.project_name, role=p.role, business_line=p.business_line) for p in active],
            )
        )
    return timeline


def current_load(projects: Iterable[ProjectAssignment], today: date) -> int:
    return sum(1 for p in projects if is_active(p, today))


def group_assignments(rows: Iterable[ProjectRow]) -> Dict[str, List[ProjectAssignment]]:
    by_consultant: Dict[str, List[ProjectAssignment]] = {}
    for row in rows:
        for attr, role in ROLE_FIELDS.items():
            for name in split_consultants(getattr(row, attr)):
                by_consultant.setdefault(name, []).append(
                    ProjectAssignment(
                        project_name=row.project_name,
                        role=role,
                        business_line=row.business_line,
                        start_date=row.start_date,
                        end_date=row.end_date,
                    )
                )
    return by_consultant


def dedupe_projects(projects: Iterable[ProjectAssignment]) -> List[ProjectAssignment]:
    seen = set()
    out: List[ProjectAssignment] = []
    for p in projects:
        if p.project_name in seen:
            continue
        seen.add(p.project_name)
        out.append(p)
    return out


def build_consultants(
    rows: Iterable[ProjectRow],
    today: Optional[date] = None,
    *,
    max_load: float = MAX_RECOMMENDED_LOAD,
) -> List[Consultant]:
    today = today or date.today()
    consultants = []
    for name, assignments in group_assignments(rows).items():
        # load counts every assignment row; only the listed projects are deduped
        consultants.append(
            Consultant(
                name=name,
                projects=dedupe_projects(assignments),
                timeline=generate_monthly_timeline(assignments, today, max_load=max_load),
                current_load=current_load(assignments, today),
            )
        )
    # stable: ties keep first-seen order
    consultants = sorted(consultants, key=lambda c: -c.current_load)
    logger.debug("built %d consultants as of %s", len(consultants), today.isoformat())
    return consultants


def business_lines(rows: Iterable[ProjectRow]) -> List[str]:
    out: List[str] = []
    for row in rows:
        line = row.business_line
        if _is_missing(line) or line in out:
            continue
        out.append(line)
    return out
