from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class ProjectRow:
    """One deal row from the uploaded export, role fields still unsplit."""

    project_name: Optional[str] = None
    project_lead: Optional[str] = None
    project_co_lead: Optional[str] = None
    strategic_advisors: Optional[str] = None
    supporting_consultants: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    business_line: Optional[str] = None


@dataclass(frozen=True)
class ProjectAssignment:
    project_name: Optional[str]
    role: str
    business_line: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


@dataclass(frozen=True)
class ProjectSummary:
    name: Optional[str]
    role: str
    business_line: Optional[str] = None


@dataclass(frozen=True)
class MonthlySnapshot:
    month: str
    projects: int
    weighted_load: float
    capacity: float
    details: List[ProjectSummary] = field(default_factory=list)


@dataclass(frozen=True)
class Consultant:
    name: str
    projects: List[ProjectAssignment] = field(default_factory=list)
    timeline: List[MonthlySnapshot] = field(default_factory=list)
    current_load: int = 0

    @property
    def current_month(self) -> Optional[MonthlySnapshot]:
        return self.timeline[0] if self.timeline else None
