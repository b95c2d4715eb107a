from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, TypeAdapter

from capacity_core.filters import ALL, CapacityFilters, normalize_filters
from capacity_core.models import Consultant, MonthlySnapshot, ProjectAssignment, ProjectSummary
from capacity_core.workload import MAX_RECOMMENDED_LOAD


class CapacityThresholdsModel(BaseModel):
    max_recommended_load: float = MAX_RECOMMENDED_LOAD
    at_capacity_ratio: float = 0.8


class CapacityFiltersModel(BaseModel):
    business_line: str = ALL
    timeframe: str = ALL
    capacity_status: str = ALL
    consultant_search: str = ""
    thresholds: CapacityThresholdsModel = Field(default_factory=CapacityThresholdsModel)


class ProjectAssignmentModel(BaseModel):
    project_name: Optional[str] = None
    role: str
    business_line: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class ProjectSummaryModel(BaseModel):
    name: Optional[str] = None
    role: str
    business_line: Optional[str] = None


class MonthlySnapshotModel(BaseModel):
    month: str
    projects: int
    weighted_load: float
    capacity: float
    details: List[ProjectSummaryModel] = Field(default_factory=list)


class ConsultantModel(BaseModel):
    name: str
    projects: List[ProjectAssignmentModel] = Field(default_factory=list)
    timeline: List[MonthlySnapshotModel] = Field(default_factory=list)
    current_load: int = 0

    def to_consultant(self) -> Consultant:
        return Consultant(
            name=self.name,
            projects=[ProjectAssignment(**p.model_dump()) for p in self.projects],
            timeline=[
                MonthlySnapshot(
                    month=m.month,
                    projects=m.projects,
                    weighted_load=m.weighted_load,
                    capacity=m.capacity,
                    details=[ProjectSummary(**d.model_dump()) for d in m.details],
                )
                for m in self.timeline
            ],
            current_load=self.current_load,
        )


_consultant_list = TypeAdapter(List[ConsultantModel])


def filters_from_model(model: CapacityFiltersModel) -> CapacityFilters:
    return normalize_filters(model.model_dump())


def consultants_from_json(text: str | bytes) -> List[Consultant]:
    """Read a JSON export back into consultant records."""
    return [m.to_consultant() for m in _consultant_list.validate_json(text)]
