from __future__ import annotations

import pytest
from pydantic import ValidationError

from capacity_core.filters import CapacityFilters
from capacity_core.models import Consultant
from capacity_core.schemas import CapacityFiltersModel, consultants_from_json, filters_from_model


def test_filters_from_model_defaults():
    assert filters_from_model(CapacityFiltersModel()) == CapacityFilters()


def test_filters_from_model_normalizes_values():
    filters = filters_from_model(
        CapacityFiltersModel(business_line="Strategy", timeframe="bogus", consultant_search=" ann ")
    )
    assert filters.business_line == "Strategy"
    assert filters.timeframe == "all"
    assert filters.consultant_search == "ann"


def test_consultants_from_json_builds_dataclasses():
    text = """
    [
      {
        "name": "Ann",
        "projects": [{"project_name": "Alpha", "role": "Lead", "business_line": null,
                      "start_date": "2025-01-01", "end_date": "2025-12-31"}],
        "timeline": [{"month": "Mar 25", "projects": 1, "weighted_load": 1.0, "capacity": 7.0,
                      "details": [{"name": "Alpha", "role": "Lead", "business_line": null}]}],
        "current_load": 1
      }
    ]
    """
    (ann,) = consultants_from_json(text)
    assert isinstance(ann, Consultant)
    assert ann.projects[0].project_name == "Alpha"
    assert ann.timeline[0].details[0].role == "Lead"
    assert ann.current_month.capacity == 7.0


def test_consultants_from_json_rejects_bad_shapes():
    with pytest.raises(ValidationError):
        consultants_from_json('[{"projects": []}]')
