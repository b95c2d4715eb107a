from __future__ import annotations

from datetime import date

import pytest

from capacity_core.models import ProjectAssignment


TODAY = date(2025, 3, 15)


@pytest.fixture
def today() -> date:
    return TODAY


def make_assignment(
    name: str = "Alpha",
    role: str = "Lead",
    start: str | None = "2025-01-01",
    end: str | None = "2025-12-31",
    line: str | None = "Strategy",
) -> ProjectAssignment:
    return ProjectAssignment(project_name=name, role=role, business_line=line, start_date=start, end_date=end)
