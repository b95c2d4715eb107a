from __future__ import annotations

import io
import json
import logging

import pandas as pd

from capacity_core.export import (
    MONTHLY_EXPORT_COLUMNS,
    PROJECT_EXPORT_COLUMNS,
    XLSX_MIME,
    export_filename,
    export_report,
)
from capacity_core.filters import CapacityFilters, apply_filters
from capacity_core.models import ProjectRow
from capacity_core.schemas import consultants_from_json
from capacity_core.workload import build_consultants
from conftest import TODAY


def _consultants():
    rows = [
        ProjectRow(
            project_name="Alpha",
            project_lead="Ann",
            business_line="Strategy",
            start_date="2025-01-01",
            end_date="2025-12-31",
        ),
        ProjectRow(
            project_name="Beta",
            supporting_consultants="Ann",
            business_line="Operations",
            start_date="2025-03-01",
            end_date="2025-05-31",
        ),
    ]
    return build_consultants(rows, TODAY)


def test_export_filename_uses_iso_date():
    assert export_filename("csv", TODAY) == "capacity-report-2025-03-15.csv"


def test_csv_export_has_one_row_per_assignment():
    payload = export_report(_consultants(), "csv", today=TODAY)

    assert payload.filename == "capacity-report-2025-03-15.csv"
    assert payload.mime == "text/csv"
    df = pd.read_csv(io.BytesIO(payload.data))
    assert list(df.columns) == PROJECT_EXPORT_COLUMNS
    assert len(df) == 2
    assert df["Project"].tolist() == ["Alpha", "Beta"]
    assert df["Role"].tolist() == ["Lead", "Supporting"]
    assert df["Current Load"].tolist() == [1.2, 1.2]
    assert df["Available Capacity"].tolist() == [6.8, 6.8]


def test_csv_capacity_is_not_clamped():
    rows = [
        ProjectRow(project_name=f"P{i}", project_lead="Ann", start_date="2025-01-01", end_date="2025-12-31")
        for i in range(9)
    ]
    payload = export_report(build_consultants(rows, TODAY), "csv", today=TODAY)
    df = pd.read_csv(io.BytesIO(payload.data))
    assert set(df["Available Capacity"]) == {-1.0}


def test_excel_export_is_monthly_csv_under_xlsx_name():
    payload = export_report(_consultants(), "excel", today=TODAY)

    assert payload.filename == "capacity-report-2025-03-15.xlsx"
    assert payload.mime == "text/csv"
    df = pd.read_csv(io.BytesIO(payload.data), keep_default_na=False)
    assert list(df.columns) == MONTHLY_EXPORT_COLUMNS
    assert len(df) == 12
    assert df["Month"].iloc[0] == "Mar 25"
    assert df["Active Projects"].iloc[0] == "Alpha; Beta"
    assert df["Project Load"].iloc[0] == 1.2
    assert df["Active Projects"].iloc[3] == "Alpha"
    assert df["Available Capacity"].iloc[3] == 7.0


def test_xlsx_export_is_a_real_workbook():
    payload = export_report(_consultants(), "xlsx", today=TODAY)

    assert payload.mime == XLSX_MIME
    assert payload.data[:2] == b"PK"
    df = pd.read_excel(io.BytesIO(payload.data), sheet_name="Capacity")
    assert list(df.columns) == MONTHLY_EXPORT_COLUMNS
    assert len(df) == 12


def test_json_export_is_pretty_printed_and_round_trips():
    filtered = apply_filters(_consultants(), CapacityFilters(business_line="Operations"), today=TODAY)
    payload = export_report(filtered, "json", today=TODAY)

    assert payload.filename == "capacity-report-2025-03-15.json"
    assert payload.mime == "application/json"
    text = payload.data.decode("utf-8")
    assert text.startswith("[\n  {")
    assert json.loads(text)[0]["name"] == "Ann"
    assert consultants_from_json(payload.data) == filtered


def test_empty_view_exports_headers_only():
    payload = export_report([], "csv", today=TODAY)
    assert payload.data.decode("utf-8").strip() == ",".join(PROJECT_EXPORT_COLUMNS)
    assert export_report([], "json", today=TODAY).data == b"[]"


def test_unsupported_format_logs_and_returns_none(caplog):
    with caplog.at_level(logging.WARNING, logger="capacity_core.export"):
        assert export_report(_consultants(), "pdf", today=TODAY) is None
    assert "Unsupported export format: pdf" in caplog.text
