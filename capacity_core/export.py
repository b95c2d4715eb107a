from __future__ import annotations

import io
import json
import logging
from dataclasses import asdict, dataclass
from datetime import date
from typing import Iterable, Optional

import pandas as pd

from capacity_core.models import Consultant
from capacity_core.workload import MAX_RECOMMENDED_LOAD, round_half_up


logger = logging.getLogger(__name__)

FILENAME_PREFIX = "capacity-report"
XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

PROJECT_EXPORT_COLUMNS = [
    "Consultant",
    "Project",
    "Role",
    "Business Line",
    "Start Date",
    "End Date",
    "Current Load",
    "Available Capacity",
]
MONTHLY_EXPORT_COLUMNS = ["Consultant", "Month", "Project Load", "Available Capacity", "Active Projects"]


@dataclass(frozen=True)
class ExportPayload:
    filename: str
    mime: str
    data: bytes


def export_filename(ext: str, today: Optional[date] = None) -> str:
    return f"{FILENAME_PREFIX}-{(today or date.today()).isoformat()}.{ext}"


def project_rows_frame(consultants: Iterable[Consultant], *, max_load: float = MAX_RECOMMENDED_LOAD) -> pd.DataFrame:
    """One row per (consultant, assignment); capacity here is not clamped at zero."""
    rows = []
    for c in consultants:
        load = c.current_month.weighted_load if c.current_month else 0.0
        for p in c.projects:
            rows.append(
                {
                    "Consultant": c.name,
                    "Project": p.project_name,
                    "Role": p.role,
                    "Business Line": p.business_line,
                    "Start Date": p.start_date,
                    "End Date": p.end_date,
                    "Current Load": load,
                    "Available Capacity": round_half_up(max_load - load, 1),
                }
            )
    return pd.DataFrame(rows, columns=PROJECT_EXPORT_COLUMNS)


def monthly_rows_frame(consultants: Iterable[Consultant]) -> pd.DataFrame:
    rows = [
        {
            "Consultant": c.name,
            "Month": m.month,
            "Project Load": m.weighted_load,
            "Available Capacity": m.capacity,
            "Active Projects": "; ".join(str(d.name) for d in m.details if d.name is not None),
        }
        for c in consultants
        for m in c.timeline
    ]
    return pd.DataFrame(rows, columns=MONTHLY_EXPORT_COLUMNS)


def consultants_to_json(consultants: Iterable[Consultant]) -> str:
    return json.dumps([asdict(c) for c in consultants], indent=2)


def _xlsx_bytes(df: pd.DataFrame) -> bytes:
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name="Capacity")
    return buf.getvalue()


def export_report(
    consultants: Iterable[Consultant],
    fmt: str,
    *,
    today: Optional[date] = None,
    max_load: float = MAX_RECOMMENDED_LOAD,
) -> Optional[ExportPayload]:
    consultants = list(consultants)
    today = today or date.today()

    if fmt == "csv":
        data = project_rows_frame(consultants, max_load=max_load).to_csv(index=False).encode("utf-8")
        return ExportPayload(export_filename("csv", today), "text/csv", data)
    if fmt == "excel":
        # Comma-separated text under an .xlsx name, so the MIME type follows the payload.
        data = monthly_rows_frame(consultants).to_csv(index=False).encode("utf-8")
        return ExportPayload(export_filename("xlsx", today), "text/csv", data)
    if fmt == "xlsx":
        return ExportPayload(export_filename("xlsx", today), XLSX_MIME, _xlsx_bytes(monthly_rows_frame(consultants)))
    if fmt == "json":
        data = consultants_to_json(consultants).encode("utf-8")
        return ExportPayload(export_filename("json", today), "application/json", data)

    logger.warning("Unsupported export format: %s", fmt)
    return None
