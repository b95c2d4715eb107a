from __future__ import annotations

import io
import logging
from dataclasses import fields
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional, Union

import pandas as pd

from capacity_core.filters import CapacityFilters, apply_filters, normalize_filters
from capacity_core.models import ProjectRow
from capacity_core.workload import ROLE_FIELDS, build_consultants, business_lines


logger = logging.getLogger(__name__)

PROJECT_COLUMNS = {
    "Deal Name": "project_name",
    "Project Lead": "project_lead",
    "Project Co-Lead": "project_co_lead",
    "Project Strategic Advisors": "strategic_advisors",
    "Project Supporting Consultants": "supporting_consultants",
    "Contract Start Date": "start_date",
    "Contract End Date": "end_date",
    "Primary Business Line": "business_line",
}

CsvSource = Union[str, Path, bytes, io.IOBase]


class CapacityDataError(Exception):
    prefix = "Error loading data: "

    @property
    def user_message(self) -> str:
        return f"{self.prefix}{self}"


class CsvParseError(CapacityDataError):
    prefix = "Error parsing CSV: "


class DataProcessingError(CapacityDataError):
    prefix = "Error processing data: "


def empty_context() -> Dict[str, object]:
    return {"consultants": [], "business_lines": [], "row_count": 0, "error": None}


def drop_duplicate_columns(df: pd.DataFrame) -> pd.DataFrame:
    return df.loc[:, ~df.columns.duplicated()]


def read_projects_csv(source: CsvSource) -> pd.DataFrame:
    """Read the uploaded export into a frame of string cells with trimmed headers."""
    if isinstance(source, bytes):
        source = io.BytesIO(source)
    try:
        df = pd.read_csv(source, dtype=str, keep_default_na=False, skip_blank_lines=True)
    except pd.errors.EmptyDataError as exc:
        raise CsvParseError(str(exc) or "file is empty") from exc
    except (pd.errors.ParserError, UnicodeDecodeError, ValueError) as exc:
        raise CsvParseError(str(exc)) from exc
    df.columns = [str(c).strip() for c in df.columns]
    return drop_duplicate_columns(df)


def _cell(value: object) -> Optional[str]:
    if value is None or pd.isna(value):
        return None
    s = str(value).strip()
    return s or None


def rows_from_frame(df: pd.DataFrame) -> List[ProjectRow]:
    renamed = df.rename(columns=PROJECT_COLUMNS)
    role_cols = [c for c in ROLE_FIELDS if c in renamed.columns]
    if not role_cols:
        expected = [k for k, v in PROJECT_COLUMNS.items() if v in ROLE_FIELDS]
        raise DataProcessingError(f"no consultant columns found (expected one of: {', '.join(expected)})")

    known = [f.name for f in fields(ProjectRow)]
    records = renamed[[c for c in known if c in renamed.columns]].to_dict(orient="records")
    return [ProjectRow(**{k: _cell(v) for k, v in rec.items()}) for rec in records]


def load_capacity_data(source: CsvSource, *, today: Optional[date] = None) -> Dict[str, object]:
    """Parse an upload and derive consultants; failures land in ``ctx["error"]``."""
    ctx = empty_context()
    try:
        df = read_projects_csv(source)
    except CsvParseError as exc:
        logger.warning("csv parse failed: %s", exc)
        ctx["error"] = exc.user_message
        return ctx
    except Exception as exc:
        logger.exception("unexpected failure while reading upload")
        ctx["error"] = CsvParseError(str(exc)).user_message
        return ctx

    try:
        rows = rows_from_frame(df)
        ctx["consultants"] = build_consultants(rows, today)
        ctx["business_lines"] = business_lines(rows)
        ctx["row_count"] = len(rows)
    except DataProcessingError as exc:
        logger.warning("data processing failed: %s", exc)
        return {**empty_context(), "error": exc.user_message}
    except Exception as exc:
        logger.exception("unexpected failure while deriving consultants")
        return {**empty_context(), "error": DataProcessingError(str(exc)).user_message}

    logger.info("loaded %d rows into %d consultants", ctx["row_count"], len(ctx["consultants"]))
    return ctx


def prepare_context(
    filters: dict | CapacityFilters,
    data_ctx: Dict[str, object],
    *,
    today: Optional[date] = None,
) -> Dict[str, object]:
    filt = filters if isinstance(filters, CapacityFilters) else normalize_filters(filters)
    consultants = list(data_ctx.get("consultants") or [])
    return {
        "filters": filt,
        "consultants": consultants,
        "filtered_consultants": apply_filters(consultants, filt, today=today),
        "business_lines": list(data_ctx.get("business_lines") or []),
        "row_count": int(data_ctx.get("row_count") or 0),
        "error": data_ctx.get("error"),
    }
