from __future__ import annotations

import math
from dataclasses import asdict, dataclass, fields
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pandas as pd


class SchemaVariant(str, Enum):
    EXTENDED = "extended"
    MINIMAL = "minimal"


EXTENDED_COLUMNS = {
    "S.No": "sequence_number",
    "Store Name": "store_name",
    "Region": "region",
    "Date": "date_raw",
    "Remark": "remark",
    "Subject": "subject",
    "Aggregator": "aggregator",
    "Month": "month",
    "Area Manger Name": "area_manager_name",
    "Area Manager Name": "area_manager_name",
    "LLM_Cluster_Label": "cluster_label",
    "LLM_Meta_Label": "meta_label",
}

# Earlier export shape: City is the location dimension, Reviews the review body.
MINIMAL_COLUMNS = {
    "City": "region",
    "Reviews": "remark",
    "LLM_Cluster_Label": "cluster_label",
    "LLM_Meta_Label": "meta_label",
}

REQUIRED_FIELDS = {
    SchemaVariant.EXTENDED: ("store_name", "remark", "cluster_label"),
    SchemaVariant.MINIMAL: ("region", "remark", "cluster_label"),
}

_NA_TOKENS = {"nan", "none", "null", "<na>", "nat"}


@dataclass(frozen=True)
class ReviewRecord:
    sequence_number: int = 0
    store_name: str = ""
    region: str = ""
    date_raw: str = ""
    remark: str = ""
    subject: str = ""
    aggregator: str = ""
    month: str = ""
    area_manager_name: str = ""
    cluster_label: str = ""
    meta_label: str = ""


RECORD_FIELDS = [f.name for f in fields(ReviewRecord)]


def _header_key(value: object) -> str:
    return str(value).strip().lower()


def detect_schema(columns: Iterable[object]) -> SchemaVariant:
    """Pick the schema variant from a sheet's header row.

    A sheet carrying any extended-only column is extended; a sheet carrying
    `Reviews` or `City` without them is minimal. Anything else is treated as
    extended so missing columns simply default.
    """
    keys = {_header_key(c) for c in columns}
    extended_only = {_header_key(c) for c in EXTENDED_COLUMNS} - {_header_key(c) for c in MINIMAL_COLUMNS}
    if keys & extended_only:
        return SchemaVariant.EXTENDED
    if {"reviews", "city"} & keys:
        return SchemaVariant.MINIMAL
    return SchemaVariant.EXTENDED


def _is_missing(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return value is pd.NaT or value is pd.NA


def coerce_str(value: object) -> str:
    if _is_missing(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    s = str(value).strip()
    if s.lower() in _NA_TOKENS:
        return ""
    return s


def coerce_date_raw(value: object) -> str:
    # Spreadsheet readers may already hand back a datetime for the Date column.
    if isinstance(value, (datetime, date)) and not _is_missing(value):
        return value.strftime("%d/%m/%Y")
    return coerce_str(value)


def coerce_int(value: object, default: int = 0) -> int:
    if _is_missing(value):
        return default
    try:
        return int(float(str(value).strip()))
    except (TypeError, ValueError):
        return default


def admit(raw_row: Mapping[str, Any], variant: Optional[SchemaVariant] = None) -> Optional[ReviewRecord]:
    """Turn a header-keyed spreadsheet row into a ReviewRecord.

    Returns None when a required field for the row's schema variant is blank.
    Missing columns default to "" (or 0 for S.No) and never raise.
    """
    if not isinstance(raw_row, Mapping):
        raise TypeError(f"row must be a mapping, got {type(raw_row).__name__}")
    if variant is None:
        variant = detect_schema(raw_row.keys())
    mapping = EXTENDED_COLUMNS if variant is SchemaVariant.EXTENDED else MINIMAL_COLUMNS
    lookup = {_header_key(k): k for k in raw_row.keys()}

    values: Dict[str, Any] = {}
    for header, field_name in mapping.items():
        source = lookup.get(_header_key(header))
        if source is None or field_name in values:
            continue
        raw = raw_row[source]
        if field_name == "sequence_number":
            values[field_name] = coerce_int(raw)
        elif field_name == "date_raw":
            values[field_name] = coerce_date_raw(raw)
        else:
            values[field_name] = coerce_str(raw)

    record = ReviewRecord(**values)
    if any(not getattr(record, name) for name in REQUIRED_FIELDS[variant]):
        return None
    return record


def admit_rows(rows: Iterable[Mapping[str, Any]], variant: Optional[SchemaVariant] = None) -> List[ReviewRecord]:
    if isinstance(rows, (str, bytes, Mapping)):
        raise TypeError("rows must be an iterable of mappings")
    rows = list(rows)
    if variant is None and rows:
        variant = detect_schema(rows[0].keys())
    out: List[ReviewRecord] = []
    for row in rows:
        record = admit(row, variant)
        if record is not None:
            out.append(record)
    return out


def records_frame(records: Iterable[ReviewRecord], columns: Optional[List[str]] = None) -> pd.DataFrame:
    rows = [asdict(r) for r in records]
    if columns is None:
        columns = list(rows[0].keys()) if rows else RECORD_FIELDS
    return pd.DataFrame(rows, columns=columns)


def frame_to_records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """Plain dicts for the presentation layer (NaT -> None, timestamps -> date)."""
    out: List[Dict[str, Any]] = []
    for row in df.to_dict(orient="records"):
        clean: Dict[str, Any] = {}
        for k, v in row.items():
            if isinstance(v, pd.Timestamp):
                clean[k] = None if pd.isna(v) else v.date()
            elif _is_missing(v):
                clean[k] = None
            elif hasattr(v, "item"):
                clean[k] = v.item()
            else:
                clean[k] = v
        out.append(clean)
    return out
