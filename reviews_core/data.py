from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Mapping, Optional, Tuple, Union

import pandas as pd

from reviews_core.browse import ViewState, normalize_view
from reviews_core.filters import apply_filters, cascading_options
from reviews_core.periods import derive_frame
from reviews_core.records import ReviewRecord, SchemaVariant, admit_rows, detect_schema

logger = logging.getLogger(__name__)

DATA_DIR = Path(os.environ.get("REVIEW_DATA_DIR", Path(__file__).resolve().parents[1] / "data"))
FILE_GLOB = "*.xlsx"


def get_source_files() -> List[Path]:
    return sorted(p for p in DATA_DIR.glob(FILE_GLOB) if not p.name.startswith("~$"))


def file_signature(files: List[Path]) -> Tuple[Tuple[str, float], ...]:
    return tuple((str(f), f.stat().st_mtime) for f in files)


def read_review_rows(source: Union[str, Path, BinaryIO]) -> List[Dict[str, Any]]:
    """Decode the first sheet of a processed workbook into header-keyed rows."""
    df = pd.read_excel(source, sheet_name=0, dtype=object)
    df.columns = [str(c).strip() for c in df.columns]
    df = df.dropna(how="all")
    return df.to_dict(orient="records")


def load_review_records(source: Union[str, Path, BinaryIO]) -> List[ReviewRecord]:
    rows = read_review_rows(source)
    variant = detect_schema(rows[0].keys()) if rows else SchemaVariant.EXTENDED
    records = admit_rows(rows, variant)
    dropped = len(rows) - len(records)
    logger.info("Loaded %d review rows (%s schema) from %s", len(records), variant.value, getattr(source, "name", source))
    if dropped:
        logger.debug("Dropped %d rows missing required fields", dropped)
    return records


@lru_cache(maxsize=4)
def _load_dashboard_data_cached(files_sig: Tuple[Tuple[str, float], ...]) -> Dict[str, object]:
    records: List[ReviewRecord] = []
    for name, _ in files_sig:
        records.extend(load_review_records(Path(name)))
    return build_data_context(records, files=[Path(name).name for name, _ in files_sig])


def build_data_context(records: List[ReviewRecord], *, files: Optional[List[str]] = None) -> Dict[str, object]:
    return {
        "files": files or [],
        "records": tuple(records),
        "dataset": derive_frame(records, "monthly"),
    }


def load_dashboard_data() -> Dict[str, object]:
    files = get_source_files()
    if not files:
        return build_data_context([])
    return _load_dashboard_data_cached(file_signature(files))


def prepare_context(view: Mapping[str, Any] | ViewState, data_ctx: Dict[str, object]) -> Dict[str, object]:
    """Derive the filtered dataset and filter options for one view selection."""
    v = view if isinstance(view, ViewState) else normalize_view(view)
    records = data_ctx.get("records", ())
    dataset: pd.DataFrame = data_ctx.get("dataset")  # type: ignore[assignment]
    if dataset is None or v.period != "monthly":
        dataset = derive_frame(records, v.period)

    filtered = apply_filters(dataset, v.filters)
    return {
        "view": v,
        "dataset": dataset,
        "filtered": filtered,
        "options": cascading_options(dataset, v.filters),
        "undated_rows": int(filtered["parsed_date"].isna().sum()),
    }
