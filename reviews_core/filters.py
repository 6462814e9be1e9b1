from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, List, Mapping, Optional, Tuple

import pandas as pd

ALL = "all"

# Cascade order: options for a dimension are drawn from rows that satisfy
# every dimension listed before it.
CASCADE_ORDER: Tuple[Tuple[str, str], ...] = (
    ("region", "region"),
    ("area_manager", "area_manager_name"),
    ("store", "store_name"),
    ("aggregator", "aggregator"),
    ("meta_cluster", "meta_label"),
    ("subject", "subject"),
)
DIMENSIONS = tuple(d for d, _ in CASCADE_ORDER)
DIMENSION_COLUMNS = dict(CASCADE_ORDER)

SEARCH_COLUMNS = ("remark",)
LABEL_SEARCH_COLUMNS = ("remark", "cluster_label", "meta_label")


@dataclass(frozen=True)
class FilterState:
    region: str = ALL
    area_manager: str = ALL
    store: str = ALL
    aggregator: str = ALL
    meta_cluster: str = ALL
    subject: str = ALL
    search_term: str = ""
    search_labels: bool = False

    def active(self) -> Dict[str, str]:
        return {d: getattr(self, d) for d in DIMENSIONS if getattr(self, d) != ALL}


def _as_choice(value: object) -> str:
    if value is None:
        return ALL
    s = str(value).strip()
    if not s or s.lower() == ALL:
        return ALL
    return s


def normalize_filters(raw: Optional[Mapping[str, object]]) -> FilterState:
    raw = raw or {}
    choices = {d: _as_choice(raw.get(d)) for d in DIMENSIONS}
    search_term = str(raw.get("search_term") or "").strip()
    search_labels = bool(raw.get("search_labels", False))
    return FilterState(**choices, search_term=search_term, search_labels=search_labels)


def clear_filters() -> FilterState:
    return FilterState()


def select(state: FilterState, dimension: str, value: object) -> FilterState:
    if dimension not in DIMENSION_COLUMNS:
        raise ValueError(f"Unknown filter dimension {dimension!r}")
    return replace(state, **{dimension: _as_choice(value)})


def _check_frame(df: object) -> pd.DataFrame:
    if not isinstance(df, pd.DataFrame):
        raise TypeError(f"expected a pandas DataFrame, got {type(df).__name__}")
    return df


def _equals(df: pd.DataFrame, column: str, value: str) -> pd.Series:
    return df[column].fillna("").astype(str) == value


def search_mask(df: pd.DataFrame, term: str, columns=SEARCH_COLUMNS) -> pd.Series:
    term = (term or "").strip()
    if not term:
        return pd.Series(True, index=df.index)
    mask = pd.Series(False, index=df.index)
    for col in columns:
        mask |= df[col].fillna("").astype(str).str.contains(term, case=False, regex=False)
    return mask


def apply_filters(df: pd.DataFrame, state: FilterState) -> pd.DataFrame:
    df = _check_frame(df)
    mask = pd.Series(True, index=df.index)
    for dimension, column in CASCADE_ORDER:
        value = getattr(state, dimension)
        if value != ALL:
            mask &= _equals(df, column, value)
    columns = LABEL_SEARCH_COLUMNS if state.search_labels else SEARCH_COLUMNS
    mask &= search_mask(df, state.search_term, columns)
    return df[mask]


def distinct_values(series: pd.Series) -> List[str]:
    values = series.dropna().astype(str)
    values = values[values.str.strip() != ""]
    return sorted(values.unique().tolist())


def cascading_options(df: pd.DataFrame, state: FilterState) -> Dict[str, List[str]]:
    """Valid choices for each dimension given the selections upstream of it."""
    scope = _check_frame(df)
    options: Dict[str, List[str]] = {}
    for dimension, column in CASCADE_ORDER:
        options[dimension] = distinct_values(scope[column])
        value = getattr(state, dimension)
        if value != ALL:
            scope = scope[_equals(scope, column, value)]
    return options
