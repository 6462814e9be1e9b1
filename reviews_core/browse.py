from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd

from reviews_core.filters import FilterState, normalize_filters, select
from reviews_core.periods import PERIODS, check_granularity
from reviews_core.records import frame_to_records

DEFAULT_PAGE_SIZE = 20

SORT_FIELDS = {
    "date": "parsed_date",
    "region": "region",
    "store": "store_name",
    "subject": "subject",
    "meta_cluster": "meta_label",
}
SORT_ORDERS = ("asc", "desc")

NEGATIVE_KEYWORDS = (
    "missing", "wrong", "poor", "bad", "terrible", "awful", "disappointed",
    "error", "not received", "damaged", "cold", "late",
)
POSITIVE_KEYWORDS = (
    "good", "great", "excellent", "amazing", "perfect", "delicious",
    "fresh", "hot", "fast", "friendly",
)


@dataclass(frozen=True)
class ViewState:
    filters: FilterState = field(default_factory=FilterState)
    period: str = "monthly"
    sort_field: str = "date"
    sort_order: str = "desc"
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE


@dataclass(frozen=True)
class Page:
    records: List[Dict[str, Any]]
    page_number: int
    page_size: int
    total_pages: int
    total_records: int


def _as_int(value: object, default: int) -> int:
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default


def normalize_view(raw: Optional[Mapping[str, Any]]) -> ViewState:
    raw = raw or {}
    period = raw.get("period") or "monthly"
    if period not in PERIODS:
        period = "monthly"
    sort_field = raw.get("sort_field") or "date"
    if sort_field not in SORT_FIELDS:
        sort_field = "date"
    sort_order = raw.get("sort_order") or "desc"
    if sort_order not in SORT_ORDERS:
        sort_order = "desc"
    return ViewState(
        filters=normalize_filters(raw.get("filters")),
        period=period,
        sort_field=sort_field,
        sort_order=sort_order,
        page=max(1, _as_int(raw.get("page"), 1)),
        page_size=max(1, min(200, _as_int(raw.get("page_size"), DEFAULT_PAGE_SIZE))),
    )


# View transitions. Anything that changes the row set or its order goes back to page 1.
def select_filter(view: ViewState, dimension: str, value: object) -> ViewState:
    return replace(view, filters=select(view.filters, dimension, value), page=1)


def search(view: ViewState, term: str) -> ViewState:
    return replace(view, filters=replace(view.filters, search_term=(term or "").strip()), page=1)


def clear(view: ViewState) -> ViewState:
    return replace(view, filters=FilterState(), page=1)


def toggle_sort(view: ViewState, sort_field: str) -> ViewState:
    if sort_field not in SORT_FIELDS:
        raise ValueError(f"Unknown sort field {sort_field!r}")
    if sort_field == view.sort_field:
        order = "asc" if view.sort_order == "desc" else "desc"
    else:
        order = "desc"
    return replace(view, sort_field=sort_field, sort_order=order, page=1)


def set_period(view: ViewState, period: str) -> ViewState:
    return replace(view, period=check_granularity(period), page=1)


def go_to_page(view: ViewState, page: int) -> ViewState:
    return replace(view, page=max(1, int(page)))


def label_search(view: ViewState) -> ViewState:
    """The review browser matches its search term against cluster labels as well as the remark."""
    return replace(view, filters=replace(view.filters, search_labels=True))


def sort_records(df: pd.DataFrame, sort_field: str = "date", order: str = "desc") -> pd.DataFrame:
    """Sort by one field with the original row order as tie-break.

    Missing dates rank as the earliest value: first ascending, last descending.
    """
    if not isinstance(df, pd.DataFrame):
        raise TypeError(f"expected a pandas DataFrame, got {type(df).__name__}")
    if sort_field not in SORT_FIELDS:
        raise ValueError(f"Unknown sort field {sort_field!r}")
    if order not in SORT_ORDERS:
        raise ValueError(f"Unknown sort order {order!r}")
    column = SORT_FIELDS[sort_field]
    ascending = order == "asc"
    keyed = df.assign(_position=range(len(df)), _sort_key=df[column])
    if column != "parsed_date":
        keyed["_sort_key"] = keyed["_sort_key"].fillna("").astype(str)
    keyed = keyed.sort_values(
        ["_sort_key", "_position"],
        ascending=[ascending, True],
        na_position="first" if ascending else "last",
        kind="mergesort",
    )
    return keyed.drop(columns=["_sort_key", "_position"])


def paginate(df: pd.DataFrame, page_size: int = DEFAULT_PAGE_SIZE, page_number: int = 1) -> Page:
    if not isinstance(df, pd.DataFrame):
        raise TypeError(f"expected a pandas DataFrame, got {type(df).__name__}")
    if page_size < 1:
        raise ValueError("page_size must be at least 1")
    total = len(df)
    total_pages = math.ceil(total / page_size)
    start = (page_number - 1) * page_size
    rows = df.iloc[start:start + page_size] if page_number >= 1 else df.iloc[0:0]
    return Page(
        records=frame_to_records(rows),
        page_number=page_number,
        page_size=page_size,
        total_pages=total_pages,
        total_records=total,
    )


def review_sentiment(remark: str, cluster_label: str = "") -> str:
    text = f"{remark or ''} {cluster_label or ''}".lower()
    negative = any(k in text for k in NEGATIVE_KEYWORDS)
    positive = any(k in text for k in POSITIVE_KEYWORDS)
    if negative and not positive:
        return "negative"
    if positive and not negative:
        return "positive"
    return "neutral"
