from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Union

import pandas as pd

from reviews_core.periods import check_granularity, period_label, period_start

UNKNOWN = "Unknown"

KeySpec = Union[str, Callable[[pd.DataFrame], pd.Series]]


@dataclass(frozen=True)
class AggregateBucket:
    key: str
    count: int
    percentage: float


@dataclass(frozen=True)
class TimePoint:
    period_key: str
    period_start: date
    count: int


@dataclass(frozen=True)
class CrossTabGroup:
    outer: str
    total: int
    inner: List[AggregateBucket]


def _check_frame(df: object) -> pd.DataFrame:
    if not isinstance(df, pd.DataFrame):
        raise TypeError(f"expected a pandas DataFrame, got {type(df).__name__}")
    return df


def key_series(df: pd.DataFrame, key: KeySpec) -> pd.Series:
    """Grouping keys for every row; blanks collapse to UNKNOWN."""
    values = key(df) if callable(key) else df[key]
    if isinstance(values, pd.Series) and not values.index.equals(df.index):
        # Key functions may build a fresh Series; line it up by position.
        values = values.set_axis(df.index)
    values = pd.Series(values, index=df.index).fillna("").astype(str).str.strip()
    return values.mask(values == "", UNKNOWN)


def _ordered(counts: Dict[str, int], total: int, alphabetical: bool) -> List[AggregateBucket]:
    if alphabetical:
        items = sorted(counts.items(), key=lambda kv: kv[0])
    else:
        items = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    return [AggregateBucket(key=k, count=int(c), percentage=100.0 * c / total) for k, c in items]


def group_count(df: pd.DataFrame, key: KeySpec, *, alphabetical: bool = False) -> List[AggregateBucket]:
    df = _check_frame(df)
    if df.empty:
        return []
    counts = key_series(df, key).value_counts()
    return _ordered({str(k): int(v) for k, v in counts.items()}, len(df), alphabetical)


def top_n(buckets: List[AggregateBucket], n: int) -> List[AggregateBucket]:
    return list(buckets[: max(0, int(n))])


def _dated(df: pd.DataFrame) -> pd.DataFrame:
    return df[df["parsed_date"].notna()]


def _as_date(value: object) -> date:
    return value.date() if isinstance(value, pd.Timestamp) else value  # type: ignore[return-value]


def _bucket_starts(dated: pd.DataFrame, granularity: str) -> pd.Series:
    return dated["parsed_date"].map(lambda ts: period_start(ts.date(), granularity))


def time_series(df: pd.DataFrame, granularity: str = "monthly") -> List[TimePoint]:
    """Counts per period bucket, ordered by bucket start date."""
    df = _check_frame(df)
    check_granularity(granularity)
    dated = _dated(df)
    if dated.empty:
        return []
    counts = _bucket_starts(dated, granularity).value_counts().sort_index()
    points: List[TimePoint] = []
    for start, count in counts.items():
        start = _as_date(start)
        points.append(TimePoint(period_key=period_label(start, granularity), period_start=start, count=int(count)))
    return points


def stacked_time_series(
    df: pd.DataFrame,
    granularity: str = "monthly",
    key: KeySpec = "meta_label",
    *,
    last: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """Per-period counts split by `key`, one row per period with a `total`."""
    df = _check_frame(df)
    check_granularity(granularity)
    dated = _dated(df)
    if dated.empty:
        return []
    table = pd.crosstab(_bucket_starts(dated, granularity), key_series(dated, key)).sort_index()
    if last is not None:
        table = table.tail(max(0, int(last)))
    rows: List[Dict[str, Any]] = []
    for start, counts in table.iterrows():
        start = _as_date(start)
        row: Dict[str, Any] = {"period": period_label(start, granularity), "period_start": start}
        row.update({str(k): int(v) for k, v in counts.items() if v})
        row["total"] = int(counts.sum())
        rows.append(row)
    return rows


def cross_tab(df: pd.DataFrame, outer: KeySpec, inner: KeySpec) -> List[CrossTabGroup]:
    """Inner distributions per outer group; inner percentages use the group total."""
    df = _check_frame(df)
    if df.empty:
        return []
    outer_keys = key_series(df, outer)
    groups: List[CrossTabGroup] = []
    for bucket in group_count(df, outer):
        subset = df[outer_keys == bucket.key]
        groups.append(CrossTabGroup(outer=bucket.key, total=bucket.count, inner=group_count(subset, inner)))
    return groups


def summary_stats(df: pd.DataFrame) -> Dict[str, int]:
    df = _check_frame(df)

    def _distinct(col: str) -> int:
        values = df[col].fillna("").astype(str).str.strip()
        return int(values[values != ""].nunique())

    return {
        "total_reviews": int(len(df)),
        "total_regions": _distinct("region"),
        "total_stores": _distinct("store_name"),
        "total_clusters": _distinct("cluster_label"),
        "total_meta_clusters": _distinct("meta_label"),
    }
