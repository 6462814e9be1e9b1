from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

import pandas as pd

from reviews_core.aggregation import KeySpec, key_series, time_series

INCREASING = "increasing"
DECREASING = "decreasing"
NEUTRAL = "neutral"


@dataclass(frozen=True)
class TrendDelta:
    key: str
    first_half_count: int
    second_half_count: int
    change: int


@dataclass(frozen=True)
class TrendSummary:
    increasing: List[TrendDelta] = field(default_factory=list)
    decreasing: List[TrendDelta] = field(default_factory=list)
    overall_direction: str = NEUTRAL


def overall_direction(counts: List[int]) -> str:
    """Compare mean bucket count of the first half of a series with the second."""
    if len(counts) < 2:
        return NEUTRAL
    mid = len(counts) // 2
    first = sum(counts[:mid]) / mid
    second = sum(counts[mid:]) / (len(counts) - mid)
    if second > first:
        return INCREASING
    if second < first:
        return DECREASING
    return NEUTRAL


def trend_deltas(
    df: pd.DataFrame,
    key: KeySpec = "meta_label",
    granularity: str = "monthly",
    *,
    limit: int = 3,
) -> TrendSummary:
    """Per-key first-half/second-half deltas plus an overall direction.

    The per-key split happens at the date of the middle record of the
    date-sorted rows; the overall direction splits the bucketed time series by
    index. The two midpoints are independent.
    """
    if not isinstance(df, pd.DataFrame):
        raise TypeError(f"expected a pandas DataFrame, got {type(df).__name__}")
    series = time_series(df, granularity)
    if len(series) < 2:
        return TrendSummary()

    dated = df[df["parsed_date"].notna()]
    dated = dated.sort_values("parsed_date", kind="mergesort")
    midpoint_date = dated["parsed_date"].iloc[len(dated) // 2]
    first_half = dated["parsed_date"] <= midpoint_date

    keys = key_series(dated, key)
    first_counts = keys[first_half].value_counts()
    second_counts = keys[~first_half].value_counts()

    deltas: List[TrendDelta] = []
    for k in sorted(keys.unique()):
        first = int(first_counts.get(k, 0))
        second = int(second_counts.get(k, 0))
        deltas.append(TrendDelta(key=k, first_half_count=first, second_half_count=second, change=second - first))

    increasing = sorted((d for d in deltas if d.change > 0), key=lambda d: (-d.change, d.key))[:limit]
    decreasing = sorted((d for d in deltas if d.change < 0), key=lambda d: (d.change, d.key))[:limit]
    return TrendSummary(
        increasing=increasing,
        decreasing=decreasing,
        overall_direction=overall_direction([p.count for p in series]),
    )
