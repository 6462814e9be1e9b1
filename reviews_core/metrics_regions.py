from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

import pandas as pd

from reviews_core.aggregation import group_count, key_series, time_series, top_n
from reviews_core.browse import ViewState
from reviews_core.charts import distribution_chart, time_series_chart, to_vega_spec

ISSUE_KEYWORDS = (
    "missing", "wrong", "poor", "bad", "terrible", "awful",
    "disappointed", "error", "not received", "damaged",
)


def store_performance(df: pd.DataFrame) -> List[Dict[str, Any]]:
    if df.empty:
        return []
    grouped = (
        df.assign(region=df["region"].fillna(""), store_name=df["store_name"].fillna(""))
        .groupby(["region", "store_name"], sort=False)
        .size()
        .reset_index(name="complaints")
        .sort_values(["complaints", "region", "store_name"], ascending=[False, True, True], kind="mergesort")
    )
    return [
        {"region": str(r.region), "store": str(r.store_name), "complaints": int(r.complaints)}
        for r in grouped.itertuples(index=False)
    ]


def issue_mask(df: pd.DataFrame) -> pd.Series:
    text = (df["remark"].fillna("").astype(str) + " " + df["cluster_label"].fillna("").astype(str)).str.lower()
    mask = pd.Series(False, index=df.index)
    for keyword in ISSUE_KEYWORDS:
        mask |= text.str.contains(keyword, regex=False)
    return mask


def location_profiles(df: pd.DataFrame, *, location: str = "region") -> List[Dict[str, Any]]:
    """Per-location breakdown: cluster mix, meta mix, and keyword issue rate."""
    if df.empty:
        return []
    issues = issue_mask(df)
    keys = key_series(df, location)
    profiles: List[Dict[str, Any]] = []
    for bucket in group_count(df, location):
        in_location = keys == bucket.key
        subset = df[in_location]
        issue_rate = 100.0 * float(issues[in_location].sum()) / bucket.count
        clusters = group_count(subset, "cluster_label")
        metas = group_count(subset, "meta_label")
        profiles.append(
            {
                "location": bucket.key,
                "total_reviews": bucket.count,
                "top_clusters": [asdict(b) for b in top_n(clusters, 5)],
                "meta_distribution": [asdict(b) for b in metas],
                "issue_rate": issue_rate,
                "satisfaction_rate": 100.0 - issue_rate,
                "unique_clusters": len(clusters),
                "unique_meta_clusters": len(metas),
            }
        )
    return profiles


def compute_regions(view: ViewState, ctx: Dict[str, Any]) -> Dict[str, Any]:
    filtered: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    if filtered.empty:
        return {"view": asdict(view), "options": ctx.get("options", {}), "regions": [], "stores": [], "charts": {}}

    regions = group_count(filtered, "region")
    series = time_series(filtered, view.period)
    dated = filtered[filtered["parsed_date"].notna()]

    charts: Dict[str, Any] = {}
    bars = distribution_chart(regions, title="Region")
    if bars is not None:
        charts["regions"] = to_vega_spec(bars)
    line = time_series_chart(series)
    if line is not None:
        charts["complaints_trend"] = to_vega_spec(line)

    return {
        "view": asdict(view),
        "options": ctx.get("options", {}),
        "regions": [asdict(b) for b in regions],
        "stores": store_performance(filtered),
        "fiscal_years": [asdict(b) for b in group_count(dated, "fiscal_year", alphabetical=True)],
        "time_series": [asdict(p) for p in series],
        "locations": location_profiles(filtered),
        "charts": charts,
    }
