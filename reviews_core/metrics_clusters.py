from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

import pandas as pd

from reviews_core.aggregation import AggregateBucket, cross_tab, group_count, key_series, stacked_time_series
from reviews_core.browse import ViewState
from reviews_core.charts import distribution_chart, stacked_trend_chart, to_vega_spec
from reviews_core.filters import ALL

TREND_PERIODS = 12
CLUSTER_SORTS = ("count", "alphabetical")


def cluster_stats(
    df: pd.DataFrame,
    *,
    meta_cluster: str = ALL,
    q: str = "",
    sort_by: str = "count",
) -> List[Dict[str, Any]]:
    """Cluster-label distribution, optionally within one meta cluster.

    Percentages are relative to the rows in scope before the label search, so
    searching narrows the list without rescaling it.
    """
    scope = df
    if meta_cluster != ALL:
        scope = df[key_series(df, "meta_label") == meta_cluster]
    buckets: List[AggregateBucket] = group_count(scope, "cluster_label", alphabetical=sort_by == "alphabetical")
    query = (q or "").strip().lower()
    if query:
        buckets = [b for b in buckets if query in b.key.lower()]

    keys = key_series(scope, "cluster_label")
    out: List[Dict[str, Any]] = []
    for b in buckets:
        subset = scope[keys == b.key]
        locations = sorted({str(v) for v in subset["region"].dropna() if str(v).strip()})
        out.append(
            {
                **asdict(b),
                "locations": locations,
                "meta_clusters": sorted({str(v) for v in subset["meta_label"].dropna() if str(v).strip()}),
                "avg_reviews_per_location": b.count / len(locations) if locations else None,
            }
        )
    return out


def compute_clusters(
    view: ViewState,
    ctx: Dict[str, Any],
    *,
    meta_cluster: str = ALL,
    q: str = "",
    sort_by: str = "count",
) -> Dict[str, Any]:
    filtered: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    if sort_by not in CLUSTER_SORTS:
        sort_by = "count"

    metas = group_count(filtered, "meta_label")
    trends = stacked_time_series(filtered, view.period, "meta_label", last=TREND_PERIODS)
    hierarchy = cross_tab(filtered, "cluster_label", "meta_label")

    charts: Dict[str, Any] = {}
    bars = distribution_chart(metas, title="Meta Cluster")
    if bars is not None:
        charts["meta_clusters"] = to_vega_spec(bars)
    stacked = stacked_trend_chart(trends)
    if stacked is not None:
        charts["meta_cluster_trend"] = to_vega_spec(stacked)

    return {
        "view": asdict(view),
        "options": ctx.get("options", {}),
        "meta_clusters": [asdict(b) for b in metas],
        "clusters": cluster_stats(filtered, meta_cluster=meta_cluster, q=q, sort_by=sort_by),
        "hierarchy": [asdict(g) for g in hierarchy],
        "trend": trends,
        "sort_by": sort_by,
        "q": (q or "").strip(),
        "charts": charts,
    }
