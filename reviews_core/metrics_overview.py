from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from reviews_core.aggregation import cross_tab, group_count, summary_stats, time_series, top_n
from reviews_core.browse import ViewState
from reviews_core.charts import distribution_chart, time_series_chart, to_vega_spec
from reviews_core.trends import trend_deltas

TOP_DISTRIBUTION = 8
VIEW_TYPES = {"meta-clusters": "meta_label", "subject": "subject"}


def compute_overview(view: ViewState, ctx: Dict[str, Any], *, view_type: str = "meta-clusters") -> Dict[str, Any]:
    dataset: pd.DataFrame = ctx.get("dataset", pd.DataFrame())
    filtered: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    if view_type not in VIEW_TYPES:
        view_type = "meta-clusters"

    series = time_series(filtered, view.period)
    distribution = top_n(group_count(filtered, VIEW_TYPES[view_type]), TOP_DISTRIBUTION)
    trend = trend_deltas(filtered, "meta_label", view.period)
    meta_subjects = cross_tab(filtered, "meta_label", "subject")

    charts: Dict[str, Any] = {}
    line = time_series_chart(series)
    if line is not None:
        charts["complaints_trend"] = to_vega_spec(line)
    bars = distribution_chart(distribution, title="Meta Cluster" if view_type == "meta-clusters" else "Subject")
    if bars is not None:
        charts["distribution"] = to_vega_spec(bars)

    return {
        "view": asdict(view),
        "summary": summary_stats(dataset),
        "filtered_summary": summary_stats(filtered),
        "undated_rows": int(ctx.get("undated_rows", 0) or 0),
        "options": ctx.get("options", {}),
        "view_type": view_type,
        "time_series": [asdict(p) for p in series],
        "distribution": [asdict(b) for b in distribution],
        "meta_subjects": [asdict(g) for g in meta_subjects],
        "trend": asdict(trend),
        "charts": charts,
    }
