from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional

import altair as alt
import pandas as pd

from reviews_core.aggregation import AggregateBucket, TimePoint

alt.data_transformers.disable_max_rows()


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def time_series_chart(points: List[TimePoint], *, title: str = "Complaints") -> Optional[alt.Chart]:
    if not points:
        return None
    df = pd.DataFrame([{"period_key": p.period_key, "count": p.count} for p in points])
    df["order"] = range(len(df))
    hover = alt.selection_point(fields=["period_key"], on="mouseover", empty=True)
    return (
        alt.Chart(df)
        .mark_line(point={"filled": True, "size": 60})
        .encode(
            x=alt.X("period_key:N", title="Period", sort=alt.EncodingSortField(field="order"), axis=alt.Axis(grid=False)),
            y=alt.Y("count:Q", title=title, axis=alt.Axis(format="d", gridDash=[4, 4], domain=False, ticks=False)),
            opacity=alt.condition(hover, alt.value(1), alt.value(0.4)),
            tooltip=[alt.Tooltip("period_key:N", title="Period"), alt.Tooltip("count:Q", title=title, format=",")],
        )
        .add_params(hover)
        .properties(height=260)
    )


def distribution_chart(buckets: List[AggregateBucket], *, title: str) -> Optional[alt.Chart]:
    if not buckets:
        return None
    df = pd.DataFrame([asdict(b) for b in buckets])
    return (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=alt.X("count:Q", title="Reviews"),
            y=alt.Y("key:N", title=title, sort="-x"),
            tooltip=[
                alt.Tooltip("key:N", title=title),
                alt.Tooltip("count:Q", title="Reviews", format=","),
                alt.Tooltip("percentage:Q", title="Share %", format=".1f"),
            ],
        )
        .properties(height=max(120, 24 * len(df)))
    )


def stacked_trend_chart(rows: List[Dict[str, Any]], *, title: str = "Meta Cluster") -> Optional[alt.Chart]:
    if not rows:
        return None
    wide = pd.DataFrame(rows).drop(columns=["period_start"], errors="ignore")
    wide["order"] = range(len(wide))
    long_df = wide.drop(columns=["total"]).melt(id_vars=["period", "order"], var_name="key", value_name="count")
    long_df = long_df.dropna(subset=["count"])
    return (
        alt.Chart(long_df)
        .mark_bar()
        .encode(
            x=alt.X("period:N", title="Period", sort=alt.EncodingSortField(field="order")),
            y=alt.Y("count:Q", title="Reviews", stack=True),
            color=alt.Color("key:N", title=title),
            tooltip=["period", alt.Tooltip("key:N", title=title), alt.Tooltip("count:Q", format=",")],
        )
        .properties(height=280)
    )
