from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from reviews_core.browse import ViewState, paginate, review_sentiment, sort_records


def compute_reviews(view: ViewState, ctx: Dict[str, Any]) -> Dict[str, Any]:
    filtered: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    ordered = sort_records(filtered, view.sort_field, view.sort_order)
    page = paginate(ordered, view.page_size, view.page)
    for record in page.records:
        record["sentiment"] = review_sentiment(record.get("remark") or "", record.get("cluster_label") or "")
    return {
        "view": asdict(view),
        "options": ctx.get("options", {}),
        "sort": {"field": view.sort_field, "order": view.sort_order},
        "page": asdict(page),
    }
