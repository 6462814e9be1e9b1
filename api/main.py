from __future__ import annotations

import logging
import math
from datetime import date

import numpy as np
import pandas as pd
from fastapi import FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import MetaFilesResponse, MetaOptionsResponse, ViewStateModel
from reviews_core.browse import ViewState, label_search, normalize_view, sort_records
from reviews_core.data import load_dashboard_data, prepare_context
from reviews_core.filters import ALL
from reviews_core.metrics_clusters import compute_clusters
from reviews_core.metrics_overview import compute_overview
from reviews_core.metrics_regions import compute_regions
from reviews_core.metrics_reviews import compute_reviews


app = FastAPI(title="Review Insights API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

EXPORT_COLUMNS = [
    "sequence_number", "store_name", "region", "date_raw", "remark", "subject", "aggregator",
    "month", "area_manager_name", "cluster_label", "meta_label", "fiscal_year", "period_key",
]


def _view_from_model(model: ViewStateModel) -> ViewState:
    return normalize_view(model.model_dump())


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                type(pd.NaT): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.date().isoformat(),
                date: lambda d: d.isoformat(),
            },
        )
    )


def _error(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/meta/files", response_model=MetaFilesResponse)
def meta_files():
    try:
        data_ctx = load_dashboard_data()
        return _json({"files": data_ctx.get("files", []), "total_reviews": len(data_ctx.get("records", ()))})
    except Exception as exc:
        logger.exception("meta_files failed")
        return _error(exc)


@app.post("/meta/options", response_model=MetaOptionsResponse)
def meta_options(view: ViewStateModel):
    try:
        data_ctx = load_dashboard_data()
        ctx = prepare_context(_view_from_model(view), data_ctx)
        return _json(ctx["options"])
    except Exception as exc:
        logger.exception("meta_options failed")
        return _error(exc)


@app.post("/overview")
def overview(view: ViewStateModel, view_type: str = Query(default="meta-clusters")):
    try:
        data_ctx = load_dashboard_data()
        v = _view_from_model(view)
        ctx = prepare_context(v, data_ctx)
        return _json(compute_overview(v, ctx, view_type=view_type))
    except Exception as exc:
        logger.exception("overview failed")
        return _error(exc)


@app.post("/regions")
def regions(view: ViewStateModel):
    try:
        data_ctx = load_dashboard_data()
        v = _view_from_model(view)
        ctx = prepare_context(v, data_ctx)
        return _json(compute_regions(v, ctx))
    except Exception as exc:
        logger.exception("regions failed")
        return _error(exc)


@app.post("/clusters")
def clusters(
    view: ViewStateModel,
    meta_cluster: str = Query(default=ALL),
    q: str = Query(default=""),
    sort_by: str = Query(default="count"),
):
    try:
        data_ctx = load_dashboard_data()
        v = _view_from_model(view)
        ctx = prepare_context(v, data_ctx)
        return _json(compute_clusters(v, ctx, meta_cluster=meta_cluster or ALL, q=q, sort_by=sort_by))
    except Exception as exc:
        logger.exception("clusters failed")
        return _error(exc)


@app.post("/reviews")
def reviews(view: ViewStateModel):
    try:
        data_ctx = load_dashboard_data()
        v = label_search(_view_from_model(view))
        ctx = prepare_context(v, data_ctx)
        return _json(compute_reviews(v, ctx))
    except Exception as exc:
        logger.exception("reviews failed")
        return _error(exc)


@app.post("/export/{page}")
def export_page(page: str, view: ViewStateModel):
    data_ctx = load_dashboard_data()
    v = _view_from_model(view)
    if page == "reviews":
        v = label_search(v)
    ctx = prepare_context(v, data_ctx)

    filename = f"{page}.csv"
    filtered: pd.DataFrame = ctx["filtered"]
    if page == "reviews":
        export_df = sort_records(filtered, v.sort_field, v.sort_order)[EXPORT_COLUMNS]
    elif page == "regions":
        export_df = filtered.groupby(["region", "store_name"]).size().reset_index(name="complaints")
    elif page == "clusters":
        export_df = filtered.groupby(["meta_label", "cluster_label"]).size().reset_index(name="count")
    else:
        export_df = pd.DataFrame()

    csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={filename}"})
