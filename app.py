import logging
from contextlib import contextmanager
from dataclasses import replace
from typing import Dict, List, Optional

import pandas as pd
import streamlit as st

from reviews_core.browse import SORT_FIELDS, ViewState, go_to_page, label_search, toggle_sort
from reviews_core.data import build_data_context, load_dashboard_data, load_review_records, prepare_context
from reviews_core.filters import ALL, CASCADE_ORDER, FilterState
from reviews_core.metrics_clusters import compute_clusters
from reviews_core.metrics_overview import compute_overview
from reviews_core.metrics_regions import compute_regions
from reviews_core.metrics_reviews import compute_reviews
from reviews_core.uploads import UploadRecord, UploadStatus, add_upload, apply_status, new_upload

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

DIMENSION_LABELS = {
    "region": "Region",
    "area_manager": "Area Manager",
    "store": "Store",
    "aggregator": "Aggregator",
    "meta_cluster": "Meta Cluster",
    "subject": "Subject",
}


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #6b7280;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card'><div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_filter_summary(filters: FilterState) -> str:
    chips = [f"{DIMENSION_LABELS[d]}: {v}" for d, v in filters.active().items()] or ["All reviews"]
    if filters.search_term:
        chips.append(f"Search: {filters.search_term}")
    return "".join([f"<span class='chip'>{txt}</span>" for txt in chips])


def render_page_header(title: str, breadcrumb: str, filters: FilterState, export_df: Optional[pd.DataFrame] = None, export_name: str = "export.csv"):
    inject_base_styles()
    c1, c2 = st.columns([8, 2])
    with c1:
        st.markdown(
            f"<div class='app-top-bar'><div class='breadcrumb'>{breadcrumb}</div><div class='page-title'>{title}</div></div>",
            unsafe_allow_html=True,
        )
    with c2:
        if export_df is not None and not export_df.empty:
            st.download_button("Export CSV", data=export_df.to_csv(index=False).encode("utf-8"), file_name=export_name, mime="text/csv")
    st.markdown(f"<div class='chip-row'>{format_filter_summary(filters)}</div>", unsafe_allow_html=True)


def bucket_table(rows: List[Dict], key_title: str) -> pd.DataFrame:
    df = pd.DataFrame(rows, columns=["key", "count", "percentage"])
    df["percentage"] = df["percentage"].round(1)
    return df.rename(columns={"key": key_title, "count": "Reviews", "percentage": "Share %"})


# ---------- UI setup ----------
st.set_page_config(page_title="Review Insights Dashboard", layout="wide")
inject_base_styles()
st.title("Review Insights Dashboard")
st.caption("Cluster-labeled customer feedback by region, store, category and time.")

with st.sidebar:
    uploaded = st.file_uploader("Load a processed workbook", type=["xlsx", "xls"])
    history: List[UploadRecord] = st.session_state.setdefault("upload_history", [])
    if uploaded is not None and st.session_state.get("_uploaded_name") != uploaded.name:
        job_id = getattr(uploaded, "file_id", None) or uploaded.name
        history = add_upload(history, new_upload(job_id, uploaded.name, uploaded.name))
        try:
            records = load_review_records(uploaded)
        except Exception as exc:
            logger.exception("Failed to read %s", uploaded.name)
            history = apply_status(history, job_id, UploadStatus.FAILED)
            st.error(f"Could not read {uploaded.name}: {exc}")
        else:
            st.session_state["_uploaded_ctx"] = build_data_context(records, files=[uploaded.name])
            history = apply_status(history, job_id, UploadStatus.COMPLETED, processed_file_name=uploaded.name)
            st.session_state["view"] = ViewState()
        st.session_state["_uploaded_name"] = uploaded.name
        st.session_state["upload_history"] = history
    if st.session_state.get("_uploaded_ctx") and st.button("Clear loaded workbook"):
        st.session_state.pop("_uploaded_ctx", None)
        st.session_state.pop("_uploaded_name", None)
        st.session_state["view"] = ViewState()
    if history:
        with st.expander(f"Upload history ({len(history)})"):
            st.dataframe(pd.DataFrame([r.to_dict() for r in history]), hide_index=True, use_container_width=True)

data_ctx = st.session_state.get("_uploaded_ctx") or load_dashboard_data()
if not data_ctx.get("records"):
    st.info("No reviews loaded. Upload a processed workbook or place .xlsx files in the data directory.")
    st.stop()

view: ViewState = st.session_state.setdefault("view", ViewState())

# ----- Sidebar: navigation + cascading filters -----
with st.sidebar:
    st.markdown("### Navigate")
    current_page = st.radio("Navigate", ["Overview", "Regions", "Clusters", "Reviews"], index=0)
    st.markdown("---")
    st.markdown("### Filters")
    period = st.selectbox("Period", ["daily", "weekly", "monthly"], index=["daily", "weekly", "monthly"].index(view.period))
    options = prepare_context(view, data_ctx)["options"]
    choices = {}
    for dimension, _ in CASCADE_ORDER:
        values = [ALL] + options[dimension]
        current = getattr(view.filters, dimension)
        index = values.index(current) if current in values else 0
        choices[dimension] = st.selectbox(DIMENSION_LABELS[dimension], values, index=index)
    search_term = st.text_input("Search reviews", view.filters.search_term, help="On the Reviews page the search also matches cluster and meta labels.")
    if st.button("Clear all filters"):
        choices = {d: ALL for d, _ in CASCADE_ORDER}
        search_term = ""

new_filters = FilterState(**choices, search_term=search_term.strip(), search_labels=view.filters.search_labels)
if new_filters != view.filters or period != view.period:
    view = replace(view, filters=new_filters, period=period, page=1)
    st.session_state["view"] = view

ctx = prepare_context(view, data_ctx)


def render_overview_page():
    view_type = st.radio("Distribution", ["meta-clusters", "subject"], horizontal=True)
    payload = compute_overview(view, ctx, view_type=view_type)
    render_page_header("Overview", "Home / Overview", view.filters)
    summary = payload["filtered_summary"]
    cols = st.columns(5)
    cols[0].metric("Reviews", f"{summary['total_reviews']:,}")
    cols[1].metric("Regions", summary["total_regions"])
    cols[2].metric("Stores", summary["total_stores"])
    cols[3].metric("Clusters", summary["total_clusters"])
    cols[4].metric("Meta clusters", summary["total_meta_clusters"])
    if payload["undated_rows"]:
        st.caption(f"{payload['undated_rows']} reviews have no readable date and are left out of trends.")

    with card("Complaints over time"):
        if "complaints_trend" in payload["charts"]:
            st.vega_lite_chart(payload["charts"]["complaints_trend"], use_container_width=True)
        else:
            st.info("No dated reviews in the current selection.")

    trend = payload["trend"]
    cols = st.columns(2)
    with cols[0]:
        with card(f"Key insights (overall {trend['overall_direction']})"):
            for d in trend["increasing"]:
                st.markdown(f"🔺 **{d['key']}** +{d['change']} ({d['first_half_count']} → {d['second_half_count']})")
            for d in trend["decreasing"]:
                st.markdown(f"🔻 **{d['key']}** {d['change']} ({d['first_half_count']} → {d['second_half_count']})")
            if not trend["increasing"] and not trend["decreasing"]:
                st.info("Not enough periods for trend analysis.")
    with cols[1]:
        with card("Distribution"):
            if "distribution" in payload["charts"]:
                st.vega_lite_chart(payload["charts"]["distribution"], use_container_width=True)

    with card("Subjects within each meta cluster"):
        for group in payload["meta_subjects"]:
            with st.expander(f"{group['outer']} ({group['total']})"):
                st.dataframe(bucket_table(group["inner"], "Subject"), hide_index=True)


def render_regions_page():
    payload = compute_regions(view, ctx)
    stores = pd.DataFrame(payload["stores"])
    render_page_header("Regions", "Home / Regions", view.filters, export_df=stores, export_name="stores.csv")
    if not payload["regions"]:
        st.info("No reviews match the current filters.")
        return
    cols = st.columns(2)
    with cols[0]:
        with card("Complaints by region"):
            st.vega_lite_chart(payload["charts"]["regions"], use_container_width=True)
    with cols[1]:
        with card("Store performance"):
            st.dataframe(stores, hide_index=True)
    with card("Fiscal years"):
        st.dataframe(bucket_table(payload["fiscal_years"], "Fiscal Year"), hide_index=True)
    with card("Location profiles"):
        for profile in payload["locations"]:
            st.markdown(
                f"**{profile['location']}**: {profile['total_reviews']} reviews, "
                f"issue rate {profile['issue_rate']:.1f}%, satisfaction {profile['satisfaction_rate']:.1f}%"
            )


def render_clusters_page():
    c1, c2, c3 = st.columns([3, 3, 2])
    meta_options = [ALL] + ctx["options"]["meta_cluster"]
    meta_cluster = c1.selectbox("Meta cluster", meta_options)
    q = c2.text_input("Search clusters", "")
    sort_by = c3.radio("Sort", ["count", "alphabetical"], horizontal=True)
    payload = compute_clusters(view, ctx, meta_cluster=meta_cluster, q=q, sort_by=sort_by)
    clusters = pd.DataFrame(payload["clusters"])
    render_page_header("Clusters", "Home / Clusters", view.filters, export_df=clusters, export_name="clusters.csv")
    cols = st.columns(2)
    with cols[0]:
        with card("Meta clusters"):
            if "meta_clusters" in payload["charts"]:
                st.vega_lite_chart(payload["charts"]["meta_clusters"], use_container_width=True)
    with cols[1]:
        with card("Meta cluster trend (last 12 periods)"):
            if "meta_cluster_trend" in payload["charts"]:
                st.vega_lite_chart(payload["charts"]["meta_cluster_trend"], use_container_width=True)
            else:
                st.info("No dated reviews in the current selection.")
    with card("Clusters"):
        if clusters.empty:
            st.info("No clusters match.")
        else:
            st.dataframe(clusters.drop(columns=["locations", "meta_clusters"]).round(1), hide_index=True)


def render_reviews_page():
    global view
    c1, c2 = st.columns([3, 1])
    labels = list(SORT_FIELDS)
    sort_field = c1.radio("Sort by", labels, index=labels.index(view.sort_field), horizontal=True)
    if c2.button(f"Order: {view.sort_order}"):
        view = toggle_sort(view, view.sort_field)
    elif sort_field != view.sort_field:
        view = toggle_sort(view, sort_field)
    st.session_state["view"] = view

    reviews_ctx = prepare_context(label_search(view), data_ctx)
    payload = compute_reviews(view, reviews_ctx)
    page = payload["page"]
    render_page_header("Reviews", "Home / Reviews", view.filters, export_df=reviews_ctx["filtered"].drop(columns=["parsed_date", "period_start"]), export_name="reviews.csv")
    st.caption(f"{page['total_records']} reviews · page {page['page_number']} of {max(page['total_pages'], 1)}")
    for record in page["records"]:
        with st.container():
            st.markdown(
                f"**{record['store_name'] or record['region']}** · {record['date_raw']} · "
                f"{record['meta_label']} / {record['cluster_label']} · _{record['sentiment']}_"
            )
            st.write(record["remark"])
    prev_col, next_col = st.columns(2)
    if prev_col.button("Previous", disabled=view.page <= 1):
        st.session_state["view"] = go_to_page(view, view.page - 1)
        st.rerun()
    if next_col.button("Next", disabled=view.page >= page["total_pages"]):
        st.session_state["view"] = go_to_page(view, view.page + 1)
        st.rerun()


if current_page == "Overview":
    render_overview_page()
elif current_page == "Regions":
    render_regions_page()
elif current_page == "Clusters":
    render_clusters_page()
else:
    render_reviews_page()
