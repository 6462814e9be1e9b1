"""Tests for sorting, pagination and view-state transitions."""

import pytest

from reviews_core.browse import (
    ViewState,
    clear,
    go_to_page,
    label_search,
    normalize_view,
    paginate,
    review_sentiment,
    search,
    select_filter,
    set_period,
    sort_records,
    toggle_sort,
)
from reviews_core.filters import FilterState
from reviews_core.periods import derive_frame
from reviews_core.records import admit_rows
from tests.conftest import make_row


def _seq(df):
    return list(df["sequence_number"])


def test_date_sort_puts_missing_dates_last_when_descending(dataset):
    assert _seq(sort_records(dataset, "date", "desc")) == [7, 6, 5, 4, 3, 2, 1, 8]


def test_date_sort_puts_missing_dates_first_when_ascending(dataset):
    assert _seq(sort_records(dataset, "date", "asc")) == [8, 1, 2, 3, 4, 5, 6, 7]


def test_ties_keep_input_order(dataset):
    assert _seq(sort_records(dataset, "region", "asc")) == [1, 2, 3, 8, 4, 5, 6, 7]
    assert _seq(sort_records(dataset, "region", "desc")) == [4, 5, 6, 7, 1, 2, 3, 8]


def test_string_sort_is_case_sensitive():
    df = derive_frame(admit_rows([
        make_row("apple", "North", "01/01/24", "x", "y", sno=1),
        make_row("Banana", "North", "01/01/24", "x", "y", sno=2),
    ]))

    assert _seq(sort_records(df, "store", "asc")) == [2, 1]


def test_sort_does_not_mutate_input(dataset):
    before = _seq(dataset)
    sort_records(dataset, "store", "desc")
    assert _seq(dataset) == before
    assert "_position" not in dataset.columns


def test_sort_rejects_bad_arguments(dataset):
    with pytest.raises(ValueError):
        sort_records(dataset, "remark")
    with pytest.raises(ValueError):
        sort_records(dataset, "date", "up")
    with pytest.raises(TypeError):
        sort_records(None)


def test_pagination_covers_every_row_once(dataset):
    pages = [paginate(dataset, 3, n) for n in (1, 2, 3)]

    assert [p.total_pages for p in pages] == [3, 3, 3]
    assert [len(p.records) for p in pages] == [3, 3, 2]
    seen = [r["sequence_number"] for p in pages for r in p.records]
    assert sorted(seen) == list(range(1, 9))


def test_page_past_the_end_is_empty(dataset):
    page = paginate(dataset, 3, 4)

    assert page.records == []
    assert page.total_records == 8


def test_empty_frame_has_zero_pages(dataset):
    page = paginate(dataset.iloc[0:0], 20, 1)

    assert page.total_pages == 0
    assert page.records == []


def test_page_size_must_be_positive(dataset):
    with pytest.raises(ValueError):
        paginate(dataset, 0, 1)


def test_page_records_are_plain_values(dataset):
    record = paginate(sort_records(dataset, "date", "desc"), 1, 8).records[0]

    assert record["sequence_number"] == 8
    assert record["parsed_date"] is None
    assert record["period_key"] == ""


def test_toggle_sort():
    view = ViewState(page=4)

    flipped = toggle_sort(view, "date")
    assert (flipped.sort_field, flipped.sort_order, flipped.page) == ("date", "asc", 1)

    other = toggle_sort(flipped, "region")
    assert (other.sort_field, other.sort_order) == ("region", "desc")

    with pytest.raises(ValueError):
        toggle_sort(view, "remark")


def test_transitions_reset_page():
    view = ViewState(page=5)

    assert select_filter(view, "region", "North").page == 1
    assert select_filter(view, "region", "North").filters.region == "North"
    assert search(view, "  cold ").filters.search_term == "cold"
    assert search(view, "cold").page == 1
    assert set_period(view, "weekly").page == 1
    assert clear(ViewState(filters=FilterState(region="North"), page=3)) == ViewState()


def test_go_to_page_keeps_filters():
    view = ViewState(filters=FilterState(region="North"))
    moved = go_to_page(view, 3)

    assert moved.page == 3
    assert moved.filters == view.filters
    assert go_to_page(view, 0).page == 1


def test_set_period_rejects_unknown():
    with pytest.raises(ValueError):
        set_period(ViewState(), "yearly")


def test_normalize_view_defaults_bad_input():
    view = normalize_view({"period": "yearly", "sort_field": "remark", "sort_order": "up", "page": "x", "page_size": 0})

    assert view == ViewState(page=1, page_size=1)


def test_normalize_view_reads_filters():
    view = normalize_view({"filters": {"region": "North"}, "period": "weekly", "page": 2})

    assert view.filters.region == "North"
    assert view.period == "weekly"
    assert view.page == 2


@pytest.mark.parametrize(
    "remark,label,expected",
    [
        ("Food arrived cold", "", "negative"),
        ("Great taste, very fresh", "", "positive"),
        ("Cold but friendly rider", "", "neutral"),
        ("Ordered twice", "", "neutral"),
        ("", "Missing Item", "negative"),
    ],
)
def test_review_sentiment(remark, label, expected):
    assert review_sentiment(remark, label) == expected


def test_sort_returns_rows_unchanged():
    df = derive_frame(admit_rows([
        make_row("A", "North", "01/01/24", "x", "y", sno=1),
        make_row("B", "North", "01/01/24", "x", "y", sno=2),
    ]))
    df.loc[1, "region"] = None

    ordered = sort_records(df, "region", "asc")

    assert _seq(ordered) == [2, 1]
    assert ordered["region"].isna().tolist() == [True, False]
    assert list(ordered.columns) == list(df.columns)


def test_label_search_turns_on_label_matching():
    view = label_search(ViewState(filters=FilterState(search_term="speed"), page=2))

    assert view.filters.search_labels is True
    assert view.filters.search_term == "speed"
    assert view.page == 2
