"""Tests for cascading filters and search."""

import pandas as pd
import pytest

from reviews_core.filters import (
    ALL,
    DIMENSIONS,
    FilterState,
    apply_filters,
    cascading_options,
    clear_filters,
    normalize_filters,
    select,
)


def test_all_is_a_no_op(dataset):
    assert len(apply_filters(dataset, FilterState())) == len(dataset)


def test_dimension_filters_combine_with_and(dataset):
    filtered = apply_filters(dataset, FilterState(region="South", aggregator="Zomato"))

    assert filtered["store_name"].tolist() == ["Dadar"]


def test_filters_are_idempotent(dataset):
    state = FilterState(region="North", search_term="fries")
    once = apply_filters(dataset, state)
    twice = apply_filters(once, state)

    pd.testing.assert_frame_equal(once, twice)


def test_search_is_case_insensitive_on_remark(dataset):
    filtered = apply_filters(dataset, FilterState(search_term="FRIES"))

    assert sorted(filtered["sequence_number"].tolist()) == [5, 8]


def test_search_labels_extends_to_cluster_and_meta(dataset):
    remark_only = apply_filters(dataset, FilterState(search_term="accuracy"))
    with_labels = apply_filters(dataset, FilterState(search_term="accuracy", search_labels=True))

    assert remark_only.empty
    assert with_labels["meta_label"].tolist() == ["Accuracy"]


def test_search_treats_term_literally(dataset):
    assert apply_filters(dataset, FilterState(search_term="(")).empty


def test_store_options_follow_region(dataset):
    options = cascading_options(dataset, FilterState(region="North"))

    assert options["region"] == ["North", "South"]
    assert options["store"] == ["Andheri", "Bandra"]
    assert options["area_manager"] == ["Meera", "Ravi"]


def test_options_ignore_own_and_downstream_selection(dataset):
    options = cascading_options(dataset, FilterState(store="Andheri", subject="Delivery"))

    assert options["store"] == ["Andheri", "Bandra", "Colaba", "Dadar"]
    assert options["aggregator"] == ["Swiggy", "Zomato"]
    assert options["subject"] == ["Food"]


def test_narrowing_upstream_never_grows_downstream(dataset):
    loose = cascading_options(dataset, FilterState())
    for region in loose["region"]:
        narrow = cascading_options(dataset, FilterState(region=region))
        for dimension in DIMENSIONS[1:]:
            assert len(narrow[dimension]) <= len(loose[dimension])
            assert set(narrow[dimension]) <= set(loose[dimension])


def test_blank_values_are_excluded_from_options(dataset):
    dataset.loc[0, "aggregator"] = "  "
    dataset.loc[1, "aggregator"] = None

    assert "" not in cascading_options(dataset, FilterState())["aggregator"]


def test_no_match_empties_downstream_options(dataset):
    options = cascading_options(dataset, FilterState(region="Nowhere"))

    assert options["region"] == ["North", "South"]
    assert all(options[d] == [] for d in DIMENSIONS[1:])
    assert apply_filters(dataset, FilterState(region="Nowhere")).empty


def test_rejects_non_frame_input(records):
    with pytest.raises(TypeError):
        apply_filters(records, FilterState())
    with pytest.raises(TypeError):
        cascading_options(records, FilterState())


def test_normalize_filters():
    state = normalize_filters({"region": " North ", "store": "", "subject": None, "aggregator": "ALL", "search_term": " cold "})

    assert state.region == "North"
    assert state.store == ALL
    assert state.subject == ALL
    assert state.aggregator == ALL
    assert state.search_term == "cold"
    assert normalize_filters(None) == FilterState()


def test_select_and_clear():
    state = select(FilterState(), "region", "North")

    assert state.region == "North"
    assert state.active() == {"region": "North"}
    assert clear_filters() == FilterState()
    with pytest.raises(ValueError):
        select(state, "city", "Pune")
