"""Shared fixtures: a small extended-schema dataset."""

import pytest

from reviews_core.periods import derive_frame
from reviews_core.records import admit_rows


def make_row(store, region, date, cluster, meta, *, subject="Food", aggregator="Swiggy", manager="Ravi", remark=None, sno=1):
    return {
        "S.No": sno,
        "Store Name": store,
        "Region": region,
        "Date": date,
        "Remark": remark or f"{cluster} at {store}",
        "Subject": subject,
        "Aggregator": aggregator,
        "Month": "",
        "Area Manger Name": manager,
        "LLM_Cluster_Label": cluster,
        "LLM_Meta_Label": meta,
    }


@pytest.fixture
def sample_rows():
    return [
        make_row("Andheri", "North", "05/01/24", "Cold Food", "Quality", manager="Ravi", sno=1),
        make_row("Andheri", "North", "10/01/24", "Cold Food", "Quality", manager="Ravi", aggregator="Zomato", sno=2),
        make_row("Bandra", "North", "05/02/24", "Stale Bun", "Quality", manager="Meera", sno=3),
        make_row("Colaba", "South", "06/02/24", "Late Delivery", "Speed", subject="Delivery", manager="Asha", sno=4),
        make_row("Colaba", "South", "05/03/24", "Late Delivery", "Speed", subject="Delivery", manager="Asha", sno=5,
                 remark="Order came very late and the fries were soggy"),
        make_row("Dadar", "South", "06/03/24", "Rider Rude", "Speed", subject="Delivery", manager="Asha",
                 aggregator="Zomato", sno=6),
        make_row("Dadar", "South", "07/03/24", "Late Delivery", "Speed", subject="Delivery", manager="Asha", sno=7),
        make_row("Bandra", "North", "not a date", "Missing Item", "Accuracy", subject="Order", manager="Meera", sno=8,
                 remark="Missing fries in my ORDER"),
    ]


@pytest.fixture
def records(sample_rows):
    return admit_rows(sample_rows)


@pytest.fixture
def dataset(records):
    return derive_frame(records, "monthly")
