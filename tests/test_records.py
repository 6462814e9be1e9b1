"""Tests for row admission and schema variants."""

from datetime import datetime

import pytest

from reviews_core.records import (
    ReviewRecord,
    SchemaVariant,
    admit,
    admit_rows,
    detect_schema,
    frame_to_records,
    records_frame,
)
from tests.conftest import make_row


def test_admit_extended_row():
    record = admit(make_row("Andheri", "North", "05/01/24", "Cold Food", "Quality", sno=7))

    assert record == ReviewRecord(
        sequence_number=7,
        store_name="Andheri",
        region="North",
        date_raw="05/01/24",
        remark="Cold Food at Andheri",
        subject="Food",
        aggregator="Swiggy",
        month="",
        area_manager_name="Ravi",
        cluster_label="Cold Food",
        meta_label="Quality",
    )


@pytest.mark.parametrize("missing", ["Store Name", "Remark", "LLM_Cluster_Label"])
def test_admit_rejects_blank_required_field(missing):
    row = make_row("Andheri", "North", "05/01/24", "Cold Food", "Quality")
    row[missing] = "   "
    assert admit(row) is None


def test_admit_rejects_nan_required_field():
    row = make_row("Andheri", "North", "05/01/24", "Cold Food", "Quality")
    row["Store Name"] = float("nan")
    assert admit(row) is None


def test_missing_optional_columns_default():
    record = admit({"Store Name": "Andheri", "Remark": "cold", "LLM_Cluster_Label": "Cold Food"})

    assert record is not None
    assert record.sequence_number == 0
    assert record.region == ""
    assert record.date_raw == ""
    assert record.meta_label == ""


def test_headers_are_matched_case_insensitively():
    row = {" store name ": "Andheri", "REMARK": "cold", "llm_cluster_label": "Cold Food", "Area Manager Name": "Ravi"}
    record = admit(row, SchemaVariant.EXTENDED)

    assert record.store_name == "Andheri"
    assert record.area_manager_name == "Ravi"


def test_spreadsheet_values_are_coerced():
    row = make_row("Andheri", "North", datetime(2023, 6, 15), "Cold Food", "Quality")
    row["S.No"] = 12.0
    row["Subject"] = None
    record = admit(row)

    assert record.date_raw == "15/06/2023"
    assert record.sequence_number == 12
    assert record.subject == ""


def test_minimal_schema_maps_city_and_reviews():
    rows = [
        {"City": "Pune", "Reviews": "Burger was cold", "LLM_Cluster_Label": "Cold Food", "LLM_Meta_Label": "Quality"},
        {"City": "", "Reviews": "No city here", "LLM_Cluster_Label": "Cold Food", "LLM_Meta_Label": "Quality"},
    ]
    assert detect_schema(rows[0].keys()) is SchemaVariant.MINIMAL

    records = admit_rows(rows)

    assert len(records) == 1
    assert records[0].region == "Pune"
    assert records[0].remark == "Burger was cold"
    assert records[0].store_name == ""


def test_detect_schema_prefers_extended():
    assert detect_schema(["S.No", "Store Name", "Remark", "LLM_Cluster_Label"]) is SchemaVariant.EXTENDED
    assert detect_schema(["Something else"]) is SchemaVariant.EXTENDED


def test_admit_rejects_non_mapping():
    with pytest.raises(TypeError):
        admit(["Andheri", "North"])


def test_admit_rows_drops_invalid(sample_rows):
    sample_rows.append(make_row("", "North", "05/01/24", "Cold Food", "Quality"))
    records = admit_rows(sample_rows)

    assert len(records) == len(sample_rows) - 1
    assert all(r.store_name for r in records)


def test_records_frame_keeps_columns_when_empty():
    df = records_frame([])
    assert df.empty
    assert "store_name" in df.columns
    assert "meta_label" in df.columns


def test_frame_to_records_converts_dates(dataset):
    rows = frame_to_records(dataset)

    assert rows[0]["parsed_date"].isoformat() == "2024-01-05"
    assert rows[-1]["parsed_date"] is None
