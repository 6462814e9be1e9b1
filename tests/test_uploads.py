"""Tests for upload-history bookkeeping."""

import pytest

from reviews_core.uploads import UploadRecord, UploadStatus, add_upload, apply_status, new_upload, pending_jobs


@pytest.fixture
def history():
    out = []
    out = add_upload(out, new_upload("job-1", "a.xlsx", "a.xlsx"))
    out = add_upload(out, new_upload("job-2", "b.xlsx", "b.xlsx"))
    return out


def test_newest_first(history):
    assert [r.job_id for r in history] == ["job-2", "job-1"]
    assert all(r.status is UploadStatus.PROCESSING for r in history)
    assert history[0].upload_time


def test_reused_job_id_replaces_entry(history):
    updated = add_upload(history, new_upload("job-1", "c.xlsx", "c.xlsx"))

    assert [(r.job_id, r.file_name) for r in updated] == [("job-1", "c.xlsx"), ("job-2", "b.xlsx")]


def test_apply_status_by_job_id(history):
    updated = apply_status(history, "job-1", "completed", processed_file_name="processed_a.xlsx")

    done = next(r for r in updated if r.job_id == "job-1")
    assert done.status is UploadStatus.COMPLETED
    assert done.processed_file_name == "processed_a.xlsx"
    assert [r.job_id for r in pending_jobs(updated)] == ["job-2"]


def test_apply_status_is_unconditional(history):
    failed = apply_status(history, "job-2", UploadStatus.FAILED)
    revived = apply_status(failed, "job-2", UploadStatus.PROCESSING)

    assert revived[0].status is UploadStatus.PROCESSING


def test_unknown_job_id_leaves_history(history):
    assert apply_status(history, "job-9", UploadStatus.COMPLETED) == history


def test_unknown_status_raises(history):
    with pytest.raises(ValueError):
        apply_status(history, "job-1", "queued")


def test_dict_round_trip(history):
    raw = history[0].to_dict()

    assert raw["status"] == "processing"
    assert UploadRecord.from_dict(raw) == history[0]
