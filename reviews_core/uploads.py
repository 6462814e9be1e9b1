"""Upload-history bookkeeping.

The processing service owns upload, status and download; this module only
models the history entries the UI keeps for it. Storage of the history is the
caller's concern.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional


class UploadStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class UploadRecord:
    job_id: str
    file_name: str
    original_name: str
    status: UploadStatus = UploadStatus.PROCESSING
    upload_time: str = ""
    processed_file_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job_id": self.job_id,
            "file_name": self.file_name,
            "original_name": self.original_name,
            "status": self.status.value,
            "upload_time": self.upload_time,
            "processed_file_name": self.processed_file_name,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "UploadRecord":
        return cls(
            job_id=str(raw["job_id"]),
            file_name=str(raw.get("file_name") or ""),
            original_name=str(raw.get("original_name") or raw.get("file_name") or ""),
            status=UploadStatus(raw.get("status") or UploadStatus.PROCESSING.value),
            upload_time=str(raw.get("upload_time") or ""),
            processed_file_name=raw.get("processed_file_name") or None,
        )


def new_upload(job_id: str, file_name: str, original_name: str) -> UploadRecord:
    return UploadRecord(
        job_id=job_id,
        file_name=file_name,
        original_name=original_name,
        upload_time=datetime.now(timezone.utc).isoformat(),
    )


def add_upload(history: List[UploadRecord], record: UploadRecord) -> List[UploadRecord]:
    """Newest first; a re-used job id replaces the older entry."""
    return [record] + [r for r in history if r.job_id != record.job_id]


def apply_status(
    history: List[UploadRecord],
    job_id: str,
    status: UploadStatus | str,
    processed_file_name: Optional[str] = None,
) -> List[UploadRecord]:
    """Apply a status-poll result to the entry with `job_id`.

    Results are applied unconditionally, whatever the entry's current status.
    Unknown job ids leave the history unchanged.
    """
    status = UploadStatus(status)
    out: List[UploadRecord] = []
    for record in history:
        if record.job_id == job_id:
            record = replace(
                record,
                status=status,
                processed_file_name=processed_file_name or record.processed_file_name,
            )
        out.append(record)
    return out


def pending_jobs(history: List[UploadRecord]) -> List[UploadRecord]:
    return [r for r in history if r.status is UploadStatus.PROCESSING]
