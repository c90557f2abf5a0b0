# app/reports.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import logging
import uuid

from db.database import LabServiceError, error_message
from profiles import Profile


logger = logging.getLogger(__name__)

REPORTS_TABLE = "reports"


@dataclass(frozen=True)
class Report:
    id: Any
    phone: str
    file_name: str
    url: str

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Report":
        return cls(
            id=row.get("id"),
            phone=row.get("phone") or "",
            file_name=row.get("file_name") or "",
            url=row.get("url") or "",
        )


class ReportRegistry:
    def __init__(self, client):
        self.client = client

    def fetch(self, phone: str) -> List[Report]:
        """All reports stored under exactly this phone string."""
        try:
            res = self.client.table(REPORTS_TABLE).select("*").eq("phone", phone).execute()
        except Exception as e:
            logger.error(f"Fetching reports for {phone} failed: {e}", exc_info=True)
            raise LabServiceError(error_message(e)) from e
        return [Report.from_row(r) for r in res.data or []]

    def recent(self, limit: int = 50) -> List[Report]:
        try:
            res = (
                self.client.table(REPORTS_TABLE)
                .select("*")
                .order("id", desc=True)
                .limit(limit)
                .execute()
            )
        except Exception as e:
            logger.error(f"Listing recent reports failed: {e}", exc_info=True)
            raise LabServiceError(error_message(e)) from e
        return [Report.from_row(r) for r in res.data or []]


def storage_path(phone: str, file_name: str) -> str:
    return f"{phone}/{uuid.uuid4().hex}_{file_name}"


class ReportUploader:
    """Puts a report file into the storage bucket and records it in ``reports``.

    The admin check here only hides the action from ordinary users. Storage
    and table policies must refuse non-admin writes on their own.
    """

    def __init__(self, client, bucket: str = "reports"):
        self.client = client
        self.bucket = bucket

    def upload(
        self,
        profile: Optional[Profile],
        phone: str,
        file_name: Optional[str],
        data: Optional[bytes],
        content_type: str = "application/pdf",
    ) -> Report:
        phone = (phone or "").strip()
        if not phone or not file_name or data is None:
            raise LabServiceError("Enter patient phone and choose a file.")
        if profile is None or not profile.is_admin:
            raise LabServiceError("Only lab administrators can upload reports.")

        path = storage_path(phone, file_name)
        bucket = self.client.storage.from_(self.bucket)
        try:
            bucket.upload(path, data, {"content-type": content_type})
            url = bucket.get_public_url(path)
            res = (
                self.client.table(REPORTS_TABLE)
                .insert({"phone": phone, "file_name": file_name, "url": url})
                .execute()
            )
        except Exception as e:
            logger.error(f"Uploading {file_name} for {phone} failed: {e}", exc_info=True)
            raise LabServiceError(error_message(e)) from e

        logger.info(f"Uploaded report {path}")
        row = res.data[0] if res.data else {"phone": phone, "file_name": file_name, "url": url}
        return Report.from_row(row)
