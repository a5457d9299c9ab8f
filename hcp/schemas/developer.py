"""Pydantic schemas for developer certification records and dataset versions."""

from datetime import datetime, timezone
from typing import List, Optional
import uuid

from pydantic import Field, field_validator

from hcp.schemas.base import CamelSchema, RecordSchema
from hcp.schemas.enums import Grade


def _new_id() -> str:
    return uuid.uuid4().hex


class DeveloperRecord(RecordSchema):
    """A developer's certification progress, owned by one partner community."""
    id: str = Field(default_factory=_new_id)
    partner_code: str = ""
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    country: str = ""
    accepted_membership: bool = False
    accepted_marketing: bool = False
    # Checked globally: reuse across records raises the Sybil flag
    wallet_address: str = ""
    percentage_completed: float = 0
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    final_score: float = 0
    final_grade: Grade = Grade.PENDING
    ca_status: str = ""
    duration_hours: Optional[float] = None
    is_suspicious: bool = False
    suspicion_reason: Optional[str] = None
    data_error: bool = False

    @field_validator('created_at', 'completed_at', mode='before')
    @classmethod
    def blank_timestamp_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class DatasetVersion(RecordSchema):
    """A retained snapshot of an uploaded developer dataset."""
    id: str = Field(default_factory=_new_id)
    file_name: str
    uploaded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    uploaded_by: str = "system"
    record_count: int = 0
    records: List[DeveloperRecord] = Field(default_factory=list)


class DatasetUploadRequest(CamelSchema):
    """Body of a dataset upload."""
    file_name: str = Field(..., min_length=1)
    records: List[DeveloperRecord] = Field(default_factory=list)
    activate: bool = True
