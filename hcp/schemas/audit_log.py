from datetime import datetime, timezone
from typing import Optional
import uuid

from pydantic import Field, field_validator

from hcp.schemas.base import CamelSchema, RecordSchema
from hcp.schemas.enums import AuditAction, EntityType


class AuditLogEntry(RecordSchema):
    """One recorded action. Entries are never modified once written."""
    id: str = Field(default_factory=lambda: f"audit_{uuid.uuid4().hex}")
    user_id: str = "system"
    user_email: str = "system"
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    action: AuditAction
    entity_type: EntityType
    entity_id: Optional[str] = None
    details: str = ""
    partner_code: Optional[str] = None


class AuditLogFilter(CamelSchema):
    """All supplied filters must match; omitted ones do not restrict."""
    user_id: Optional[str] = None
    entity_type: Optional[EntityType] = None
    action: Optional[AuditAction] = None
    partner_code: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    limit: Optional[int] = Field(default=None, ge=1)

    @field_validator('start_date', 'end_date')
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    def matches(self, entry: AuditLogEntry) -> bool:
        if self.user_id and entry.user_id != self.user_id:
            return False
        if self.entity_type and entry.entity_type != self.entity_type:
            return False
        if self.action and entry.action != self.action:
            return False
        if self.partner_code and entry.partner_code != self.partner_code:
            return False
        if self.start_date and entry.timestamp < self.start_date:
            return False
        if self.end_date and entry.timestamp > self.end_date:
            return False
        return True
