"""Pydantic schemas for the admin roster."""

from datetime import datetime
from typing import List, Optional
import uuid

from pydantic import Field

from hcp.schemas.base import RecordSchema
from hcp.schemas.enums import AdminRole, AdminStatus


class AdminUser(RecordSchema):
    """
    Dashboard administrator.

    `password` is write-only: the admin repository hashes it into
    `password_hash` before anything is stored, and neither field is ever
    returned by the API.
    """
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    name: str = ""
    email: str = ""
    role: AdminRole = AdminRole.COMMUNITY_ADMIN
    assigned_codes: List[str] = Field(default_factory=list)
    last_login: Optional[datetime] = None
    status: AdminStatus = AdminStatus.INVITED
    password_hash: Optional[str] = None
    password: Optional[str] = Field(default=None, exclude=True)

    @property
    def is_super_admin(self) -> bool:
        return self.role == AdminRole.SUPER_ADMIN

    @property
    def is_disabled(self) -> bool:
        return self.status == AdminStatus.DISABLED
