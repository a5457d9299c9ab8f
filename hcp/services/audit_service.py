from datetime import datetime, timezone
from typing import Optional, List
import logging
import uuid

from hcp.core.errors import HCPError, StorageError
from hcp.schemas.audit_log import AuditLogEntry, AuditLogFilter
from hcp.schemas.enums import AuditAction, EntityType
from hcp.storage.base import StorageAdapter


logger = logging.getLogger(__name__)


class AuditService:
    """
    Append-only audit trail kept under one storage key.

    Entries are stored newest first and capped at `cap`; the oldest are evicted
    once the cap is exceeded.
    """

    def __init__(self, storage: StorageAdapter, key: str = "hcp_audit_logs", cap: int = 1000):
        self.storage = storage
        self.key = key
        self.cap = cap

    async def _load(self) -> List[AuditLogEntry]:
        entries = []
        for raw in await self.storage.load(self.key, []):
            try:
                entries.append(AuditLogEntry.model_validate(raw))
            except ValueError:
                logger.warning("Skipping unreadable audit log entry")
        return entries

    async def record(self, entry: AuditLogEntry) -> Optional[AuditLogEntry]:
        """
        Store `entry` with a fresh id and the current UTC timestamp.

        Returns:
            The stored entry, or None if the audit write failed. A failed audit
            write is logged and never fails the operation being audited.
        """
        entry = entry.model_copy(update={
            "id": f"audit_{uuid.uuid4().hex}",
            "timestamp": datetime.now(timezone.utc),
        })
        try:
            async with self.storage.transaction():
                result = await self.storage.load_result(self.key)
                if not result.ok:
                    raise result.error
                current = result.value.value or []
                if not isinstance(current, list):
                    raise StorageError(f"{self.key} does not hold a log")
                # Unparsed entries are carried over as stored
                updated = [entry.to_storage()] + current
                await self.storage.save(self.key, updated[:self.cap])
        except HCPError as e:
            logger.warning(f"Audit log write failed for {entry.action.value} {entry.entity_type.value}: {e.message}")
            return None
        return entry

    async def log(
        self,
        action: AuditAction,
        entity_type: EntityType,
        entity_id: Optional[str] = None,
        user_id: Optional[str] = None,
        details: str = "",
        partner_code: Optional[str] = None,
        user_email: str = "system",
    ) -> Optional[AuditLogEntry]:
        """
        Record an action.

        Args:
            action: The action performed (CREATE, UPDATE, LOGIN, ...)
            entity_type: Type of entity affected
            entity_id: ID of the affected entity
            user_id: ID of the admin performing the action ("system" if none)
            details: Human-readable description
            partner_code: Partner scope of the affected entity
        """
        return await self.record(AuditLogEntry(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id or "system",
            user_email=user_email,
            details=details,
            partner_code=partner_code,
        ))

    async def query(self, filters: Optional[AuditLogFilter] = None) -> List[AuditLogEntry]:
        """Get audit logs, newest first, matching every supplied filter."""
        entries = await self._load()
        if filters is None:
            return entries
        matched = [entry for entry in entries if filters.matches(entry)]
        if filters.limit:
            matched = matched[:filters.limit]
        return matched
