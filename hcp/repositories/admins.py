from datetime import datetime, timezone
from typing import Optional, Union

from hcp.core.errors import Conflict
from hcp.core.permissions import can_access
from hcp.core.security import get_password_hash
from hcp.repositories.base import CollectionRepository
from hcp.schemas.admin import AdminUser
from hcp.schemas.enums import AdminStatus, EntityType


class AdminRepository(CollectionRepository[AdminUser]):
    """
    Admin roster.

    Plaintext passwords given on create/update are hashed before storage;
    the hash itself never leaves the repository through `public()`.
    """

    collection = "admins"
    entity_type = EntityType.ADMIN
    schema = AdminUser
    partner_field = None
    super_admin_writes = True
    private_fields = frozenset({"password_hash"})

    async def prepare(self, record: AdminUser) -> AdminUser:
        updates = {"email": record.email.strip().lower()}
        if record.password:
            updates["password_hash"] = get_password_hash(record.password)
            updates["password"] = None
        return record.model_copy(update=updates)

    def describe_create(self, record: AdminUser) -> str:
        return f"Created admin {record.email} ({record.role.value})"

    def describe_update(self, record: AdminUser) -> str:
        return f"Updated admin {record.email}"

    async def create(
        self,
        record: Union[AdminUser, dict],
        actor_id: str = "system",
        expected_revision: Optional[str] = None,
    ) -> AdminUser:
        model = self.coerce(record)
        if model.email and await self.get_by_email(model.email) is not None:
            raise Conflict(f"An admin with email {model.email} already exists")
        return await super().create(model, actor_id, expected_revision)

    async def get_by_email(self, email: str) -> Optional[AdminUser]:
        wanted = (email or "").strip().lower()
        if not wanted:
            return None
        for admin in await self.get_all():
            if admin.email.lower() == wanted:
                return admin
        return None

    async def has_access(self, actor_id: str, partner_code: str) -> bool:
        """Whether the admin with `actor_id` may act on `partner_code`."""
        return can_access(await self.get_by_id(actor_id), partner_code)

    async def touch_last_login(self, admin_id: str) -> Optional[AdminUser]:
        """
        Stamp last_login (and activate an invited admin) without an UPDATE
        audit entry; the login itself is audited instead.
        """
        async with self.storage.transaction():
            records, revision = await self._snapshot()
            index = self._index_of(records, admin_id)
            if index is None:
                return None
            updates = {"last_login": datetime.now(timezone.utc)}
            if records[index].status == AdminStatus.INVITED:
                updates["status"] = AdminStatus.ACTIVE
            records[index] = records[index].model_copy(update=updates)
            await self._persist(records, revision)
        return records[index]
