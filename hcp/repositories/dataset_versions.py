"""
Retained developer dataset uploads.

Each upload is kept as a version (newest first, at most `cap`); one version is
active at a time and its records form the live developers collection.
"""
from typing import Iterable, List, Optional, Union
import logging

from hcp.core.errors import NotFound
from hcp.repositories.base import CollectionRepository
from hcp.repositories.developers import DeveloperRepository
from hcp.schemas.developer import DatasetVersion, DeveloperRecord
from hcp.schemas.enums import AuditAction, EntityType
from hcp.services.audit_service import AuditService
from hcp.services.developer_service import prepare_dataset
from hcp.storage.base import StorageAdapter


logger = logging.getLogger(__name__)


class DatasetVersionRepository(CollectionRepository[DatasetVersion]):
    collection = "versions"
    entity_type = EntityType.DEVELOPER
    schema = DatasetVersion
    partner_field = None
    create_action = AuditAction.UPLOAD
    prepend_on_create = True
    deletable = True
    super_admin_writes = True

    def __init__(
        self,
        storage: StorageAdapter,
        audit: AuditService,
        developers: DeveloperRepository,
        key_prefix: str = "hcp_",
        cap: int = 5,
    ):
        super().__init__(storage, audit, key_prefix)
        self.developers = developers
        self.cap = cap

    @property
    def active_key(self) -> str:
        return f"{self.key_prefix}active_version_id"

    def _arrange(self, records: List[DatasetVersion], record: DatasetVersion) -> List[DatasetVersion]:
        kept = [record] + records
        for evicted in kept[self.cap:]:
            logger.info(f"Evicting dataset version {evicted.id} ({evicted.file_name})")
        return kept[:self.cap]

    def describe_create(self, record: DatasetVersion) -> str:
        return f"Uploaded dataset: {record.file_name} with {record.record_count} records"

    def describe_delete(self, record: DatasetVersion) -> str:
        return f"Deleted dataset: {record.file_name}"

    def summary(self, version: DatasetVersion) -> dict:
        """Public form without the embedded records."""
        return version.to_storage(exclude={"records"})

    async def get_active_id(self) -> Optional[str]:
        return await self.storage.load(self.active_key)

    async def get_active(self) -> Optional[DatasetVersion]:
        active_id = await self.get_active_id()
        if not active_id:
            return None
        return await self.get_by_id(active_id)

    async def _clear_dangling_pointer(self) -> None:
        active_id = await self.get_active_id()
        if active_id and await self.get_by_id(active_id) is None:
            await self.storage.delete(self.active_key)

    async def create(
        self,
        record: Union[DatasetVersion, dict],
        actor_id: str = "system",
        expected_revision: Optional[str] = None,
    ) -> DatasetVersion:
        async with self.storage.transaction():
            version = await super().create(record, actor_id, expected_revision)
            await self._clear_dangling_pointer()
        return version

    async def upload(
        self,
        file_name: str,
        records: Iterable[Union[DeveloperRecord, dict]],
        actor_id: str = "system",
        activate: bool = True,
    ) -> DatasetVersion:
        """
        Store a new dataset version and, by default, make it the live dataset.

        Durations and Sybil flags are computed before anything is written; the
        version, the developers collection and the active pointer are written
        in one transaction.
        """
        prepared = prepare_dataset(self.developers.coerce(r) for r in records)
        version = DatasetVersion(
            file_name=file_name,
            uploaded_by=actor_id,
            record_count=len(prepared),
            records=prepared,
        )
        async with self.storage.transaction():
            await self.create(version, actor_id)
            if activate:
                await self.developers.save(prepared)
                await self.storage.save(self.active_key, version.id)
        return version

    async def activate(self, version_id: str, actor_id: str = "system") -> DatasetVersion:
        """Make a retained version the live dataset."""
        version = await self.get_by_id(version_id)
        if version is None:
            raise NotFound(f"Dataset version {version_id} not found")
        async with self.storage.transaction():
            await self.developers.save(version.records)
            await self.storage.save(self.active_key, version.id)
            await self.audit.log(
                action=AuditAction.UPDATE,
                entity_type=self.entity_type,
                entity_id=version.id,
                user_id=actor_id,
                details=f"Activated dataset: {version.file_name}",
            )
        return version

    async def delete(self, record_id: str, actor_id: str = "system") -> DatasetVersion:
        async with self.storage.transaction():
            removed = await super().delete(record_id, actor_id)
            if await self.get_active_id() == removed.id:
                await self.storage.delete(self.active_key)
        return removed
