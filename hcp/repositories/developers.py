from typing import List, Optional, Sequence, Union

from hcp.repositories.base import CollectionRepository
from hcp.schemas.developer import DeveloperRecord
from hcp.schemas.enums import EntityType
from hcp.services.developer_service import flag_duplicate_wallets, normalize_wallet, prepare_dataset, with_duration


class DeveloperRepository(CollectionRepository[DeveloperRecord]):
    """
    Developer certification records of the active dataset.

    Every single-record write re-checks the record's wallet address; all
    holders of a shared wallet are flagged, including records stored earlier.
    Flags are not cleared automatically.
    """

    collection = "developers"
    entity_type = EntityType.DEVELOPER
    schema = DeveloperRecord

    async def prepare(self, record: DeveloperRecord) -> DeveloperRecord:
        return with_duration(record)

    def describe_create(self, record: DeveloperRecord) -> str:
        return f"Added developer {record.full_name or record.email or record.id}"

    async def find_by_wallet(self, wallet_address: str) -> List[DeveloperRecord]:
        wallet = normalize_wallet(wallet_address)
        if not wallet:
            return []
        return [r for r in await self.get_all() if normalize_wallet(r.wallet_address) == wallet]

    async def _flag_shared_wallet(self, record: DeveloperRecord) -> DeveloperRecord:
        """Flag every holder of `record`'s wallet once it is shared; returns `record` as stored."""
        wallet = normalize_wallet(record.wallet_address)
        if not wallet:
            return record

        records, revision = await self._snapshot()
        holders = [r for r in records if normalize_wallet(r.wallet_address) == wallet]
        if len(holders) < 2:
            return record

        flagged = {self.record_id(r): r for r in flag_duplicate_wallets(holders)}
        changed = False
        for index, current in enumerate(records):
            replacement = flagged.get(self.record_id(current))
            if replacement is not None and replacement != current:
                records[index] = replacement
                changed = True
        if changed:
            await self._persist(records, revision)
        return flagged[self.record_id(record)]

    async def create(
        self,
        record: Union[DeveloperRecord, dict],
        actor_id: str = "system",
        expected_revision: Optional[str] = None,
    ) -> DeveloperRecord:
        async with self.storage.transaction():
            created = await super().create(record, actor_id, expected_revision)
            return await self._flag_shared_wallet(created)

    async def update(
        self,
        record_id: str,
        changes: dict,
        actor_id: str = "system",
        expected_revision: Optional[str] = None,
    ) -> DeveloperRecord:
        async with self.storage.transaction():
            updated = await super().update(record_id, changes, actor_id, expected_revision)
            return await self._flag_shared_wallet(updated)

    async def put(
        self,
        record: Union[DeveloperRecord, dict],
        actor_id: str = "system",
        expected_revision: Optional[str] = None,
    ) -> DeveloperRecord:
        async with self.storage.transaction():
            stored = await super().put(record, actor_id, expected_revision)
            return await self._flag_shared_wallet(stored)

    async def save(
        self,
        records: Sequence[Union[DeveloperRecord, dict]],
        expected_revision: Optional[str] = None,
    ) -> List[DeveloperRecord]:
        models = prepare_dataset(self.coerce(r) for r in records)
        return await super().save(models, expected_revision)
