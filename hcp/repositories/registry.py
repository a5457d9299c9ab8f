from typing import Optional

from hcp.repositories.base import CollectionRepository
from hcp.schemas.community import CommunityMasterRecord
from hcp.schemas.enums import EntityType


class RegistryRepository(CollectionRepository[CommunityMasterRecord]):
    """The official list of partner codes, keyed by code."""

    collection = "registry"
    entity_type = EntityType.REGISTRY
    schema = CommunityMasterRecord
    id_field = "code"
    partner_field = "code"
    super_admin_writes = True

    def describe_create(self, record: CommunityMasterRecord) -> str:
        return f"Registered community {record.code} ({record.name})"

    async def get_by_code(self, code: str) -> Optional[CommunityMasterRecord]:
        return await self.get_by_id(code)

    async def is_valid_code(self, code: str) -> bool:
        return await self.get_by_code(code) is not None
