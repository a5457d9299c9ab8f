from datetime import date
from typing import Optional

from hcp.repositories.base import CollectionRepository
from hcp.schemas.community import CommunityAgreement
from hcp.schemas.enums import EntityType


class AgreementRepository(CollectionRepository[CommunityAgreement]):
    collection = "agreements"
    entity_type = EntityType.AGREEMENT
    schema = CommunityAgreement

    def describe_create(self, record: CommunityAgreement) -> str:
        return f"Created agreement for {record.partner_name or record.partner_code}"

    def describe_update(self, record: CommunityAgreement) -> str:
        return f"Updated agreement for {record.partner_name or record.partner_code}"

    async def get_active(self, partner_code: str, on: Optional[date] = None) -> Optional[CommunityAgreement]:
        """
        The partner's active agreement.

        When `on` is given the agreement must also cover that day.
        """
        for agreement in await self.get_all(partner_code):
            if not agreement.is_active:
                continue
            if on is not None and not agreement.covers(on):
                continue
            return agreement
        return None
