from datetime import datetime, timezone
from typing import Union

from hcp.repositories.base import CollectionRepository
from hcp.schemas.community import OutreachCampaign
from hcp.schemas.enums import AuditAction, CampaignStatus, EntityType


class CampaignRepository(CollectionRepository[OutreachCampaign]):
    """Outreach campaigns, newest first. Campaigns are not partner-scoped."""

    collection = "campaigns"
    entity_type = EntityType.CAMPAIGN
    schema = OutreachCampaign
    partner_field = None
    prepend_on_create = True

    def describe_create(self, record: OutreachCampaign) -> str:
        return f"Created campaign \"{record.name}\""

    async def log_campaign(
        self,
        campaign: Union[OutreachCampaign, dict],
        actor_id: str = "system",
    ) -> OutreachCampaign:
        """Store a campaign that has been sent, audited as EMAIL_SENT."""
        model = self.coerce(campaign)
        updates = {}
        if model.status == CampaignStatus.DRAFT:
            updates["status"] = CampaignStatus.COMPLETED
        if model.sent_at is None:
            updates["sent_at"] = datetime.now(timezone.utc)
        if updates:
            model = model.model_copy(update=updates)
        return await self._insert(
            model,
            actor_id,
            AuditAction.EMAIL_SENT,
            f"Sent campaign \"{model.name}\" to {model.sent_count} recipients",
        )
