from hcp.repositories.base import CollectionRepository
from hcp.schemas.community import CommunityEvent
from hcp.schemas.enums import EntityType


class EventRepository(CollectionRepository[CommunityEvent]):
    collection = "events"
    entity_type = EntityType.EVENT
    schema = CommunityEvent

    def describe_create(self, record: CommunityEvent) -> str:
        return f"Created event: {record.title}"

    def describe_update(self, record: CommunityEvent) -> str:
        return f"Updated event: {record.title}"
