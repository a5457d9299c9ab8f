from typing import Dict, Optional

from hcp.config import Settings
from hcp.core.errors import BadRequest
from hcp.repositories.admins import AdminRepository
from hcp.repositories.agreements import AgreementRepository
from hcp.repositories.base import CollectionRepository
from hcp.repositories.campaigns import CampaignRepository
from hcp.repositories.dataset_versions import DatasetVersionRepository
from hcp.repositories.developers import DeveloperRepository
from hcp.repositories.events import EventRepository
from hcp.repositories.invoices import InvoiceRepository
from hcp.repositories.registry import RegistryRepository
from hcp.services.audit_service import AuditService
from hcp.storage.base import StorageAdapter


class Repositories:
    """
    Every repository over one storage handle.

    `by_type` maps the gateway's entity-type names to their repository.
    """

    def __init__(self, storage: StorageAdapter, config: Settings):
        prefix = config.STORAGE_KEY_PREFIX
        self.storage = storage
        self.audit = AuditService(storage, key=f"{prefix}audit_logs", cap=config.AUDIT_LOG_CAP)

        self.registry = RegistryRepository(storage, self.audit, prefix)
        self.developers = DeveloperRepository(storage, self.audit, prefix, self.registry)
        self.invoices = InvoiceRepository(storage, self.audit, prefix, self.registry)
        self.agreements = AgreementRepository(storage, self.audit, prefix, self.registry)
        self.events = EventRepository(storage, self.audit, prefix, self.registry)
        self.campaigns = CampaignRepository(storage, self.audit, prefix)
        self.admins = AdminRepository(storage, self.audit, prefix)
        self.versions = DatasetVersionRepository(
            storage, self.audit, self.developers, prefix, cap=config.DATASET_VERSION_CAP
        )

        self.by_type: Dict[str, CollectionRepository] = {
            repo.collection: repo
            for repo in (
                self.developers,
                self.invoices,
                self.agreements,
                self.events,
                self.campaigns,
                self.admins,
                self.registry,
            )
        }

    def for_type(self, entity_type: Optional[str]) -> CollectionRepository:
        """
        Raises:
            BadRequest: the type is missing or not a known collection
        """
        if not entity_type:
            raise BadRequest("Missing type parameter")
        repo = self.by_type.get(entity_type)
        if repo is None:
            raise BadRequest("Invalid type parameter")
        return repo


__all__ = [
    "AdminRepository",
    "AgreementRepository",
    "CampaignRepository",
    "CollectionRepository",
    "DatasetVersionRepository",
    "DeveloperRepository",
    "EventRepository",
    "InvoiceRepository",
    "RegistryRepository",
    "Repositories",
]
