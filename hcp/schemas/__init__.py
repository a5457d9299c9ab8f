from hcp.schemas.admin import AdminUser
from hcp.schemas.audit_log import AuditLogEntry, AuditLogFilter
from hcp.schemas.community import (
    CommunityAgreement,
    CommunityEvent,
    CommunityMasterRecord,
    OutreachCampaign,
)
from hcp.schemas.developer import DatasetVersion, DeveloperRecord
from hcp.schemas.invoice import Invoice, InvoiceLineItem

__all__ = [
    "AdminUser",
    "AuditLogEntry",
    "AuditLogFilter",
    "CommunityAgreement",
    "CommunityEvent",
    "CommunityMasterRecord",
    "DatasetVersion",
    "DeveloperRecord",
    "Invoice",
    "InvoiceLineItem",
    "OutreachCampaign",
]
