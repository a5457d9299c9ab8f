# Services module
from hcp.services.audit_service import AuditService

__all__ = [
    "AuditService",
]
