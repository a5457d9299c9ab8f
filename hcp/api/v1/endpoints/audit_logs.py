"""Audit Logs API endpoints."""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Query

from hcp.api.deps import Repos, Scope
from hcp.core.errors import Forbidden
from hcp.schemas.audit_log import AuditLogFilter
from hcp.schemas.enums import AuditAction, EntityType


router = APIRouter(tags=["Audit Logs"])


@router.get("")
async def list_audit_logs(
    repos: Repos,
    scope: Scope,
    user_id: Optional[str] = Query(None, alias="userId"),
    entity_type: Optional[EntityType] = Query(None, alias="entityType"),
    action: Optional[AuditAction] = Query(None),
    partner_code: Optional[str] = Query(None, alias="partnerCode"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    limit: Optional[int] = Query(None, ge=1, le=1000),
):
    """
    List audit log entries, newest first.

    Filters are combined with AND; omitted filters do not restrict. Admins
    without HQ scope only see entries tagged with one of their partner codes.
    """
    if partner_code and not scope.has_access(partner_code):
        raise Forbidden(f"No access to partner code {partner_code}")

    filters = AuditLogFilter(
        user_id=user_id,
        entity_type=entity_type,
        action=action,
        partner_code=partner_code,
        start_date=start_date,
        end_date=end_date,
    )
    entries = await repos.audit.query(filters)
    entries = scope.filter(entries, lambda e: e.partner_code)
    if limit:
        entries = entries[:limit]
    return [e.to_storage() for e in entries]
