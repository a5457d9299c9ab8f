from typing import Annotated, Optional
import logging

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from hcp.config import Settings
from hcp.core.errors import Forbidden, InvalidToken, Unauthorized
from hcp.core.permissions import PartnerScope
from hcp.core.security import verify_access_token
from hcp.repositories import Repositories
from hcp.schemas.admin import AdminUser


logger = logging.getLogger(__name__)

# HTTP Bearer security scheme; a missing header is reported as Unauthorized below
security = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_repositories(request: Request) -> Repositories:
    return request.app.state.repositories


AppSettings = Annotated[Settings, Depends(get_app_settings)]
Repos = Annotated[Repositories, Depends(get_repositories)]


async def get_current_actor(
    config: AppSettings,
    repos: Repos,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> AdminUser:
    """
    Dependency to get the current authenticated admin.

    Validates the bearer token and loads the admin it was issued to.
    """
    if credentials is None or not credentials.credentials:
        raise Unauthorized()

    payload = verify_access_token(credentials.credentials, config)

    admin = await repos.admins.get_by_id(payload.sub)
    if admin is None:
        logger.warning(f"Token subject {payload.sub} is not in the admin roster")
        raise InvalidToken()

    if admin.is_disabled:
        raise Forbidden("Admin account is disabled")

    return admin


CurrentActor = Annotated[AdminUser, Depends(get_current_actor)]


async def get_partner_scope(actor: CurrentActor, config: AppSettings) -> PartnerScope:
    """Partner-code scope of the current admin."""
    return PartnerScope(actor, enforce=config.ENFORCE_PARTNER_SCOPE)


Scope = Annotated[PartnerScope, Depends(get_partner_scope)]
