from typing import Optional
import logging

from hcp.config import Settings
from hcp.core.errors import InvalidCredentials
from hcp.core.security import create_access_token, verify_and_check_needs_rehash
from hcp.repositories import Repositories
from hcp.schemas.admin import AdminUser
from hcp.schemas.auth import TokenResponse
from hcp.schemas.enums import AuditAction, EntityType


logger = logging.getLogger(__name__)


class AuthService:
    """Authentication service for admin login and token issue."""

    def __init__(self, repos: Repositories, config: Settings):
        self.repos = repos
        self.config = config

    async def authenticate_admin(self, email: str, password: str) -> Optional[AdminUser]:
        """
        Authenticate an admin by email and password.

        Hashes made with outdated parameters are transparently re-hashed.

        Returns:
            The admin if the credentials are valid and the account is not
            disabled, None otherwise
        """
        admin = await self.repos.admins.get_by_email(email)
        if admin is None:
            return None

        is_valid, needs_rehash = verify_and_check_needs_rehash(password, admin.password_hash)
        if not is_valid:
            return None

        if admin.is_disabled:
            logger.warning(f"Login attempt for disabled admin {admin.id}")
            return None

        if needs_rehash:
            admin = await self.repos.admins.update(admin.id, {"password": password}, actor_id=admin.id)

        return admin

    async def login(self, email: str, password: str) -> TokenResponse:
        """
        Verify credentials and issue an access token.

        Raises:
            InvalidCredentials: unknown email, wrong password or disabled account
        """
        admin = await self.authenticate_admin(email, password)
        if admin is None:
            raise InvalidCredentials()

        token = create_access_token(
            subject=admin.id,
            role=admin.role.value,
            additional_claims={"email": admin.email},
            config=self.config,
        )

        admin = await self.repos.admins.touch_last_login(admin.id) or admin
        await self.repos.audit.log(
            action=AuditAction.LOGIN,
            entity_type=EntityType.ADMIN,
            entity_id=admin.id,
            user_id=admin.id,
            user_email=admin.email,
            details=f"{admin.email} logged in",
        )

        return TokenResponse(
            token=token,
            user=self.repos.admins.public(admin),
            expires_in=self.config.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        )
