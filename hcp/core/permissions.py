from typing import Iterable, List, Optional, Set, TypeVar

from hcp.core.errors import Forbidden
from hcp.schemas.admin import AdminUser


T = TypeVar("T")


def can_access(admin: Optional[AdminUser], partner_code: str) -> bool:
    """
    Whether `admin` may act on records owned by `partner_code`.

    Unknown actors have no access; Super Admins have access to every code;
    Regional and Community admins only to their assigned codes.
    """
    if admin is None:
        return False
    if admin.is_super_admin:
        return True
    return partner_code in admin.assigned_codes


class PartnerScope:
    """
    Partner-code scope of the current actor.

    Built once per request from the actor's AdminUser record. An unrestricted
    scope (Super Admin, or enforcement switched off) passes everything.
    """

    def __init__(self, admin: Optional[AdminUser], enforce: bool = True):
        self.admin = admin
        self.enforce = enforce

    @property
    def unrestricted(self) -> bool:
        if not self.enforce:
            return True
        return self.admin is not None and self.admin.is_super_admin

    @property
    def codes(self) -> Optional[Set[str]]:
        """Assigned codes, or None when the scope is unrestricted."""
        if self.unrestricted:
            return None
        return set(self.admin.assigned_codes) if self.admin else set()

    def has_access(self, partner_code: Optional[str]) -> bool:
        if self.unrestricted:
            return True
        if not partner_code:
            return False
        return can_access(self.admin, partner_code)

    def require_access(self, partner_code: Optional[str]) -> None:
        if not self.has_access(partner_code):
            raise Forbidden(f"No access to partner code {partner_code or '(none)'}")

    def require_super_admin(self) -> None:
        if not self.unrestricted:
            raise Forbidden("Super Admin access required")

    def filter(self, records: Iterable[T], partner_code_of) -> List[T]:
        """Keep the records whose partner code (via `partner_code_of`) is in scope."""
        if self.unrestricted:
            return list(records)
        return [r for r in records if self.has_access(partner_code_of(r))]
