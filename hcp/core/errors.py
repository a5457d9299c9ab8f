"""
Error hierarchy for the HCP API.

Every error carries an HTTP status and a stable code so the global handlers in
`hcp.api.error_handlers` can render a uniform `{"error": ..., "code": ...}` body.
Messages are safe to show to callers; internal details go to the log only.
"""
from typing import Optional


class HCPError(Exception):
    """Base exception for all HCP errors."""

    status_code: int = 500
    code: str = "internal_error"
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_response(self) -> dict:
        return {"error": self.message, "code": self.code}


class BadRequest(HCPError):
    """Unknown entity type, malformed body or invalid field name."""
    status_code = 400
    code = "bad_request"
    default_message = "Bad request"


class Unauthorized(HCPError):
    """Missing bearer token."""
    status_code = 401
    code = "unauthorized"
    default_message = "Unauthorized"


class InvalidToken(Unauthorized):
    """Malformed, tampered or expired token."""
    code = "invalid_token"
    default_message = "Invalid token"


class InvalidCredentials(Unauthorized):
    code = "invalid_credentials"
    default_message = "Invalid credentials"


class Forbidden(HCPError):
    status_code = 403
    code = "forbidden"
    default_message = "Access denied"


class NotFound(HCPError):
    status_code = 404
    code = "not_found"
    default_message = "Not found"


class Conflict(HCPError):
    """Duplicate id or stale revision on write."""
    status_code = 409
    code = "conflict"
    default_message = "Conflict"


class StorageError(HCPError):
    """The backing medium rejected a read or write (quota, IO, corrupt data)."""
    status_code = 507
    code = "storage_failure"
    default_message = "Storage unavailable"


class ServerMisconfigured(HCPError):
    status_code = 500
    code = "server_misconfigured"
    default_message = "Server is misconfigured"


class InternalError(HCPError):
    pass
