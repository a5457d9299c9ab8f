from typing import Any, Optional

from pydantic import BaseModel, Field

from hcp.schemas.base import CamelSchema


class LoginRequest(BaseModel):
    """Login request schema."""
    # Matched against stored emails only; unknown values are Invalid credentials
    email: str = Field(..., min_length=1, description="Admin email address")
    password: str = Field(..., min_length=1, description="Admin password")


class TokenResponse(CamelSchema):
    """Token response schema."""
    token: str = Field(..., description="Signed JWT access token")
    user: dict[str, Any] = Field(..., description="The authenticated admin, without credentials")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Token lifetime in seconds")


class TokenPayload(BaseModel):
    """JWT token payload schema."""
    sub: str = Field(..., description="Subject (admin ID)")
    role: Optional[str] = Field(None, description="Admin role at issue time")
    email: Optional[str] = None
    exp: int = Field(..., description="Expiration timestamp")
    iat: int = Field(..., description="Issued at timestamp")
    type: str = Field(..., description="Token type")
