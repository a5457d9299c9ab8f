from datetime import datetime, timedelta, timezone
from typing import Optional, Any, Tuple
import logging
import uuid

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from hcp.config import Settings, settings
from hcp.core.errors import InvalidToken, ServerMisconfigured
from hcp.schemas.auth import TokenPayload


logger = logging.getLogger(__name__)

# bcrypt is the default; argon2 hashes are still verified if present
pwd_context = CryptContext(
    schemes=["bcrypt", "argon2"],
    default="bcrypt",
    deprecated=[],
    bcrypt__rounds=12,
)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """
    Verify a plain password against a stored hash.

    Returns False for a missing or unrecognised hash instead of raising.
    """
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        return False


def get_password_hash(password: str) -> str:
    """Hash a password with the default scheme (bcrypt)."""
    return pwd_context.hash(password)


def verify_and_check_needs_rehash(plain_password: str, hashed_password: Optional[str]) -> Tuple[bool, bool]:
    """
    Verify password and check if the hash needs to be upgraded.

    Returns:
        Tuple of (is_valid, needs_rehash)
    """
    if not hashed_password:
        return (False, False)
    try:
        is_valid = pwd_context.verify(plain_password, hashed_password)
        if is_valid:
            return (True, pwd_context.needs_update(hashed_password))
        return (False, False)
    except (ValueError, TypeError):
        return (False, False)


def _signing_key(config: Settings) -> str:
    if not config.SECRET_KEY:
        logger.error("SECRET_KEY is not configured")
        raise ServerMisconfigured()
    return config.SECRET_KEY


def create_access_token(
    subject: str,
    role: str,
    expires_delta: Optional[timedelta] = None,
    additional_claims: Optional[dict[str, Any]] = None,
    config: Optional[Settings] = None,
) -> str:
    """
    Create a signed JWT access token.

    Args:
        subject: The admin id the token is issued to
        role: The admin's role, embedded for clients
        expires_delta: Optional custom lifetime
        additional_claims: Optional extra claims
        config: Settings to sign with (defaults to the process settings)

    Returns:
        Encoded JWT token string
    """
    config = config or settings
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode = {
        "sub": str(subject),
        "role": role,
        "exp": now + expires_delta,
        "iat": now,
        "jti": str(uuid.uuid4()),
        "type": "access",
    }

    if additional_claims:
        to_encode.update(additional_claims)

    return jwt.encode(to_encode, _signing_key(config), algorithm=config.ALGORITHM)


def decode_token(token: str, config: Optional[Settings] = None) -> Optional[dict[str, Any]]:
    """
    Decode and validate a JWT token.

    Returns:
        Decoded token payload or None if the signature, format or expiry is invalid
    """
    config = config or settings
    key = _signing_key(config)
    try:
        return jwt.decode(token, key, algorithms=[config.ALGORITHM])
    except ExpiredSignatureError:
        logger.info("Rejected expired token")
        return None
    except JWTError:
        return None


def verify_access_token(token: str, config: Optional[Settings] = None) -> TokenPayload:
    """
    Verify an access token and return its claims.

    Raises:
        InvalidToken: if the token is malformed, tampered, expired or not an access token
        ServerMisconfigured: if no signing secret is configured
    """
    payload = decode_token(token, config)
    if payload is None:
        raise InvalidToken()

    if payload.get("type") != "access" or not payload.get("sub"):
        raise InvalidToken()

    try:
        return TokenPayload.model_validate(payload)
    except ValueError:
        raise InvalidToken()
