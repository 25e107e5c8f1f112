from datetime import timedelta
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import ValidationError

from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now

security = HTTPBearer()

ALGORITHM = "HS256"


def decode_token(token: str) -> AuthUser:
    """Decode a bearer token into an AuthUser; raises JWTError/ValidationError."""
    settings = get_settings()
    payload = jwt.decode(
        token,
        settings.SUPABASE_JWT_SECRET,
        algorithms=[ALGORITHM],
        options={"verify_aud": False},
    )
    metadata = payload.get("user_metadata") or {}
    if "tier" not in payload and metadata.get("tier"):
        payload["tier"] = metadata["tier"]
    if "name" not in payload and metadata.get("name"):
        payload["name"] = metadata["name"]
    return AuthUser(**payload)


def create_token(sub: str, *, role: str = "authenticated", **claims) -> str:
    """Sign a short-lived token with the shared secret (service calls and tests)."""
    settings = get_settings()
    payload = {
        "sub": sub,
        "role": role,
        "exp": utc_now() + timedelta(minutes=15),
        **claims,
    }
    return jwt.encode(payload, settings.SUPABASE_JWT_SECRET, algorithm=ALGORITHM)


def _service_role_jwt(calling_service: str) -> str:
    return create_token(calling_service, role="service_role")


async def get_current_user(
    token: Annotated[HTTPAuthorizationCredentials, Depends(security)]
) -> AuthUser:
    """
    Validate Supabase JWT and return the authenticated user.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        return decode_token(token.credentials)
    except (JWTError, ValidationError):
        raise credentials_exception


async def require_admin(
    current_user: Annotated[AuthUser, Depends(get_current_user)]
) -> AuthUser:
    """
    Ensure the caller holds the 'service_role' role.
    """
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return current_user
