"""
Authentication for Happy Sourdough Backend

Supabase Auth issues the access tokens; this module only verifies them
(HS256 with the project's JWT secret) and maps the claims to a TokenUser.
Roles live in app_metadata.role so customers cannot edit their own.
"""
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError, ExpiredSignatureError
from pydantic import BaseModel

from sourdough.core.config import settings

JWT_ALGORITHM = "HS256"
JWT_AUDIENCE = "authenticated"

# Higher level includes every permission of the lower ones
ROLE_LEVELS = {
    "customer": 1,
    "staff": 2,
    "manager": 3,
    "admin": 4,
    "super_admin": 5,
}

bearer_scheme = HTTPBearer(auto_error=False)


class TokenUser(BaseModel):
    """Caller identity taken from a verified access token"""
    id: str
    email: str
    name: Optional[str] = None
    role: str = "customer"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_supabase_token(token: str) -> dict:
    """
    Verify signature, expiry and audience; return the claims.

    Claims used downstream: sub, email, app_metadata.role,
    user_metadata.full_name.
    """
    if not settings.SUPABASE_JWT_SECRET:
        raise ValueError("SUPABASE_JWT_SECRET is not set")

    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[JWT_ALGORITHM],
            audience=JWT_AUDIENCE,
        )
    except ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except JWTError as e:
        raise _unauthorized(f"Invalid token: {str(e)}")


def _user_from_claims(claims: dict) -> Optional[TokenUser]:
    if not claims.get("sub") or not claims.get("email"):
        return None

    return TokenUser(
        id=claims["sub"],
        email=claims["email"],
        name=(claims.get("user_metadata") or {}).get("full_name"),
        role=(claims.get("app_metadata") or {}).get("role", "customer"),
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> TokenUser:
    """Signed-in caller; 401 when the bearer token is missing or invalid"""
    if not credentials:
        raise _unauthorized("Authentication required")

    user = _user_from_claims(decode_supabase_token(credentials.credentials))
    if user is None:
        raise _unauthorized("Invalid token payload: missing user id or email")

    return user


async def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> Optional[TokenUser]:
    """
    Signed-in caller or None.

    Guest checkout, order tracking and cancellation accept anonymous
    callers, so a bad token is treated the same as no token.
    """
    if not credentials:
        return None

    try:
        claims = decode_supabase_token(credentials.credentials)
    except HTTPException:
        return None

    return _user_from_claims(claims)


def require_role(required_role: str):
    """
    Dependency factory: the caller's role must be at least required_role.

    Usage:
        @router.patch("/orders/{order_id}/status")
        async def update_status(user: TokenUser = Depends(require_role("staff"))):
            ...
    """
    required_level = ROLE_LEVELS.get(required_role, 0)

    async def role_checker(user: TokenUser = Depends(get_current_user)) -> TokenUser:
        if ROLE_LEVELS.get(user.role, 0) < required_level:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {required_role}, your role: {user.role}",
            )
        return user

    return role_checker


require_staff = require_role("staff")
require_admin = require_role("admin")
