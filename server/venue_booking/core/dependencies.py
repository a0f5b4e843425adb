"""FastAPI dependencies for bearer-token identity and role checks."""

from typing import Callable, Optional

import jwt
from fastapi import Depends, Header
from jwt import ExpiredSignatureError, PyJWTError

from .config import settings
from .exceptions import AuthenticationError, AuthorizationError

ROLE_SUPERADMIN = "superadmin"
ROLE_MANAGER = "manager"
ROLE_CUSTOMER = "customer"

STAFF_ROLES = (ROLE_SUPERADMIN, ROLE_MANAGER)


async def get_current_user(
    authorization: Optional[str] = Header(None, alias="Authorization")
) -> dict:
    """
    Authentication dependency that validates Bearer tokens.

    Sessions are issued elsewhere; this service only verifies the signed
    token and reads the subject and roles from it.

    Args:
        authorization: Authorization header with Bearer token

    Returns:
        dict: User information from validated token

    Raises:
        AuthenticationError: If token is invalid or missing
    """
    if not authorization:
        raise AuthenticationError(detail="Authorization header missing")

    try:
        scheme, token = authorization.split()
    except ValueError:
        raise AuthenticationError(detail="Invalid authorization header format")

    if scheme.lower() != "bearer":
        raise AuthenticationError(detail="Invalid authentication scheme")

    try:
        payload = jwt.decode(
            token,
            settings.bearer_token_secret,
            algorithms=["HS256"]
        )
    except ExpiredSignatureError:
        raise AuthenticationError(detail="Token has expired")
    except PyJWTError as e:
        raise AuthenticationError(detail=f"Token validation failed: {str(e)}")

    user_id = payload.get("sub")
    if user_id is None:
        raise AuthenticationError(detail="Invalid token payload")

    roles = payload.get("roles") or []
    if isinstance(roles, str):
        roles = [roles]

    return {
        "user_id": str(user_id),
        "username": payload.get("username"),
        "email": payload.get("email"),
        "roles": list(roles),
    }


def has_any_role(user: dict, *roles: str) -> bool:
    """Return True if the user carries at least one of the given roles."""
    return any(role in user.get("roles", []) for role in roles)


def require_roles(*roles: str) -> Callable:
    """Build a dependency that admits only users holding one of ``roles``."""

    async def dependency(user: dict = Depends(get_current_user)) -> dict:
        if not has_any_role(user, *roles):
            raise AuthorizationError(required_roles=list(roles))
        return user

    return dependency


RequiredAuth = Depends(get_current_user)
SuperAdminAuth = Depends(require_roles(ROLE_SUPERADMIN))
