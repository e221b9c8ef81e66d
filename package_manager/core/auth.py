"""Authentication and role checks for the management API.

Tokens are issued by the identity service; this service only verifies them
with the shared secret and reads the identity carried in the payload.
"""
import secrets
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from package_manager.core.config import settings

PLATFORM_ADMIN = "platform_admin"
ADMIN = "admin"
ADMIN_ROLES = (PLATFORM_ADMIN, ADMIN)

# HTTPBearer security scheme for Swagger UI
http_bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthenticatedUser:
    user_id: str
    email: str
    role: str


def decode_access_token(token: str) -> AuthenticatedUser:
    """
    Verify a JWT issued by the identity service.

    Raises:
        HTTPException 401 if the token is invalid, expired or incomplete
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token"
        )

    user_id = payload.get("userId") or payload.get("sub")
    email = payload.get("email")
    role = payload.get("role")

    if not user_id or not email or not role:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload")

    return AuthenticatedUser(user_id=str(user_id), email=email, role=role)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
) -> AuthenticatedUser:
    """
    Resolve the caller from the Authorization header or the identity cookie.

    Returns:
        AuthenticatedUser

    Raises:
        HTTPException 401 if no valid token is presented
    """
    if credentials:
        token = credentials.credentials  # HTTPBearer already strips "Bearer " prefix
    else:
        token = request.cookies.get(settings.auth_cookie_name)

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required"
        )

    user = decode_access_token(token)

    # Store user info in request state for logging
    request.state.user_id = user.user_id
    request.state.user_email = user.email
    return user


def require_role(*roles: str):
    """
    Dependency factory that requires the caller's role to be one of `roles`.

    Usage:
        user: AuthenticatedUser = Depends(require_role(*ADMIN_ROLES))
    """

    async def role_checker(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
        if user.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient privileges")
        return user

    return role_checker


async def require_internal_caller(
    user: AuthenticatedUser = Depends(get_current_user),
    x_internal_token: Optional[str] = Header(None, alias="X-Internal-Token"),
) -> AuthenticatedUser:
    """
    Gate for the unmasked key endpoint.

    When INTERNAL_SERVICE_TOKEN is configured the caller must also present it,
    so only co-resident services on the internal network can read raw keys.
    """
    expected = settings.internal_service_token
    if expected and not (
        x_internal_token and secrets.compare_digest(x_internal_token, expected)
    ):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Internal access only"
        )
    return user
