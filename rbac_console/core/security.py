"""JWT authentication and RBAC authorization helpers."""

import bcrypt
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from rbac_console.core.config import settings
from rbac_console.core.exceptions import AuthenticationError, AuthorizationError
from rbac_console.db.session import get_db
from rbac_console.services.rbac_service import rbac_service, is_superuser_role

# JWT bearer scheme
security_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    """Authenticated caller, as carried in the session token."""

    id: int
    email: str
    role: str
    name: str

    @property
    def is_superuser(self) -> bool:
        return is_superuser_role(self.role)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    pwd_bytes = password.encode("utf-8")
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(pwd_bytes, salt)
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    pwd_bytes = plain_password.encode("utf-8")
    hashed_bytes = hashed_password.encode("utf-8")
    try:
        return bcrypt.checkpw(pwd_bytes, hashed_bytes)
    except ValueError:
        # Malformed stored hash
        return False


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed, expiring session token."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.JWT_EXPIRY_MINUTES)
    )
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def issue_session_token(user) -> str:
    """Token binding the user's id, email, role and display name."""
    return create_access_token({
        "sub": str(user.id),
        "id": user.id,
        "email": user.email,
        "role": user.role,
        "name": user.name,
    })


def decode_token(token: str) -> dict:
    """Decode and validate a JWT token."""
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise AuthenticationError("Invalid or expired token")


def identity_from_token(token: str) -> Identity:
    """Verify a session token and return the identity it carries.

    Expired, tampered and malformed tokens all fail the same way.
    """
    payload = decode_token(token)
    if payload.get("type") != "access":
        raise AuthenticationError("Invalid or expired token")
    try:
        return Identity(
            id=int(payload["sub"]),
            email=payload["email"],
            role=payload.get("role") or "",
            name=payload.get("name") or "",
        )
    except (KeyError, TypeError, ValueError):
        raise AuthenticationError("Invalid or expired token")


async def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
) -> Identity:
    """Identity from the ``Authorization: Bearer`` header."""
    from rbac_console.services.auth_service import auth_service

    if credentials is None:
        raise AuthenticationError("Not authenticated")
    return auth_service.verify_session(credentials.credentials)


class RequirePermission:
    """Dependency that checks the caller's effective grant for one permission."""

    def __init__(self, permission_name: str):
        self.permission_name = permission_name

    def __call__(
        self,
        identity: Identity = Depends(get_current_identity),
        db: Session = Depends(get_db),
    ) -> Identity:
        if not rbac_service.has_permission(db, identity, self.permission_name):
            raise AuthorizationError(f"Permission '{self.permission_name}' required")
        return identity


async def require_superuser(identity: Identity = Depends(get_current_identity)) -> Identity:
    """Hard rule for user mutations: role must be exactly the superuser role."""
    if not identity.is_superuser:
        raise AuthorizationError("Admin access required")
    return identity


# Convenience dependency instances
require_manage_roles = RequirePermission("manage_roles")
require_manage_permissions = RequirePermission("manage_permissions")
require_view_audit_logs = RequirePermission("view_audit_logs")
require_view_reports = RequirePermission("view_reports")
