"""Auth service: login, signup, session verification, logout."""

import functools
import logging
from typing import Optional, Dict, Any

from sqlalchemy import or_
from sqlalchemy.orm import Session

from rbac_console.models.user import User
from rbac_console.models.enums import AuditAction, Severity
from rbac_console.core.security import (
    Identity, hash_password, verify_password, issue_session_token, identity_from_token,
)
from rbac_console.core.exceptions import (
    AccountDisabledError, AuthenticationError, NotFoundError,
)
from rbac_console.services.audit_service import audit_service
from rbac_console.services.rbac_service import rbac_service
from rbac_console.services.user_service import user_service

logger = logging.getLogger("rbac_console")


@functools.lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return hash_password("not-a-real-password")


class AuthService:
    """Handles authentication and self-service registration."""

    @staticmethod
    def user_with_permissions(db: Session, user: User) -> Dict[str, Any]:
        """Public user fields plus the effective permission names."""
        data = user_service.to_dict(user)
        data["permissions"] = rbac_service.permission_names(db, user.role)
        return data

    @staticmethod
    def authenticate(db: Session, identifier: str, password: str) -> Dict[str, Any]:
        """Authenticate by email or username and issue a session token.

        Raises:
            AuthenticationError: Unknown identifier or wrong password; the two
                are indistinguishable to the caller.
            AccountDisabledError: Correct credentials on an inactive account.
        """
        user = (
            db.query(User)
            .filter(or_(User.email == identifier, User.username == identifier))
            .first()
        )
        if user is None:
            # Same bcrypt cost as a real check so timing does not reveal the account
            verify_password(password, _dummy_hash())
        if not user or not verify_password(password, user.hashed_password):
            audit_service.append(
                db, identifier, AuditAction.failed_login, "Auth",
                f"Failed login attempt for: {identifier}", Severity.warning,
            )
            logger.warning("Failed login attempt for %s", identifier)
            raise AuthenticationError("Invalid email or password")

        if not user.is_active:
            raise AccountDisabledError("Account is inactive. Contact administrator.")

        token = issue_session_token(user)
        audit_service.append(
            db, user.email, AuditAction.login, "Auth",
            f"User logged in: {user.email}", Severity.info,
        )
        return {"token": token, "user": AuthService.user_with_permissions(db, user)}

    @staticmethod
    def register(
        db: Session,
        name: str,
        email: str,
        password: str,
        username: Optional[str] = None,
        role: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Create an account and sign it in.

        Raises:
            ConflictError: Email or non-empty username already taken.
        """
        user = user_service.insert_user(db, name, email, password, username, role)
        token = issue_session_token(user)
        audit_service.append(
            db, user.email, AuditAction.create, "Auth",
            f"New user registered: {user.email}", Severity.info,
        )
        return {"token": token, "user": AuthService.user_with_permissions(db, user)}

    @staticmethod
    def verify_session(token: str) -> Identity:
        """Identity carried by a valid, unexpired token."""
        return identity_from_token(token)

    @staticmethod
    def current_user(db: Session, identity: Identity) -> User:
        """The stored user behind a token."""
        user = db.query(User).filter(User.id == identity.id).first()
        if not user:
            raise NotFoundError("User not found")
        return user

    @staticmethod
    def logout(db: Session, identity: Identity) -> None:
        """Record the logout. Tokens are stateless; the client discards it."""
        audit_service.append(
            db, identity.email, AuditAction.logout, "Auth",
            f"User logged out: {identity.email}", Severity.info,
        )


auth_service = AuthService()
