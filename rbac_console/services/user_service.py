"""User service: the identity store behind admin user management and signup."""

from typing import Optional, List, Dict, Any

from sqlalchemy import or_
from sqlalchemy.orm import Session

from rbac_console.core.config import settings
from rbac_console.core.exceptions import ConflictError, NotFoundError, ValidationError
from rbac_console.core.security import hash_password
from rbac_console.db.session import unique_or_conflict
from rbac_console.models.enums import AuditAction, Severity, UserStatus
from rbac_console.models.user import User
from rbac_console.services.audit_service import audited
from rbac_console.services.rbac_service import rbac_service


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


# bcrypt only reads the first 72 bytes and recent releases refuse longer input
MAX_PASSWORD_BYTES = 72


def _check_password_length(password: str) -> None:
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")


class UserService:
    """CRUD over user records. Password hashes never leave this layer."""

    @staticmethod
    def to_dict(user: User) -> Dict[str, Any]:
        return {
            "id": user.id,
            "name": user.name,
            "username": user.username,
            "email": user.email,
            "role": user.role,
            "status": user.status,
            "created_at": user.created_at,
        }

    @staticmethod
    def _check_unique(
        db: Session,
        email: str,
        username: Optional[str],
        exclude_id: Optional[int] = None,
    ) -> None:
        clauses = [User.email == email]
        if username:
            clauses.append(User.username == username)
        query = db.query(User).filter(or_(*clauses))
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        if query.first():
            raise ConflictError("Email or username already exists")

    @staticmethod
    def _check_role(db: Session, role: Optional[str]) -> None:
        if role and not rbac_service.role_exists(db, role):
            raise ValidationError(f"Role '{role}' does not exist")

    @staticmethod
    def _check_status(status: Optional[str]) -> None:
        allowed = {s.value for s in UserStatus}
        if status is not None and status not in allowed:
            raise ValidationError(f"Status must be one of: {', '.join(sorted(allowed))}")

    @staticmethod
    def insert_user(
        db: Session,
        name: str,
        email: str,
        password: str,
        username: Optional[str] = None,
        role: Optional[str] = None,
        status: Optional[str] = None,
    ) -> User:
        """Validate and store a new user with a hashed password."""
        if _blank(name) or _blank(email):
            raise ValidationError("Name and email are required")
        if _blank(password):
            raise ValidationError("Password is required")
        _check_password_length(password)
        username = None if _blank(username) else username.strip()
        email = email.strip()

        UserService._check_unique(db, email, username)
        UserService._check_role(db, role)
        UserService._check_status(status)

        user = User(
            name=name.strip(),
            username=username,
            email=email,
            hashed_password=hash_password(password),
            role=role or settings.DEFAULT_ROLE,
            status=status or UserStatus.active.value,
        )
        db.add(user)
        with unique_or_conflict(db, "Email or username already exists"):
            db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def list_users(db: Session) -> List[Dict[str, Any]]:
        users = db.query(User).order_by(User.id).all()
        return [UserService.to_dict(u) for u in users]

    @staticmethod
    def get_user(db: Session, user_id: int) -> User:
        """Get a user by id."""
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User not found")
        return user

    @staticmethod
    @audited(AuditAction.create, "User", Severity.info,
             details=lambda user: f"Created user: {user['email']}")
    def create_user(
        db: Session,
        name: str,
        email: str,
        password: Optional[str] = None,
        username: Optional[str] = None,
        role: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Admin-created account; password falls back to the configured default."""
        user = UserService.insert_user(
            db, name, email,
            password if not _blank(password) else settings.DEFAULT_USER_PASSWORD,
            username, role, status,
        )
        return UserService.to_dict(user)

    @staticmethod
    @audited(AuditAction.update, "User", Severity.info,
             details=lambda user: f"Updated user: {user['email']}")
    def update_user(
        db: Session,
        user_id: int,
        name: Optional[str] = None,
        email: Optional[str] = None,
        password: Optional[str] = None,
        username: Optional[str] = None,
        role: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Partial update. A blank password leaves the current one in place."""
        user = UserService.get_user(db, user_id)

        if name is not None:
            if _blank(name):
                raise ValidationError("Name cannot be empty")
            user.name = name.strip()
        new_email = user.email
        if email is not None:
            if _blank(email):
                raise ValidationError("Email cannot be empty")
            new_email = email.strip()
        new_username = user.username
        if username is not None:
            new_username = None if _blank(username) else username.strip()

        UserService._check_unique(db, new_email, new_username, exclude_id=user.id)
        UserService._check_role(db, role)
        UserService._check_status(status)
        if not _blank(password):
            _check_password_length(password)

        user.email = new_email
        user.username = new_username
        if role:
            user.role = role
        if status is not None:
            user.status = status
        if not _blank(password):
            user.hashed_password = hash_password(password)

        with unique_or_conflict(db, "Email or username already exists"):
            db.commit()
        db.refresh(user)
        return UserService.to_dict(user)

    @staticmethod
    @audited(AuditAction.delete, "User", Severity.warning,
             details=lambda email: f"Deleted user: {email}")
    def delete_user(db: Session, user_id: int) -> str:
        """Delete a user. Their audit events stay, keyed by email."""
        user = UserService.get_user(db, user_id)
        email = user.email
        db.delete(user)
        db.commit()
        return email


user_service = UserService()
