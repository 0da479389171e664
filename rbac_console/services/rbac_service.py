"""RBAC service: roles, permissions, grants and permission resolution."""

import logging
from typing import Optional, List, Dict, Any, FrozenSet, Iterable, Union

from sqlalchemy import func
from sqlalchemy.orm import Session

from rbac_console.core.exceptions import ConflictError, NotFoundError, ValidationError
from rbac_console.db.session import unique_or_conflict
from rbac_console.models.enums import AuditAction, PermissionStatus, Severity
from rbac_console.models.permission import Permission
from rbac_console.models.role import Role, RoleGrant
from rbac_console.models.user import User
from rbac_console.services.audit_service import audited

logger = logging.getLogger("rbac_console")

# The one role that bypasses grant lookups entirely.
SUPERUSER_ROLE = "Admin"


def is_superuser_role(role_name: Optional[str]) -> bool:
    """True only for the superuser role label (exact, case-sensitive)."""
    return role_name == SUPERUSER_ROLE


class AllPermissions:
    """Grant set of the superuser role: contains every permission name."""

    def __contains__(self, permission_name: object) -> bool:
        return True

    def __repr__(self) -> str:
        return "ALL_PERMISSIONS"


ALL_PERMISSIONS = AllPermissions()

GrantSet = Union[FrozenSet[str], AllPermissions]


def _require_name(name: Optional[str], kind: str) -> str:
    if name is None or not name.strip():
        raise ValidationError(f"{kind} name is required")
    return name.strip()


class RBACService:
    """Manages roles, permissions and the role/permission assignment."""

    # ---- Resolution ----

    @staticmethod
    def effective_permissions(db: Session, role_name: Optional[str]) -> GrantSet:
        """Permission names granted to a role label.

        The superuser role short-circuits to ``ALL_PERMISSIONS``. An unknown
        label yields an empty set. Permission status is not considered.
        """
        if is_superuser_role(role_name):
            return ALL_PERMISSIONS
        if not role_name:
            return frozenset()

        rows = (
            db.query(Permission.name)
            .join(RoleGrant, RoleGrant.permission_id == Permission.id)
            .join(Role, Role.id == RoleGrant.role_id)
            .filter(Role.name == role_name)
            .all()
        )
        return frozenset(name for (name,) in rows)

    @staticmethod
    def has_permission(db: Session, identity: Any, permission_name: str) -> bool:
        """True iff the identity is the superuser or its role grants the name."""
        if is_superuser_role(identity.role):
            return True
        return permission_name in RBACService.effective_permissions(db, identity.role)

    @staticmethod
    def permission_names(db: Session, role_name: Optional[str]) -> List[str]:
        """Sorted, concrete permission names for display."""
        grants = RBACService.effective_permissions(db, role_name)
        if grants is ALL_PERMISSIONS:
            return [name for (name,) in db.query(Permission.name).order_by(Permission.name).all()]
        return sorted(grants)

    # ---- Roles ----

    @staticmethod
    def role_view(db: Session, role: Role) -> Dict[str, Any]:
        """Role with its granted permission names and the number of users carrying it."""
        users = db.query(func.count(User.id)).filter(User.role == role.name).scalar()
        return {
            "id": role.id,
            "name": role.name,
            "description": role.description,
            "created_at": role.created_at,
            "permissions": sorted(g.permission.name for g in role.grants),
            "users": users or 0,
        }

    @staticmethod
    def list_roles(db: Session) -> List[Dict[str, Any]]:
        roles = db.query(Role).order_by(Role.id).all()
        return [RBACService.role_view(db, r) for r in roles]

    @staticmethod
    def get_role(db: Session, role_id: int) -> Role:
        """Get a role by id."""
        role = db.query(Role).filter(Role.id == role_id).first()
        if not role:
            raise NotFoundError("Role not found")
        return role

    @staticmethod
    def role_exists(db: Session, role_name: str) -> bool:
        return db.query(Role.id).filter(Role.name == role_name).first() is not None

    @staticmethod
    def _replace_grants(db: Session, role: Role, permission_names: Iterable[str]) -> None:
        """Swap the role's grant rows for exactly ``permission_names``.

        Unknown names are ignored. The caller commits, so delete and insert
        land in the same transaction.
        """
        names = set(permission_names or [])
        role.grants.clear()
        db.flush()
        if not names:
            return
        permissions = db.query(Permission).filter(Permission.name.in_(names)).all()
        for permission in permissions:
            role.grants.append(RoleGrant(permission=permission))

    @staticmethod
    @audited(AuditAction.create, "Role", Severity.info,
             details=lambda view: f"Created role: {view['name']}")
    def create_role(
        db: Session,
        name: str,
        description: Optional[str] = None,
        permission_names: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        """Create a role with its initial grants."""
        name = _require_name(name, "Role")
        if RBACService.role_exists(db, name):
            raise ConflictError("Role already exists")

        role = Role(name=name, description=description or "")
        with unique_or_conflict(db, "Role already exists"):
            db.add(role)
            db.flush()
            RBACService._replace_grants(db, role, permission_names or [])
            db.commit()
        db.refresh(role)
        logger.info("Role %s created with %s grants", role.name, len(role.grants))
        return RBACService.role_view(db, role)

    @staticmethod
    @audited(AuditAction.update, "Role", Severity.warning,
             details=lambda view: f"Modified role: {view['name']}")
    def update_role(
        db: Session,
        role_id: int,
        name: Optional[str] = None,
        description: Optional[str] = None,
        permission_names: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        """Update a role and fully replace its grants.

        Users carrying the old name are not relabelled on rename.
        """
        role = RBACService.get_role(db, role_id)

        if name is not None:
            name = _require_name(name, "Role")
            if name != role.name:
                existing = db.query(Role).filter(Role.name == name).first()
                if existing and existing.id != role.id:
                    raise ConflictError("Role already exists")
                role.name = name
        if description is not None:
            role.description = description

        with unique_or_conflict(db, "Role already exists"):
            RBACService._replace_grants(db, role, permission_names or [])
            db.commit()
        db.refresh(role)
        return RBACService.role_view(db, role)

    @staticmethod
    @audited(AuditAction.delete, "Role", Severity.warning,
             details=lambda name: f"Deleted role: {name}")
    def delete_role(db: Session, role_id: int) -> str:
        """Delete a role and its grants; users keep the now-orphaned label."""
        role = RBACService.get_role(db, role_id)
        name = role.name
        db.delete(role)
        db.commit()
        orphaned = db.query(func.count(User.id)).filter(User.role == name).scalar()
        if orphaned:
            logger.warning("Role %s deleted while still assigned to %s user(s)", name, orphaned)
        return name

    # ---- Permissions ----

    @staticmethod
    def permission_view(db: Session, permission: Permission) -> Dict[str, Any]:
        """Permission with the names of the roles it is granted to."""
        used_by = (
            db.query(Role.name)
            .join(RoleGrant, RoleGrant.role_id == Role.id)
            .filter(RoleGrant.permission_id == permission.id)
            .order_by(Role.name)
            .all()
        )
        return {
            "id": permission.id,
            "name": permission.name,
            "description": permission.description,
            "category": permission.category,
            "status": permission.status,
            "created_at": permission.created_at,
            "used_by": [name for (name,) in used_by],
        }

    @staticmethod
    def list_permissions(db: Session) -> List[Dict[str, Any]]:
        permissions = db.query(Permission).order_by(Permission.id).all()
        return [RBACService.permission_view(db, p) for p in permissions]

    @staticmethod
    def get_permission(db: Session, permission_id: int) -> Permission:
        """Get a permission by id."""
        permission = db.query(Permission).filter(Permission.id == permission_id).first()
        if not permission:
            raise NotFoundError("Permission not found")
        return permission

    @staticmethod
    def _check_status(status: Optional[str]) -> None:
        allowed = {s.value for s in PermissionStatus}
        if status is not None and status not in allowed:
            raise ValidationError(f"Status must be one of: {', '.join(sorted(allowed))}")

    @staticmethod
    @audited(AuditAction.create, "Permission", Severity.info,
             details=lambda view: f"Created permission: {view['name']}")
    def create_permission(
        db: Session,
        name: str,
        description: Optional[str] = None,
        category: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Create a permission; names are unique."""
        name = _require_name(name, "Permission")
        RBACService._check_status(status)
        if db.query(Permission.id).filter(Permission.name == name).first():
            raise ConflictError("Permission already exists")

        permission = Permission(
            name=name,
            description=description or "",
            category=category or "General",
            status=status or PermissionStatus.active.value,
        )
        db.add(permission)
        with unique_or_conflict(db, "Permission already exists"):
            db.commit()
        db.refresh(permission)
        return RBACService.permission_view(db, permission)

    @staticmethod
    @audited(AuditAction.update, "Permission", Severity.warning,
             details=lambda view: f"Modified permission: {view['name']}")
    def update_permission(
        db: Session,
        permission_id: int,
        name: Optional[str] = None,
        description: Optional[str] = None,
        category: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Partially update a permission. Grants are left as they are."""
        permission = RBACService.get_permission(db, permission_id)
        RBACService._check_status(status)

        if name is not None:
            name = _require_name(name, "Permission")
            if name != permission.name:
                existing = db.query(Permission).filter(Permission.name == name).first()
                if existing and existing.id != permission.id:
                    raise ConflictError("Permission already exists")
                permission.name = name
        if description is not None:
            permission.description = description
        if category is not None:
            permission.category = category
        if status is not None:
            permission.status = status

        with unique_or_conflict(db, "Permission already exists"):
            db.commit()
        db.refresh(permission)
        return RBACService.permission_view(db, permission)

    @staticmethod
    @audited(AuditAction.delete, "Permission", Severity.warning,
             details=lambda name: f"Deleted permission: {name}")
    def delete_permission(db: Session, permission_id: int) -> str:
        """Delete a permission and every grant that references it."""
        permission = RBACService.get_permission(db, permission_id)
        name = permission.name
        db.delete(permission)
        db.commit()
        return name


rbac_service = RBACService()
