"""Seed default roles, permissions and grants into the database."""

import logging

from sqlalchemy.orm import Session

from rbac_console.models.permission import Permission
from rbac_console.models.role import Role, RoleGrant

logger = logging.getLogger("rbac_console")

DEFAULT_ROLES = [
    ("Admin", "Full system access with all permissions"),
    ("Editor", "Can manage users and view analytics"),
    ("Viewer", "Read-only access to analytics and reports"),
]

DEFAULT_PERMISSIONS = [
    ("manage_users", "Create, edit, and delete users", "User Management"),
    ("manage_roles", "Create, edit, and delete roles", "User Management"),
    ("manage_permissions", "Create, edit, and delete permissions", "User Management"),
    ("view_analytics", "View analytics dashboard", "Analytics"),
    ("view_reports", "View and download reports", "Analytics"),
    ("view_audit_logs", "View system audit logs", "System"),
]

# Admin is listed for display; authorization never reads its grants.
DEFAULT_GRANTS = {
    "Admin": [name for name, _, _ in DEFAULT_PERMISSIONS],
    "Editor": ["manage_users", "view_analytics", "view_reports"],
    "Viewer": ["view_analytics", "view_reports"],
}


def seed_roles(db: Session) -> bool:
    """Insert the default roles, permissions and grants.

    Only runs against an empty roles table, so edits made through the
    console are never overwritten. Returns whether anything was seeded.
    """
    if db.query(Role.id).first() is not None:
        return False

    roles = {name: Role(name=name, description=desc) for name, desc in DEFAULT_ROLES}
    permissions = {
        name: Permission(name=name, description=desc, category=category)
        for name, desc, category in DEFAULT_PERMISSIONS
    }
    db.add_all(list(roles.values()) + list(permissions.values()))
    db.flush()

    for role_name, permission_names in DEFAULT_GRANTS.items():
        for permission_name in permission_names:
            db.add(RoleGrant(role=roles[role_name], permission=permissions[permission_name]))

    db.commit()
    logger.info("Seeded %s roles and %s permissions", len(roles), len(permissions))
    return True
