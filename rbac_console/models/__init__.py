"""Models package: import all models so the metadata knows every table."""

from rbac_console.models.role import Role, RoleGrant
from rbac_console.models.permission import Permission
from rbac_console.models.user import User
from rbac_console.models.audit_log import AuditEvent

__all__ = [
    "Role", "RoleGrant", "Permission", "User", "AuditEvent",
]
