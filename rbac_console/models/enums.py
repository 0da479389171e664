"""String enums shared by the models, schemas and services."""

import enum


class UserStatus(str, enum.Enum):
    active = "Active"
    inactive = "Inactive"


class PermissionStatus(str, enum.Enum):
    active = "Active"
    inactive = "Inactive"


class Severity(str, enum.Enum):
    info = "Info"
    warning = "Warning"
    critical = "Critical"


class AuditAction(str, enum.Enum):
    login = "Login"
    logout = "Logout"
    failed_login = "Failed Login"
    create = "Create"
    update = "Update"
    delete = "Delete"
