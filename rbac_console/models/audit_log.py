"""Audit log model: append-only."""

from sqlalchemy import Column, Integer, String, Text, DateTime, func
from rbac_console.db.base import Base
from rbac_console.models.enums import Severity


class AuditEvent(Base):
    """Immutable audit trail of security-relevant actions.

    Rows are never updated. The actor is kept as a plain email string so
    events survive deletion of the user who caused them. Timestamps come
    from the database clock, the same one that stamps ``created_at`` on
    users, roles and permissions.
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    timestamp = Column(DateTime, server_default=func.now(), nullable=False, index=True)
    user_email = Column(String(255), nullable=False, default="system", index=True)
    action = Column(String(100), nullable=False, index=True)  # e.g. "Login", "Failed Login"
    resource = Column(String(100), nullable=False, default="")  # Auth, User, Role, Permission
    details = Column(Text, nullable=False, default="")
    severity = Column(String(20), nullable=False, default=Severity.info.value)
