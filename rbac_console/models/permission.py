"""Permission model."""

from sqlalchemy import Column, Integer, String, Text, DateTime, func
from sqlalchemy.orm import relationship
from rbac_console.db.base import Base
from rbac_console.models.enums import PermissionStatus


class Permission(Base):
    """Named capability checked against a user's effective grant.

    ``status`` is a management flag only; an inactive permission that is
    still assigned to a role remains granted.
    """
    __tablename__ = "permissions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    category = Column(String(100), nullable=False, default="General")
    status = Column(String(20), nullable=False, default=PermissionStatus.active.value)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    grants = relationship(
        "RoleGrant",
        back_populates="permission",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
