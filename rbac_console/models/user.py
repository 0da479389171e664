"""User model."""

from sqlalchemy import Column, Integer, String, DateTime, func
from rbac_console.db.base import Base
from rbac_console.models.enums import UserStatus


class User(Base):
    """Console user carrying a single role label.

    ``role`` is a soft reference: it is matched against ``Role.name`` when
    permissions are resolved and is left untouched when that role is deleted.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    username = Column(String(100), unique=True, nullable=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(100), nullable=False, default="Viewer", index=True)
    status = Column(String(20), nullable=False, default=UserStatus.active.value)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    @property
    def is_active(self) -> bool:
        return self.status != UserStatus.inactive.value
