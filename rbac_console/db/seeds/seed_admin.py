"""Seed the default Admin user from env vars."""

import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from rbac_console.models.user import User
from rbac_console.models.enums import UserStatus
from rbac_console.core.security import hash_password
from rbac_console.core.config import settings
from rbac_console.services.rbac_service import SUPERUSER_ROLE

logger = logging.getLogger("rbac_console")


def seed_admin(db: Session) -> bool:
    """Create the default Admin user if not already present."""
    existing = db.query(User).filter(
        or_(User.email == settings.SEED_ADMIN_EMAIL, User.username == settings.SEED_ADMIN_USERNAME)
    ).first()
    if existing:
        logger.info("Admin '%s' already exists, skipping.", settings.SEED_ADMIN_EMAIL)
        return False

    admin = User(
        name=settings.SEED_ADMIN_NAME,
        username=settings.SEED_ADMIN_USERNAME,
        email=settings.SEED_ADMIN_EMAIL,
        hashed_password=hash_password(settings.SEED_ADMIN_PASSWORD),
        role=SUPERUSER_ROLE,
        status=UserStatus.active.value,
    )
    db.add(admin)
    db.commit()
    logger.info("Created admin user: %s", settings.SEED_ADMIN_EMAIL)
    return True

