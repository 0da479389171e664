"""First-run seed data."""

from sqlalchemy.orm import Session

from rbac_console.db.seeds.seed_admin import seed_admin
from rbac_console.db.seeds.seed_roles import seed_roles


def seed_all(db: Session) -> None:
    """Default roles/permissions and, on a fresh database, the admin account."""
    if seed_roles(db):
        seed_admin(db)


__all__ = ["seed_all", "seed_admin", "seed_roles"]
