"""Roles API router."""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from rbac_console.db.session import get_db
from rbac_console.schemas.schemas import RoleCreate, RoleUpdate, RoleOut, MessageResponse
from rbac_console.services.rbac_service import rbac_service
from rbac_console.core.security import Identity, get_current_identity, require_manage_roles

router = APIRouter(prefix="/roles", tags=["roles"])


@router.get("", response_model=List[RoleOut])
async def list_roles(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """List roles with their permissions and user counts."""
    return rbac_service.list_roles(db)


@router.get("/{role_id}", response_model=RoleOut)
async def get_role(
    role_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Get a single role."""
    return rbac_service.role_view(db, rbac_service.get_role(db, role_id))


@router.post("", response_model=RoleOut, status_code=status.HTTP_201_CREATED)
async def create_role(
    body: RoleCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_manage_roles),
):
    """Create a role and its grants."""
    return rbac_service.create_role(
        db, body.name, body.description, body.permissions, actor=identity.email,
    )


@router.put("/{role_id}", response_model=RoleOut)
async def update_role(
    role_id: int,
    body: RoleUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_manage_roles),
):
    """Update a role; ``permissions`` replaces the whole grant set."""
    return rbac_service.update_role(
        db, role_id, body.name, body.description, body.permissions, actor=identity.email,
    )


@router.delete("/{role_id}", response_model=MessageResponse)
async def delete_role(
    role_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_manage_roles),
):
    """Delete a role. Users carrying it keep the label."""
    rbac_service.delete_role(db, role_id, actor=identity.email)
    return MessageResponse(message="Role deleted successfully")
