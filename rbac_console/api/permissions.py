"""Permissions API router."""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from rbac_console.db.session import get_db
from rbac_console.schemas.schemas import (
    PermissionCreate, PermissionUpdate, PermissionOut, MessageResponse,
)
from rbac_console.services.rbac_service import rbac_service
from rbac_console.core.security import (
    Identity, get_current_identity, require_manage_permissions,
)

router = APIRouter(prefix="/permissions", tags=["permissions"])


@router.get("", response_model=List[PermissionOut])
async def list_permissions(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """List permissions with the roles using them."""
    return rbac_service.list_permissions(db)


@router.get("/{permission_id}", response_model=PermissionOut)
async def get_permission(
    permission_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Get a single permission."""
    return rbac_service.permission_view(db, rbac_service.get_permission(db, permission_id))


@router.post("", response_model=PermissionOut, status_code=status.HTTP_201_CREATED)
async def create_permission(
    body: PermissionCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_manage_permissions),
):
    """Create a permission."""
    return rbac_service.create_permission(
        db, body.name, body.description, body.category, body.status, actor=identity.email,
    )


@router.put("/{permission_id}", response_model=PermissionOut)
async def update_permission(
    permission_id: int,
    body: PermissionUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_manage_permissions),
):
    """Update a permission's name, description, category or status."""
    return rbac_service.update_permission(
        db, permission_id, actor=identity.email, **body.model_dump(exclude_unset=True),
    )


@router.delete("/{permission_id}", response_model=MessageResponse)
async def delete_permission(
    permission_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_manage_permissions),
):
    """Delete a permission and its grants."""
    rbac_service.delete_permission(db, permission_id, actor=identity.email)
    return MessageResponse(message="Permission deleted successfully")
