"""Users API router: mutations are reserved for the Admin role."""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from rbac_console.db.session import get_db
from rbac_console.schemas.schemas import UserCreate, UserUpdate, UserOut, MessageResponse
from rbac_console.services.user_service import user_service
from rbac_console.core.security import Identity, get_current_identity, require_superuser

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=List[UserOut])
async def list_users(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """List all users."""
    return user_service.list_users(db)


@router.get("/{user_id}", response_model=UserOut)
async def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Get a single user."""
    return user_service.get_user(db, user_id)


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def create_user(
    body: UserCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_superuser),
):
    """Create a user (Admin only)."""
    return user_service.create_user(
        db, body.name, body.email, body.password, body.username, body.role, body.status,
        actor=identity.email,
    )


@router.put("/{user_id}", response_model=UserOut)
async def update_user(
    user_id: int,
    body: UserUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_superuser),
):
    """Update a user's profile, role, status or password (Admin only)."""
    return user_service.update_user(
        db, user_id, actor=identity.email, **body.model_dump(exclude_unset=True),
    )


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_superuser),
):
    """Delete a user (Admin only)."""
    user_service.delete_user(db, user_id, actor=identity.email)
    return MessageResponse(message="User deleted successfully")
