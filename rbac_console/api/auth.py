"""Auth API router: login, signup, me, logout."""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from rbac_console.db.session import get_db
from rbac_console.schemas.schemas import (
    LoginRequest, SignupRequest, TokenResponse, UserOut, MessageResponse,
)
from rbac_console.services.auth_service import auth_service
from rbac_console.core.config import settings
from rbac_console.core.rate_limiter import limiter
from rbac_console.core.security import Identity, get_current_identity

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(request: Request, body: LoginRequest, db: Session = Depends(get_db)):
    """Authenticate by email or username and return a session token."""
    return auth_service.authenticate(db, body.email, body.password)


@router.post("/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def signup(request: Request, body: SignupRequest, db: Session = Depends(get_db)):
    """Register a new account and sign it in."""
    return auth_service.register(
        db, body.name, body.email, body.password, body.username, body.role,
    )


@router.get("/me", response_model=UserOut)
async def get_me(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Get current user profile."""
    return auth_service.current_user(db, identity)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Record the logout; the client discards its token."""
    auth_service.logout(db, identity)
    return MessageResponse(message="Logged out")
