"""Pydantic schemas for API request/response serialization."""

from pydantic import BaseModel, Field
from typing import Optional, List, Any
from datetime import datetime


# ---- Auth ----
class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)  # email or username
    password: str = Field(..., min_length=1)

class SignupRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    username: Optional[str] = None
    role: Optional[str] = None


# ---- User ----
class UserOut(BaseModel):
    id: int
    name: str
    username: Optional[str] = None
    email: str
    role: str
    status: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class UserWithPermissions(UserOut):
    permissions: List[str] = []

class TokenResponse(BaseModel):
    token: str
    user: UserWithPermissions

class UserCreate(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    password: Optional[str] = None
    username: Optional[str] = None
    role: Optional[str] = None
    status: Optional[str] = None

class UserUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    username: Optional[str] = None
    role: Optional[str] = None
    status: Optional[str] = None


# ---- Role ----
class RoleCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    permissions: List[str] = []

class RoleUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    permissions: List[str] = []  # full replacement

class RoleOut(BaseModel):
    id: int
    name: str
    description: str = ""
    permissions: List[str] = []
    users: int = 0
    created_at: Optional[datetime] = None


# ---- Permission ----
class PermissionCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    category: Optional[str] = None
    status: Optional[str] = None

class PermissionUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    status: Optional[str] = None

class PermissionOut(BaseModel):
    id: int
    name: str
    description: str = ""
    category: str
    status: str
    used_by: List[str] = Field(default_factory=list, serialization_alias="usedBy")
    created_at: Optional[datetime] = None


# ---- Audit ----
class AuditLogCreate(BaseModel):
    action: str = Field(..., min_length=1)
    resource: Optional[str] = None
    details: Optional[str] = None
    severity: Optional[str] = None

class AuditLogOut(BaseModel):
    id: int
    timestamp: datetime
    user_email: str
    action: str
    resource: str = ""
    details: str = ""
    severity: str

    class Config:
        from_attributes = True


# ---- Reports ----
class ReportSummary(BaseModel):
    totalUsers: int
    activeUsers: int
    totalRoles: int
    totalPermissions: int
    totalLogs: int
    criticalEvents: int
    warningEvents: int
    failedLogins: int


# ---- Generic ----
class MessageResponse(BaseModel):
    message: str
    detail: Optional[Any] = None
