"""Audit log API router: query, manual entry, clear, CSV export."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from rbac_console.db.session import get_db
from rbac_console.schemas.schemas import AuditLogCreate, AuditLogOut, MessageResponse
from rbac_console.services.audit_service import audit_service
from rbac_console.core.security import (
    Identity, get_current_identity, require_superuser, require_view_audit_logs,
)

router = APIRouter(prefix="/audit-logs", tags=["audit"])


@router.get("", response_model=List[AuditLogOut])
async def query_audit_logs(
    action: Optional[str] = Query(None),
    user: Optional[str] = Query(None),
    date_from: Optional[str] = Query(None, alias="dateFrom"),
    date_to: Optional[str] = Query(None, alias="dateTo"),
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_view_audit_logs),
):
    """Newest-first audit events, capped for interactive use."""
    return audit_service.query(db, action, user, date_from, date_to)


@router.post("", response_model=AuditLogOut, status_code=status.HTTP_201_CREATED)
async def create_audit_log(
    body: AuditLogCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Record a manual audit entry on behalf of the caller."""
    return audit_service.record(
        db, identity.email, body.action, body.resource, body.details, body.severity,
    )


@router.delete("", response_model=MessageResponse)
async def clear_audit_logs(
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_superuser),
):
    """Irreversibly delete every audit event."""
    deleted = audit_service.clear_all(db)
    return MessageResponse(message="All audit logs cleared", detail={"deleted": deleted})


@router.get("/export/csv")
async def export_audit_logs(
    action: Optional[str] = Query(None),
    user: Optional[str] = Query(None),
    date_from: Optional[str] = Query(None, alias="dateFrom"),
    date_to: Optional[str] = Query(None, alias="dateTo"),
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_view_audit_logs),
):
    """Every matching event as a CSV download."""
    events = audit_service.query(db, action, user, date_from, date_to, limit=None)
    return Response(
        content=audit_service.export_csv(events),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="audit-logs.csv"'},
    )
