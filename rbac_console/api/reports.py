"""Reports API router: aggregate views and CSV exports."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from rbac_console.db.session import get_db
from rbac_console.schemas.schemas import AuditLogOut, ReportSummary
from rbac_console.services.audit_service import to_csv
from rbac_console.services.report_service import report_service
from rbac_console.core.security import Identity, require_view_reports

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/summary", response_model=ReportSummary)
async def summary(db: Session = Depends(get_db), identity: Identity = Depends(require_view_reports)):
    """Dashboard counters."""
    return report_service.summary(db)


@router.get("/user-activity", response_model=List[AuditLogOut])
async def user_activity(
    date_from: Optional[str] = Query(None, alias="dateFrom"),
    date_to: Optional[str] = Query(None, alias="dateTo"),
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_view_reports),
):
    """Login, logout and failed-login events."""
    return report_service.user_activity(db, date_from, date_to)


@router.get("/role-assignment")
async def role_assignment(db: Session = Depends(get_db), identity: Identity = Depends(require_view_reports)):
    return report_service.role_assignment(db)


@router.get("/permission-audit")
async def permission_audit(db: Session = Depends(get_db), identity: Identity = Depends(require_view_reports)):
    return report_service.permission_audit(db)


@router.get("/security-summary")
async def security_summary(db: Session = Depends(get_db), identity: Identity = Depends(require_view_reports)):
    return report_service.security_summary(db)


@router.get("/system-usage")
async def system_usage(db: Session = Depends(get_db), identity: Identity = Depends(require_view_reports)):
    return report_service.system_usage(db)


@router.get("/export/csv")
async def export_report(
    type: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_view_reports),
):
    """Download one report as CSV."""
    filename, rows = report_service.export_rows(db, type)
    headers = list(rows[0].keys())
    return Response(
        content=to_csv(headers, [[row[h] for h in headers] for row in rows]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
