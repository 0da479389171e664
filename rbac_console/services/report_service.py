"""Report service: aggregate views over users, roles, permissions and audit events."""

from typing import Optional, List, Dict, Any, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from rbac_console.core.config import settings
from rbac_console.core.exceptions import NotFoundError
from rbac_console.models.audit_log import AuditEvent
from rbac_console.models.enums import AuditAction, Severity, UserStatus
from rbac_console.models.permission import Permission
from rbac_console.models.role import Role, RoleGrant
from rbac_console.models.user import User
from rbac_console.services.audit_service import audit_service

SESSION_ACTIONS = [
    AuditAction.login.value,
    AuditAction.logout.value,
    AuditAction.failed_login.value,
]
ALERT_SEVERITIES = [Severity.critical.value, Severity.warning.value]


class ReportService:
    """Read-only aggregates for the reports and analytics pages."""

    @staticmethod
    def summary(db: Session) -> Dict[str, int]:
        def count_events(*criteria) -> int:
            return db.query(func.count(AuditEvent.id)).filter(*criteria).scalar()

        return {
            "totalUsers": db.query(func.count(User.id)).scalar(),
            "activeUsers": db.query(func.count(User.id))
            .filter(User.status == UserStatus.active.value)
            .scalar(),
            "totalRoles": db.query(func.count(Role.id)).scalar(),
            "totalPermissions": db.query(func.count(Permission.id)).scalar(),
            "totalLogs": db.query(func.count(AuditEvent.id)).scalar(),
            "criticalEvents": count_events(AuditEvent.severity == Severity.critical.value),
            "warningEvents": count_events(AuditEvent.severity == Severity.warning.value),
            "failedLogins": count_events(AuditEvent.action == AuditAction.failed_login.value),
        }

    @staticmethod
    def user_activity(
        db: Session,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        limit: Optional[int] = settings.ACTIVITY_REPORT_LIMIT,
    ) -> List[AuditEvent]:
        """Login, logout and failed-login events, newest first."""
        return audit_service.query(
            db, actions=SESSION_ACTIONS, date_from=date_from, date_to=date_to, limit=limit,
        )

    @staticmethod
    def role_assignment(db: Session) -> List[Dict[str, Any]]:
        """Users per role, matched on the role label."""
        rows = (
            db.query(Role.name, Role.description, func.count(User.id))
            .outerjoin(User, User.role == Role.name)
            .group_by(Role.id, Role.name, Role.description)
            .order_by(Role.id)
            .all()
        )
        return [
            {"role": name, "description": description, "user_count": count}
            for name, description, count in rows
        ]

    @staticmethod
    def permission_audit(db: Session) -> List[Dict[str, Any]]:
        """Every permission with the number of roles it is granted to."""
        rows = (
            db.query(
                Permission.name, Permission.description, Permission.category,
                Permission.status, func.count(RoleGrant.role_id),
            )
            .outerjoin(RoleGrant, RoleGrant.permission_id == Permission.id)
            .group_by(
                Permission.id, Permission.name, Permission.description,
                Permission.category, Permission.status,
            )
            .order_by(Permission.id)
            .all()
        )
        return [
            {
                "name": name,
                "description": description,
                "category": category,
                "status": status,
                "role_count": count,
            }
            for name, description, category, status, count in rows
        ]

    @staticmethod
    def security_summary(db: Session) -> List[Dict[str, Any]]:
        """Warning and critical events grouped by action and severity."""
        count = func.count(AuditEvent.id).label("count")
        rows = (
            db.query(AuditEvent.action, AuditEvent.severity, count)
            .filter(AuditEvent.severity.in_(ALERT_SEVERITIES))
            .group_by(AuditEvent.action, AuditEvent.severity)
            .order_by(count.desc(), AuditEvent.action)
            .all()
        )
        return [{"action": a, "severity": s, "count": c} for a, s, c in rows]

    @staticmethod
    def system_usage(db: Session) -> List[Dict[str, Any]]:
        """Event counts per action."""
        count = func.count(AuditEvent.id).label("count")
        rows = (
            db.query(AuditEvent.action, count)
            .group_by(AuditEvent.action)
            .order_by(count.desc(), AuditEvent.action)
            .all()
        )
        return [{"action": a, "count": c} for a, c in rows]

    @staticmethod
    def compliance(db: Session) -> List[Dict[str, Any]]:
        """Per-user permission counts through the user's role label."""
        rows = (
            db.query(
                User.name, User.email, User.role, User.status,
                func.count(Permission.id),
            )
            .outerjoin(Role, Role.name == User.role)
            .outerjoin(RoleGrant, RoleGrant.role_id == Role.id)
            .outerjoin(Permission, Permission.id == RoleGrant.permission_id)
            .group_by(User.id, User.name, User.email, User.role, User.status)
            .order_by(User.id)
            .all()
        )
        return [
            {
                "name": name,
                "email": email,
                "role": role,
                "status": status,
                "permissions_count": count,
            }
            for name, email, role, status, count in rows
        ]

    @staticmethod
    def export_rows(db: Session, report_type: Optional[str]) -> Tuple[str, List[Dict[str, Any]]]:
        """Rows and download filename for a CSV report type.

        Unknown or missing types fall back to the user listing.
        """
        if report_type == "user-activity":
            # The export covers the whole trail, not only session events
            events = audit_service.query(db, limit=None)
            rows = [
                {
                    "id": e.id,
                    "timestamp": e.timestamp,
                    "user": e.user_email,
                    "action": e.action,
                    "resource": e.resource,
                    "details": e.details,
                    "severity": e.severity,
                }
                for e in events
            ]
            filename = "user-activity-report.csv"
        elif report_type == "role-assignment":
            rows, filename = ReportService.role_assignment(db), "role-assignment-report.csv"
        elif report_type == "permission-audit":
            rows, filename = ReportService.permission_audit(db), "permission-audit-report.csv"
        elif report_type == "security-summary":
            rows = [
                {"action": r["action"], "severity": r["severity"], "event_count": r["count"]}
                for r in ReportService.security_summary(db)
            ]
            filename = "security-summary-report.csv"
        elif report_type == "compliance":
            rows, filename = ReportService.compliance(db), "compliance-report.csv"
        else:
            users = db.query(User).order_by(User.id).all()
            rows = [
                {
                    "id": u.id,
                    "name": u.name,
                    "email": u.email,
                    "role": u.role,
                    "status": u.status,
                    "created_at": u.created_at,
                }
                for u in users
            ]
            filename = "users-report.csv"

        if not rows:
            raise NotFoundError("No data available for this report")
        return filename, rows


report_service = ReportService()
