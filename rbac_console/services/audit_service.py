"""Audit service: append-only audit trail for security-relevant events."""

import csv
import enum
import functools
import io
import logging
from datetime import date, datetime, time
from typing import Optional, List, Callable, Any, Union

from sqlalchemy.orm import Session

from rbac_console.core.config import settings
from rbac_console.core.exceptions import ValidationError
from rbac_console.models.audit_log import AuditEvent
from rbac_console.models.enums import Severity

logger = logging.getLogger("rbac_console")

SYSTEM_ACTOR = "system"

CSV_HEADERS = ["ID", "Timestamp", "User", "Action", "Resource", "Details", "Severity"]

END_OF_DAY = time(23, 59, 59, 999999)


def _text(value: Union[str, enum.Enum, None]) -> str:
    if isinstance(value, enum.Enum):
        return value.value
    return value or ""


def parse_bound(value: Optional[str], end_of_day: bool = False) -> Optional[datetime]:
    """Parse a ``dateFrom``/``dateTo`` filter value.

    A bare calendar date expands to the start of that day, or to 23:59:59
    of that day when ``end_of_day`` is set. Full ISO timestamps are used
    as given.
    """
    if not value:
        return None
    value = value.strip()
    try:
        if len(value) == 10:
            day = date.fromisoformat(value)
            return datetime.combine(day, END_OF_DAY if end_of_day else time.min)
        return datetime.fromisoformat(value.replace(" ", "T"))
    except ValueError:
        raise ValidationError(f"Invalid date: {value}")


class AuditService:
    """Records and queries immutable audit events."""

    @staticmethod
    def append(
        db: Session,
        actor_email: Optional[str],
        action: Union[str, enum.Enum],
        resource: Union[str, enum.Enum] = "",
        details: str = "",
        severity: Union[str, Severity] = Severity.info,
    ) -> Optional[AuditEvent]:
        """Best-effort write of one audit event.

        Runs after the business change has been committed. A failure here is
        logged and swallowed; it never undoes or fails the primary operation.
        """
        try:
            entry = AuditEvent(
                user_email=actor_email or SYSTEM_ACTOR,
                action=_text(action),
                resource=_text(resource),
                details=details or "",
                severity=_text(severity) or Severity.info.value,
            )
            db.add(entry)
            db.commit()
            return entry
        except Exception:
            db.rollback()
            logger.exception("Failed to write audit event %s by %s", _text(action), actor_email)
            return None

    @staticmethod
    def record(
        db: Session,
        actor_email: str,
        action: str,
        resource: str = "",
        details: str = "",
        severity: str = Severity.info.value,
    ) -> AuditEvent:
        """Insert a manual audit entry and return the stored row."""
        if not action:
            raise ValidationError("Action is required")
        allowed = {s.value for s in Severity}
        if severity and severity not in allowed:
            raise ValidationError(f"Severity must be one of: {', '.join(sorted(allowed))}")

        entry = AuditEvent(
            user_email=actor_email,
            action=action,
            resource=resource or "",
            details=details or "",
            severity=severity or Severity.info.value,
        )
        db.add(entry)
        db.commit()
        db.refresh(entry)
        return entry

    @staticmethod
    def query(
        db: Session,
        action: Optional[str] = None,
        actor: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        limit: Optional[int] = settings.AUDIT_QUERY_LIMIT,
        actions: Optional[List[str]] = None,
    ) -> List[AuditEvent]:
        """Filtered audit events, newest first.

        ``limit=None`` returns every match (used for exports).
        """
        query = db.query(AuditEvent)

        if action and action != "All":
            query = query.filter(AuditEvent.action == action)
        if actions:
            query = query.filter(AuditEvent.action.in_(actions))
        if actor:
            query = query.filter(AuditEvent.user_email.ilike(f"%{actor}%"))

        start = parse_bound(date_from)
        end = parse_bound(date_to, end_of_day=True)
        if start:
            query = query.filter(AuditEvent.timestamp >= start)
        if end:
            query = query.filter(AuditEvent.timestamp <= end)

        query = query.order_by(AuditEvent.id.desc())
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    @staticmethod
    def export_csv(events: List[AuditEvent]) -> str:
        """Render events as CSV with every cell quoted."""
        rows = [
            [e.id, e.timestamp, e.user_email, e.action, e.resource, e.details, e.severity]
            for e in events
        ]
        return to_csv(CSV_HEADERS, rows)

    @staticmethod
    def clear_all(db: Session) -> int:
        """Delete every audit event. The clear itself is not recorded."""
        deleted = db.query(AuditEvent).delete(synchronize_session=False)
        db.commit()
        logger.warning("Audit log cleared (%s events)", deleted)
        return deleted


def to_csv(headers: List[str], rows: List[List[Any]]) -> str:
    """Fully quoted CSV; embedded quotes are doubled."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow(["" if cell is None else cell for cell in row])
    return buffer.getvalue()


def audited(
    action: Union[str, enum.Enum],
    resource: str,
    severity: Union[str, Severity] = Severity.info,
    details: Optional[Callable[[Any], str]] = None,
):
    """Append an audit event after a successful service call.

    The wrapped function is called with ``db`` first; the actor is taken
    from the ``actor`` keyword (defaults to ``system``) and is not passed
    through. ``details`` builds the free-text field from the return value.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(db: Session, *args, actor: Optional[str] = None, **kwargs):
            result = func(db, *args, **kwargs)
            text = details(result) if details else ""
            AuditService.append(db, actor or SYSTEM_ACTOR, action, resource, text, severity)
            return result
        return wrapper
    return decorator


audit_service = AuditService()
