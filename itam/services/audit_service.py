"""
Audit logging service

Entries are added to the caller's session and flushed, never committed
here: the audit row commits or rolls back together with the change it
describes.
"""
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from itam.models.audit_log import AuditAction, AuditEntityType, AuditLog
from itam.utils.datetime_utils import now_utc
from itam.utils.json_serializer import sanitize_for_json


def compute_changes(
    old_values: Optional[Dict[str, Any]],
    new_values: Optional[Dict[str, Any]],
) -> Optional[Dict[str, Dict[str, Any]]]:
    """
    Field-level diff between two snapshots

    Returns:
        {field: {"old": ..., "new": ...}} for fields whose value differs,
        or None when either side is missing
    """
    if old_values is None or new_values is None:
        return None
    changes = {}
    for key in sorted(set(old_values) | set(new_values)):
        if key in ("updated_at",):
            continue
        old, new = old_values.get(key), new_values.get(key)
        if old != new:
            changes[key] = {"old": old, "new": new}
    return changes


def log_audit(
    db: Session,
    actor: Optional[Any],
    action: AuditAction,
    entity_type: AuditEntityType,
    entity_id: int,
    old_values: Optional[Dict[str, Any]] = None,
    new_values: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """
    Create an audit log entry

    Args:
        db: Database session (the operation's open transaction)
        actor: Profile performing the action, or None for system actions
        action: create / update / delete / assign / unassign
        entity_type: Type of entity touched
        entity_id: ID of the affected entity
        old_values: Snapshot before the change (optional)
        new_values: Snapshot after the change (optional)

    Returns:
        Created AuditLog instance
    """
    old_safe = sanitize_for_json(old_values) if old_values is not None else None
    new_safe = sanitize_for_json(new_values) if new_values is not None else None

    # Explicitly set timestamp to avoid SQLite issues with server_default
    audit_log = AuditLog(
        user_id=getattr(actor, "id", None),
        user_email=getattr(actor, "email", None),
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        old_values=old_safe,
        new_values=new_safe,
        changes=compute_changes(old_safe, new_safe),
        timestamp=now_utc(),
    )
    db.add(audit_log)
    db.flush()
    return audit_log


def list_audit_logs(
    db: Session,
    action: Optional[AuditAction] = None,
    entity_type: Optional[AuditEntityType] = None,
    user_id: Optional[int] = None,
    limit: int = 100,
) -> List[AuditLog]:
    """Audit entries, newest first."""
    query = db.query(AuditLog)
    if action is not None:
        query = query.filter(AuditLog.action == action)
    if entity_type is not None:
        query = query.filter(AuditLog.entity_type == entity_type)
    if user_id is not None:
        query = query.filter(AuditLog.user_id == user_id)
    return query.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).limit(limit).all()


def get_entity_audit_trail(db: Session, entity_type: AuditEntityType, entity_id: int) -> List[AuditLog]:
    return (
        db.query(AuditLog)
        .filter(AuditLog.entity_type == entity_type, AuditLog.entity_id == entity_id)
        .order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
        .all()
    )


def recent_activity(db: Session, limit: int = 10) -> List[AuditLog]:
    return list_audit_logs(db, limit=limit)
