"""
Maintenance log service (append-only)
"""
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from itam.core.exceptions import NotFoundError
from itam.db.unit_of_work import atomic
from itam.models.asset import StorageHealth
from itam.models.audit_log import AuditAction, AuditEntityType
from itam.models.maintenance import MaintenanceEvent, MaintenanceType
from itam.services.asset_service import ensure_not_readonly, get_asset
from itam.services.audit_service import log_audit
from itam.services.lifecycle import OperationResult, invalidation_keys
from itam.utils.datetime_utils import today_utc
from itam.utils.json_serializer import model_snapshot

logger = logging.getLogger(__name__)


def create_maintenance_event(db: Session, actor: Optional[Any], data: Dict[str, Any]) -> OperationResult:
    """Record a maintenance event against an asset that is not read-only."""
    data = dict(data)
    asset_id = data["asset_id"]
    with atomic(db, "create_maintenance_event", asset_id=asset_id):
        asset = get_asset(db, asset_id)
        ensure_not_readonly(asset)
        event = MaintenanceEvent(**data, created_by=getattr(actor, "id", None))
        db.add(event)
        db.flush()
        log_audit(
            db, actor, AuditAction.CREATE, AuditEntityType.MAINTENANCE, event.id,
            new_values=model_snapshot(event),
        )

    db.refresh(event)
    logger.info("Maintenance event %s (%s) logged for asset %s", event.id, event.type.value, asset_id)
    keys = [f"maintenance:{event.id}", "maintenance"] + invalidation_keys(asset_ids=[asset_id])
    return OperationResult(event, keys)


def log_formatting(
    db: Session,
    actor: Optional[Any],
    asset_id: int,
    performed_by: str,
    description: str = "Disk formatted and reimaged",
) -> OperationResult:
    """Shortcut for the formatting step after a return: dated today, disk healthy."""
    return create_maintenance_event(db, actor, {
        "asset_id": asset_id,
        "type": MaintenanceType.FORMATTING,
        "date": today_utc(),
        "performed_by": performed_by,
        "description": description,
        "resulting_health": StorageHealth.HEALTHY,
    })


def list_maintenance_events(
    db: Session,
    event_type: Optional[MaintenanceType] = None,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
) -> List[MaintenanceEvent]:
    """All maintenance events, newest first."""
    query = db.query(MaintenanceEvent)
    if event_type is not None:
        query = query.filter(MaintenanceEvent.type == event_type)
    if from_date is not None:
        query = query.filter(MaintenanceEvent.date >= from_date)
    if to_date is not None:
        query = query.filter(MaintenanceEvent.date <= to_date)
    return query.order_by(MaintenanceEvent.date.desc(), MaintenanceEvent.id.desc()).all()


def get_maintenance_event(db: Session, event_id: int) -> MaintenanceEvent:
    event = db.query(MaintenanceEvent).filter(MaintenanceEvent.id == event_id).first()
    if not event:
        raise NotFoundError("maintenance event", event_id)
    return event


def get_asset_maintenance_history(db: Session, asset_id: int) -> List[MaintenanceEvent]:
    get_asset(db, asset_id)
    return (
        db.query(MaintenanceEvent)
        .filter(MaintenanceEvent.asset_id == asset_id)
        .order_by(MaintenanceEvent.date.desc(), MaintenanceEvent.id.desc())
        .all()
    )
