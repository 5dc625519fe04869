"""
Location service
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from itam.core.exceptions import NotFoundError, PreconditionError
from itam.db.unit_of_work import atomic
from itam.models.asset import Asset
from itam.models.audit_log import AuditAction, AuditEntityType
from itam.models.location import Location
from itam.services.audit_service import log_audit
from itam.services.lifecycle import OperationResult
from itam.utils.json_serializer import model_snapshot

logger = logging.getLogger(__name__)


def _keys(location_id: int) -> List[str]:
    return [f"location:{location_id}", "locations"]


def get_location(db: Session, location_id: int) -> Location:
    location = db.query(Location).filter(Location.id == location_id).first()
    if not location:
        raise NotFoundError("location", location_id)
    return location


def create_location(db: Session, actor: Optional[Any], data: Dict[str, Any]) -> OperationResult:
    with atomic(db, "create_location"):
        location = Location(
            **data,
            is_active=True,
            created_by=getattr(actor, "id", None),
            updated_by=getattr(actor, "id", None),
        )
        db.add(location)
        db.flush()
        log_audit(
            db, actor, AuditAction.CREATE, AuditEntityType.LOCATION, location.id,
            new_values=model_snapshot(location),
        )

    db.refresh(location)
    logger.info("Location %s (%s) created", location.id, location.name)
    return OperationResult(location, _keys(location.id))


def update_location(db: Session, actor: Optional[Any], location_id: int, fields: Dict[str, Any]) -> OperationResult:
    with atomic(db, "update_location", location_id=location_id):
        location = get_location(db, location_id)
        old_values = model_snapshot(location)
        for key, value in fields.items():
            setattr(location, key, value)
        location.updated_by = getattr(actor, "id", None)
        db.flush()
        log_audit(
            db, actor, AuditAction.UPDATE, AuditEntityType.LOCATION, location.id,
            old_values=old_values, new_values=model_snapshot(location),
        )

    db.refresh(location)
    return OperationResult(location, _keys(location_id))


def deactivate_location(db: Session, actor: Optional[Any], location_id: int) -> OperationResult:
    """
    Soft-delete a location.

    Locations are never removed: history rows keep pointing at them.
    A location that still holds assets cannot be deactivated.
    """
    with atomic(db, "deactivate_location", location_id=location_id):
        location = get_location(db, location_id)
        if not location.is_active:
            raise PreconditionError(f"Location {location_id} is already inactive", location_id=location_id)
        held = db.query(Asset).filter(Asset.current_location_id == location_id).count()
        if held:
            raise PreconditionError(
                f"Location {location_id} still holds {held} asset(s). Move them before deactivating.",
                location_id=location_id,
            )
        old_values = model_snapshot(location)
        location.is_active = False
        location.updated_by = getattr(actor, "id", None)
        db.flush()
        log_audit(
            db, actor, AuditAction.DELETE, AuditEntityType.LOCATION, location.id,
            old_values=old_values, new_values=model_snapshot(location),
        )

    db.refresh(location)
    logger.info("Location %s deactivated", location_id)
    return OperationResult(location, _keys(location_id))


def list_locations(db: Session, include_inactive: bool = False) -> List[Location]:
    query = db.query(Location)
    if not include_inactive:
        query = query.filter(Location.is_active.is_(True))
    return query.order_by(Location.name, Location.id).all()


def get_location_with_assets(db: Session, location_id: int) -> Dict[str, Any]:
    location = get_location(db, location_id)
    assets = (
        db.query(Asset)
        .filter(Asset.current_location_id == location_id)
        .order_by(Asset.asset_tag)
        .all()
    )
    return {"location": location, "assets": assets, "asset_count": len(assets)}
