"""
Asset service: inventory records, the asset status guard, storage units,
location moves and book value
"""
import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from itam.core.config import settings
from itam.core.exceptions import (
    CannotRetireAssignedAssetError,
    DuplicateAssetError,
    NotFoundError,
    ReadonlyAssetError,
    ValidationFailedError,
)
from itam.db.unit_of_work import atomic
from itam.models.asset import (
    Asset,
    AssetStatus,
    AssetType,
    Ownership,
    StorageHealth,
    StorageType,
    StorageUnit,
)
from itam.models.audit_log import AuditAction, AuditEntityType
from itam.models.location import Location, LocationHistory
from itam.models.maintenance import MaintenanceEvent
from itam.services.audit_service import log_audit
from itam.services.lifecycle import (
    RETIREMENT_STATUSES,
    OperationResult,
    count_open_assignments_for_asset,
    invalidation_keys,
    open_assignment_for_asset,
    status_value,
)
from itam.services import assignment_service
from itam.utils.datetime_utils import now_utc, today_utc, years_between
from itam.utils.json_serializer import model_snapshot

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")


def _asset_keys(asset_id: int, location_ids: Optional[List[int]] = None) -> List[str]:
    keys = invalidation_keys(asset_ids=[asset_id])
    location_ids = [i for i in (location_ids or []) if i is not None]
    if location_ids:
        keys += [f"location:{i}" for i in dict.fromkeys(location_ids)] + ["locations"]
    return keys


def get_asset(db: Session, asset_id: int, lock: bool = False) -> Asset:
    query = db.query(Asset).filter(Asset.id == asset_id)
    if lock:
        query = query.with_for_update()
    asset = query.first()
    if not asset:
        raise NotFoundError("asset", asset_id)
    return asset


def ensure_not_readonly(asset: Asset) -> None:
    if asset.is_readonly:
        logger.warning("Rejected edit of read-only asset %s", asset.id)
        raise ReadonlyAssetError(asset.id)


def _ensure_unique(db: Session, field: str, value: Any, exclude_id: Optional[int] = None) -> None:
    if value is None:
        return
    query = db.query(Asset).filter(getattr(Asset, field) == value)
    if exclude_id is not None:
        query = query.filter(Asset.id != exclude_id)
    if query.first():
        raise DuplicateAssetError(field, value)


def _get_active_location(db: Session, location_id: int) -> Location:
    location = db.query(Location).filter(Location.id == location_id).first()
    if not location:
        raise NotFoundError("location", location_id)
    if not location.is_active:
        raise ValidationFailedError(f"Location {location_id} is deactivated", location_id=location_id)
    return location


def _guard_status_change(db: Session, asset: Asset, new_status: AssetStatus) -> None:
    """Retirement-like statuses require the asset to have no open assignment."""
    if new_status in RETIREMENT_STATUSES:
        open_count = count_open_assignments_for_asset(db, asset.id)
        if open_count > 0:
            logger.warning(
                "Rejected status %s for asset %s: %d open assignment(s)",
                status_value(new_status), asset.id, open_count,
            )
            raise CannotRetireAssignedAssetError(asset.id, status_value(new_status), open_count)


def _apply_status(asset: Asset, new_status: AssetStatus) -> None:
    asset.status = new_status
    if new_status == AssetStatus.DISPOSED:
        asset.is_readonly = True


def _open_location_row(
    db: Session, actor: Optional[Any], asset: Asset, location_id: int, notes: Optional[str] = None,
) -> LocationHistory:
    row = LocationHistory(
        asset_id=asset.id,
        location_id=location_id,
        start_date=now_utc(),
        moved_by=getattr(actor, "id", None),
        notes=notes,
    )
    db.add(row)
    asset.current_location_id = location_id
    db.flush()
    return row


def create_asset(db: Session, actor: Optional[Any], data: Dict[str, Any]) -> OperationResult:
    """
    Register a new asset.

    An initial location opens the asset's location history.

    Raises:
        DuplicateAssetError: asset_tag or serial_number already in use
    """
    data = dict(data)
    storage_units = data.pop("storage_units", None) or []
    location_id = data.pop("current_location_id", None)
    status = data["status"] = data.get("status") or AssetStatus.PLANNED
    if status == AssetStatus.DISPOSED:
        raise ValidationFailedError("An asset cannot be created as disposed")
    if status == AssetStatus.IN_USE:
        raise ValidationFailedError("Assets enter in_use through an assignment")

    with atomic(
        db, "create_asset",
        asset_tag=data.get("asset_tag"), serial_number=data.get("serial_number"),
    ):
        _ensure_unique(db, "asset_tag", data.get("asset_tag"))
        _ensure_unique(db, "serial_number", data.get("serial_number"))
        if location_id is not None:
            _get_active_location(db, location_id)

        asset = Asset(
            **data,
            created_by=getattr(actor, "id", None),
            updated_by=getattr(actor, "id", None),
        )
        db.add(asset)
        db.flush()
        for unit in storage_units:
            db.add(StorageUnit(asset_id=asset.id, **unit))
        if location_id is not None:
            _open_location_row(db, actor, asset, location_id, notes="Initial placement")
        db.flush()
        log_audit(
            db, actor, AuditAction.CREATE, AuditEntityType.ASSET, asset.id,
            new_values=model_snapshot(asset),
        )

    db.refresh(asset)
    logger.info("Asset %s (%s) created", asset.id, asset.asset_tag)
    return OperationResult(asset, _asset_keys(asset.id, [location_id]))


def list_assets(
    db: Session,
    status: Optional[AssetStatus] = None,
    asset_type: Optional[AssetType] = None,
    ownership: Optional[Ownership] = None,
    location_id: Optional[int] = None,
    search: Optional[str] = None,
) -> List[Asset]:
    query = db.query(Asset)
    if status is not None:
        query = query.filter(Asset.status == status)
    if asset_type is not None:
        query = query.filter(Asset.type == asset_type)
    if ownership is not None:
        query = query.filter(Asset.ownership == ownership)
    if location_id is not None:
        query = query.filter(Asset.current_location_id == location_id)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            Asset.asset_tag.ilike(pattern),
            Asset.serial_number.ilike(pattern),
            Asset.hostname.ilike(pattern),
            Asset.manufacturer.ilike(pattern),
            Asset.model.ilike(pattern),
        ))
    return query.order_by(Asset.asset_tag).all()


def get_asset_with_history(db: Session, asset_id: int, as_of: Optional[date] = None) -> Dict[str, Any]:
    """Asset detail plus its assignment, maintenance and location history."""
    asset = get_asset(db, asset_id)
    maintenance = (
        db.query(MaintenanceEvent)
        .filter(MaintenanceEvent.asset_id == asset_id)
        .order_by(MaintenanceEvent.date.desc(), MaintenanceEvent.id.desc())
        .all()
    )
    locations = (
        db.query(LocationHistory)
        .filter(LocationHistory.asset_id == asset_id)
        .order_by(LocationHistory.start_date.desc(), LocationHistory.id.desc())
        .all()
    )
    return {
        "asset": asset,
        "current_assignment": open_assignment_for_asset(db, asset_id),
        "assignments": assignment_service.list_assignments(db, asset_id=asset_id),
        "maintenance_events": maintenance,
        "location_history": locations,
        "book_value": calculate_book_value(asset, as_of=as_of),
    }


def update_asset_status(
    db: Session,
    actor: Optional[Any],
    asset_id: int,
    new_status: AssetStatus,
) -> OperationResult:
    """
    Change an asset's status directly.

    Raises:
        ReadonlyAssetError: asset is disposed
        CannotRetireAssignedAssetError: retired/disposed/quarantined while an
            open assignment exists
    """
    with atomic(db, "update_asset_status", asset_id=asset_id):
        asset = get_asset(db, asset_id, lock=True)
        ensure_not_readonly(asset)
        _guard_status_change(db, asset, new_status)

        old_values = model_snapshot(asset)
        _apply_status(asset, new_status)
        asset.updated_by = getattr(actor, "id", None)
        db.flush()
        log_audit(
            db, actor, AuditAction.UPDATE, AuditEntityType.ASSET, asset.id,
            old_values=old_values, new_values=model_snapshot(asset),
        )

    db.refresh(asset)
    logger.info("Asset %s status -> %s", asset_id, status_value(new_status))
    return OperationResult(asset, _asset_keys(asset_id))


def update_asset(
    db: Session,
    actor: Optional[Any],
    asset_id: int,
    fields: Dict[str, Any],
) -> OperationResult:
    """
    Edit asset fields.

    A read-only asset rejects every edit, whatever the fields. A ``status``
    field goes through the same guard as ``update_asset_status``.
    """
    fields = dict(fields)
    with atomic(
        db, "update_asset",
        asset_id=asset_id, asset_tag=fields.get("asset_tag"), serial_number=fields.get("serial_number"),
    ):
        asset = get_asset(db, asset_id, lock=True)
        ensure_not_readonly(asset)

        new_status = fields.pop("status", None)
        if new_status is not None and new_status != asset.status:
            _guard_status_change(db, asset, new_status)
        if "asset_tag" in fields:
            _ensure_unique(db, "asset_tag", fields["asset_tag"], exclude_id=asset.id)
        if "serial_number" in fields:
            _ensure_unique(db, "serial_number", fields["serial_number"], exclude_id=asset.id)

        old_values = model_snapshot(asset)
        for key, value in fields.items():
            setattr(asset, key, value)
        if new_status is not None:
            _apply_status(asset, new_status)
        asset.updated_by = getattr(actor, "id", None)
        db.flush()
        log_audit(
            db, actor, AuditAction.UPDATE, AuditEntityType.ASSET, asset.id,
            old_values=old_values, new_values=model_snapshot(asset),
        )

    db.refresh(asset)
    return OperationResult(asset, _asset_keys(asset_id))


def add_storage_unit(
    db: Session,
    actor: Optional[Any],
    asset_id: int,
    storage_type: StorageType,
    capacity: str,
    health: StorageHealth = StorageHealth.HEALTHY,
) -> OperationResult:
    with atomic(db, "add_storage_unit", asset_id=asset_id):
        asset = get_asset(db, asset_id, lock=True)
        ensure_not_readonly(asset)
        unit = StorageUnit(asset_id=asset.id, type=storage_type, capacity=capacity, health=health)
        db.add(unit)
        db.flush()
        log_audit(
            db, actor, AuditAction.UPDATE, AuditEntityType.ASSET, asset.id,
            new_values={"storage_unit": model_snapshot(unit)},
        )

    db.refresh(unit)
    return OperationResult(unit, _asset_keys(asset_id))


def move_asset_to_location(
    db: Session,
    actor: Optional[Any],
    asset_id: int,
    location_id: int,
    notes: Optional[str] = None,
) -> OperationResult:
    """
    Move an asset: close its open location history row, open a new one and
    point ``current_location_id`` at the new location, in one transaction.
    """
    with atomic(db, "move_asset_to_location", asset_id=asset_id):
        asset = get_asset(db, asset_id, lock=True)
        ensure_not_readonly(asset)
        _get_active_location(db, location_id)
        previous_location_id = asset.current_location_id
        if previous_location_id == location_id:
            raise ValidationFailedError(
                f"Asset {asset_id} is already at location {location_id}",
                asset_id=asset_id,
            )

        open_row = (
            db.query(LocationHistory)
            .filter(LocationHistory.asset_id == asset_id, LocationHistory.end_date.is_(None))
            .with_for_update()
            .first()
        )
        if open_row is not None:
            open_row.end_date = now_utc()
            # Close before opening: at most one open row per asset
            db.flush()

        old_values = model_snapshot(asset)
        row = _open_location_row(db, actor, asset, location_id, notes)
        asset.updated_by = getattr(actor, "id", None)
        db.flush()
        log_audit(
            db, actor, AuditAction.UPDATE, AuditEntityType.ASSET, asset.id,
            old_values=old_values, new_values=model_snapshot(asset),
        )

    db.refresh(row)
    logger.info("Asset %s moved from location %s to %s", asset_id, previous_location_id, location_id)
    return OperationResult(row, _asset_keys(asset_id, [previous_location_id, location_id]))


def calculate_book_value(asset: Asset, as_of: Optional[date] = None) -> Optional[Decimal]:
    """
    Straight-line depreciated value, floored at zero.

    Returns None when the purchase cost or date is unknown.
    """
    if asset.purchase_cost is None or asset.purchase_date is None:
        return None
    as_of = as_of or today_utc()
    cost = Decimal(str(asset.purchase_cost))
    life = asset.useful_life_years or settings.DEFAULT_USEFUL_LIFE_YEARS
    age = max(years_between(asset.purchase_date, as_of), 0.0)
    value = cost - cost / Decimal(life) * Decimal(str(age))
    return max(value, Decimal("0")).quantize(_CENT, rounding=ROUND_HALF_UP)
