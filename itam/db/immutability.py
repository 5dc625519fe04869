"""
ORM listeners that keep history records append-only

- audit_logs and maintenance_events: no update, no delete
- assignments: no delete; a returned assignment is never modified again
- location_history: no delete; a closed row is never modified again
- assets: no delete; a read-only (disposed) asset is never modified again
"""
import logging

from sqlalchemy import event, inspect

from itam.core.exceptions import ImmutableRecordError
from itam.models.asset import Asset
from itam.models.assignment import Assignment, AssignmentStatus
from itam.models.audit_log import AuditLog
from itam.models.location import LocationHistory
from itam.models.maintenance import MaintenanceEvent

logger = logging.getLogger(__name__)

_registered = False


def _has_column_changes(target) -> bool:
    state = inspect(target)
    return any(state.attrs[attr.key].history.has_changes() for attr in state.mapper.column_attrs)


def _previous_value(target, key: str):
    """Value of ``key`` as it was loaded from the database."""
    history = inspect(target).attrs[key].history
    if history.deleted:
        return history.deleted[0]
    if history.unchanged:
        return history.unchanged[0]
    return None


def _reject_update(mapper, connection, target):
    if _has_column_changes(target):
        raise ImmutableRecordError(target.__tablename__, target.id, "record is append-only")


def _reject_delete(mapper, connection, target):
    raise ImmutableRecordError(target.__tablename__, target.id, "records are never deleted")


def _guard_assignment_update(mapper, connection, target):
    if _previous_value(target, "status") == AssignmentStatus.RETURNED and _has_column_changes(target):
        raise ImmutableRecordError("assignment", target.id, "returned assignments cannot be modified")


def _guard_location_history_update(mapper, connection, target):
    if _previous_value(target, "end_date") is not None and _has_column_changes(target):
        raise ImmutableRecordError("location_history", target.id, "closed location records cannot be modified")


def _guard_asset_update(mapper, connection, target):
    # Disposing sets is_readonly in the same flush; only a previously locked row is rejected
    if _previous_value(target, "is_readonly") is True and _has_column_changes(target):
        raise ImmutableRecordError("asset", target.id, "asset is read-only")


def register_immutability_listeners() -> None:
    """Attach the listeners once per process."""
    global _registered
    if _registered:
        return

    for model in (AuditLog, MaintenanceEvent):
        event.listen(model, "before_update", _reject_update)
    for model in (AuditLog, MaintenanceEvent, Assignment, LocationHistory, Asset):
        event.listen(model, "before_delete", _reject_delete)

    event.listen(Assignment, "before_update", _guard_assignment_update)
    event.listen(LocationHistory, "before_update", _guard_location_history_update)
    event.listen(Asset, "before_update", _guard_asset_update)

    _registered = True
    logger.debug("Immutability listeners registered")
