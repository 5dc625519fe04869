"""
Assignment lifecycle rules

States:
    pending_acceptance -> active -> pending_return -> returned
    pending_acceptance | active -> returned

``returned`` is terminal. An assignment is *open* while it is
pending_acceptance or active; at most one open assignment exists per asset.

This module holds the pure rules (transition table, assignability
predicates, role affordances). ``assignment_service`` applies them against
the database.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from itam.core.exceptions import AssetNotAssignableError, InvalidTransitionError
from itam.models.asset import Asset, AssetStatus
from itam.models.assignment import Assignment, AssignmentStatus
from itam.models.employee import Employee, EmploymentStatus
from itam.models.user import AppRole


OPEN_STATUSES: FrozenSet[AssignmentStatus] = frozenset({
    AssignmentStatus.PENDING_ACCEPTANCE,
    AssignmentStatus.ACTIVE,
})

ASSIGNABLE_ASSET_STATUSES: FrozenSet[AssetStatus] = frozenset({
    AssetStatus.SPARE,
    AssetStatus.ORDERED,
})

# Statuses an asset may take when its assignment is formally closed
CLOSE_TARGET_STATUSES: FrozenSet[AssetStatus] = frozenset({
    AssetStatus.SPARE,
    AssetStatus.UNDER_REPAIR,
    AssetStatus.QUARANTINED,
    AssetStatus.RETIRED,
})

# Statuses that cannot coexist with an open assignment
RETIREMENT_STATUSES: FrozenSet[AssetStatus] = frozenset({
    AssetStatus.RETIRED,
    AssetStatus.DISPOSED,
    AssetStatus.QUARANTINED,
})

ACCEPT = "accept"
REQUEST_RETURN = "request_return"
RETURN = "return"
CLOSE = "close"
REPLACE = "replace"

# action -> (allowed source statuses, target status)
TRANSITIONS: Dict[str, Tuple[FrozenSet[AssignmentStatus], AssignmentStatus]] = {
    ACCEPT: (frozenset({AssignmentStatus.PENDING_ACCEPTANCE}), AssignmentStatus.ACTIVE),
    REQUEST_RETURN: (frozenset({AssignmentStatus.ACTIVE}), AssignmentStatus.PENDING_RETURN),
    RETURN: (
        frozenset({
            AssignmentStatus.PENDING_ACCEPTANCE,
            AssignmentStatus.ACTIVE,
            AssignmentStatus.PENDING_RETURN,
        }),
        AssignmentStatus.RETURNED,
    ),
    CLOSE: (
        frozenset({
            AssignmentStatus.PENDING_ACCEPTANCE,
            AssignmentStatus.ACTIVE,
            AssignmentStatus.PENDING_RETURN,
        }),
        AssignmentStatus.RETURNED,
    ),
    REPLACE: (frozenset(OPEN_STATUSES), AssignmentStatus.RETURNED),
}

# Roles offered each action; admin is offered everything
ACTION_ROLES: Dict[str, FrozenSet[str]] = {
    ACCEPT: frozenset({AppRole.IT.value, AppRole.HR.value}),
    REQUEST_RETURN: frozenset({AppRole.IT.value}),
    RETURN: frozenset({AppRole.IT.value}),
    CLOSE: frozenset({AppRole.IT.value}),
    REPLACE: frozenset({AppRole.IT.value}),
}


@dataclass
class OperationResult:
    """Outcome of a mutating operation plus the cache keys it invalidates."""

    record: Any
    invalidates: List[str] = field(default_factory=list)
    related: Optional[Dict[str, Any]] = None


def invalidation_keys(
    assignment_ids: Iterable[int] = (),
    asset_ids: Iterable[int] = (),
    employee_ids: Iterable[int] = (),
) -> List[str]:
    """
    Entity keys first, then collection keys, without duplicates.

    >>> invalidation_keys([12], [4], [7])
    ['assignment:12', 'asset:4', 'employee:7', 'assignments', 'assets', 'employees']
    """
    keys: List[str] = []
    collections: List[str] = []
    for prefix, ids in (("assignment", assignment_ids), ("asset", asset_ids), ("employee", employee_ids)):
        ids = [i for i in ids if i is not None]
        for entity_id in ids:
            key = f"{prefix}:{entity_id}"
            if key not in keys:
                keys.append(key)
        if ids:
            collections.append(f"{prefix}s")
    return keys + collections


def status_value(status: Any) -> str:
    return status.value if hasattr(status, "value") else str(status)


def is_open(assignment: Assignment) -> bool:
    return assignment.status in OPEN_STATUSES


def ensure_transition(assignment: Assignment, action: str) -> AssignmentStatus:
    """
    Check ``action`` is legal from the assignment's current status.

    Returns:
        The status the assignment moves to

    Raises:
        InvalidTransitionError: the current status does not allow ``action``
    """
    sources, target = TRANSITIONS[action]
    if assignment.status not in sources:
        raise InvalidTransitionError(assignment.id, status_value(assignment.status), action)
    return target


def allowed_actions(assignment: Assignment, roles: Iterable[str]) -> List[str]:
    """Transition actions to offer a caller holding ``roles``. UI affordance only."""
    role_set = {status_value(r) for r in roles}
    is_admin = AppRole.ADMIN.value in role_set
    actions = []
    for action, (sources, _target) in TRANSITIONS.items():
        if assignment.status not in sources:
            continue
        if is_admin or role_set & ACTION_ROLES[action]:
            actions.append(action)
    return actions


def count_open_assignments_for_asset(db: Session, asset_id: int) -> int:
    return db.query(Assignment).filter(
        Assignment.asset_id == asset_id,
        Assignment.status.in_(OPEN_STATUSES),
    ).count()


def count_open_assignments_for_employee(db: Session, employee_id: int) -> int:
    return db.query(Assignment).filter(
        Assignment.employee_id == employee_id,
        Assignment.status.in_(OPEN_STATUSES),
    ).count()


def open_assignment_for_asset(db: Session, asset_id: int) -> Optional[Assignment]:
    """Most recent open assignment of an asset (its *current* assignment)."""
    return (
        db.query(Assignment)
        .filter(Assignment.asset_id == asset_id, Assignment.status.in_(OPEN_STATUSES))
        .order_by(Assignment.start_date.desc(), Assignment.id.desc())
        .first()
    )


def asset_block_reason(db: Session, asset: Asset) -> Optional[str]:
    """Why ``asset`` cannot be assigned, or None if it can."""
    if asset.is_readonly:
        return "asset is read-only"
    if asset.status not in ASSIGNABLE_ASSET_STATUSES:
        return f"status is {status_value(asset.status)}"
    if asset.security_compliant is False:
        return "asset is not security compliant"
    if count_open_assignments_for_asset(db, asset.id) > 0:
        return "asset already has an open assignment"
    return None


def ensure_asset_assignable(db: Session, asset: Asset) -> None:
    reason = asset_block_reason(db, asset)
    if reason is not None:
        raise AssetNotAssignableError(asset.id, reason)


def can_be_assigned(db: Session, asset_id: int) -> bool:
    asset = db.query(Asset).filter(Asset.id == asset_id).first()
    if asset is None:
        return False
    return asset_block_reason(db, asset) is None


def can_receive_assignment(db: Session, employee_id: int) -> bool:
    employee = db.query(Employee).filter(Employee.id == employee_id).first()
    return employee is not None and employee.status == EmploymentStatus.ACTIVE
