"""
Assignment lifecycle engine

Every mutating operation runs in one transaction (``atomic``): the
assignment write, the coupled asset status change and the audit entries
commit together or not at all. Preconditions are checked inside the same
transaction with the asset row locked (``SELECT ... FOR UPDATE`` where the
database supports it); the partial unique index on open assignments backs
the duplicate check for writers that race past it.
"""
import logging
from datetime import date
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from itam.core.exceptions import (
    DuplicateActiveAssignmentError,
    EmployeeInactiveError,
    ImmutableRecordError,
    NotFoundError,
    ValidationFailedError,
)
from itam.db.unit_of_work import atomic
from itam.models.asset import Asset, AssetStatus
from itam.models.assignment import Assignment, AssignmentStatus, ChangeType
from itam.models.audit_log import AuditAction, AuditEntityType
from itam.models.employee import Employee, EmploymentStatus
from itam.services.audit_service import log_audit
from itam.services.lifecycle import (
    ACCEPT,
    CLOSE,
    CLOSE_TARGET_STATUSES,
    OPEN_STATUSES,
    REPLACE,
    REQUEST_RETURN,
    RETURN,
    OperationResult,
    ensure_asset_assignable,
    ensure_transition,
    invalidation_keys,
    open_assignment_for_asset,
    status_value,
)
from itam.utils.datetime_utils import now_utc, today_utc
from itam.utils.json_serializer import model_snapshot

logger = logging.getLogger(__name__)


def _actor_id(actor: Optional[Any]) -> Optional[int]:
    return getattr(actor, "id", None)


def _get_assignment(db: Session, assignment_id: int, lock: bool = False) -> Assignment:
    query = db.query(Assignment).filter(Assignment.id == assignment_id)
    if lock:
        query = query.with_for_update()
    assignment = query.first()
    if not assignment:
        raise NotFoundError("assignment", assignment_id)
    return assignment


def _get_asset(db: Session, asset_id: int, lock: bool = False) -> Asset:
    query = db.query(Asset).filter(Asset.id == asset_id)
    if lock:
        query = query.with_for_update()
    asset = query.first()
    if not asset:
        raise NotFoundError("asset", asset_id)
    return asset


def _get_employee(db: Session, employee_id: int) -> Employee:
    employee = db.query(Employee).filter(Employee.id == employee_id).first()
    if not employee:
        raise NotFoundError("employee", employee_id)
    return employee


def _ensure_employee_active(employee: Employee) -> None:
    if employee.status != EmploymentStatus.ACTIVE:
        logger.warning("Assignment rejected: employee %s is %s", employee.id, status_value(employee.status))
        raise EmployeeInactiveError(employee.id)


def _ensure_no_open_assignment(db: Session, asset: Asset) -> None:
    existing = open_assignment_for_asset(db, asset.id)
    if existing is not None:
        logger.warning("Assignment rejected: asset %s already held by assignment %s", asset.id, existing.id)
        raise DuplicateActiveAssignmentError(asset.id, existing.id)


def _open_assignment(
    db: Session,
    actor: Optional[Any],
    asset: Asset,
    employee: Employee,
    start_date: date,
    notes: Optional[str],
) -> Assignment:
    assignment = Assignment(
        asset_id=asset.id,
        employee_id=employee.id,
        status=AssignmentStatus.PENDING_ACCEPTANCE,
        start_date=start_date,
        notes=notes,
        created_by=_actor_id(actor),
    )
    db.add(assignment)
    db.flush()
    log_audit(
        db, actor, AuditAction.ASSIGN, AuditEntityType.ASSIGNMENT, assignment.id,
        new_values=model_snapshot(assignment),
    )
    return assignment


def _set_asset_status(db: Session, actor: Optional[Any], asset: Asset, new_status: AssetStatus) -> None:
    old_values = model_snapshot(asset)
    asset.status = new_status
    asset.updated_by = _actor_id(actor)
    db.flush()
    log_audit(
        db, actor, AuditAction.UPDATE, AuditEntityType.ASSET, asset.id,
        old_values=old_values, new_values=model_snapshot(asset),
    )


def _ensure_end_after_start(assignment: Assignment, end_date: date) -> None:
    if end_date < assignment.start_date:
        raise ValidationFailedError(
            "end_date cannot be before the assignment start_date",
            assignment_id=assignment.id,
        )


def _close_assignment(
    db: Session,
    actor: Optional[Any],
    assignment: Assignment,
    end_date: date,
    change_type: Optional[ChangeType] = None,
    change_reason: Optional[str] = None,
    return_condition: Optional[str] = None,
    damage_notes: Optional[str] = None,
    requires_formatting: bool = False,
) -> None:
    old_values = model_snapshot(assignment)
    assignment.status = AssignmentStatus.RETURNED
    assignment.end_date = end_date
    assignment.returned_at = now_utc()
    assignment.returned_by = _actor_id(actor)
    assignment.change_type = change_type
    assignment.change_reason = change_reason
    assignment.return_condition = return_condition
    assignment.damage_notes = damage_notes
    assignment.requires_formatting = requires_formatting
    db.flush()
    log_audit(
        db, actor, AuditAction.UNASSIGN, AuditEntityType.ASSIGNMENT, assignment.id,
        old_values=old_values, new_values=model_snapshot(assignment),
    )


def _keys_for(*assignments: Assignment) -> List[str]:
    return invalidation_keys(
        [a.id for a in assignments],
        [a.asset_id for a in assignments],
        [a.employee_id for a in assignments],
    )


def create_assignment(
    db: Session,
    actor: Optional[Any],
    asset_id: int,
    employee_id: int,
    start_date: date,
    notes: Optional[str] = None,
) -> OperationResult:
    """
    Assign an asset to an employee.

    The new assignment starts in pending_acceptance and the asset moves to
    in_use in the same transaction.

    Raises:
        NotFoundError: asset or employee does not exist
        EmployeeInactiveError: employee has left
        DuplicateActiveAssignmentError: asset already has an open assignment
        AssetNotAssignableError: asset status (or security posture) excludes it
    """
    with atomic(db, "create_assignment", asset_id=asset_id):
        employee = _get_employee(db, employee_id)
        _ensure_employee_active(employee)
        asset = _get_asset(db, asset_id, lock=True)
        _ensure_no_open_assignment(db, asset)
        ensure_asset_assignable(db, asset)

        assignment = _open_assignment(db, actor, asset, employee, start_date, notes)
        _set_asset_status(db, actor, asset, AssetStatus.IN_USE)

    db.refresh(assignment)
    logger.info("Assignment %s created: asset %s -> employee %s", assignment.id, asset_id, employee_id)
    return OperationResult(assignment, _keys_for(assignment))


def accept_assignment(
    db: Session,
    actor: Optional[Any],
    assignment_id: int,
    notes: Optional[str] = None,
    digital_acknowledgment: bool = False,
) -> OperationResult:
    """Employee acknowledges receipt: pending_acceptance -> active."""
    with atomic(db, "accept_assignment", assignment_id=assignment_id):
        assignment = _get_assignment(db, assignment_id, lock=True)
        target = ensure_transition(assignment, ACCEPT)

        old_values = model_snapshot(assignment)
        assignment.status = target
        assignment.accepted_at = now_utc()
        assignment.accepted_by = _actor_id(actor)
        assignment.acceptance_notes = notes
        assignment.digital_acknowledgment = digital_acknowledgment
        db.flush()
        log_audit(
            db, actor, AuditAction.UPDATE, AuditEntityType.ASSIGNMENT, assignment.id,
            old_values=old_values, new_values=model_snapshot(assignment),
        )

    db.refresh(assignment)
    logger.info("Assignment %s accepted", assignment_id)
    return OperationResult(assignment, _keys_for(assignment))


def request_return(
    db: Session,
    actor: Optional[Any],
    assignment_id: int,
    notes: Optional[str] = None,
) -> OperationResult:
    """Flag an active assignment for return: active -> pending_return."""
    with atomic(db, "request_return", assignment_id=assignment_id):
        assignment = _get_assignment(db, assignment_id, lock=True)
        target = ensure_transition(assignment, REQUEST_RETURN)

        old_values = model_snapshot(assignment)
        assignment.status = target
        if notes is not None:
            assignment.notes = notes
        db.flush()
        log_audit(
            db, actor, AuditAction.UPDATE, AuditEntityType.ASSIGNMENT, assignment.id,
            old_values=old_values, new_values=model_snapshot(assignment),
        )

    db.refresh(assignment)
    logger.info("Return requested for assignment %s", assignment_id)
    return OperationResult(assignment, _keys_for(assignment))


def return_assignment(
    db: Session,
    actor: Optional[Any],
    assignment_id: int,
    return_condition: Optional[str] = None,
    damage_notes: Optional[str] = None,
    requires_formatting: bool = False,
) -> OperationResult:
    """
    Simple hand-back: the assignment ends today, or on its start date when
    that is still in the future.

    The asset status is left as is; the caller follows up with an asset
    status update (or uses ``close_assignment`` to do both at once).
    """
    with atomic(db, "return_assignment", assignment_id=assignment_id):
        assignment = _get_assignment(db, assignment_id, lock=True)
        ensure_transition(assignment, RETURN)
        _close_assignment(
            db, actor, assignment,
            end_date=max(today_utc(), assignment.start_date),
            return_condition=return_condition,
            damage_notes=damage_notes,
            requires_formatting=requires_formatting,
        )

    db.refresh(assignment)
    logger.info("Assignment %s returned", assignment_id)
    return OperationResult(assignment, _keys_for(assignment))


def close_assignment(
    db: Session,
    actor: Optional[Any],
    assignment_id: int,
    end_date: date,
    change_type: ChangeType,
    asset_id: int,
    asset_status_after: AssetStatus,
    change_reason: Optional[str] = None,
    return_condition: Optional[str] = None,
    damage_notes: Optional[str] = None,
    requires_formatting: bool = False,
) -> OperationResult:
    """
    Formal return with a reason.

    The assignment is closed and the asset moves to ``asset_status_after``
    (spare, under_repair, quarantined or retired) in one transaction.
    """
    if asset_status_after not in CLOSE_TARGET_STATUSES:
        raise ValidationFailedError(
            f"asset_status_after must be one of "
            f"{sorted(s.value for s in CLOSE_TARGET_STATUSES)}, got {status_value(asset_status_after)}"
        )

    with atomic(db, "close_assignment", assignment_id=assignment_id, asset_id=asset_id):
        assignment = _get_assignment(db, assignment_id, lock=True)
        if assignment.asset_id != asset_id:
            raise ValidationFailedError(
                f"Assignment {assignment_id} is for asset {assignment.asset_id}, not {asset_id}",
                assignment_id=assignment_id,
            )
        ensure_transition(assignment, CLOSE)
        _ensure_end_after_start(assignment, end_date)
        asset = _get_asset(db, asset_id, lock=True)

        _close_assignment(
            db, actor, assignment,
            end_date=end_date,
            change_type=change_type,
            change_reason=change_reason,
            return_condition=return_condition,
            damage_notes=damage_notes,
            requires_formatting=requires_formatting,
        )
        _set_asset_status(db, actor, asset, asset_status_after)

    db.refresh(assignment)
    logger.info(
        "Assignment %s closed (%s); asset %s -> %s",
        assignment_id, status_value(change_type), asset_id, status_value(asset_status_after),
    )
    return OperationResult(assignment, _keys_for(assignment))


def replace_asset_for_employee(
    db: Session,
    actor: Optional[Any],
    current_assignment_id: int,
    employee_id: int,
    old_asset_id: int,
    new_asset_id: int,
    replacement_date: date,
    reason: Optional[str] = None,
) -> OperationResult:
    """
    Swap the asset an employee holds for another one.

    Four writes in one transaction: close the current assignment
    (change_type=replacement), old asset -> spare, new pending_acceptance
    assignment, new asset -> in_use.

    Returns:
        OperationResult whose record is the new assignment;
        ``related["closed_assignment"]`` is the closed one
    """
    if old_asset_id == new_asset_id:
        raise ValidationFailedError("Replacement asset must differ from the current asset")

    with atomic(db, "replace_asset_for_employee", asset_id=new_asset_id):
        current = _get_assignment(db, current_assignment_id, lock=True)
        if current.employee_id != employee_id or current.asset_id != old_asset_id:
            raise ValidationFailedError(
                f"Assignment {current_assignment_id} does not bind asset {old_asset_id} "
                f"to employee {employee_id}",
                assignment_id=current_assignment_id,
            )
        ensure_transition(current, REPLACE)
        _ensure_end_after_start(current, replacement_date)

        employee = _get_employee(db, employee_id)
        _ensure_employee_active(employee)
        old_asset = _get_asset(db, old_asset_id, lock=True)
        new_asset = _get_asset(db, new_asset_id, lock=True)
        _ensure_no_open_assignment(db, new_asset)
        ensure_asset_assignable(db, new_asset)

        _close_assignment(
            db, actor, current,
            end_date=replacement_date,
            change_type=ChangeType.REPLACEMENT,
            change_reason=reason,
        )
        _set_asset_status(db, actor, old_asset, AssetStatus.SPARE)
        replacement = _open_assignment(db, actor, new_asset, employee, replacement_date, reason)
        _set_asset_status(db, actor, new_asset, AssetStatus.IN_USE)

    db.refresh(current)
    db.refresh(replacement)
    logger.info(
        "Employee %s: asset %s replaced by %s (assignment %s -> %s)",
        employee_id, old_asset_id, new_asset_id, current.id, replacement.id,
    )
    return OperationResult(
        replacement,
        _keys_for(current, replacement),
        related={"closed_assignment": current},
    )


def update_assignment(
    db: Session,
    actor: Optional[Any],
    assignment_id: int,
    start_date: Optional[date] = None,
    notes: Optional[str] = None,
) -> OperationResult:
    """Edit bookkeeping fields of an assignment that has not been returned."""
    with atomic(db, "update_assignment", assignment_id=assignment_id):
        assignment = _get_assignment(db, assignment_id, lock=True)
        if assignment.status == AssignmentStatus.RETURNED:
            raise ImmutableRecordError("assignment", assignment_id, "returned assignments cannot be modified")

        old_values = model_snapshot(assignment)
        if start_date is not None:
            assignment.start_date = start_date
        if notes is not None:
            assignment.notes = notes
        db.flush()
        log_audit(
            db, actor, AuditAction.UPDATE, AuditEntityType.ASSIGNMENT, assignment.id,
            old_values=old_values, new_values=model_snapshot(assignment),
        )

    db.refresh(assignment)
    return OperationResult(assignment, _keys_for(assignment))


# Reads


def get_assignment(db: Session, assignment_id: int) -> Assignment:
    return _get_assignment(db, assignment_id)


def list_assignments(
    db: Session,
    status: Optional[AssignmentStatus] = None,
    employee_id: Optional[int] = None,
    asset_id: Optional[int] = None,
    open_only: bool = False,
) -> List[Assignment]:
    """Assignments, most recent start_date first (ties: newest insertion first)."""
    query = db.query(Assignment)
    if status is not None:
        query = query.filter(Assignment.status == status)
    if employee_id is not None:
        query = query.filter(Assignment.employee_id == employee_id)
    if asset_id is not None:
        query = query.filter(Assignment.asset_id == asset_id)
    if open_only:
        query = query.filter(Assignment.status.in_(OPEN_STATUSES))
    return query.order_by(Assignment.start_date.desc(), Assignment.id.desc()).all()


def get_open_assignments_for_employee(db: Session, employee_id: int) -> List[Assignment]:
    _get_employee(db, employee_id)
    return list_assignments(db, employee_id=employee_id, open_only=True)


def get_asset_assignment_history(db: Session, asset_id: int) -> List[Assignment]:
    _get_asset(db, asset_id)
    return list_assignments(db, asset_id=asset_id)


def get_employee_assignment_history(db: Session, employee_id: int) -> List[Assignment]:
    _get_employee(db, employee_id)
    return list_assignments(db, employee_id=employee_id)


def get_current_assignment(db: Session, asset_id: int) -> Optional[Assignment]:
    _get_asset(db, asset_id)
    return open_assignment_for_asset(db, asset_id)
