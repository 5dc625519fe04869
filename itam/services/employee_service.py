"""
Employee service: records, offboarding and the offboarding guard
"""
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from itam.core.exceptions import (
    DuplicateEmployeeError,
    EmployeeHasActiveAssignmentsError,
    NotFoundError,
    PreconditionError,
    ValidationFailedError,
)
from itam.db.unit_of_work import atomic
from itam.models.assignment import Assignment, AssignmentStatus
from itam.models.audit_log import AuditAction, AuditEntityType
from itam.models.employee import Employee, EmploymentStatus
from itam.models.offboarding import OffboardingRecord
from itam.services import assignment_service
from itam.services.audit_service import log_audit
from itam.services.lifecycle import (
    OperationResult,
    count_open_assignments_for_employee,
    invalidation_keys,
)
from itam.utils.datetime_utils import now_utc, today_utc
from itam.utils.json_serializer import model_snapshot

logger = logging.getLogger(__name__)


def get_employee(db: Session, employee_id: int, lock: bool = False) -> Employee:
    query = db.query(Employee).filter(Employee.id == employee_id)
    if lock:
        query = query.with_for_update()
    employee = query.first()
    if not employee:
        raise NotFoundError("employee", employee_id)
    return employee


def _ensure_badge_unique(db: Session, badge_id: Optional[str], exclude_id: Optional[int] = None) -> None:
    if not badge_id:
        return
    query = db.query(Employee).filter(Employee.badge_id == badge_id)
    if exclude_id is not None:
        query = query.filter(Employee.id != exclude_id)
    if query.first():
        raise DuplicateEmployeeError("badge_id", badge_id)


def _ensure_dates(start_date: date, end_date: Optional[date]) -> None:
    if end_date is not None and end_date < start_date:
        raise ValidationFailedError("end_date cannot be before start_date")


def create_employee(db: Session, actor: Optional[Any], data: Dict[str, Any]) -> OperationResult:
    """
    Create an employee record.

    New employees start active; leaving goes through ``mark_employee_as_left``.
    """
    data = dict(data)
    data.pop("status", None)
    _ensure_dates(data["start_date"], data.get("end_date"))

    with atomic(db, "create_employee", badge_id=data.get("badge_id")):
        _ensure_badge_unique(db, data.get("badge_id"))
        employee = Employee(
            **data,
            status=EmploymentStatus.ACTIVE,
            created_by=getattr(actor, "id", None),
            updated_by=getattr(actor, "id", None),
        )
        db.add(employee)
        db.flush()
        log_audit(
            db, actor, AuditAction.CREATE, AuditEntityType.EMPLOYEE, employee.id,
            new_values=model_snapshot(employee),
        )

    db.refresh(employee)
    logger.info("Employee %s created", employee.id)
    return OperationResult(employee, invalidation_keys(employee_ids=[employee.id]))


def list_employees(
    db: Session,
    status: Optional[EmploymentStatus] = None,
    department: Optional[str] = None,
    search: Optional[str] = None,
) -> List[Employee]:
    """Employees ordered by surname, then name."""
    query = db.query(Employee)
    if status is not None:
        query = query.filter(Employee.status == status)
    if department:
        query = query.filter(Employee.department == department)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            Employee.name.ilike(pattern),
            Employee.surname.ilike(pattern),
            Employee.badge_id.ilike(pattern),
        ))
    return query.order_by(Employee.surname, Employee.name, Employee.id).all()


def get_employee_with_assignments(db: Session, employee_id: int) -> Dict[str, Any]:
    employee = get_employee(db, employee_id)
    history = assignment_service.list_assignments(db, employee_id=employee_id)
    open_assignments = [a for a in history if a.status in (
        AssignmentStatus.PENDING_ACCEPTANCE, AssignmentStatus.ACTIVE,
    )]
    return {
        "employee": employee,
        "open_assignments": open_assignments,
        "open_assignment_count": len(open_assignments),
        "assignments": history,
    }


def _mark_left(
    db: Session,
    actor: Optional[Any],
    employee: Employee,
    end_date: date,
    notes: Optional[str] = None,
) -> None:
    """Offboarding guard and effect; runs inside the caller's transaction."""
    if employee.status == EmploymentStatus.LEFT:
        raise PreconditionError(f"Employee {employee.id} is already marked as left", employee_id=employee.id)
    _ensure_dates(employee.start_date, end_date)

    open_count = count_open_assignments_for_employee(db, employee.id)
    if open_count > 0:
        logger.warning("Offboarding blocked: employee %s holds %d open assignment(s)", employee.id, open_count)
        raise EmployeeHasActiveAssignmentsError(employee.id, open_count)

    completed_at = now_utc()
    employee.status = EmploymentStatus.LEFT
    employee.end_date = end_date
    employee.is_offboarding_complete = True
    employee.offboarding_completed_at = completed_at
    employee.offboarding_completed_by = getattr(actor, "id", None)
    employee.updated_by = getattr(actor, "id", None)

    record = _open_offboarding_record(db, employee.id)
    if record is None:
        record = OffboardingRecord(
            employee_id=employee.id,
            initiated_at=completed_at,
            initiated_by=getattr(actor, "id", None),
            pending_assets=[],
        )
        db.add(record)
    record.returned_assets = _returned_asset_ids(db, employee.id)
    record.completed_at = completed_at
    record.completed_by = getattr(actor, "id", None)
    if notes:
        record.notes = notes
    db.flush()


def mark_employee_as_left(
    db: Session,
    actor: Optional[Any],
    employee_id: int,
    end_date: date,
    notes: Optional[str] = None,
) -> OperationResult:
    """
    Mark an employee as left and complete their offboarding.

    Raises:
        EmployeeHasActiveAssignmentsError: the employee still holds open
            assignments; the message states how many
    """
    with atomic(db, "mark_employee_as_left", employee_id=employee_id):
        employee = get_employee(db, employee_id, lock=True)
        old_values = model_snapshot(employee)
        _mark_left(db, actor, employee, end_date, notes)
        log_audit(
            db, actor, AuditAction.UPDATE, AuditEntityType.EMPLOYEE, employee.id,
            old_values=old_values, new_values=model_snapshot(employee),
        )

    db.refresh(employee)
    logger.info("Employee %s marked as left on %s", employee_id, end_date)
    return OperationResult(employee, invalidation_keys(employee_ids=[employee_id]))


def update_employee(
    db: Session,
    actor: Optional[Any],
    employee_id: int,
    fields: Dict[str, Any],
) -> OperationResult:
    """
    Edit an employee.

    Setting ``status`` to left is routed through the offboarding guard, so
    it fails the same way ``mark_employee_as_left`` does.
    """
    fields = dict(fields)
    new_status = fields.pop("status", None)
    end_date = fields.pop("end_date", None)

    with atomic(db, "update_employee", employee_id=employee_id, badge_id=fields.get("badge_id")):
        employee = get_employee(db, employee_id, lock=True)
        if "badge_id" in fields:
            _ensure_badge_unique(db, fields["badge_id"], exclude_id=employee.id)

        old_values = model_snapshot(employee)
        for key, value in fields.items():
            setattr(employee, key, value)
        _ensure_dates(employee.start_date, end_date or employee.end_date)

        if new_status == EmploymentStatus.LEFT and employee.status != EmploymentStatus.LEFT:
            _mark_left(db, actor, employee, end_date or today_utc())
        elif new_status == EmploymentStatus.ACTIVE and employee.status == EmploymentStatus.LEFT:
            # Rehire
            employee.status = EmploymentStatus.ACTIVE
            employee.end_date = None
            employee.is_offboarding_complete = False
            employee.offboarding_completed_at = None
            employee.offboarding_completed_by = None
        elif end_date is not None:
            employee.end_date = end_date

        employee.updated_by = getattr(actor, "id", None)
        db.flush()
        log_audit(
            db, actor, AuditAction.UPDATE, AuditEntityType.EMPLOYEE, employee.id,
            old_values=old_values, new_values=model_snapshot(employee),
        )

    db.refresh(employee)
    return OperationResult(employee, invalidation_keys(employee_ids=[employee_id]))


def _open_offboarding_record(db: Session, employee_id: int) -> Optional[OffboardingRecord]:
    return (
        db.query(OffboardingRecord)
        .filter(OffboardingRecord.employee_id == employee_id, OffboardingRecord.completed_at.is_(None))
        .order_by(OffboardingRecord.initiated_at.desc(), OffboardingRecord.id.desc())
        .first()
    )


def _returned_asset_ids(db: Session, employee_id: int) -> List[int]:
    rows = (
        db.query(Assignment.asset_id)
        .filter(Assignment.employee_id == employee_id, Assignment.status == AssignmentStatus.RETURNED)
        .order_by(Assignment.id)
        .all()
    )
    return list(dict.fromkeys(r.asset_id for r in rows))


def initiate_offboarding(
    db: Session,
    actor: Optional[Any],
    employee_id: int,
    notes: Optional[str] = None,
) -> OperationResult:
    """
    Start offboarding: record which assets the employee still holds.

    Assets still held are those on assignments that are not yet returned.
    """
    with atomic(db, "initiate_offboarding", employee_id=employee_id):
        employee = get_employee(db, employee_id, lock=True)
        if employee.status == EmploymentStatus.LEFT:
            raise PreconditionError(f"Employee {employee_id} has already left", employee_id=employee_id)
        if _open_offboarding_record(db, employee_id) is not None:
            raise PreconditionError(
                f"Offboarding already in progress for employee {employee_id}",
                employee_id=employee_id,
            )

        held = (
            db.query(Assignment.asset_id)
            .filter(Assignment.employee_id == employee_id, Assignment.status != AssignmentStatus.RETURNED)
            .order_by(Assignment.id)
            .all()
        )
        record = OffboardingRecord(
            employee_id=employee_id,
            initiated_at=now_utc(),
            initiated_by=getattr(actor, "id", None),
            pending_assets=[r.asset_id for r in held],
            returned_assets=_returned_asset_ids(db, employee_id),
            notes=notes,
        )
        db.add(record)
        db.flush()
        log_audit(
            db, actor, AuditAction.UPDATE, AuditEntityType.EMPLOYEE, employee_id,
            new_values={"offboarding_record": model_snapshot(record)},
        )

    db.refresh(record)
    logger.info("Offboarding initiated for employee %s (%d asset(s) pending)", employee_id, len(record.pending_assets))
    return OperationResult(record, invalidation_keys(employee_ids=[employee_id]))


def list_offboarding_records(db: Session, employee_id: int) -> List[OffboardingRecord]:
    get_employee(db, employee_id)
    return (
        db.query(OffboardingRecord)
        .filter(OffboardingRecord.employee_id == employee_id)
        .order_by(OffboardingRecord.initiated_at.desc(), OffboardingRecord.id.desc())
        .all()
    )
