"""
Tests for the audit trail
"""
import pytest
from datetime import date
from fastapi import status

from itam.core.exceptions import EmployeeInactiveError, ImmutableRecordError
from itam.models.audit_log import AuditAction, AuditEntityType, AuditLog
from itam.models.employee import EmploymentStatus
from itam.services import assignment_service, audit_service, employee_service


def test_compute_changes():
    changes = audit_service.compute_changes(
        {"status": "spare", "notes": None, "updated_at": "a"},
        {"status": "in_use", "notes": None, "updated_at": "b"},
    )
    assert changes == {"status": {"old": "spare", "new": "in_use"}}
    assert audit_service.compute_changes(None, {"status": "spare"}) is None


def test_create_writes_audit_in_same_transaction(db, hr_user):
    employee = employee_service.create_employee(db, hr_user, {
        "name": "Lea",
        "surname": "Berg",
        "department": "Sales",
        "badge_id": "B-77",
        "health_card_id": "HC-77",
        "start_date": date(2024, 2, 1),
    }).record

    trail = audit_service.get_entity_audit_trail(db, AuditEntityType.EMPLOYEE, employee.id)
    assert len(trail) == 1
    assert trail[0].action == AuditAction.CREATE
    assert trail[0].new_values["badge_id"] == "B-77"
    assert trail[0].user_id == hr_user.id


def test_failed_operation_leaves_no_audit_row(db, it_user, make_employee, make_asset):
    left = make_employee(status=EmploymentStatus.LEFT)
    asset = make_asset()

    with pytest.raises(EmployeeInactiveError):
        assignment_service.create_assignment(db, it_user, asset.id, left.id, date(2024, 1, 10))
    assert db.query(AuditLog).count() == 0


def test_audit_rows_are_immutable(db, hr_user, make_employee):
    employee = make_employee()
    employee_service.mark_employee_as_left(db, hr_user, employee.id, date.today())
    entry = db.query(AuditLog).first()

    entry.action = AuditAction.DELETE
    with pytest.raises(ImmutableRecordError):
        db.flush()
    db.rollback()

    db.delete(entry)
    with pytest.raises(ImmutableRecordError):
        db.flush()
    db.rollback()


def test_list_filters_and_recent(db, it_user, make_employee, make_asset):
    employee = make_employee()
    asset = make_asset()
    assignment = assignment_service.create_assignment(db, it_user, asset.id, employee.id, date(2024, 1, 10)).record
    assignment_service.return_assignment(db, it_user, assignment.id)

    assigns = audit_service.list_audit_logs(db, action=AuditAction.ASSIGN)
    assert [e.entity_id for e in assigns] == [assignment.id]

    unassigns = audit_service.list_audit_logs(db, action=AuditAction.UNASSIGN)
    assert len(unassigns) == 1

    recent = audit_service.recent_activity(db, limit=2)
    assert len(recent) == 2
    assert recent[0].action == AuditAction.UNASSIGN


def test_audit_api_requires_auditor(client, db, it_headers, auditor_headers, hr_user, make_employee):
    employee = make_employee()
    employee_service.mark_employee_as_left(db, hr_user, employee.id, date.today())

    assert client.get("/api/v1/audit-logs", headers=it_headers).status_code == status.HTTP_403_FORBIDDEN

    response = client.get("/api/v1/audit-logs", headers=auditor_headers)
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["total"] == 1
    assert data["items"][0]["entity_type"] == "employee"
    assert data["items"][0]["timestamp"].endswith("Z")

    trail = client.get(f"/api/v1/audit-logs/employee/{employee.id}", headers=auditor_headers).json()
    assert trail["total"] == 1
    assert trail["items"][0]["changes"]["status"] == {"old": "active", "new": "left"}

    recent = client.get("/api/v1/audit-logs/recent", headers=auditor_headers).json()
    assert recent["total"] == 1


def test_user_passwords_never_reach_audit(db, admin_user):
    from itam.services import user_service

    profile = user_service.create_profile(db, admin_user, "new@example.com", "longpassword1").record
    entry = audit_service.get_entity_audit_trail(db, AuditEntityType.PROFILE, profile.id)[0]
    assert "password_hash" not in entry.new_values
    assert entry.new_values["email"] == "new@example.com"
