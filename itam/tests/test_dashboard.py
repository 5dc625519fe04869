"""
Tests for dashboard statistics
"""
from datetime import date
from fastapi import status

from itam.models.asset import AssetStatus, AssetType, Ownership
from itam.models.employee import EmploymentStatus
from itam.services import assignment_service
from itam.services.dashboard_service import get_dashboard_stats


def test_empty_dashboard_is_zero_filled(db):
    stats = get_dashboard_stats(db)
    assert stats["employees"] == {"total": 0, "active": 0, "left": 0}
    assert stats["assets"]["total"] == 0
    assert set(stats["assets"]["by_status"]) == {s.value for s in AssetStatus}
    assert set(stats["assets"]["by_type"]) == {t.value for t in AssetType}
    assert set(stats["assets"]["by_ownership"]) == {"OrgA", "OrgB", "OrgC"}
    assert all(v == 0 for v in stats["assets"]["by_status"].values())
    assert stats["assignments"] == {"total": 0, "open": 0}


def test_dashboard_counts(db, it_user, make_employee, make_asset):
    employee = make_employee()
    make_employee(status=EmploymentStatus.LEFT)
    laptop = make_asset()
    make_asset(status=AssetStatus.RETIRED, type=AssetType.MONITOR, ownership=Ownership.ORG_C)
    assignment = assignment_service.create_assignment(db, it_user, laptop.id, employee.id, date(2024, 1, 10)).record
    spare = make_asset()
    second = assignment_service.create_assignment(db, it_user, spare.id, employee.id, date(2024, 1, 10)).record
    assignment_service.return_assignment(db, it_user, second.id)

    stats = get_dashboard_stats(db)
    assert stats["employees"] == {"total": 2, "active": 1, "left": 1}
    assert stats["assets"]["total"] == 3
    assert stats["assets"]["by_status"]["in_use"] == 2
    assert stats["assets"]["by_status"]["retired"] == 1
    assert stats["assets"]["by_type"]["monitor"] == 1
    assert stats["assets"]["by_ownership"]["OrgC"] == 1
    assert stats["assignments"] == {"total": 2, "open": 1}
    assert assignment.id != second.id


def test_dashboard_api(client, auditor_headers):
    response = client.get("/api/v1/dashboard/stats", headers=auditor_headers)
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert set(data) == {"employees", "assets", "assignments"}
