"""
Tests for report endpoints and CSV exports
"""
import csv
import io
import pytest
from datetime import date
from fastapi import status

from itam.core.exceptions import ValidationFailedError
from itam.models.asset import AssetStatus
from itam.models.assignment import AssignmentStatus
from itam.services import assignment_service, report_service
from itam.services.report_service import ASSET_CSV_HEADERS, ASSIGNMENT_CSV_HEADERS


def _read_csv(response):
    return list(csv.reader(io.StringIO(response.text)))


@pytest.fixture
def two_assignments(db, it_user, make_employee, make_asset):
    employee = make_employee(name="Maria", surname="Rossi", department="Finance")
    early = assignment_service.create_assignment(db, it_user, make_asset().id, employee.id, date(2024, 1, 10)).record
    late = assignment_service.create_assignment(db, it_user, make_asset().id, employee.id, date(2024, 3, 5)).record
    assignment_service.return_assignment(db, it_user, early.id)
    return early, late


def test_assignment_rows_filters(db, two_assignments):
    early, late = two_assignments

    rows = report_service.get_assignment_rows(db)
    assert [r["assignment_id"] for r in rows] == [late.id, early.id]
    assert rows[0]["employee_name"] == "Maria Rossi"

    march = report_service.get_assignment_rows(db, from_date=date(2024, 3, 1), to_date=date(2024, 3, 31))
    assert [r["assignment_id"] for r in march] == [late.id]

    returned = report_service.get_assignment_rows(db, status=AssignmentStatus.RETURNED)
    assert [r["assignment_id"] for r in returned] == [early.id]


def test_assignment_rows_reject_inverted_range(db):
    with pytest.raises(ValidationFailedError):
        report_service.get_assignment_rows(db, from_date=date(2024, 2, 1), to_date=date(2024, 1, 1))


def test_assignments_csv_export(client, hr_headers, two_assignments):
    early, late = two_assignments

    response = client.get("/api/v1/reports/assignments.csv", headers=hr_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment; filename=\"assignments_" in response.headers["content-disposition"]

    rows = _read_csv(response)
    assert rows[0] == ASSIGNMENT_CSV_HEADERS
    assert len(rows) == 3
    first = dict(zip(rows[0], rows[1]))
    assert first["assignment_id"] == str(late.id)
    assert first["status"] == "pending_acceptance"
    assert first["department"] == "Finance"
    assert first["asset_type"] == "laptop"
    assert first["end_date"] == ""
    assert first["accepted_at"] == ""

    second = dict(zip(rows[0], rows[2]))
    assert second["status"] == "returned"
    assert second["returned_at"].endswith("Z")


def test_assignments_csv_inverted_range_is_422(client, hr_headers):
    response = client.get(
        "/api/v1/reports/assignments.csv",
        params={"from": "2024-02-01", "to": "2024-01-01"},
        headers=hr_headers,
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["kind"] == "ValidationFailed"


def test_assets_csv_export(client, auditor_headers, make_asset):
    make_asset()
    make_asset(status=AssetStatus.RETIRED)

    response = client.get("/api/v1/reports/assets.csv", headers=auditor_headers)
    assert response.status_code == status.HTTP_200_OK
    rows = _read_csv(response)
    assert rows[0] == ASSET_CSV_HEADERS
    assert len(rows) == 3
    first = dict(zip(rows[0], rows[1]))
    assert first["asset_tag"] == "LT-0001"
    assert first["ownership"] == "OrgA"
    assert first["location"] == ""
    assert first["book_value"] != ""

    retired = client.get(
        "/api/v1/reports/assets.csv", params={"status": "retired"}, headers=auditor_headers,
    )
    assert len(_read_csv(retired)) == 2


def test_reports_require_reader_role(client, no_role_headers):
    response = client.get("/api/v1/reports/assets.csv", headers=no_role_headers)
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_employee_report(client, db, it_headers, two_assignments):
    early, late = two_assignments

    response = client.get(f"/api/v1/reports/employees/{early.employee_id}", headers=it_headers)
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["employee"]["surname"] == "Rossi"
    assert [a["id"] for a in data["current_assignments"]] == [late.id]
    assert [a["id"] for a in data["past_assignments"]] == [early.id]
    assert data["offboarding_records"] == []


def test_asset_report(client, it_headers, two_assignments):
    early, _ = two_assignments

    response = client.get(
        f"/api/v1/reports/assets/{early.asset_id}", params={"as_of": "2024-01-01"}, headers=it_headers,
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["asset"]["id"] == early.asset_id
    assert [a["id"] for a in data["assignments"]] == [early.id]
    assert data["current_assignment"] is None
    assert data["book_value"] is not None

    missing = client.get("/api/v1/reports/assets/9999", headers=it_headers)
    assert missing.status_code == status.HTTP_404_NOT_FOUND
