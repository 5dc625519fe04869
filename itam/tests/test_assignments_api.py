"""
Tests for assignment endpoints: role gates, lifecycle over HTTP and the
error envelope
"""
from fastapi import status

from itam.models.asset import AssetStatus
from itam.models.employee import EmploymentStatus


def _create(client, headers, asset_id, employee_id, start_date="2024-01-10"):
    return client.post(
        "/api/v1/assignments",
        json={"asset_id": asset_id, "employee_id": employee_id, "start_date": start_date},
        headers=headers,
    )


def test_create_assignment_success(client, it_headers, make_employee, make_asset):
    employee = make_employee()
    asset = make_asset()

    response = _create(client, it_headers, asset.id, employee.id)

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["assignment"]["status"] == "pending_acceptance"
    assert data["assignment"]["start_date"] == "2024-01-10"
    assert data["assignment"]["created_at"].endswith("Z")
    assert f"asset:{asset.id}" in data["invalidates"]
    assert "assignments" in data["invalidates"]

    asset_response = client.get(f"/api/v1/assets/{asset.id}", headers=it_headers)
    assert asset_response.json()["status"] == "in_use"


def test_create_assignment_requires_it_role(client, hr_headers, auditor_headers, make_employee, make_asset):
    employee = make_employee()
    asset = make_asset()

    for headers in (hr_headers, auditor_headers):
        response = _create(client, headers, asset.id, employee.id)
        assert response.status_code == status.HTTP_403_FORBIDDEN
        data = response.json()
        assert data["error"] is True
        assert data["kind"] == "Forbidden"
        assert "Access denied" in data["detail"]


def test_admin_passes_every_gate(client, admin_headers, make_employee, make_asset):
    employee = make_employee()
    asset = make_asset()

    response = _create(client, admin_headers, asset.id, employee.id)
    assert response.status_code == status.HTTP_201_CREATED


def test_unauthenticated_request_rejected(client):
    response = client.get("/api/v1/assignments")
    assert response.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)


def test_invalid_token_rejected(client):
    response = client.get("/api/v1/assignments", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["kind"] == "Unauthorized"


def test_error_envelope_for_domain_errors(client, it_headers, make_employee, make_asset):
    left = make_employee(status=EmploymentStatus.LEFT)
    asset = make_asset()

    response = _create(client, it_headers, asset.id, left.id)

    assert response.status_code == status.HTTP_409_CONFLICT
    data = response.json()
    assert data == {
        "error": True,
        "status_code": 409,
        "kind": "EmployeeInactive",
        "detail": data["detail"],
        "path": "/api/v1/assignments",
    }
    assert str(left.id) in data["detail"]


def test_duplicate_active_assignment_over_http(client, it_headers, make_employee, make_asset):
    first, second = make_employee(), make_employee()
    asset = make_asset()
    assert _create(client, it_headers, asset.id, first.id).status_code == status.HTTP_201_CREATED

    response = _create(client, it_headers, asset.id, second.id)
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["kind"] == "DuplicateActiveAssignment"


def test_asset_not_assignable_over_http(client, it_headers, make_employee, make_asset):
    employee = make_employee()
    asset = make_asset(status=AssetStatus.UNDER_REPAIR)

    response = _create(client, it_headers, asset.id, employee.id)
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["kind"] == "AssetNotAssignable"


def test_validation_error_before_any_write(client, it_headers, make_employee, make_asset):
    employee = make_employee()
    asset = make_asset()

    response = _create(client, it_headers, asset.id, employee.id, start_date="not-a-date")
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    data = response.json()
    assert data["kind"] == "ValidationFailed"
    assert data["errors"]

    listing = client.get("/api/v1/assignments", headers=it_headers).json()
    assert listing["total"] == 0


def test_unknown_assignment_is_404(client, it_headers):
    response = client.get("/api/v1/assignments/999", headers=it_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["kind"] == "NotFound"


def test_hr_can_accept_but_not_close(client, it_headers, hr_headers, make_employee, make_asset):
    employee = make_employee()
    asset = make_asset()
    assignment_id = _create(client, it_headers, asset.id, employee.id).json()["assignment"]["id"]

    close_body = {
        "end_date": "2024-02-01",
        "change_type": "upgrade",
        "asset_id": asset.id,
        "asset_status_after": "spare",
    }
    response = client.post(f"/api/v1/assignments/{assignment_id}/close", json=close_body, headers=hr_headers)
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = client.post(
        f"/api/v1/assignments/{assignment_id}/accept",
        json={"notes": "Got it", "digital_acknowledgment": True},
        headers=hr_headers,
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()["assignment"]
    assert data["status"] == "active"
    assert data["accepted_at"].endswith("Z")
    assert data["digital_acknowledgment"] is True


def test_accept_twice_is_invalid_transition(client, it_headers, make_employee, make_asset):
    employee = make_employee()
    asset = make_asset()
    assignment_id = _create(client, it_headers, asset.id, employee.id).json()["assignment"]["id"]

    assert client.post(f"/api/v1/assignments/{assignment_id}/accept", headers=it_headers).status_code == 200
    response = client.post(f"/api/v1/assignments/{assignment_id}/accept", headers=it_headers)
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["kind"] == "InvalidTransition"


def test_close_over_http(client, it_headers, make_employee, make_asset):
    employee = make_employee()
    asset = make_asset()
    assignment_id = _create(client, it_headers, asset.id, employee.id).json()["assignment"]["id"]
    client.post(f"/api/v1/assignments/{assignment_id}/accept", headers=it_headers)

    response = client.post(
        f"/api/v1/assignments/{assignment_id}/close",
        json={
            "end_date": "2024-02-01",
            "change_type": "damaged",
            "change_reason": "Dropped",
            "asset_id": asset.id,
            "asset_status_after": "under_repair",
        },
        headers=it_headers,
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()["assignment"]
    assert data["status"] == "returned"
    assert data["end_date"] == "2024-02-01"
    assert data["returned_at"] is not None
    assert data["change_type"] == "damaged"

    asset_data = client.get(f"/api/v1/assets/{asset.id}", headers=it_headers).json()
    assert asset_data["status"] == "under_repair"


def test_close_rejects_unknown_enum(client, it_headers, make_employee, make_asset):
    employee = make_employee()
    asset = make_asset()
    assignment_id = _create(client, it_headers, asset.id, employee.id).json()["assignment"]["id"]

    response = client.post(
        f"/api/v1/assignments/{assignment_id}/close",
        json={
            "end_date": "2024-02-01",
            "change_type": "stolen",
            "asset_id": asset.id,
            "asset_status_after": "spare",
        },
        headers=it_headers,
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_replace_over_http(client, it_headers, make_employee, make_asset):
    employee = make_employee()
    old_asset, new_asset = make_asset(), make_asset()
    assignment_id = _create(client, it_headers, old_asset.id, employee.id).json()["assignment"]["id"]

    response = client.post(
        f"/api/v1/assignments/{assignment_id}/replace",
        json={
            "employee_id": employee.id,
            "old_asset_id": old_asset.id,
            "new_asset_id": new_asset.id,
            "date": "2024-03-01",
            "reason": "Upgrade",
        },
        headers=it_headers,
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["closed_assignment"]["status"] == "returned"
    assert data["closed_assignment"]["change_type"] == "replacement"
    assert data["assignment"]["status"] == "pending_acceptance"
    assert data["assignment"]["asset_id"] == new_asset.id
    assert data["assignment"]["start_date"] == "2024-03-01"


def test_allowed_actions_endpoint(client, it_headers, hr_headers, make_employee, make_asset):
    employee = make_employee()
    asset = make_asset()
    assignment_id = _create(client, it_headers, asset.id, employee.id).json()["assignment"]["id"]

    hr_actions = client.get(f"/api/v1/assignments/{assignment_id}/actions", headers=hr_headers).json()
    assert hr_actions["status"] == "pending_acceptance"
    assert hr_actions["actions"] == ["accept"]

    it_actions = client.get(f"/api/v1/assignments/{assignment_id}/actions", headers=it_headers).json()
    assert "close" in it_actions["actions"]
    assert "request_return" not in it_actions["actions"]


def test_list_filters(client, it_headers, make_employee, make_asset):
    employee = make_employee()
    first, second = make_asset(), make_asset()
    first_id = _create(client, it_headers, first.id, employee.id).json()["assignment"]["id"]
    _create(client, it_headers, second.id, employee.id)
    client.post(f"/api/v1/assignments/{first_id}/return", headers=it_headers)

    everything = client.get("/api/v1/assignments", headers=it_headers).json()
    assert everything["total"] == 2

    open_only = client.get("/api/v1/assignments", params={"open_only": True}, headers=it_headers).json()
    assert open_only["total"] == 1
    assert open_only["items"][0]["asset_id"] == second.id

    returned = client.get("/api/v1/assignments", params={"status": "returned"}, headers=it_headers).json()
    assert [a["id"] for a in returned["items"]] == [first_id]

    by_asset = client.get(f"/api/v1/assets/{first.id}/assignments", headers=it_headers).json()
    assert by_asset["total"] == 1

    by_employee = client.get(f"/api/v1/employees/{employee.id}/assignments", headers=it_headers).json()
    assert by_employee["total"] == 2


def test_update_returned_assignment_rejected(client, it_headers, make_employee, make_asset):
    employee = make_employee()
    asset = make_asset()
    assignment_id = _create(client, it_headers, asset.id, employee.id).json()["assignment"]["id"]

    response = client.patch(f"/api/v1/assignments/{assignment_id}", json={"notes": "ok"}, headers=it_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["assignment"]["notes"] == "ok"

    client.post(f"/api/v1/assignments/{assignment_id}/return", headers=it_headers)
    response = client.patch(f"/api/v1/assignments/{assignment_id}", json={"notes": "edit"}, headers=it_headers)
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["kind"] == "ImmutableRecord"
