"""
Tests for locations
"""
import pytest
from fastapi import status

from itam.core.exceptions import PreconditionError
from itam.models.audit_log import AuditAction, AuditEntityType, AuditLog
from itam.models.location import LocationType
from itam.services import asset_service, location_service


def test_create_and_list_locations(db, it_user):
    location_service.create_location(db, it_user, {"name": "Warehouse", "type": LocationType.STORAGE})
    location_service.create_location(db, it_user, {"name": "Annex", "type": LocationType.OFFICE, "floor": "2"})

    names = [loc.name for loc in location_service.list_locations(db)]
    assert names == ["Annex", "Warehouse"]


def test_deactivate_is_soft(db, it_user, make_location):
    location = make_location()

    result = location_service.deactivate_location(db, it_user, location.id)
    assert result.record.is_active is False
    assert location_service.list_locations(db) == []
    assert [loc.id for loc in location_service.list_locations(db, include_inactive=True)] == [location.id]

    audit = db.query(AuditLog).filter(
        AuditLog.entity_type == AuditEntityType.LOCATION, AuditLog.entity_id == location.id,
    ).one()
    assert audit.action == AuditAction.DELETE

    with pytest.raises(PreconditionError):
        location_service.deactivate_location(db, it_user, location.id)


def test_location_holding_assets_cannot_be_deactivated(db, it_user, make_location, make_asset):
    location = make_location()
    asset = make_asset()
    asset_service.move_asset_to_location(db, it_user, asset.id, location.id)

    with pytest.raises(PreconditionError) as exc_info:
        location_service.deactivate_location(db, it_user, location.id)
    assert "1 asset(s)" in str(exc_info.value)


def test_location_with_assets(db, it_user, make_location, make_asset):
    location = make_location()
    first, second = make_asset(), make_asset()
    asset_service.move_asset_to_location(db, it_user, first.id, location.id)
    asset_service.move_asset_to_location(db, it_user, second.id, location.id)

    detail = location_service.get_location_with_assets(db, location.id)
    assert detail["asset_count"] == 2
    assert [a.id for a in detail["assets"]] == [first.id, second.id]


def test_location_api(client, it_headers, hr_headers):
    body = {"name": "Server Room A", "type": "server_room", "building": "HQ"}
    assert client.post("/api/v1/locations", json=body, headers=hr_headers).status_code == status.HTTP_403_FORBIDDEN

    response = client.post("/api/v1/locations", json=body, headers=it_headers)
    assert response.status_code == status.HTTP_201_CREATED
    location_id = response.json()["location"]["id"]

    response = client.patch(f"/api/v1/locations/{location_id}", json={"rack_position": "R4"}, headers=it_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["location"]["rack_position"] == "R4"

    detail = client.get(f"/api/v1/locations/{location_id}", headers=it_headers).json()
    assert detail["asset_count"] == 0

    response = client.delete(f"/api/v1/locations/{location_id}", headers=it_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["location"]["is_active"] is False

    assert client.get("/api/v1/locations", headers=it_headers).json() == []
