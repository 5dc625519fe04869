"""
Tests for assets: the status guard, read-only assets, storage units,
location moves and book value
"""
import pytest
from datetime import date
from decimal import Decimal
from fastapi import status

from itam.core.exceptions import (
    CannotRetireAssignedAssetError,
    DuplicateAssetError,
    ImmutableRecordError,
    ReadonlyAssetError,
    ValidationFailedError,
)
from itam.models.asset import Asset, AssetStatus, AssetType, Ownership, StorageHealth, StorageType
from itam.models.location import LocationHistory
from itam.services import asset_service, assignment_service


START = date(2024, 1, 10)


def _asset_data(**overrides):
    data = {
        "asset_tag": "LT-9000",
        "type": AssetType.LAPTOP,
        "manufacturer": "Dell",
        "model": "Latitude 7440",
        "serial_number": "DL-9000",
        "ownership": Ownership.ORG_B,
    }
    data.update(overrides)
    return data


def test_create_asset_defaults_to_planned(db, it_user):
    asset = asset_service.create_asset(db, it_user, _asset_data()).record
    assert asset.status == AssetStatus.PLANNED
    assert asset.is_readonly is False
    assert asset.created_by == it_user.id


def test_create_asset_with_location_and_storage(db, it_user, make_location):
    location = make_location()
    result = asset_service.create_asset(db, it_user, _asset_data(
        status=AssetStatus.SPARE,
        current_location_id=location.id,
        storage_units=[{"type": StorageType.NVME, "capacity": "1TB", "health": StorageHealth.HEALTHY}],
    ))
    asset = result.record
    assert asset.current_location_id == location.id
    assert [u.capacity for u in asset.storage_units] == ["1TB"]
    rows = db.query(LocationHistory).filter(LocationHistory.asset_id == asset.id).all()
    assert len(rows) == 1
    assert rows[0].end_date is None
    assert f"location:{location.id}" in result.invalidates


@pytest.mark.parametrize("field", ["asset_tag", "serial_number"])
def test_create_asset_rejects_duplicates(db, it_user, make_asset, field):
    existing = make_asset()
    with pytest.raises(DuplicateAssetError) as exc_info:
        asset_service.create_asset(db, it_user, _asset_data(**{field: getattr(existing, field)}))
    assert exc_info.value.field == field


@pytest.mark.parametrize("initial", [AssetStatus.DISPOSED, AssetStatus.IN_USE])
def test_create_asset_rejects_lifecycle_owned_statuses(db, it_user, initial):
    with pytest.raises(ValidationFailedError):
        asset_service.create_asset(db, it_user, _asset_data(status=initial))


@pytest.mark.parametrize("new_status", [AssetStatus.RETIRED, AssetStatus.DISPOSED, AssetStatus.QUARANTINED])
def test_cannot_retire_assigned_asset(db, it_user, make_employee, make_asset, new_status):
    employee = make_employee()
    asset = make_asset()
    assignment_service.create_assignment(db, it_user, asset.id, employee.id, START)

    with pytest.raises(CannotRetireAssignedAssetError) as exc_info:
        asset_service.update_asset_status(db, it_user, asset.id, new_status)
    assert exc_info.value.open_count == 1
    db.refresh(asset)
    assert asset.status == AssetStatus.IN_USE


def test_status_field_in_update_goes_through_guard(db, it_user, make_employee, make_asset):
    employee = make_employee()
    asset = make_asset()
    assignment_service.create_assignment(db, it_user, asset.id, employee.id, START)

    with pytest.raises(CannotRetireAssignedAssetError):
        asset_service.update_asset(db, it_user, asset.id, {"status": AssetStatus.RETIRED, "notes": "old"})
    db.refresh(asset)
    assert asset.notes is None


def test_under_repair_allowed_with_open_assignment(db, it_user, make_employee, make_asset):
    employee = make_employee()
    asset = make_asset()
    assignment_service.create_assignment(db, it_user, asset.id, employee.id, START)

    updated = asset_service.update_asset_status(db, it_user, asset.id, AssetStatus.UNDER_REPAIR).record
    assert updated.status == AssetStatus.UNDER_REPAIR


def test_dispose_sets_readonly(db, it_user, make_asset):
    asset = make_asset(status=AssetStatus.RETIRED)
    disposed = asset_service.update_asset_status(db, it_user, asset.id, AssetStatus.DISPOSED).record
    assert disposed.status == AssetStatus.DISPOSED
    assert disposed.is_readonly is True


@pytest.mark.parametrize("fields", [
    {"notes": "anything"},
    {"hostname": "ws-01"},
    {"status": AssetStatus.SPARE},
    {},
])
def test_readonly_asset_rejects_every_update(db, it_user, make_asset, fields):
    asset = make_asset(status=AssetStatus.DISPOSED)
    with pytest.raises(ReadonlyAssetError):
        asset_service.update_asset(db, it_user, asset.id, fields)


def test_readonly_asset_rejects_status_change_and_moves(db, it_user, make_asset, make_location):
    asset = make_asset(status=AssetStatus.DISPOSED)
    with pytest.raises(ReadonlyAssetError):
        asset_service.update_asset_status(db, it_user, asset.id, AssetStatus.SPARE)
    with pytest.raises(ReadonlyAssetError):
        asset_service.move_asset_to_location(db, it_user, asset.id, make_location().id)
    with pytest.raises(ReadonlyAssetError):
        asset_service.add_storage_unit(db, it_user, asset.id, StorageType.SSD, "256GB")


def test_readonly_asset_cannot_be_rewritten_directly(db, make_asset):
    asset = make_asset(status=AssetStatus.DISPOSED)
    asset.notes = "tampered"
    with pytest.raises(ImmutableRecordError):
        db.flush()
    db.rollback()


def test_update_asset_fields(db, it_user, make_asset):
    asset = make_asset()
    updated = asset_service.update_asset(
        db, it_user, asset.id, {"hostname": "ws-042", "security_compliant": True},
    ).record
    assert updated.hostname == "ws-042"
    assert updated.security_compliant is True


def test_move_asset_keeps_one_open_location_row(db, it_user, make_asset, make_location):
    first, second = make_location(), make_location()
    asset = make_asset()

    asset_service.move_asset_to_location(db, it_user, asset.id, first.id)
    result = asset_service.move_asset_to_location(db, it_user, asset.id, second.id, notes="Desk move")

    rows = (
        db.query(LocationHistory)
        .filter(LocationHistory.asset_id == asset.id)
        .order_by(LocationHistory.id)
        .all()
    )
    assert [r.location_id for r in rows] == [first.id, second.id]
    assert rows[0].end_date is not None
    assert rows[1].end_date is None
    assert result.record.notes == "Desk move"
    db.refresh(asset)
    assert asset.current_location_id == second.id
    assert f"location:{first.id}" in result.invalidates
    assert f"location:{second.id}" in result.invalidates


def test_move_to_same_or_inactive_location_rejected(db, it_user, make_asset, make_location):
    here = make_location()
    closed = make_location(is_active=False)
    asset = make_asset()
    asset_service.move_asset_to_location(db, it_user, asset.id, here.id)

    with pytest.raises(ValidationFailedError):
        asset_service.move_asset_to_location(db, it_user, asset.id, here.id)
    with pytest.raises(ValidationFailedError):
        asset_service.move_asset_to_location(db, it_user, asset.id, closed.id)


def test_closed_location_row_is_immutable(db, it_user, make_asset, make_location):
    first, second = make_location(), make_location()
    asset = make_asset()
    asset_service.move_asset_to_location(db, it_user, asset.id, first.id)
    asset_service.move_asset_to_location(db, it_user, asset.id, second.id)

    closed_row = (
        db.query(LocationHistory)
        .filter(LocationHistory.asset_id == asset.id, LocationHistory.end_date.is_not(None))
        .one()
    )
    closed_row.notes = "rewrite"
    with pytest.raises(ImmutableRecordError):
        db.flush()
    db.rollback()


def test_book_value_straight_line():
    asset = Asset(purchase_cost=Decimal("1000.00"), purchase_date=date(2020, 1, 1), useful_life_years=4)
    assert asset_service.calculate_book_value(asset, as_of=date(2020, 1, 1)) == Decimal("1000.00")
    assert asset_service.calculate_book_value(asset, as_of=date(2030, 1, 1)) == Decimal("0.00")

    half = asset_service.calculate_book_value(asset, as_of=date(2022, 1, 1))
    assert Decimal("495.00") < half < Decimal("505.00")


def test_book_value_defaults_and_missing_data():
    assert asset_service.calculate_book_value(Asset(purchase_cost=Decimal("100"))) is None
    assert asset_service.calculate_book_value(Asset(purchase_date=date(2020, 1, 1))) is None

    # No useful life: the configured default (4 years) applies
    asset = Asset(purchase_cost=Decimal("400.00"), purchase_date=date(2020, 1, 1))
    assert asset_service.calculate_book_value(asset, as_of=date(2019, 1, 1)) == Decimal("400.00")
    assert asset_service.calculate_book_value(asset, as_of=date(2025, 1, 1)) == Decimal("0.00")


def test_asset_history_detail(db, it_user, make_employee, make_asset):
    employee = make_employee()
    asset = make_asset()
    assignment = assignment_service.create_assignment(db, it_user, asset.id, employee.id, START).record

    detail = asset_service.get_asset_with_history(db, asset.id, as_of=date(2023, 1, 1))
    assert detail["asset"].id == asset.id
    assert detail["current_assignment"].id == assignment.id
    assert [a.id for a in detail["assignments"]] == [assignment.id]
    assert detail["book_value"] == Decimal("1200.00")


# API


def test_create_asset_api_requires_it(client, hr_headers, it_headers):
    body = {
        "asset_tag": "MN-0001",
        "type": "monitor",
        "manufacturer": "LG",
        "model": "27UL850",
        "serial_number": "LG-0001",
        "ownership": "OrgC",
        "status": "spare",
        "storage_units": [],
    }
    assert client.post("/api/v1/assets", json=body, headers=hr_headers).status_code == status.HTTP_403_FORBIDDEN

    response = client.post("/api/v1/assets", json=body, headers=it_headers)
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["asset"]["status"] == "spare"
    assert data["asset"]["ownership"] == "OrgC"
    assert "assets" in data["invalidates"]

    duplicate = client.post("/api/v1/assets", json=body, headers=it_headers)
    assert duplicate.status_code == status.HTTP_409_CONFLICT
    assert duplicate.json()["kind"] == "DuplicateAsset"


def test_create_asset_api_rejects_unknown_enum(client, it_headers):
    body = {
        "asset_tag": "X-1",
        "type": "toaster",
        "manufacturer": "ACME",
        "model": "T1",
        "serial_number": "X-1",
        "ownership": "OrgA",
    }
    response = client.post("/api/v1/assets", json=body, headers=it_headers)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_readonly_asset_api(client, it_headers, make_asset):
    asset = make_asset(status=AssetStatus.DISPOSED)

    response = client.patch(f"/api/v1/assets/{asset.id}", json={"notes": "x"}, headers=it_headers)
    assert response.status_code == status.HTTP_409_CONFLICT
    data = response.json()
    assert data["kind"] == "ReadonlyAssetError"
    assert "read-only" in data["detail"]


def test_retire_assigned_asset_api(client, db, it_user, it_headers, make_employee, make_asset):
    employee = make_employee()
    asset = make_asset()
    assignment_service.create_assignment(db, it_user, asset.id, employee.id, START)

    response = client.patch(f"/api/v1/assets/{asset.id}/status", json={"status": "retired"}, headers=it_headers)
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["kind"] == "CannotRetireAssignedAsset"


def test_assignability_api(client, db, it_user, it_headers, make_employee, make_asset):
    spare = make_asset()
    response = client.get(f"/api/v1/assets/{spare.id}/assignability", headers=it_headers).json()
    assert response == {"asset_id": spare.id, "can_be_assigned": True, "reason": None}

    assignment_service.create_assignment(db, it_user, spare.id, make_employee().id, START)
    response = client.get(f"/api/v1/assets/{spare.id}/assignability", headers=it_headers).json()
    assert response["can_be_assigned"] is False
    assert response["reason"] == "status is in_use"


def test_book_value_api(client, it_headers, make_asset):
    asset = make_asset(purchase_date=date(2020, 1, 1), purchase_cost=Decimal("800.00"), useful_life_years=2)
    response = client.get(
        f"/api/v1/assets/{asset.id}/book-value", params={"as_of": "2023-01-01"}, headers=it_headers,
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["as_of"] == "2023-01-01"
    assert Decimal(str(data["book_value"])) == Decimal("0.00")


def test_storage_unit_and_move_api(client, it_headers, make_asset, make_location):
    asset = make_asset()
    location = make_location()

    response = client.post(
        f"/api/v1/assets/{asset.id}/storage-units",
        json={"type": "SSD", "capacity": "512GB"},
        headers=it_headers,
    )
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["storage_unit"]["health"] == "healthy"

    response = client.post(f"/api/v1/assets/{asset.id}/move", json={"location_id": location.id}, headers=it_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["location_history"]["location_id"] == location.id

    history = client.get(f"/api/v1/assets/{asset.id}/history", headers=it_headers).json()
    assert len(history["location_history"]) == 1
    assert history["asset"]["current_location_id"] == location.id
    assert len(history["asset"]["storage_units"]) == 1


def test_list_assets_filters(client, it_headers, make_asset):
    make_asset(status=AssetStatus.SPARE, hostname="alpha")
    make_asset(status=AssetStatus.RETIRED, ownership=Ownership.ORG_B)

    everything = client.get("/api/v1/assets", headers=it_headers).json()
    assert everything["total"] == 2

    spare = client.get("/api/v1/assets", params={"status": "spare"}, headers=it_headers).json()
    assert [a["hostname"] for a in spare["items"]] == ["alpha"]

    org_b = client.get("/api/v1/assets", params={"ownership": "OrgB"}, headers=it_headers).json()
    assert org_b["total"] == 1

    search = client.get("/api/v1/assets", params={"search": "alp"}, headers=it_headers).json()
    assert search["total"] == 1
