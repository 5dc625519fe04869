"""
Map database constraint violations onto the domain error taxonomy

PostgreSQL reports the violated constraint by name; SQLite reports the
table and column ("UNIQUE constraint failed: assignments.asset_id"). Both
forms are matched so tests on SQLite see the same errors as production.
"""
from typing import Any

from sqlalchemy.exc import IntegrityError

from itam.core.exceptions import (
    AssetTrackerError,
    ConflictError,
    DuplicateActiveAssignmentError,
    DuplicateAssetError,
    DuplicateEmployeeError,
    DuplicateProfileError,
    ValidationFailedError,
)


def translate_integrity_error(exc: IntegrityError, **context: Any) -> AssetTrackerError:
    """Return the domain error for an IntegrityError raised on flush or commit."""
    message = str(exc.orig if exc.orig is not None else exc).lower()

    if "not null" in message or "not-null" in message:
        return ValidationFailedError("A required field is missing", **context)

    if "uq_assignments_one_open_per_asset" in message or "assignments.asset_id" in message:
        return DuplicateActiveAssignmentError(context.get("asset_id"))
    if "uq_assets_serial_number" in message or "assets.serial_number" in message:
        return DuplicateAssetError("serial_number", context.get("serial_number"))
    if "uq_assets_asset_tag" in message or "assets.asset_tag" in message:
        return DuplicateAssetError("asset_tag", context.get("asset_tag"))
    if "uq_employees_badge_id" in message or "employees.badge_id" in message:
        return DuplicateEmployeeError("badge_id", context.get("badge_id"))
    if "uq_profiles_email" in message or "profiles.email" in message:
        return DuplicateProfileError(context.get("email"))
    if "uq_location_history_one_open_per_asset" in message or "location_history.asset_id" in message:
        return ConflictError(
            "Asset already has an open location record",
            asset_id=context.get("asset_id"),
        )
    if "ck_employees_left_requires_end_date" in message:
        return ValidationFailedError("end_date is required when status is left")
    if "ck_employees_end_after_start" in message:
        return ValidationFailedError("end_date cannot be before start_date")
    if "foreign key" in message:
        return ValidationFailedError("Referenced record does not exist", **context)
    return ConflictError("Data integrity violation", **context)
