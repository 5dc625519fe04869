"""
Typed exception hierarchy for the IT asset tracker

Every error carries a machine-readable ``kind`` and the HTTP status the API
answers with. Services raise these; ``itam.core.errors`` turns them into the
JSON error envelope.

    AssetTrackerError
    +-- NotFoundError
    +-- ValidationFailedError
    +-- PreconditionError
    |   +-- EmployeeInactiveError
    |   +-- AssetNotAssignableError
    |   +-- DuplicateActiveAssignmentError
    |   +-- InvalidTransitionError
    |   +-- CannotRetireAssignedAssetError
    |   +-- EmployeeHasActiveAssignmentsError
    |   +-- ReadonlyAssetError
    |   +-- ImmutableRecordError
    +-- ConflictError
    |   +-- DuplicateAssetError
    |   +-- DuplicateEmployeeError
    |   +-- DuplicateProfileError
"""
from typing import Any, Dict, Optional


class AssetTrackerError(Exception):
    """Base exception for all asset tracker errors."""

    kind: str = "AssetTrackerError"
    status_code: int = 400

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.context: Dict[str, Any] = context
        super().__init__(message)


class NotFoundError(AssetTrackerError):
    """Referenced entity does not exist."""

    kind = "NotFound"
    status_code = 404

    def __init__(self, entity_type: str, entity_id: Any):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"{entity_type.capitalize()} with id {entity_id} not found",
            entity_type=entity_type,
            entity_id=entity_id,
        )


class ValidationFailedError(AssetTrackerError):
    """Input passed schema validation but breaks a field-level rule."""

    kind = "ValidationFailed"
    status_code = 422


# Business-rule violations


class PreconditionError(AssetTrackerError):
    """Base exception for business-rule violations."""

    kind = "PreconditionFailed"
    status_code = 409


class EmployeeInactiveError(PreconditionError):
    kind = "EmployeeInactive"

    def __init__(self, employee_id: int):
        self.employee_id = employee_id
        super().__init__(
            f"Employee {employee_id} is not active and cannot receive assignments",
            employee_id=employee_id,
        )


class AssetNotAssignableError(PreconditionError):
    kind = "AssetNotAssignable"

    def __init__(self, asset_id: int, reason: str):
        self.asset_id = asset_id
        self.reason = reason
        super().__init__(f"Asset {asset_id} cannot be assigned: {reason}", asset_id=asset_id)


class DuplicateActiveAssignmentError(PreconditionError):
    kind = "DuplicateActiveAssignment"

    def __init__(self, asset_id: int, existing_assignment_id: Optional[int] = None):
        self.asset_id = asset_id
        self.existing_assignment_id = existing_assignment_id
        super().__init__(
            f"Asset {asset_id} already has an open assignment",
            asset_id=asset_id,
            existing_assignment_id=existing_assignment_id,
        )


class InvalidTransitionError(PreconditionError):
    kind = "InvalidTransition"

    def __init__(self, assignment_id: int, current_status: str, action: str):
        self.assignment_id = assignment_id
        self.current_status = current_status
        self.action = action
        super().__init__(
            f"Cannot {action} assignment {assignment_id} in status {current_status}",
            assignment_id=assignment_id,
            current_status=current_status,
            action=action,
        )


class CannotRetireAssignedAssetError(PreconditionError):
    kind = "CannotRetireAssignedAsset"

    def __init__(self, asset_id: int, new_status: str, open_count: int):
        self.asset_id = asset_id
        self.new_status = new_status
        self.open_count = open_count
        super().__init__(
            f"Cannot set asset {asset_id} to {new_status} with {open_count} active assignment(s). "
            f"Please return the asset first.",
            asset_id=asset_id,
            new_status=new_status,
            open_count=open_count,
        )


class EmployeeHasActiveAssignmentsError(PreconditionError):
    kind = "EmployeeHasActiveAssignments"

    def __init__(self, employee_id: int, count: int):
        self.employee_id = employee_id
        self.count = count
        super().__init__(
            f"Employee has {count} active assignment(s). "
            f"Please return all assets before marking as left.",
            employee_id=employee_id,
            count=count,
        )


class ReadonlyAssetError(PreconditionError):
    kind = "ReadonlyAssetError"

    def __init__(self, asset_id: Optional[int]):
        self.asset_id = asset_id
        super().__init__(
            "Cannot modify a disposed asset. This record is read-only.",
            asset_id=asset_id,
        )


class ImmutableRecordError(PreconditionError):
    """Attempt to rewrite or delete a history record."""

    kind = "ImmutableRecord"

    def __init__(self, entity_type: str, entity_id: Any, detail: str = "history records cannot be modified"):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"{entity_type} {entity_id} is immutable: {detail}",
            entity_type=entity_type,
            entity_id=entity_id,
        )


# Uniqueness conflicts


class ConflictError(AssetTrackerError):
    kind = "Conflict"
    status_code = 409


class DuplicateAssetError(ConflictError):
    kind = "DuplicateAsset"

    def __init__(self, field: str, value: Any):
        self.field = field
        self.value = value
        super().__init__(f"Asset with {field} '{value}' already exists", field=field, value=value)


class DuplicateEmployeeError(ConflictError):
    kind = "DuplicateEmployee"

    def __init__(self, field: str, value: Any):
        self.field = field
        self.value = value
        super().__init__(f"Employee with {field} '{value}' already exists", field=field, value=value)


class DuplicateProfileError(ConflictError):
    kind = "DuplicateProfile"

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Profile with email '{email}' already exists", email=email)
