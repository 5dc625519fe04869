"""
Database models
"""
from itam.models.user import Profile, UserRole, AppRole
from itam.models.employee import Employee, EmploymentStatus
from itam.models.location import Location, LocationHistory, LocationType
from itam.models.asset import (
    Asset,
    StorageUnit,
    AssetStatus,
    AssetType,
    Ownership,
    DataClassification,
    StorageType,
    StorageHealth,
)
from itam.models.assignment import Assignment, AssignmentStatus, ChangeType
from itam.models.maintenance import MaintenanceEvent, MaintenanceType
from itam.models.audit_log import AuditLog, AuditAction, AuditEntityType
from itam.models.offboarding import OffboardingRecord
from itam.db.immutability import register_immutability_listeners

register_immutability_listeners()

__all__ = [
    "Profile",
    "UserRole",
    "AppRole",
    "Employee",
    "EmploymentStatus",
    "Location",
    "LocationHistory",
    "LocationType",
    "Asset",
    "StorageUnit",
    "AssetStatus",
    "AssetType",
    "Ownership",
    "DataClassification",
    "StorageType",
    "StorageHealth",
    "Assignment",
    "AssignmentStatus",
    "ChangeType",
    "MaintenanceEvent",
    "MaintenanceType",
    "AuditLog",
    "AuditAction",
    "AuditEntityType",
    "OffboardingRecord",
]
