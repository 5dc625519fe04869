"""
Assignment model: the time-bounded binding of one asset to one employee
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Date, ForeignKey, Text, Index, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from itam.db.base import Base
from itam.db.types import enum_type


class AssignmentStatus(str, enum.Enum):
    PENDING_ACCEPTANCE = "pending_acceptance"
    ACTIVE = "active"
    PENDING_RETURN = "pending_return"
    RETURNED = "returned"


class ChangeType(str, enum.Enum):
    UPGRADE = "upgrade"
    MAINTENANCE = "maintenance"
    DAMAGED = "damaged"
    EMPLOYEE_LEFT = "employee_left"
    REASSIGNMENT = "reassignment"
    END_OF_LIFE = "end_of_life"
    REPLACEMENT = "replacement"
    OTHER = "other"


OPEN_ASSIGNMENT_PREDICATE = "status IN ('pending_acceptance', 'active')"


class Assignment(Base):
    __tablename__ = "assignments"

    id = Column(Integer, primary_key=True, index=True)
    asset_id = Column(Integer, ForeignKey("assets.id"), nullable=False, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    status = Column(
        enum_type(AssignmentStatus, "assignment_status"),
        nullable=False,
        default=AssignmentStatus.PENDING_ACCEPTANCE,
        index=True,
    )
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)

    # Acceptance
    accepted_at = Column(DateTime(timezone=True), nullable=True)
    accepted_by = Column(Integer, ForeignKey("profiles.id"), nullable=True)
    acceptance_notes = Column(Text, nullable=True)
    digital_acknowledgment = Column(Boolean, default=False, nullable=False)

    # Return / closure
    returned_at = Column(DateTime(timezone=True), nullable=True)
    returned_by = Column(Integer, ForeignKey("profiles.id"), nullable=True)
    return_condition = Column(String, nullable=True)
    damage_notes = Column(Text, nullable=True)
    requires_formatting = Column(Boolean, default=False, nullable=False)
    change_type = Column(enum_type(ChangeType, "change_type"), nullable=True)
    change_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    created_by = Column(Integer, ForeignKey("profiles.id"), nullable=True)

    # Relationships
    asset = relationship("Asset", back_populates="assignments")
    employee = relationship("Employee", back_populates="assignments")

    __table_args__ = (
        # At most one open assignment per asset
        Index(
            "uq_assignments_one_open_per_asset",
            "asset_id",
            unique=True,
            postgresql_where=text(OPEN_ASSIGNMENT_PREDICATE),
            sqlite_where=text(OPEN_ASSIGNMENT_PREDICATE),
        ),
        Index("ix_assignments_employee_status", "employee_id", "status"),
    )
