"""
Employee model
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Date, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from itam.db.base import Base
from itam.db.types import enum_type


class EmploymentStatus(str, enum.Enum):
    ACTIVE = "active"
    LEFT = "left"


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    surname = Column(String, nullable=False, index=True)
    department = Column(String, nullable=False)
    badge_id = Column(String, nullable=False)
    health_card_id = Column(String, nullable=False)
    status = Column(enum_type(EmploymentStatus, "employment_status"), nullable=False, default=EmploymentStatus.ACTIVE)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)  # Required once status = left
    is_offboarding_complete = Column(Boolean, default=False, nullable=False)
    offboarding_completed_at = Column(DateTime(timezone=True), nullable=True)
    offboarding_completed_by = Column(Integer, ForeignKey("profiles.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    created_by = Column(Integer, ForeignKey("profiles.id"), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp(), nullable=False)
    updated_by = Column(Integer, ForeignKey("profiles.id"), nullable=True)

    # Relationships
    assignments = relationship("Assignment", back_populates="employee", order_by="Assignment.start_date.desc()")
    offboarding_records = relationship("OffboardingRecord", back_populates="employee")

    __table_args__ = (
        UniqueConstraint("badge_id", name="uq_employees_badge_id"),
        CheckConstraint(
            "status <> 'left' OR end_date IS NOT NULL",
            name="ck_employees_left_requires_end_date",
        ),
        CheckConstraint(
            "end_date IS NULL OR end_date >= start_date",
            name="ck_employees_end_after_start",
        ),
    )

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.surname}"
