"""
Offboarding record model
"""
from sqlalchemy import Column, Integer, DateTime, ForeignKey, Text, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from itam.db.base import Base


class OffboardingRecord(Base):
    __tablename__ = "offboarding_records"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    initiated_at = Column(DateTime(timezone=True), nullable=False)
    initiated_by = Column(Integer, ForeignKey("profiles.id"), nullable=True)
    pending_assets = Column(JSON, nullable=True)  # asset ids still held when offboarding started
    returned_assets = Column(JSON, nullable=True)  # asset ids handed back during employment
    completed_at = Column(DateTime(timezone=True), nullable=True)
    completed_by = Column(Integer, ForeignKey("profiles.id"), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)

    employee = relationship("Employee", back_populates="offboarding_records")
