"""
Asset and storage unit models
"""
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Date, ForeignKey, Text, Numeric, JSON, UniqueConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from itam.db.base import Base
from itam.db.types import enum_type


class AssetStatus(str, enum.Enum):
    PLANNED = "planned"
    ORDERED = "ordered"
    IN_USE = "in_use"
    SPARE = "spare"
    UNDER_REPAIR = "under_repair"
    QUARANTINED = "quarantined"
    RETIRED = "retired"
    DISPOSED = "disposed"


class AssetType(str, enum.Enum):
    LAPTOP = "laptop"
    DESKTOP = "desktop"
    MONITOR = "monitor"
    SERVER = "server"
    NETWORK_DEVICE = "network_device"
    ACCESSORY = "accessory"


class Ownership(str, enum.Enum):
    ORG_A = "OrgA"
    ORG_B = "OrgB"
    ORG_C = "OrgC"


class DataClassification(str, enum.Enum):
    PUBLIC = "public"
    INTERNAL = "internal"
    CONFIDENTIAL = "confidential"
    RESTRICTED = "restricted"


class StorageType(str, enum.Enum):
    HDD = "HDD"
    SSD = "SSD"
    NVME = "NVMe"


class StorageHealth(str, enum.Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"


class Asset(Base):
    __tablename__ = "assets"

    id = Column(Integer, primary_key=True, index=True)
    asset_tag = Column(String, nullable=False, index=True)  # Human-facing inventory code
    type = Column(enum_type(AssetType, "asset_type"), nullable=False, index=True)
    manufacturer = Column(String, nullable=False)
    model = Column(String, nullable=False)
    serial_number = Column(String, nullable=False)
    hostname = Column(String, nullable=True)
    operating_system = Column(String, nullable=True)
    status = Column(enum_type(AssetStatus, "asset_status"), nullable=False, default=AssetStatus.PLANNED, index=True)
    ownership = Column(enum_type(Ownership, "ownership_type"), nullable=False)
    current_location_id = Column(Integer, ForeignKey("locations.id"), nullable=True, index=True)
    is_readonly = Column(Boolean, default=False, nullable=False)

    # Procurement / finance
    purchase_date = Column(Date, nullable=True)
    purchase_cost = Column(Numeric(12, 2), nullable=True)
    useful_life_years = Column(Integer, nullable=True)
    warranty_expiry = Column(Date, nullable=True)
    cost_center = Column(String, nullable=True)
    budget_owner = Column(String, nullable=True)

    # Security posture
    security_compliant = Column(Boolean, nullable=True)
    disk_encryption_enabled = Column(Boolean, nullable=True)
    antivirus_edr_present = Column(Boolean, nullable=True)
    admin_privileges_granted = Column(Boolean, nullable=True)
    data_classification = Column(enum_type(DataClassification, "data_classification"), nullable=True)
    last_security_check = Column(Date, nullable=True)

    specs = Column(JSON, nullable=True)  # cpu, ram, motherboard, graphics, display
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    created_by = Column(Integer, ForeignKey("profiles.id"), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp(), nullable=False)
    updated_by = Column(Integer, ForeignKey("profiles.id"), nullable=True)

    # Relationships
    current_location = relationship("Location", back_populates="assets")
    storage_units = relationship("StorageUnit", back_populates="asset", order_by="StorageUnit.id")
    assignments = relationship("Assignment", back_populates="asset", order_by="Assignment.start_date.desc()")

    __table_args__ = (
        UniqueConstraint("serial_number", name="uq_assets_serial_number"),
        UniqueConstraint("asset_tag", name="uq_assets_asset_tag"),
    )


class StorageUnit(Base):
    __tablename__ = "storage_units"

    id = Column(Integer, primary_key=True, index=True)
    asset_id = Column(Integer, ForeignKey("assets.id"), nullable=False, index=True)
    type = Column(enum_type(StorageType, "storage_type"), nullable=False)
    capacity = Column(String, nullable=False)  # e.g. "512GB"
    health = Column(enum_type(StorageHealth, "storage_health"), nullable=False, default=StorageHealth.HEALTHY)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp(), nullable=False)

    asset = relationship("Asset", back_populates="storage_units")
