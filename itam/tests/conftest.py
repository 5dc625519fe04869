"""
Pytest configuration and fixtures
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-the-asset-tracker-suite")

from datetime import date, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from itam.main import app
from itam.db.base import Base
from itam.core.deps import get_db
from itam.core.security import create_access_token, hash_password
from itam.models.asset import Asset, AssetStatus, AssetType, Ownership
from itam.models.employee import Employee, EmploymentStatus
from itam.models.location import Location, LocationType
from itam.models.user import AppRole, Profile, UserRole


# Use in-memory SQLite for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# Enable foreign keys for SQLite
@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """Test client fixture with database override"""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _make_profile(db: Session, email: str, roles, is_active: bool = True) -> Profile:
    profile = Profile(
        email=email,
        full_name=email.split("@")[0].title(),
        password_hash=hash_password("testpass123"),
        is_active=is_active,
    )
    profile.roles = [UserRole(role=role) for role in roles]
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile


@pytest.fixture
def admin_user(db: Session):
    return _make_profile(db, "admin@example.com", [AppRole.ADMIN])


@pytest.fixture
def it_user(db: Session):
    return _make_profile(db, "it@example.com", [AppRole.IT])


@pytest.fixture
def hr_user(db: Session):
    return _make_profile(db, "hr@example.com", [AppRole.HR])


@pytest.fixture
def auditor_user(db: Session):
    return _make_profile(db, "auditor@example.com", [AppRole.AUDITOR])


@pytest.fixture
def no_role_user(db: Session):
    """Authenticated profile without any role"""
    return _make_profile(db, "viewer@example.com", [])


def auth_headers(profile: Profile) -> dict:
    """Bearer header for a profile"""
    token = create_access_token({"sub": str(profile.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_employee(db: Session):
    """Factory for employees"""
    counter = {"n": 0}

    def _make(status: EmploymentStatus = EmploymentStatus.ACTIVE, **overrides) -> Employee:
        counter["n"] += 1
        n = counter["n"]
        values = dict(
            name=f"Name{n}",
            surname=f"Surname{n}",
            department="Engineering",
            badge_id=f"B{n:04d}",
            health_card_id=f"HC{n:04d}",
            status=status,
            start_date=date.today() - timedelta(days=365),
        )
        if status == EmploymentStatus.LEFT:
            values["end_date"] = date.today() - timedelta(days=1)
        values.update(overrides)
        employee = Employee(**values)
        db.add(employee)
        db.commit()
        db.refresh(employee)
        return employee

    return _make


@pytest.fixture
def make_asset(db: Session):
    """Factory for assets; defaults to a spare laptop"""
    counter = {"n": 0}

    def _make(status: AssetStatus = AssetStatus.SPARE, **overrides) -> Asset:
        counter["n"] += 1
        n = counter["n"]
        values = dict(
            asset_tag=f"LT-{n:04d}",
            type=AssetType.LAPTOP,
            manufacturer="Lenovo",
            model="ThinkPad T14",
            serial_number=f"SN{n:06d}",
            status=status,
            ownership=Ownership.ORG_A,
            is_readonly=status == AssetStatus.DISPOSED,
            purchase_date=date(2023, 1, 1),
            purchase_cost=Decimal("1200.00"),
        )
        values.update(overrides)
        asset = Asset(**values)
        db.add(asset)
        db.commit()
        db.refresh(asset)
        return asset

    return _make


@pytest.fixture
def make_location(db: Session):
    """Factory for locations"""
    counter = {"n": 0}

    def _make(**overrides) -> Location:
        counter["n"] += 1
        values = dict(
            name=f"Office {counter['n']}",
            type=LocationType.OFFICE,
            building="HQ",
            floor=str(counter["n"]),
            is_active=True,
        )
        values.update(overrides)
        location = Location(**values)
        db.add(location)
        db.commit()
        db.refresh(location)
        return location

    return _make


@pytest.fixture
def admin_headers(admin_user):
    return auth_headers(admin_user)


@pytest.fixture
def it_headers(it_user):
    return auth_headers(it_user)


@pytest.fixture
def hr_headers(hr_user):
    return auth_headers(hr_user)


@pytest.fixture
def auditor_headers(auditor_user):
    return auth_headers(auditor_user)


@pytest.fixture
def no_role_headers(no_role_user):
    return auth_headers(no_role_user)
