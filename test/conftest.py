import logging
import os
from datetime import date

import pytest
from dotenv import find_dotenv, load_dotenv
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.db import Base, get_db
from app.main import fleet_app
from app.fleet.schemas import CabCreate, CabShiftCreate, CabType, DriverCreate, ShareType, ShiftType
from app.fleet.services import FleetService
from app.attributes.schemas import AttributeCategory, AttributeTypeCreate
from app.attributes.services import AttributeService

# Importing app.main registers every model on Base
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite://")

# Logging setup
logger = logging.getLogger(__name__)

# Load environment variables
env_file = find_dotenv(f".env{os.getenv('ENV', '')}")
logger.info("Fetching env_file %s", env_file)
load_dotenv(env_file)


# Database engine and session setup
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Database Fixture
@pytest.fixture()
def db_session():
    """
    Fresh schema per test, dropped afterwards.
    """
    Base.metadata.create_all(bind=engine)
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def second_session(db_session):
    """
    Independent session on the same database, for interleaved writers.
    """
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(db_session):
    """
    TestClient whose requests share the test session.
    """
    def override_get_db():
        yield db_session

    fleet_app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(fleet_app)
    finally:
        fleet_app.dependency_overrides.clear()


# --- Fleet records ---

@pytest.fixture()
def fleet(db_session):
    return FleetService(db_session)


@pytest.fixture()
def owner(fleet):
    return fleet.create_driver(DriverCreate(driver_number="O1", first_name="Olga", is_owner=True))


@pytest.fixture()
def cab(fleet, owner):
    return fleet.create_cab(CabCreate(
        cab_number="C1",
        cab_type=CabType.SEDAN,
        share_type=ShareType.VOTING_SHARE,
        has_airport_license=True,
        owner_driver_number="O1",
    ))


@pytest.fixture()
def night_shift(fleet, cab):
    return fleet.create_shift(CabShiftCreate(cab_number="C1", shift_type=ShiftType.NIGHT))


@pytest.fixture()
def day_shift(fleet, cab):
    return fleet.create_shift(CabShiftCreate(cab_number="C1", shift_type=ShiftType.DAY))


@pytest.fixture()
def attributes(db_session):
    return AttributeService(db_session)


@pytest.fixture()
def transponder(attributes):
    """Attribute type held without a value."""
    return attributes.create_type(AttributeTypeCreate(
        attribute_code="TRANSPONDER",
        attribute_name="EZ-Pass transponder",
        category=AttributeCategory.EQUIPMENT,
    ))


@pytest.fixture()
def rating(attributes):
    """Attribute type that always carries a value."""
    return attributes.create_type(AttributeTypeCreate(
        attribute_code="RATING",
        attribute_name="Vehicle rating",
        category=AttributeCategory.TYPE,
        requires_value=True,
    ))


@pytest.fixture()
def monday():
    return date(2025, 1, 6)
