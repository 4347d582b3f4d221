"""
Pytest Konfiguration und gemeinsame Fixtures
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from growtrack.main import app
from growtrack.config import Settings
from growtrack.core.events import TrayEventBus
from growtrack.database import Base, get_db
from growtrack.models.enums import CropCategory, SpotKind, SystemType
from growtrack.services.system_service import GrowingSystemService, SectionInput


# Test-Datenbank (SQLite in-memory)
SQLALCHEMY_TEST_DATABASE_URL = "sqlite://"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    """Test-DB Session"""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


# Dependency Override
app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(scope="function")
def db():
    """Datenbankverbindung für Tests"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    yield db
    db.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client():
    """Test Client mit frischer Datenbank"""
    from growtrack.api.deps import get_current_user

    async def override_auth():
        return {
            "id": "123e4567-e89b-12d3-a456-426614174000",
            "username": "testuser",
            "email": "test@example.com",
            "roles": ["admin", "grower"]
        }

    app.dependency_overrides[get_current_user] = override_auth

    Base.metadata.create_all(bind=engine)
    yield TestClient(app)
    Base.metadata.drop_all(bind=engine)

    app.dependency_overrides.pop(get_current_user, None)


@pytest.fixture
def settings():
    """Einstellungen unabhängig von Umgebung und .env"""
    return Settings(_env_file=None, default_location_code="K", default_growth_days=21, blackout_days=2)


@pytest.fixture
def event_bus():
    """Event-Bus, der alle zugestellten Ereignisse sammelt"""
    bus = TrayEventBus()
    bus.received = []
    bus.subscribe(bus.received.append)
    return bus


@pytest.fixture
def systems(db):
    """Kleines Layout: Nursery, Blackout, Regal, Turm, Ebb & Flow, NFT 4×18"""
    service = GrowingSystemService(db)
    return {
        "nursery": service.provision(
            "mg-nursery", "Microgreen Nursery", SystemType.NURSERY,
            CropCategory.MICROGREENS, "Grow Space", capacity=10,
        ),
        "blackout": service.provision(
            "mg-blackout", "Blackout Area", SystemType.BLACKOUT,
            CropCategory.MICROGREENS, "Grow Space", capacity=10,
        ),
        "rack": service.provision(
            "mg-rack-1", "Microgreen Rack 1", SystemType.MICROGREEN_RACK,
            CropCategory.MICROGREENS, "Grow Space", capacity=10,
        ),
        "ebb": service.provision(
            "ebb-flow-a", "Ebb & Flow A", SystemType.EBB_FLOW,
            CropCategory.LEAFY_GREENS, "Grow Space",
            sections=[SectionInput("A", 16, SpotKind.SPACES)],
        ),
        "tower": service.provision(
            "tower-a1", "Tower A1", SystemType.TOWER,
            CropCategory.LEAFY_GREENS, "Grow Space",
            sections=[SectionInput("A1", 44, SpotKind.PORTS)],
        ),
        "nft": service.provision(
            "nft-1", "NFT Shelf 1", SystemType.NFT_CHANNEL_GROUP,
            CropCategory.LEAFY_GREENS, "Grow Space",
            sections=[SectionInput(f"CH{c}", 18, SpotKind.SLOTS) for c in range(1, 5)],
            same_per_channel=True,
        ),
    }


@pytest.fixture
def spot_ids():
    """Spot-IDs wie beim Anlegen vergeben"""
    def build(system_id: str, *numbers: int, section: int | None = None) -> list[str]:
        if section is None:
            return [f"{system_id}-{n}" for n in numbers]
        return [f"{system_id}-{section}-{n}" for n in numbers]
    return build
