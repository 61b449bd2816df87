import os
import sys

# Must be set before the app modules read their configuration
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["CACHE_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
os.environ.pop("MAPBOX_TOKEN", None)

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.auth import create_access_token, hash_password
from app.database import Base, get_db
from app.main import app
from app.models import Profile, ProviderService, Service, ServiceCategory, User, UserRole, Vehicle

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make_user(
        role: str = UserRole.CUSTOMER.value,
        approved: bool = True,
        full_name: str = None,
        lat: float = None,
        lng: float = None,
        available: bool = True,
        email: str = None,
    ) -> User:
        counter["n"] += 1
        user = User(
            email=email or f"{role.lower()}{counter['n']}@example.com",
            hashed_password=hash_password("password123"),
            role=role,
            is_approved=approved,
        )
        user.profile = Profile(
            full_name=full_name,
            latitude=lat,
            longitude=lng,
            is_available=available,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def service(db):
    category = ServiceCategory(name="Roadside", description="On the spot fixes")
    db.add(category)
    db.flush()
    svc = Service(category_id=category.id, name="Battery jump start", base_price=50.0)
    db.add(svc)
    db.commit()
    db.refresh(svc)
    return svc


@pytest.fixture
def customer(make_user):
    return make_user(UserRole.CUSTOMER.value, full_name="Sara Customer")


@pytest.fixture
def vehicle(db, customer):
    car = Vehicle(user_id=customer.id, make="Toyota", model="Corolla", year=2018, license_plate="12 B 345")
    db.add(car)
    db.commit()
    db.refresh(car)
    return car


@pytest.fixture
def make_provider(db, make_user, service):
    """Approved provider offering the test service"""

    def _make_provider(**kwargs) -> User:
        kwargs.setdefault("full_name", "Reza Mechanic")
        provider = make_user(UserRole.PROVIDER.value, **kwargs)
        db.add(ProviderService(provider_id=provider.id, service_id=service.id, is_active=True))
        db.commit()
        return provider

    return _make_provider


@pytest.fixture
def create_booking(client, customer, vehicle, service):
    def _create_booking(lat: float = 35.7, lng: float = 51.4, **extra) -> dict:
        payload = {
            "serviceId": service.id,
            "vehicleId": vehicle.id,
            "lat": lat,
            "lng": lng,
            "description": "Car won't start",
            **extra,
        }
        response = client.post("/bookings", json=payload, headers=auth_headers(customer))
        assert response.status_code == 201, response.text
        return response.json()

    return _create_booking
