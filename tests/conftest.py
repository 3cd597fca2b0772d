import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["KHALTI_SECRET_KEY"] = "test_secret_key"
os.environ["LOG_LEVEL"] = "warning"

import httpx
import pytest
from fastapi.testclient import TestClient

import medicare.models  # noqa: F401
from medicare.config.database import Base, SessionLocal, engine, get_db
from medicare.models.doctor import Doctor
from medicare.models.user import User, UserRole
from medicare.services.availability_service import AvailabilityService
from medicare.services.khalti_service import KhaltiGateway, get_payment_gateway
from medicare.utils.security import create_access_token, hash_password

KHALTI_TEST_URL = "https://khalti.test/api/v2"


class FakeKhalti:
    """Scriptable stand-in for the Khalti API, recording every request it receives."""

    def __init__(self):
        self.requests = []
        self.initiate_reply = (200, {"pidx": "pidx-123", "payment_url": "https://pay.khalti.test/?pidx=pidx-123"})
        self.lookup_reply = (200, {"pidx": "pidx-123", "status": "Completed", "transaction_id": "TXN-1"})
        self.error = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        status_code, body = self.initiate_reply if request.url.path.endswith("/epayment/initiate/") else self.lookup_reply
        if isinstance(body, (dict, list)):
            return httpx.Response(status_code, json=body)
        return httpx.Response(status_code, text=body)

    def gateway(self) -> KhaltiGateway:
        return KhaltiGateway(
            secret_key="test_secret_key",
            base_url=KHALTI_TEST_URL,
            timeout=5.0,
            transport=httpx.MockTransport(self.handler),
        )


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make_user(name=None, email=None, role=UserRole.PATIENT, password="secret123", is_blocked=False):
        counter["n"] += 1
        user = User(
            name=name or f"User {counter['n']}",
            email=(email or f"user{counter['n']}@example.com").lower(),
            password_hash=hash_password(password),
            role=role,
            is_blocked=is_blocked,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_doctor(db, make_user):
    def _make_doctor(name="Dr. Richard James", approved=True, available=True, fee=50, specialty="General Physician", availability=None):
        user = make_user(name=name, role=UserRole.DOCTOR)
        doctor = Doctor(
            user_id=user.id,
            specialty=specialty,
            experience=4,
            fee=fee,
            approved=approved,
            available=available,
        )
        db.add(doctor)
        db.commit()
        db.refresh(doctor)
        if availability is not None:
            AvailabilityService.set_availability(db, user.id, availability)
        return doctor

    return _make_doctor


@pytest.fixture
def patient(make_user):
    return make_user(name="Patient One", email="patient@example.com")


@pytest.fixture
def doctor(make_doctor):
    return make_doctor()


@pytest.fixture
def admin(make_user):
    return make_user(name="System Admin", email="admin@example.com", role=UserRole.ADMIN)


@pytest.fixture
def khalti():
    return FakeKhalti()


@pytest.fixture
def client(db, khalti):
    from medicare.main import app

    def override_get_db():
        session = SessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = khalti.gateway
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _auth_headers(user):
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _auth_headers
