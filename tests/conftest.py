import mongomock
import pytest

from harvestchain import create_app
from harvestchain.services.admin.admin_service import AdminService
from harvestchain.services.farmer.farmer_service import FarmerService

TEST_URI = "mongodb://localhost:27017/harvestchain_test"

TEST_CONFIG = {
    "TESTING": True,
    "APP_ENV": "test",
    "MONGO_URI": TEST_URI,
    "JWT_SECRET_KEY": "test-jwt-secret-please-ignore-0123456789",
    "SETUP_SECRET": "let-me-in",
    "BCRYPT_LOG_ROUNDS": 4,
}


def farmer_payload(**overrides):
    data = {
        "firebaseUid": "uid-001",
        "name": "Ramesh Kumar",
        "phoneNumber": "+919876543210",
        "passcode": "1234",
        "aadharNumber": "123412341234",
        "location": "Nashik",
        "cropsGrown": ["Rice", "Wheat"],
    }
    data.update(overrides)
    return data


@pytest.fixture
def mongo_client():
    return mongomock.MongoClient(TEST_URI)


@pytest.fixture
def app(mongo_client):
    return create_app(TEST_CONFIG, client_factory=lambda uri, **options: mongo_client)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(app):
    return app.extensions["harvestchain"].db


@pytest.fixture
def farmers(db):
    return FarmerService(db)


@pytest.fixture
def admins(app, db):
    return AdminService(db)


@pytest.fixture
def admin_token(client):
    client.post("/api/admin/init-master")
    res = client.post("/api/admin/login", json={"username": "master", "password": "admin123"})
    assert res.status_code == 200
    return res.get_json()["data"]["token"]


@pytest.fixture
def auth_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}
