import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from database import Base, obtain_db_session
from config import settings

API = settings.API_PREFIX

engine = create_engine(
    settings.SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()

app.dependency_overrides[obtain_db_session] = override_get_db


@pytest.fixture(autouse=True)
def fresh_schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    return TestClient(app)


def register(client, name, email, role="staff", password="password123"):
    response = client.post(
        f"{API}/auth/register",
        json={"name": name, "email": email, "password": password, "role": role},
    )
    assert response.status_code == 201, response.json()
    return {"Authorization": f"Bearer {response.json()['data']['token']}"}


@pytest.fixture
def admin_header(client):
    return register(client, "Ada Admin", "admin@erp.com", role="admin")


@pytest.fixture
def staff_header(client):
    return register(client, "Sam Staff", "staff@erp.com")


@pytest.fixture
def category(client, staff_header):
    response = client.post(f"{API}/category", json={"name": "Electronics", "type": "product"}, headers=staff_header)
    assert response.status_code == 201
    return response.json()["data"]


@pytest.fixture
def supplier(client, staff_header):
    response = client.post(f"{API}/supplier", json={
        "name": "AGS Corp",
        "contactPerson": "Priya Nair",
        "phone": "+1 (555) 010-2000",
        "email": "Sales@AGSCorp.com",
        "address": "12 Harbour Road",
    }, headers=staff_header)
    assert response.status_code == 201
    return response.json()["data"]


@pytest.fixture
def make_product(client, staff_header, category):
    def _make(**overrides):
        payload = {
            "name": "Office Desk",
            "category": category["id"],
            "price": 8000.0,
            "quantity": 20,
            "type": "product",
        }
        payload.update(overrides)
        response = client.post(f"{API}/products", json=payload, headers=staff_header)
        assert response.status_code == 201, response.json()
        return response.json()["data"]
    return _make
