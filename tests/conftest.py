"""
Shared fixtures: an in-memory SQLite database per test, a TestClient with
get_db overridden, and helpers that register users and seed data through the
public API.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["JWT_REFRESH_SECRET_KEY"] = "test-refresh-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SMTP_HOST"] = ""
os.environ["SMTP_USER"] = ""
os.environ["SMTP_PASS"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from main import app

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
def setup_database():
    Base.metadata.create_all(bind=engine)
    app.state.rate_limiter.store.clear()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def auth_headers(client):
    return register_and_login(client, "owner@test.com")


@pytest.fixture
def other_headers(client):
    return register_and_login(client, "other@test.com", name="Other")


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------


def register_and_login(client, email: str, password: str = "Pass123", name: str = "Owner") -> dict:
    r = client.post("/auth/register", json={"name": name, "email": email, "password": password})
    assert r.status_code == 201, r.text
    r = client.post("/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


def create_material(client, headers, name="Tepung", unit="kg", price_per_unit=10000, stock=0, **extra) -> dict:
    payload = {"name": name, "unit": unit, "price_per_unit": price_per_unit, "stock": stock, **extra}
    r = client.post("/materials", json=payload, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


def create_product(client, headers, name="Roti", selling_price=25000, materials=None) -> dict:
    payload = {"name": name, "selling_price": selling_price, "materials": materials or []}
    r = client.post("/products", json=payload, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


def create_income(client, headers, product_id, quantity=1, date="2024-05-10T10:00:00", **extra) -> dict:
    payload = {"product_id": product_id, "quantity": quantity, "date": date, **extra}
    r = client.post("/income", json=payload, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


def create_expense(client, headers, amount=5000, category="operasional",
                   description="Listrik", date="2024-05-10T10:00:00", **extra) -> dict:
    payload = {"amount": amount, "category": category, "description": description, "date": date, **extra}
    r = client.post("/expenses", json=payload, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()
