import os

# Settings are read once at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["REDIS_URL"] = ""
os.environ["SEED_PLATFORMS_ON_STARTUP"] = "false"
os.environ["SECRET_KEY"] = "test-secret"

import pytest
from fastapi.testclient import TestClient

import models  # noqa: F401
from app import app
from database import Base, SessionLocal, engine
from models.user import User, UserRole
from services.platform_catalog import seed_platforms


@pytest.fixture(autouse=True)
def fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def platforms(db):
    seed_platforms(db)
    return {p.slug: p.platform_id for p in db.query(models.DeliveryPlatform).all()}


def register(client, email="driver@example.com", password="password123", **extra):
    payload = {
        "email": email,
        "password": password,
        "firstName": "Dana",
        "lastName": "Driver",
        **extra,
    }
    response = client.post("/api/auth/register", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def worker(client):
    data = register(client)
    return {"user": data["user"], "token": data["token"], "headers": bearer(data["token"])}


@pytest.fixture
def super_admin(client, db):
    data = register(client, email="admin@example.com")
    user = db.query(User).filter(User.user_id == data["user"]["id"]).first()
    user.role = UserRole.SUPER_ADMIN
    db.commit()

    # Role lives in the token, so sign in again
    response = client.post("/api/auth/login", json={"email": "admin@example.com", "password": "password123"})
    token = response.json()["token"]
    return {"user": response.json()["user"], "token": token, "headers": bearer(token)}
