from datetime import timedelta

from conftest import bearer, register
from models.session import UserSession
from utils.security import create_access_token


def test_register_returns_user_and_token(client):
    data = register(client, email="New.Driver@Example.com", phone="555-0100")

    assert data["token"]
    assert data["user"]["email"] == "new.driver@example.com"
    assert data["user"]["firstName"] == "Dana"
    assert data["user"]["role"] == "WORKER"
    assert "passwordHash" not in data["user"]


def test_register_duplicate_email_conflicts(client):
    register(client)
    response = client.post("/api/auth/register", json={
        "email": "driver@example.com",
        "password": "password123",
        "firstName": "Other",
        "lastName": "Person",
    })

    assert response.status_code == 409
    assert response.json() == {"error": "Email already registered"}


def test_register_short_password_is_validation_error(client):
    response = client.post("/api/auth/register", json={
        "email": "driver@example.com",
        "password": "short",
        "firstName": "Dana",
        "lastName": "Driver",
    })

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Validation failed"
    assert any(d["field"] == "password" for d in body["details"])


def test_login_success_and_failures(client):
    register(client)

    ok = client.post("/api/auth/login", json={"email": "driver@example.com", "password": "password123"})
    assert ok.status_code == 200
    assert ok.json()["user"]["email"] == "driver@example.com"

    wrong_password = client.post("/api/auth/login", json={"email": "driver@example.com", "password": "nope-nope"})
    unknown_email = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "password123"})

    assert wrong_password.status_code == 401
    assert unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {"error": "Invalid email or password"}


def test_me_requires_bearer_token(client):
    response = client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.json() == {"error": "Missing or invalid authorization header"}

    response = client.get("/api/auth/me", headers={"Authorization": "Token abc"})
    assert response.status_code == 401


def test_me_rejects_bad_and_expired_tokens(client, worker):
    response = client.get("/api/auth/me", headers=bearer("not-a-jwt"))
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid or expired token"}

    expired = create_access_token(
        {"sub": str(worker["user"]["id"]), "email": worker["user"]["email"], "role": "WORKER"},
        expires_delta=timedelta(seconds=-10),
    )
    response = client.get("/api/auth/me", headers=bearer(expired))
    assert response.status_code == 401


def test_me_returns_profile(client, worker):
    response = client.get("/api/auth/me", headers=worker["headers"])

    assert response.status_code == 200
    assert response.json()["user"]["id"] == worker["user"]["id"]


def test_each_login_opens_a_distinct_session(client, db, worker):
    second = client.post("/api/auth/login", json={"email": "driver@example.com", "password": "password123"})

    assert second.json()["token"] != worker["token"]
    assert db.query(UserSession).filter(UserSession.user_id == worker["user"]["id"]).count() == 2


def test_logout_removes_only_the_presented_session(client, db, worker):
    second = client.post("/api/auth/login", json={"email": "driver@example.com", "password": "password123"})
    second_token = second.json()["token"]

    response = client.post("/api/auth/logout", headers=worker["headers"])
    assert response.status_code == 200
    assert response.json() == {"message": "Logged out"}

    tokens = [s.token for s in db.query(UserSession).all()]
    assert worker["token"] not in tokens
    assert second_token in tokens


def test_password_whitespace_is_kept(client):
    register(client, email="spaces@example.com", password="  padded pass  ")

    exact = client.post("/api/auth/login", json={"email": "spaces@example.com", "password": "  padded pass  "})
    trimmed = client.post("/api/auth/login", json={"email": "spaces@example.com", "password": "padded pass"})

    assert exact.status_code == 200
    assert trimmed.status_code == 401
