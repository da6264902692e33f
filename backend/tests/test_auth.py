from fastapi.testclient import TestClient

from rmerch.main import app
from rmerch.services.user_service import UserService
from rmerch.utils.security import decode_token

client = TestClient(app)


def _register(email="juan@example.com", password="secret123", role=None, name="Juan"):
    body = {"name": name, "email": email, "password": password}
    if role:
        body["role"] = role
    return client.post("/api/register", json=body)


def _token(res):
    return res.json()["data"]["token"]


def test_register_returns_token_with_identity_claims():
    res = _register(email="Juan@Example.com")
    assert res.status_code == 201
    data = res.json()["data"]
    assert data["user"]["email"] == "juan@example.com"
    assert "passwordHash" not in data["user"]
    claims = decode_token(data["token"])
    assert claims["email"] == "juan@example.com"
    assert claims["role"] == "user"
    assert claims["id"] == str(data["user"]["id"])


def test_register_validation_and_duplicates():
    assert _register(password="12345").status_code == 400
    assert client.post("/api/register", json={"email": "x@y.co"}).status_code == 400
    assert _register().status_code == 201
    assert _register(email="JUAN@example.com").status_code == 409


def test_login():
    _register()
    res = client.post("/api/login", json={"email": "juan@example.com", "password": "secret123"})
    assert res.status_code == 200
    assert decode_token(_token(res))["email"] == "juan@example.com"

    res = client.post("/api/login", json={"email": "juan@example.com", "password": "wrong-pass"})
    assert res.status_code == 401
    res = client.post("/api/login", json={"email": "ghost@example.com", "password": "secret123"})
    assert res.status_code == 401


def test_users_admin_endpoints_require_admin_token():
    assert client.get("/api/users").status_code == 401

    user_token = _token(_register())
    res = client.get("/api/users", headers={"Authorization": f"Bearer {user_token}"})
    assert res.status_code == 403

    res = client.get("/api/users", headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401


def test_admin_manages_users():
    admin = {"Authorization": f"Bearer {_token(_register(email='root@example.com', role='admin'))}"}
    juan = _register().json()["data"]["user"]
    _register(email="seller@example.com", role="seller")

    res = client.get("/api/users", headers=admin, params={"role": "seller"})
    assert res.status_code == 200
    assert [u["email"] for u in res.json()["data"]] == ["seller@example.com"]
    assert res.json()["pagination"]["total"] == 1

    res = client.patch(f"/api/users/{juan['id']}", headers=admin, json={"isActive": False, "role": "seller"})
    assert res.status_code == 200
    assert res.json()["data"]["isActive"] is False
    assert res.json()["data"]["role"] == "seller"

    # a deactivated account can't log in
    res = client.post("/api/login", json={"email": "juan@example.com", "password": "secret123"})
    assert res.status_code == 403

    res = client.patch(f"/api/users/{juan['id']}", headers=admin, json={"email": "seller@example.com"})
    assert res.status_code == 409

    assert client.delete(f"/api/users/{juan['id']}", headers=admin).status_code == 200
    assert client.delete(f"/api/users/{juan['id']}", headers=admin).status_code == 404


def test_duplicate_email_missed_by_the_lookup_is_still_409(monkeypatch):
    assert _register().status_code == 201
    # a second registration that raced past the existence check
    monkeypatch.setattr(UserService, "_by_email", lambda self, email: None)

    res = _register()
    assert res.status_code == 409
    assert res.json()["message"] == "Email is already registered"
