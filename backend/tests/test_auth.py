from datetime import timedelta

from ayasync.core.security import create_access_token, decode_access_token
from ayasync.models.user import User


def test_register_then_login(client):
    response = client.post(
        "/api/auth/register",
        json={"email": "alice@example.com", "password": "pw123456", "name": "Alice"},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["ok"] is True
    assert body["user"]["email"] == "alice@example.com"
    assert body["user"]["name"] == "Alice"
    user_id = body["user"]["id"]

    response = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "pw123456"})
    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["token"]
    assert body["user"] == {"id": user_id, "email": "alice@example.com", "name": "Alice", "role": "user"}

    payload = decode_access_token(body["token"])
    assert payload["sub"] == user_id
    assert payload["email"] == "alice@example.com"
    assert payload["role"] == "user"


def test_register_duplicate_email_conflicts(client, register_user):
    register_user("alice@example.com", name="Alice")

    response = client.post(
        "/api/auth/register",
        json={"email": "alice@example.com", "password": "pw123456", "name": "Alice"},
    )
    assert response.status_code == 409
    assert response.json()["error"] == "Email already registered"


def test_register_email_is_case_insensitive(client, register_user, login):
    register_user("Carol@Example.com")

    response = client.post("/api/auth/register", json={"email": "carol@example.com", "password": "x"})
    assert response.status_code == 409

    assert login("CAROL@example.com")["user"]["email"] == "carol@example.com"


def test_register_requires_email_and_password(client):
    response = client.post("/api/auth/register", json={"email": "alice@example.com"})
    assert response.status_code == 400
    assert response.json()["error"] == "Validation failed"

    response = client.post("/api/auth/register", json={"password": "pw123456"})
    assert response.status_code == 400


def test_login_wrong_password_and_unknown_email_look_the_same(client, register_user):
    register_user("alice@example.com")

    wrong_password = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "nope"})
    unknown_email = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "pw123456"})

    assert wrong_password.status_code == 401
    assert unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {"error": "Invalid credentials"}
    assert "token" not in wrong_password.json()


def test_login_user_type_mismatch_is_forbidden(client, register_user):
    register_user("alice@example.com")

    response = client.post(
        "/api/auth/login",
        json={"email": "alice@example.com", "password": "pw123456", "userType": "admin"},
    )
    assert response.status_code == 403
    assert "registered as user" in response.json()["error"]

    response = client.post(
        "/api/auth/login",
        json={"email": "alice@example.com", "password": "pw123456", "userType": "user"},
    )
    assert response.status_code == 200


def test_login_inactive_account_is_forbidden(client, register_user, db):
    user = register_user("alice@example.com")
    db.query(User).filter(User.id == user["id"]).update({User.is_active: False})
    db.commit()

    response = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "pw123456"})
    assert response.status_code == 403


def test_login_records_last_login(client, register_user, login, db):
    user = register_user("alice@example.com")
    login("alice@example.com")

    stored = db.query(User).filter(User.id == user["id"]).first()
    assert stored.last_login is not None


def test_protected_endpoint_requires_token(client):
    response = client.get("/api/teams")
    assert response.status_code == 401
    assert response.json() == {"error": "Missing token"}


def test_protected_endpoint_rejects_bad_token(client):
    response = client.get("/api/teams", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid token"}


def test_protected_endpoint_rejects_expired_token(client, register_user):
    user = register_user("alice@example.com")
    token = create_access_token(
        {"sub": user["id"], "email": user["email"], "role": "user"},
        expires_delta=timedelta(seconds=-10),
    )

    response = client.get("/api/teams", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_health_does_not_require_auth(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"ok": True, "db": True}
