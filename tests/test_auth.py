from datetime import datetime, timedelta, timezone

import jwt

from security import decode_token, hash_password, verify_password

REGISTER = {"userName": "alice", "email": "alice@example.com", "password": "s3cret"}


def test_register_creates_user_with_hashed_password(client, db):
    resp = client.post("/api/auth/register", json=REGISTER)
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "Registration successful"}

    user = db["user"].find_one({"email": "alice@example.com"})
    assert user["userName"] == "alice"
    assert user["role"] == "user"
    assert user["password"] != "s3cret"
    assert verify_password("s3cret", user["password"])


def test_register_duplicate_email_is_rejected(client, db):
    client.post("/api/auth/register", json=REGISTER)
    resp = client.post("/api/auth/register", json={**REGISTER, "userName": "alice2"})

    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert "already exists" in body["message"]
    assert db["user"].count_documents({"email": "alice@example.com"}) == 1


def test_register_rejects_malformed_email(client):
    resp = client.post("/api/auth/register", json={**REGISTER, "email": "not-an-email"})
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "message": "Invalid data provided!"}


def test_login_returns_token_with_user_claims(client):
    client.post("/api/auth/register", json=REGISTER)
    resp = client.post("/api/auth/login", json={"email": REGISTER["email"], "password": "s3cret"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["user"]["userName"] == "alice"
    assert body["user"]["role"] == "user"

    claims = decode_token(body["token"])
    assert claims["id"] == body["user"]["id"]
    assert claims["email"] == "alice@example.com"
    assert claims["userName"] == "alice"
    assert claims["exp"] - claims["iat"] == 60 * 60


def test_login_unknown_email(client):
    resp = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "x"})
    assert resp.status_code == 404
    assert resp.json()["success"] is False


def test_login_wrong_password(client):
    client.post("/api/auth/register", json=REGISTER)
    resp = client.post("/api/auth/login", json={"email": REGISTER["email"], "password": "wrong"})
    assert resp.status_code == 401
    assert resp.json()["message"] == "Incorrect password! Please try again"


def test_check_auth_requires_token(client):
    resp = client.get("/api/auth/check-auth")
    assert resp.status_code == 401
    assert resp.json() == {"success": False, "message": "Unauthorized user!"}


def test_check_auth_accepts_bearer_and_cookie(client):
    client.post("/api/auth/register", json=REGISTER)
    token = client.post("/api/auth/login", json={"email": REGISTER["email"], "password": "s3cret"}).json()["token"]

    resp = client.get("/api/auth/check-auth", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200
    assert resp.json()["user"]["email"] == REGISTER["email"]

    client.cookies.set("token", token)
    resp = client.get("/api/auth/check-auth")
    assert resp.status_code == 200


def test_expired_token_is_unauthorized(client):
    past = datetime.now(timezone.utc) - timedelta(minutes=5)
    token = jwt.encode({"id": "abc", "role": "user", "exp": past}, "test-secret", algorithm="HS256")
    resp = client.get("/api/auth/check-auth", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


def test_token_signed_with_other_secret_is_unauthorized(client):
    token = jwt.encode({"id": "abc", "role": "admin"}, "other-secret", algorithm="HS256")
    resp = client.get("/api/auth/check-auth", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


def test_logout_clears_cookie(client):
    resp = client.post("/api/auth/logout")
    assert resp.status_code == 200
    assert resp.json()["message"] == "Logged out successfully!"
    assert "token=" in resp.headers["set-cookie"]


def test_password_hash_round_trip():
    hashed = hash_password("pw")
    assert verify_password("pw", hashed)
    assert not verify_password("nope", hashed)
    assert not verify_password("pw", "")
