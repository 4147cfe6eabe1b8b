from datetime import timedelta

import account_store
from conftest import TEST_SECRET
from security import SessionIssuer


def register(client, email="ann@x.com", name="Ann", password="pw1"):
    return client.post("/api/register", json={"name": name, "email": email, "password": password})


def verified_token(client, recorder, email="ann@x.com"):
    register(client, email=email)
    r = client.post("/api/verify-otp", json={"email": email, "otp": recorder.last_code_for(email)})
    assert r.status_code == 200, r.text
    return r.json()["token"]


def test_root(client):
    r = client.get("/")
    assert r.status_code == 200


def test_register(client, recorder):
    r = register(client)
    assert r.status_code == 200, r.text
    assert r.json() == {"message": "User registered successfully. Please verify your OTP."}
    assert "token" not in r.json()
    assert recorder.sent and recorder.sent[0][0] == "ann@x.com"


def test_register_duplicate(client):
    register(client)
    r = register(client)
    assert r.status_code == 400
    assert r.json() == {"message": "User already exists"}


def test_register_missing_fields(client):
    r = client.post("/api/register", json={"email": "ann@x.com"})
    assert r.status_code == 400
    assert "password" in r.json()["message"]


def test_verify_otp_returns_token(client, recorder):
    token = verified_token(client, recorder)
    assert SessionIssuer(TEST_SECRET).verify(token).display_name == "Ann"


def test_verify_otp_failures(client, recorder, db_session):
    r = client.post("/api/verify-otp", json={"email": "nobody@x.com", "otp": "123456"})
    assert r.status_code == 400
    assert r.json()["message"] == "User not found"

    register(client)
    r = client.post("/api/verify-otp", json={"email": "ann@x.com", "otp": "000000"})
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid OTP"

    account = account_store.AccountStore(db_session).get_by_email("ann@x.com")
    account.otp_expires_at = account.otp_expires_at - timedelta(minutes=11)
    db_session.commit()
    r = client.post("/api/verify-otp", json={"email": "ann@x.com", "otp": recorder.last_code_for("ann@x.com")})
    assert r.status_code == 400
    assert r.json()["message"] == "OTP expired"


def test_login(client, recorder):
    register(client)
    r = client.post("/api/login", json={"email": "ann@x.com", "password": "pw1"})
    assert r.status_code == 200
    assert r.json()["token"]

    r = client.post("/api/login", json={"email": "ann@x.com", "password": "nope"})
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid credentials"

    r = client.post("/api/login", json={"email": "nobody@x.com", "password": "pw1"})
    assert r.status_code == 400
    assert r.json()["message"] == "User not found"


def test_forgot_and_reset_password(client, recorder):
    register(client)
    r = client.post("/api/forgot-password", json={"email": "ann@x.com"})
    assert r.status_code == 200
    assert r.json() == {"message": "OTP sent to email"}

    code = recorder.last_code_for("ann@x.com")
    r = client.post("/api/reset-password", json={"email": "ann@x.com", "otp": code, "newPassword": "pw2"})
    assert r.status_code == 200, r.text
    assert r.json() == {"message": "Password reset successfully"}

    assert client.post("/api/login", json={"email": "ann@x.com", "password": "pw2"}).status_code == 200
    assert client.post("/api/login", json={"email": "ann@x.com", "password": "pw1"}).status_code == 400

    r = client.post("/api/reset-password", json={"email": "ann@x.com", "otp": code, "newPassword": "pw3"})
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid or expired OTP"


def test_forgot_password_unknown(client):
    r = client.post("/api/forgot-password", json={"email": "nobody@x.com"})
    assert r.status_code == 400


def test_profile(client, recorder):
    token = verified_token(client, recorder)
    r = client.get("/api/profile", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    body = r.json()
    assert body["name"] == "Ann"
    assert body["postsCount"] == 0
    assert body["followersCount"] == 0
    assert body["followingCount"] == 0
    assert set(body) == {"id", "name", "avatar", "postsCount", "followersCount", "followingCount"}
    for secret_field in ("password_hash", "passwordHash", "otp_code", "otpCode", "otp_expires_at"):
        assert secret_field not in body


def test_user_name(client, recorder):
    token = verified_token(client, recorder)
    r = client.get("/api/user", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    assert r.json() == {"name": "Ann"}


def test_register_without_body(client):
    r = client.post("/api/register")
    assert r.status_code == 400
    assert r.json() == {"message": "Invalid request: body"}


def test_register_with_undecodable_json(client):
    r = client.post("/api/register", content=b"{not json", headers={"Content-Type": "application/json"})
    assert r.status_code == 400
    assert r.json() == {"message": "Invalid request: body"}


def test_register_rejects_password_past_bcrypt_limit(client, recorder):
    r = register(client, password="A" * 73)
    assert r.status_code == 400
    assert r.json() == {"message": "Invalid request: password"}
    assert recorder.sent == []


def test_reset_rejects_password_past_bcrypt_limit(client, recorder):
    register(client)
    client.post("/api/forgot-password", json={"email": "ann@x.com"})
    code = recorder.last_code_for("ann@x.com")
    r = client.post("/api/reset-password", json={"email": "ann@x.com", "otp": code, "newPassword": "A" * 72 + "one"})
    assert r.status_code == 400
    assert r.json() == {"message": "Invalid request: newPassword"}
    # The challenge is still usable with an acceptable password
    r = client.post("/api/reset-password", json={"email": "ann@x.com", "otp": code, "newPassword": "A" * 72})
    assert r.status_code == 200


def test_login_with_overlong_password_is_rejected(client):
    register(client, password="A" * 72)
    r = client.post("/api/login", json={"email": "ann@x.com", "password": "A" * 72 + "two"})
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid credentials"


def test_profile_requires_token(client):
    r = client.get("/api/profile")
    assert r.status_code == 401


def test_profile_rejects_bad_token(client):
    r = client.get("/api/profile", headers={"Authorization": "Bearer not-a-token"})
    assert r.status_code == 403
    forged = SessionIssuer("another-secret").issue(1, "Ann")
    r = client.get("/api/profile", headers={"Authorization": f"Bearer {forged}"})
    assert r.status_code == 403


def test_profile_for_missing_account(client, issuer):
    token = issuer.issue(4242, "Ghost")
    r = client.get("/api/profile", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 404
    assert r.json() == {"message": "User not found"}


def test_internal_errors_are_opaque(client, monkeypatch):
    def explode(self, email):
        raise RuntimeError("connection string postgres://admin:hunter2@db")

    monkeypatch.setattr(account_store.AccountStore, "get_by_email", explode)
    r = register(client)
    assert r.status_code == 500
    assert r.json() == {"message": "Internal server error"}
    assert "hunter2" not in r.text
