import pytest

from dealership.auth import SESSION_COOKIE_NAME, create_access_token, decode_token, token_payload_for
from dealership.models import User


def test_login_success_sets_cookie_and_last_login(client, db, admin_user):
    assert admin_user.last_login is None

    resp = client.post("/admin/login", json={"email": "admin@stmotors.de", "password": "admin-password"})
    assert resp.status_code == 200

    body = resp.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["email"] == "admin@stmotors.de"
    assert body["user"]["role"] == "admin"
    assert SESSION_COOKIE_NAME in resp.cookies

    payload = decode_token(body["access_token"])
    assert payload["sub"] == str(admin_user.id)
    assert payload["role"] == "admin"

    db.expire_all()
    assert db.query(User).filter(User.id == admin_user.id).first().last_login is not None


@pytest.mark.parametrize("credentials", [
    {"email": "nobody@stmotors.de", "password": "admin-password"},
    {"email": "admin@stmotors.de", "password": "wrong-password"},
    {"email": "ADMIN@stmotors.de", "password": "admin-password"},
    {"email": "admin@stmotors.de"},
    {"password": "admin-password"},
    {},
])
def test_login_failures_are_indistinguishable(client, admin_user, credentials):
    resp = client.post("/admin/login", json=credentials)
    assert resp.status_code == 401
    assert resp.json() == {"detail": "Invalid credentials"}
    assert SESSION_COOKIE_NAME not in resp.cookies


def test_me_returns_current_user(client, staff_headers):
    resp = client.get("/admin/me", headers=staff_headers)
    assert resp.status_code == 200
    assert resp.json()["email"] == "staff@stmotors.de"
    assert resp.json()["role"] == "staff"


def test_token_for_deleted_user_is_rejected(client, db, staff_user, staff_headers):
    db.delete(staff_user)
    db.commit()

    resp = client.get("/admin/me", headers=staff_headers)
    assert resp.status_code == 401


def test_logout_clears_cookie(client, admin_user):
    client.post("/admin/login", json={"email": "admin@stmotors.de", "password": "admin-password"})
    resp = client.post("/admin/logout")
    assert resp.status_code == 200
    assert SESSION_COOKIE_NAME not in client.cookies

    resp = client.get("/admin/me", follow_redirects=False)
    assert resp.status_code == 307


def test_change_password(client, admin_headers):
    resp = client.post(
        "/admin/me/password",
        headers=admin_headers,
        json={"current_password": "wrong", "new_password": "new-password-1"},
    )
    assert resp.status_code == 400

    resp = client.post(
        "/admin/me/password",
        headers=admin_headers,
        json={"current_password": "admin-password", "new_password": "new-password-1"},
    )
    assert resp.status_code == 200

    resp = client.post("/admin/login", json={"email": "admin@stmotors.de", "password": "new-password-1"})
    assert resp.status_code == 200


def test_session_cookie_wins_over_bearer(client, admin_user, staff_headers):
    client.cookies.set(SESSION_COOKIE_NAME, create_access_token(token_payload_for(admin_user)))
    resp = client.get("/admin/me", headers=staff_headers)
    assert resp.status_code == 200
    assert resp.json()["email"] == "admin@stmotors.de"
