from urllib.parse import parse_qs, urlparse

from dealership.auth import SESSION_COOKIE_NAME, create_access_token
from dealership.middleware import is_admitted


def test_is_admitted_rules():
    assert is_admitted("/admin/login", None)
    assert is_admitted("/admin/login/reset", None)
    assert is_admitted("/vehicles", None)
    assert is_admitted("/administrator", None)
    assert not is_admitted("/admin", None)
    assert not is_admitted("/admin/vehicles", None)
    assert is_admitted("/admin/vehicles", {"sub": "1"})


def test_protected_path_redirects_to_login(client):
    resp = client.get("/admin/vehicles?page=2", follow_redirects=False)
    assert resp.status_code == 307

    location = urlparse(resp.headers["location"])
    assert location.path == "/admin/login"
    assert parse_qs(location.query)["callbackUrl"] == ["/admin/vehicles?page=2"]


def test_dashboard_redirects_without_session(client):
    resp = client.get("/admin", follow_redirects=False)
    assert resp.status_code == 307
    assert resp.headers["location"].startswith("/admin/login?callbackUrl=")


def test_invalid_token_redirects(client):
    resp = client.get(
        "/admin/customers",
        headers={"Authorization": "Bearer not-a-token"},
        follow_redirects=False,
    )
    assert resp.status_code == 307


def test_expired_token_redirects(client, admin_user):
    from datetime import timedelta

    token = create_access_token({"sub": str(admin_user.id)}, expires_delta=timedelta(seconds=-1))
    resp = client.get(
        "/admin/vehicles",
        headers={"Authorization": f"Bearer {token}"},
        follow_redirects=False,
    )
    assert resp.status_code == 307


def test_login_page_always_served(client, session_cookie):
    resp = client.get("/admin/login?callbackUrl=/admin/vehicles", follow_redirects=False)
    assert resp.status_code == 200
    assert resp.json() == {"page": "login", "authenticated": False, "callback_url": "/admin/vehicles"}

    client.cookies.set(SESSION_COOKIE_NAME, session_cookie[SESSION_COOKIE_NAME])
    resp = client.get("/admin/login", follow_redirects=False)
    assert resp.status_code == 200
    assert resp.json()["authenticated"] is True


def test_session_cookie_admits(client, session_cookie):
    client.cookies.set(SESSION_COOKIE_NAME, session_cookie[SESSION_COOKIE_NAME])
    resp = client.get("/admin/vehicles", follow_redirects=False)
    assert resp.status_code == 200


def test_public_paths_need_no_session(client):
    assert client.get("/health").status_code == 200
    assert client.get("/vehicles").status_code == 200
    assert client.get("/robots.txt").status_code == 200
