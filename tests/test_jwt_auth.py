import datetime as dt
import jwt
import pytest
from app.utils import decode_token, create_access_token, TokenError
from app.version import API_PREFIX


def _login(c, email="auth1@example.com", role="customer"):
    r = c.post("/__auth/login_stub", json={"email": email, "role": role})
    return r.get_json()["data"]


def test_login_stub_token_allows_request(client):
    toks = _login(client)
    r = client.get(f"{API_PREFIX}/cart", headers={"Authorization": f"Bearer {toks['access']}"})
    assert r.status_code == 200
    assert r.get_json()["data"]["cart"]["user_id"] == toks["user_id"]


def test_token_round_trip(app):
    token = create_access_token(7, "admin")
    payload = decode_token(token)
    assert payload["sub"] == "7"
    assert payload["role"] == "admin"
    assert payload["type"] == "access"


def test_wrong_token_type_rejected(app):
    token = jwt.encode(
        {"sub": "1", "role": "customer", "type": "refresh", "exp": dt.datetime.now(dt.timezone.utc) + dt.timedelta(minutes=5)},
        app.config["JWT_SECRET"],
        algorithm="HS256",
    )
    with pytest.raises(TokenError):
        decode_token(token)


def test_expired_access_token_blocked(app, client):
    past = dt.datetime.now(dt.timezone.utc) - dt.timedelta(seconds=1)
    expired = jwt.encode({"sub": "1", "role": "customer", "type": "access", "exp": past}, app.config["JWT_SECRET"], algorithm="HS256")
    r = client.get(f"{API_PREFIX}/cart", headers={"Authorization": f"Bearer {expired}"})
    assert r.status_code == 401
    assert r.get_json()["message"] == "token expired"


def test_token_signed_with_other_secret(client):
    forged = jwt.encode({"sub": "1", "role": "admin", "type": "access"}, "not-the-secret", algorithm="HS256")
    r = client.get(f"{API_PREFIX}/admin/orders", headers={"Authorization": f"Bearer {forged}"})
    assert r.status_code == 401


def test_token_for_deleted_user(app, client):
    token = create_access_token(424242, "customer")
    r = client.get(f"{API_PREFIX}/cart", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
    assert r.get_json()["message"] == "Unknown user"
