"""OAuth callback routes: state machine behaviour with stub adapters, plus one full mocked flow."""

import base64
import json
from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

from nufounders_backend.app.auth.providers import GITHUB_EMAILS_URL, GITHUB_TOKEN_URL, GITHUB_USER_URL
from nufounders_backend.app.core.config import COOKIE_NAME
from nufounders_backend.app.core.errors import TokenExchangeError
from nufounders_backend.app.main import create_app


def _state(**obj) -> str:
    return base64.b64encode(json.dumps(obj).encode()).decode()


def _set_cookies(resp):
    return resp.headers.get_list("set-cookie")


def _cookie_value(set_cookie: str) -> str:
    return set_cookie.split(";", 1)[0].split("=", 1)[1]


# ---------------- terminal states ----------------
@pytest.mark.parametrize("path", ["/api/oauth/callback", "/api/oauth/google/callback", "/api/oauth/github/callback"])
def test_error_param_redirects_denied_without_provider_calls(stub_client, google_stub, github_stub, users, path):
    r = stub_client.get(path, params={"error": "access_denied", "code": "c", "state": _state(provider="google")})

    assert r.status_code == 302
    assert r.headers["location"] == "/?error=oauth_denied"
    assert google_stub.calls == [] and github_stub.calls == []
    assert users.upserts == []


@pytest.mark.parametrize("path", ["/api/oauth/callback", "/api/oauth/google/callback", "/api/oauth/github/callback"])
def test_missing_code_is_400_json_without_cookie(stub_client, users, path):
    r = stub_client.get(path, params={"state": _state(provider="google")})

    assert r.status_code == 400
    assert "error" in r.json()
    assert _set_cookies(r) == []
    assert users.upserts == []


def test_generic_callback_requires_state(stub_client):
    r = stub_client.get("/api/oauth/callback", params={"code": "c"})
    assert r.status_code == 400
    assert r.json() == {"error": "Missing code or state"}


# ---------------- success ----------------
def test_google_success_upserts_once_sets_one_cookie_and_redirects(stub_client, users, codec):
    r = stub_client.get("/api/oauth/google/callback", params={"code": "auth-code"})

    assert r.status_code == 302
    assert r.headers["location"] == "/dashboard"

    assert len(users.upserts) == 1
    up = users.upserts[0]
    assert up.open_id == "google_123"
    assert up.name == "Jane"
    assert up.email == "jane@x.com"
    assert up.login_method == "google"
    assert up.last_signed_in is not None

    cookies = _set_cookies(r)
    assert len(cookies) == 1
    assert cookies[0].startswith(f"{COOKIE_NAME}=")
    session = codec.verify(_cookie_value(cookies[0]))
    assert session.open_id == "google_123"
    assert session.name == "Jane"
    assert session.app_id == "nufounders-test"


def test_cookie_attributes_follow_cookie_policy(stub_client):
    plain = stub_client.get("/api/oauth/google/callback", params={"code": "c"})
    attrs = _set_cookies(plain)[0].split("; ")
    assert "Max-Age=31536000" in attrs
    assert "Path=/" in attrs
    assert "HttpOnly" in attrs
    assert "SameSite=none" in attrs
    assert "Secure" not in attrs

    proxied = stub_client.get(
        "/api/oauth/google/callback", params={"code": "c"}, headers={"X-Forwarded-Proto": "https"}
    )
    assert "Secure" in _set_cookies(proxied)[0].split("; ")


def test_github_route_redirects_home_and_uses_default_redirect_uri(stub_client, github_stub):
    r = stub_client.get("/api/oauth/github/callback", params={"code": "gh-code"})

    assert r.status_code == 302
    assert r.headers["location"] == "/"
    assert github_stub.calls[0] == ("exchange", "gh-code", "http://testserver/api/oauth/github/callback")
    assert github_stub.calls[1] == ("identity", "github-access-token")


def test_redirect_uri_from_state_is_passed_to_exchange(stub_client, google_stub):
    state = _state(redirectUri="https://app.example/api/oauth/google/callback", provider="google")
    stub_client.get("/api/oauth/google/callback", params={"code": "c", "state": state})
    assert google_stub.calls[0] == ("exchange", "c", "https://app.example/api/oauth/google/callback")


def test_undecodable_state_on_provider_route_falls_back_to_default(stub_client, google_stub):
    r = stub_client.get("/api/oauth/google/callback", params={"code": "c", "state": "!!not-base64-json!!"})
    assert r.status_code == 302
    assert r.headers["location"] == "/dashboard"
    assert google_stub.calls[0][2] == "http://testserver/api/oauth/google/callback"


def test_provider_route_ignores_provider_named_in_state(stub_client, google_stub, github_stub):
    r = stub_client.get("/api/oauth/github/callback", params={"code": "c", "state": _state(provider="google")})
    assert r.headers["location"] == "/"
    assert google_stub.calls == []
    assert github_stub.calls[0][0] == "exchange"


def test_generic_callback_dispatches_on_state_provider(stub_client, users, github_stub, google_stub):
    state = _state(redirectUri="https://app.example/api/oauth/callback", provider="github")
    r = stub_client.get("/api/oauth/callback", params={"code": "c", "state": state})

    assert r.status_code == 302
    assert r.headers["location"] == "/"
    assert google_stub.calls == []
    assert github_stub.calls[0] == ("exchange", "c", "https://app.example/api/oauth/callback")
    assert [u.open_id for u in users.upserts] == ["github_42"]
    assert len(_set_cookies(r)) == 1


# ---------------- collapsed failures ----------------
@pytest.mark.parametrize("state", [_state(provider="facebook"), _state(redirectUri="https://x"), "@@@"])
def test_generic_callback_bad_or_unknown_state_fails_softly(stub_client, users, state):
    r = stub_client.get("/api/oauth/callback", params={"code": "c", "state": state})

    assert r.status_code == 302
    assert r.headers["location"] == "/?error=oauth_failed"
    assert _set_cookies(r) == []
    assert users.upserts == []


def test_adapter_failure_is_logged_and_collapsed(settings, users, make_stub, caplog):
    failing = make_stub("google", fail=TokenExchangeError("Google token exchange failed: 400 invalid_grant"))
    app = create_app(settings, users=users, adapters={"google": failing})

    with TestClient(app, follow_redirects=False) as c:
        r = c.get("/api/oauth/google/callback", params={"code": "c"})

    assert r.headers["location"] == "/?error=oauth_failed"
    assert "invalid_grant" not in r.text
    assert _set_cookies(r) == []
    assert users.upserts == []
    assert any("callback failed" in rec.getMessage() for rec in caplog.records)


def test_missing_adapter_on_route_is_oauth_failed(settings, users, google_stub):
    app = create_app(settings, users=users, adapters={"google": google_stub})
    with TestClient(app, follow_redirects=False) as c:
        r = c.get("/api/oauth/github/callback", params={"code": "c"})
    assert r.headers["location"] == "/?error=oauth_failed"


# ---------------- configuration ----------------
def test_single_success_redirect_override(settings, users, google_stub, github_stub):
    app = create_app(
        replace(settings, success_redirect="/welcome"),
        users=users, adapters={"google": google_stub, "github": github_stub},
    )
    with TestClient(app, follow_redirects=False) as c:
        g = c.get("/api/oauth/google/callback", params={"code": "c"})
        h = c.get("/api/oauth/github/callback", params={"code": "c"})
    assert g.headers["location"] == h.headers["location"] == "/welcome"


def test_signed_state_mode_rejects_unsigned_state(settings, users, google_stub):
    app = create_app(replace(settings, oauth_state_secret="s3cret"), users=users, adapters={"google": google_stub})
    with TestClient(app, follow_redirects=False) as c:
        r = c.get("/api/oauth/google/callback", params={"code": "c", "state": _state(provider="google")})
        missing = c.get("/api/oauth/google/callback", params={"code": "c"})
    assert r.headers["location"] == "/?error=oauth_failed"
    assert missing.headers["location"] == "/?error=oauth_failed"
    assert google_stub.calls == []


# ---------------- end to end ----------------
def test_github_flow_end_to_end_with_sqlite(httpx_mock, settings, cookie_header):
    """Real adapters against mocked GitHub, real SQLite store, then auth.me with the cookie."""
    httpx_mock.add_response(url=GITHUB_TOKEN_URL, method="POST", json={"access_token": "gho_e2e"})
    httpx_mock.add_response(url=GITHUB_USER_URL, json={"id": 9001, "login": "founder", "name": None, "email": None})
    httpx_mock.add_response(url=GITHUB_EMAILS_URL, json=[
        {"email": "alt@x.com", "primary": False},
        {"email": "founder@x.com", "primary": True},
    ])

    app = create_app(settings)
    with TestClient(app, follow_redirects=False) as c:
        state = _state(redirectUri="http://testserver/api/oauth/callback", provider="github")
        r = c.get("/api/oauth/callback", params={"code": "real-code", "state": state})
        assert r.status_code == 302
        assert r.headers["location"] == "/"

        token = _cookie_value(_set_cookies(r)[0])
        c.cookies.clear()
        me = c.get("/api/trpc/auth.me", headers=cookie_header(token))

    assert me.status_code == 200
    user = me.json()["result"]["data"]
    assert user["openId"] == "github_9001"
    assert user["name"] == "founder"
    assert user["email"] == "founder@x.com"
    assert user["loginMethod"] == "github"
    assert user["role"] == "user"
