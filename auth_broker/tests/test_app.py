"""Tests for health, CORS, error rendering and settings loading."""
import pytest

from auth_broker.config import CALLBACK_MODE_EXCHANGE, CALLBACK_MODE_PASSTHROUGH, BrokerSettings, load_settings


@pytest.mark.parametrize("path", ["/", "/health"])
def test_health(client, path):
    r = client.get(path)
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "service": "auth_broker", "version": "0.1.0"}


@pytest.mark.parametrize("settings", [BrokerSettings(github_client_id="")])
def test_health_does_not_need_credentials(client, settings):
    assert client.get("/health").status_code == 200


def test_cors_preflight(client):
    r = client.options(
        "/token/testuser/testrepo",
        headers={
            "Origin": "https://example.com",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Authorization",
        },
    )
    assert r.status_code == 200
    assert r.headers["access-control-allow-origin"] in ("*", "https://example.com")
    assert "POST" in r.headers["access-control-allow-methods"]
    assert r.headers["access-control-max-age"] == "86400"


def test_cors_header_on_simple_request(client):
    r = client.get("/health", headers={"Origin": "https://example.com"})
    assert r.headers["access-control-allow-origin"] == "*"


def test_unknown_route_is_flat_json_404(client):
    r = client.get("/nope")
    assert r.status_code == 404
    assert r.json() == {"error": "Not Found"}


def test_wrong_method_on_callback(client):
    r = client.post("/callback")
    assert r.status_code == 405
    assert "error" in r.json()
    assert "GET" in r.headers["allow"]


def test_load_settings_from_env(monkeypatch):
    monkeypatch.setenv("GITHUB_CLIENT_ID", " cid ")
    monkeypatch.setenv("GITHUB_CLIENT_SECRET", "csecret")
    monkeypatch.setenv("BROKER_CALLBACK_MODE", "PassThrough")
    monkeypatch.setenv("BROKER_PUBLIC_URL", "https://auth.example.com/")
    monkeypatch.setenv("BROKER_HTTP_TIMEOUT", "2.5")
    s = load_settings()
    assert s.github_client_id == "cid"
    assert s.callback_mode == CALLBACK_MODE_PASSTHROUGH
    assert s.public_url == "https://auth.example.com"
    assert s.http_timeout == 2.5
    assert s.can_exchange
    assert s.signing_key == "csecret"


def test_load_settings_defaults(monkeypatch):
    for name in ("GITHUB_CLIENT_ID", "GITHUB_CLIENT_SECRET", "BROKER_CALLBACK_MODE", "BROKER_PUBLIC_URL"):
        monkeypatch.delenv(name, raising=False)
    s = load_settings()
    assert not s.is_configured
    assert not s.can_exchange
    assert s.callback_mode == CALLBACK_MODE_EXCHANGE
    assert s.public_url is None
    assert s.http_timeout == 10.0


def test_unknown_callback_mode_falls_back_to_exchange(monkeypatch):
    monkeypatch.setenv("BROKER_CALLBACK_MODE", "both")
    assert load_settings().callback_mode == CALLBACK_MODE_EXCHANGE


def test_settings_repr_hides_secret():
    s = BrokerSettings(github_client_id="cid", github_client_secret="supersecret", token_signing_key="k3y")
    assert "supersecret" not in repr(s)
    assert "k3y" not in repr(s)
    assert s.signing_key == "k3y"


def test_settings_are_immutable():
    s = BrokerSettings(github_client_id="cid")
    with pytest.raises(AttributeError):
        s.github_client_id = "other"
