"""
Pytest configuration for auth_broker. Fixed GitHub credentials so tests never read the real env.
"""
import os

import pytest
from fastapi.testclient import TestClient

os.environ["GITHUB_CLIENT_ID"] = "test_client_id"
os.environ["GITHUB_CLIENT_SECRET"] = "test_client_secret_with_enough_length_for_hs256"
os.environ.pop("BROKER_CALLBACK_MODE", None)
os.environ.pop("BROKER_PUBLIC_URL", None)
os.environ.pop("BROKER_TOKEN_SIGNING_KEY", None)

from auth_broker.config import BrokerSettings, get_settings  # noqa: E402
from auth_broker.main import app  # noqa: E402

TEST_SETTINGS = BrokerSettings(
    github_client_id="test_client_id",
    github_client_secret="test_client_secret_with_enough_length_for_hs256",
)


@pytest.fixture
def settings():
    return TEST_SETTINGS


@pytest.fixture
def client(settings):
    """TestClient with `settings` injected; override the `settings` fixture to change mode."""
    app.dependency_overrides[get_settings] = lambda: settings
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_settings, None)
