import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("APP_ENV", "dev")

import copy

import pytest
from fastapi.testclient import TestClient

from cleanquote.dependencies import get_pricing_config
from cleanquote.domain.pricing.config_loader import load_pricing_config, pricing_config_from_data
from cleanquote.infra.metrics import configure_metrics
from cleanquote.main import app
from cleanquote.settings import settings

PRICING_CONFIG_PATH = "pricing/marketplace_v1.json"


@pytest.fixture(scope="session")
def pricing_config():
    return load_pricing_config(PRICING_CONFIG_PATH)


@pytest.fixture()
def make_pricing_config(pricing_config):
    """Build a config from the shipped document with nested overrides applied."""

    def _build(**sections):
        data = copy.deepcopy(pricing_config.data)
        for key, value in sections.items():
            if isinstance(value, dict) and isinstance(data.get(key), dict):
                data[key] = {**data[key], **value}
            else:
                data[key] = value
        return pricing_config_from_data(data)

    return _build


@pytest.fixture(autouse=True)
def restore_settings():
    original_app_env = settings.app_env
    original_metrics = settings.metrics_enabled
    original_metrics_token = settings.metrics_token
    yield
    settings.app_env = original_app_env
    settings.metrics_enabled = original_metrics
    settings.metrics_token = original_metrics_token
    app.state.metrics = configure_metrics(False)


@pytest.fixture()
def client():
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def client_no_raise():
    """Test client that returns HTTP responses instead of raising server exceptions."""

    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def override_pricing_config():
    def _override(config):
        app.dependency_overrides[get_pricing_config] = lambda: config

    yield _override
    app.dependency_overrides.pop(get_pricing_config, None)
