# tests/conftest.py

from unittest.mock import AsyncMock

import pytest

from kubecapacity.core.config import Config
from kubecapacity.models.prometheus_metrics import PrometheusResponse


@pytest.fixture(autouse=True)
def mock_settings_env_vars(monkeypatch):
    """
    Pytest fixture to mock environment variables for the config module.

    It runs automatically for every test so the configuration is predictable
    and isolated from the developer's environment.
    """
    monkeypatch.delenv("PROMETHEUS_ENDPOINT", raising=False)
    monkeypatch.delenv("PROMETHEUS_BEARER_TOKEN", raising=False)
    monkeypatch.delenv("PROMETHEUS_USERNAME", raising=False)
    monkeypatch.delenv("PROMETHEUS_PASSWORD", raising=False)


class FakeApiClient:
    """Stands in for kubernetes_asyncio's ApiClient and records whether it was closed."""

    def __init__(self):
        self.call_api = AsyncMock()
        self.closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        self.closed = True
        return False


@pytest.fixture(autouse=True)
def no_kube_config(monkeypatch):
    """
    Prevent tests from loading a real kubeconfig. Tests that need the
    Kubernetes API use the `kube_api` fixture.
    """
    import kubecapacity.core.k8s_client as k8s_client

    async def _no_kubeconfig(*args, **kwargs):
        raise k8s_client.config.ConfigException("kubeconfig disabled in tests")

    def _not_in_cluster(*args, **kwargs):
        raise k8s_client.config.ConfigException("not in cluster")

    monkeypatch.setattr(k8s_client, "_CONFIG_LOADED", False)
    monkeypatch.setattr(k8s_client.config, "load_incluster_config", _not_in_cluster)
    monkeypatch.setattr(k8s_client.config, "load_kube_config", _no_kubeconfig)


@pytest.fixture
def kube_api(monkeypatch):
    """Pretends a Kubernetes configuration is loaded and returns the ApiClient every caller gets."""
    api_client = FakeApiClient()

    async def _configured():
        return True

    monkeypatch.setattr("kubecapacity.core.k8s_client.ensure_k8s_config", _configured)
    monkeypatch.setattr("kubecapacity.core.k8s_client.client.ApiClient", lambda *args, **kwargs: api_client)
    return api_client


@pytest.fixture
def settings():
    """A Config instance with a fixed, test-friendly Prometheus setup."""
    cfg = Config()
    cfg.PROMETHEUS_ENDPOINT = ""
    cfg.PROMETHEUS_RATE_WINDOW = "5m"
    cfg.PROMETHEUS_DEFAULT_PORT = 9090
    cfg.PROMETHEUS_VERIFY_CERTS = True
    cfg.PROMETHEUS_CONCURRENT_QUERIES = False
    cfg.PROMETHEUS_BEARER_TOKEN = None
    cfg.PROMETHEUS_USERNAME = None
    cfg.PROMETHEUS_PASSWORD = None
    return cfg


def _build_response(*rows, status="success"):
    result = []
    for labels, value in rows:
        sample = value if isinstance(value, list) else [1700000000.0, value]
        result.append({"metric": labels, "value": sample})
    return PrometheusResponse.model_validate(
        {"status": status, "data": {"resultType": "vector", "result": result}}
    )


@pytest.fixture
def make_response():
    """
    Factory building a PrometheusResponse from (labels, value) pairs.

    `value` is placed in a `[timestamp, value]` sample unless it is already a list.
    """
    return _build_response


@pytest.fixture
def response_json():
    """Factory returning the raw JSON payload Prometheus would send for the given rows."""

    def _json(*rows, status="success"):
        return _build_response(*rows, status=status).model_dump(by_alias=True, exclude_none=True)

    return _json
