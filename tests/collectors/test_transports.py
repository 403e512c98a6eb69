# tests/collectors/test_transports.py
"""
Tests for the direct HTTP and Kubernetes service proxy transports.

HTTP requests are mocked with respx; the Kubernetes API client is replaced by a fake.
"""

from unittest.mock import AsyncMock, MagicMock

import aiohttp
import httpx
import pytest
import respx
from httpx import Response

from kubecapacity.collectors.transports import (
    DirectHTTPTransport,
    ServiceProxyTransport,
    select_transport,
)
from kubecapacity.core.exceptions import InvalidEndpointError, UpstreamHTTPError, UpstreamProxyError
from kubecapacity.models.endpoint import ProxyEndpoint

BASE_URL = "http://mock-prometheus:9090"


def make_raw_response(status=200, body=b'{"status":"success"}'):
    """An aiohttp-like response as returned by call_api(_preload_content=False)."""
    raw_response = MagicMock()
    raw_response.status = status
    raw_response.read = AsyncMock(return_value=body)
    return raw_response


# --- Transport selection ---


@pytest.mark.parametrize("endpoint", ["http://localhost:9090", "https://prom.example.com", "http://10.0.0.1:9090/"])
def test_select_transport_direct(endpoint, settings):
    transport = select_transport(endpoint, settings=settings)
    assert isinstance(transport, DirectHTTPTransport)
    assert transport.name == "direct"


@pytest.mark.parametrize("endpoint", ["monitoring/prometheus:9090", "default/prom:web"])
def test_select_transport_proxy(endpoint, settings):
    transport = select_transport(endpoint, settings=settings)
    assert isinstance(transport, ServiceProxyTransport)
    assert transport.name == "proxy"
    assert transport.describe() == endpoint


@pytest.mark.parametrize("endpoint", ["prometheus:9090", "monitoring/prometheus", "a/b/c:1", "a/b:c:d", "localhost"])
def test_select_transport_invalid(endpoint, settings):
    with pytest.raises(InvalidEndpointError):
        select_transport(endpoint, settings=settings)


# --- Direct transport ---


@respx.mock
async def test_direct_get_success(settings):
    route = respx.get(f"{BASE_URL}/api/v1/query", params={"query": "up"}).mock(
        return_value=Response(200, text='{"status":"success"}')
    )

    body = await DirectHTTPTransport(BASE_URL, settings=settings).get("api/v1/query", {"query": "up"})

    assert route.called
    assert body == b'{"status":"success"}'


@respx.mock
async def test_direct_get_escapes_query_and_strips_trailing_slash(settings):
    query = 'sum by (node) (rate(container_cpu_usage_seconds_total{container!=""}[5m]))'
    route = respx.get(f"{BASE_URL}/api/v1/query").mock(return_value=Response(200, text="{}"))

    await DirectHTTPTransport(BASE_URL + "/", settings=settings).get("api/v1/query", {"query": query})

    request = route.calls.last.request
    assert request.url.path == "/api/v1/query"
    assert request.url.params["query"] == query
    assert "{" not in request.url.query.decode()


@respx.mock
async def test_direct_get_sends_bearer_token(settings):
    settings.PROMETHEUS_BEARER_TOKEN = "s3cr3t"
    route = respx.get(f"{BASE_URL}/api/v1/query").mock(return_value=Response(200, text="{}"))

    await DirectHTTPTransport(BASE_URL, settings=settings).get("api/v1/query", {"query": "up"})

    assert route.calls.last.request.headers["Authorization"] == "Bearer s3cr3t"


@respx.mock
async def test_direct_get_sends_basic_auth(settings):
    settings.PROMETHEUS_USERNAME = "user"
    settings.PROMETHEUS_PASSWORD = "pass"
    route = respx.get(f"{BASE_URL}/api/v1/query").mock(return_value=Response(200, text="{}"))

    await DirectHTTPTransport(BASE_URL, settings=settings).get("api/v1/query", {"query": "up"})

    assert route.calls.last.request.headers["Authorization"].startswith("Basic ")


@respx.mock
async def test_direct_get_non_2xx(settings):
    respx.get(f"{BASE_URL}/api/v1/query").mock(
        return_value=Response(503, text="service unavailable " + "x" * 2000)
    )

    with pytest.raises(UpstreamHTTPError) as exc_info:
        await DirectHTTPTransport(BASE_URL, settings=settings).get("api/v1/query", {"query": "up"})

    err = exc_info.value
    assert err.status_code == 503
    assert err.transport == "direct"
    assert err.body.startswith("service unavailable")
    assert len(err.body) == 512
    assert "HTTP 503" in str(err)


@respx.mock
async def test_direct_get_connection_error(settings):
    respx.get(f"{BASE_URL}/api/v1/query").mock(side_effect=httpx.ConnectError("Connection refused"))

    with pytest.raises(UpstreamHTTPError) as exc_info:
        await DirectHTTPTransport(BASE_URL, settings=settings).get("api/v1/query", {"query": "up"})

    assert exc_info.value.status_code is None
    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


@respx.mock
async def test_direct_reuses_one_client_until_closed(settings):
    route = respx.get(f"{BASE_URL}/api/v1/query").mock(return_value=Response(200, text="{}"))
    transport = DirectHTTPTransport(BASE_URL, settings=settings)

    await transport.get("api/v1/query", {"query": "up"})
    first_client = transport._client
    await transport.get("api/v1/query", {"query": "down"})

    assert route.call_count == 2
    assert transport._client is first_client

    await transport.close()

    assert first_client.is_closed
    assert transport._client is None


# --- Proxy transport ---


async def test_proxy_get_success(kube_api):
    raw_response = make_raw_response(body=b'{"status":"success"}')
    kube_api.call_api.return_value = raw_response

    transport = ServiceProxyTransport(ProxyEndpoint.parse("monitoring/prometheus-k8s:9090"))
    body = await transport.get("api/v1/query", {"query": "up"})

    assert body == b'{"status":"success"}'
    args, kwargs = kube_api.call_api.call_args
    assert args[0] == "/api/v1/namespaces/{namespace}/services/{name}/proxy/api/v1/query"
    assert args[1] == "GET"
    assert kwargs["path_params"] == {"namespace": "monitoring", "name": "prometheus-k8s:9090"}
    assert kwargs["query_params"] == [("query", "up")]
    assert kwargs["_preload_content"] is False
    raw_response.release.assert_called_once()
    assert kube_api.closed


async def test_proxy_get_non_2xx(kube_api):
    kube_api.call_api.return_value = make_raw_response(status=503, body=b"no endpoints available for service")

    with pytest.raises(UpstreamProxyError) as exc_info:
        await ServiceProxyTransport(ProxyEndpoint.parse("monitoring/prom:9090")).get("api/v1/query", {"query": "up"})

    assert exc_info.value.status_code == 503
    assert exc_info.value.transport == "proxy"
    assert "no endpoints available" in exc_info.value.body


@pytest.mark.parametrize(
    "error",
    [
        aiohttp.ClientConnectionError("connection refused"),
        OSError("network unreachable"),
    ],
)
async def test_proxy_get_transport_failure_is_wrapped(kube_api, error):
    kube_api.call_api.side_effect = error

    with pytest.raises(UpstreamProxyError) as exc_info:
        await ServiceProxyTransport(ProxyEndpoint.parse("monitoring/prom:9090")).get("api/v1/query", {"query": "up"})

    assert exc_info.value.__cause__ is error
    assert "monitoring/prom:9090" in str(exc_info.value)
    assert kube_api.closed


async def test_proxy_get_without_kube_config():
    # The autouse conftest fixture makes every config loader fail.
    with pytest.raises(UpstreamProxyError) as exc_info:
        await ServiceProxyTransport(ProxyEndpoint.parse("monitoring/prom:9090")).get("api/v1/query", {"query": "up"})

    assert "no Kubernetes configuration" in str(exc_info.value)
