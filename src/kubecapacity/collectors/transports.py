# src/kubecapacity/collectors/transports.py
"""
The two ways of reaching the Prometheus query API.

DirectHTTPTransport talks to a URL with httpx. ServiceProxyTransport goes
through the Kubernetes API server's service proxy subresource, which works
from outside the cluster with nothing but a kubeconfig.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

import aiohttp
import httpx
from kubernetes_asyncio.client.rest import ApiException

from kubecapacity.core.config import Config
from kubecapacity.core.config import config as global_config
from kubecapacity.core.exceptions import KubeConfigError, UpstreamHTTPError, UpstreamProxyError
from kubecapacity.core.k8s_client import kube_api_client
from kubecapacity.models.endpoint import ProxyEndpoint, is_url_endpoint
from kubecapacity.utils.http_client import get_async_http_client

logger = logging.getLogger(__name__)

QUERY_PATH = "api/v1/query"

# Longest response body kept on an UpstreamError
BODY_SNIPPET_LENGTH = 512


def _snippet(body) -> str:
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    return (body or "")[:BODY_SNIPPET_LENGTH]


class QueryTransport(ABC):
    """
    Fetches the raw body of `GET <api root>/<path>?<params>` from Prometheus.
    """

    name = "base"

    @abstractmethod
    async def get(self, path: str, params: Dict[str, str]) -> bytes:
        raise NotImplementedError()

    @abstractmethod
    def describe(self) -> str:
        """Human-readable target, used in logs."""
        raise NotImplementedError()

    async def close(self) -> None:
        """Release connections held by the transport."""
        pass


class DirectHTTPTransport(QueryTransport):
    """
    Queries Prometheus at a full URL, e.g. 'http://localhost:9090'.

    One httpx client is opened on the first request and reused until close().
    """

    name = "direct"

    def __init__(self, base_url: str, settings: Optional[Config] = None):
        settings = settings or global_config
        self.base_url = base_url.rstrip("/")
        self.verify = getattr(settings, "PROMETHEUS_VERIFY_CERTS", True)
        self.bearer_token = getattr(settings, "PROMETHEUS_BEARER_TOKEN", None)
        self.username = getattr(settings, "PROMETHEUS_USERNAME", None)
        self.password = getattr(settings, "PROMETHEUS_PASSWORD", None)
        self._client: Optional[httpx.AsyncClient] = None

    def describe(self) -> str:
        return self.base_url

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {}
            if self.bearer_token:
                headers["Authorization"] = f"Bearer {self.bearer_token}"

            auth = None
            if self.username and self.password:
                auth = (self.username, self.password)

            self._client = get_async_http_client(verify=self.verify, auth=auth, headers=headers)
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def get(self, path: str, params: Dict[str, str]) -> bytes:
        url = f"{self.base_url}/{path.lstrip('/')}"

        try:
            response = await self._get_client().get(url, params=params)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise UpstreamHTTPError(f"HTTP request to Prometheus at {url}: {e}") from e

        body = response.content
        if not response.is_success:
            raise UpstreamHTTPError(
                f"Prometheus returned HTTP {response.status_code}: {_snippet(body)}",
                status_code=response.status_code,
                body=_snippet(body),
            )
        return body


class ServiceProxyTransport(QueryTransport):
    """
    Queries Prometheus through
    /api/v1/namespaces/{namespace}/services/{service}:{port}/proxy/<path>.
    """

    name = "proxy"

    def __init__(self, endpoint: ProxyEndpoint):
        self.endpoint = endpoint

    def describe(self) -> str:
        return str(self.endpoint)

    async def get(self, path: str, params: Dict[str, str]) -> bytes:
        resource_path = "/api/v1/namespaces/{namespace}/services/{name}/proxy/" + path.lstrip("/")
        try:
            async with kube_api_client() as api_client:
                # _preload_content=False hands back the raw aiohttp response, so the
                # body is not run through the OpenAPI deserializer.
                response = await api_client.call_api(
                    resource_path,
                    "GET",
                    path_params={"namespace": self.endpoint.namespace, "name": self.endpoint.proxy_name},
                    query_params=list(params.items()),
                    header_params={"Accept": "application/json"},
                    auth_settings=["BearerToken"],
                    _return_http_data_only=True,
                    _preload_content=False,
                )
                try:
                    status = response.status
                    body = await response.read()
                finally:
                    response.release()
        except (KubeConfigError, ApiException, aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            raise UpstreamProxyError(f"K8s API proxy request to Prometheus at {self.endpoint}: {e}") from e

        if not 200 <= status < 300:
            raise UpstreamProxyError(
                f"K8s API proxy request to Prometheus at {self.endpoint} returned HTTP {status}: {_snippet(body)}",
                status_code=status,
                body=_snippet(body),
            )
        return body


def select_transport(endpoint: str, settings: Optional[Config] = None) -> QueryTransport:
    """
    Picks the transport from the shape of the endpoint string.

    Raises:
        InvalidEndpointError: for a non-URL endpoint that is not 'namespace/service:port'.
    """
    if is_url_endpoint(endpoint):
        return DirectHTTPTransport(endpoint, settings=settings)
    return ServiceProxyTransport(ProxyEndpoint.parse(endpoint))
