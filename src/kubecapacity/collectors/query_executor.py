# src/kubecapacity/collectors/query_executor.py
"""
Runs a single PromQL instant query and returns the validated response envelope.
"""

import logging
from typing import Optional

from pydantic import ValidationError

from kubecapacity.core.config import Config
from kubecapacity.core.exceptions import DecodeError, QueryFailedError
from kubecapacity.models.prometheus_metrics import PrometheusResponse

from .transports import QUERY_PATH, QueryTransport, select_transport

logger = logging.getLogger(__name__)


class QueryExecutor:
    """
    Executes instant queries against one Prometheus endpoint.

    The transport is chosen once, when the executor is built. No retries are performed.
    """

    def __init__(self, transport: QueryTransport):
        self.transport = transport

    @classmethod
    def for_endpoint(cls, endpoint: str, settings: Optional[Config] = None) -> "QueryExecutor":
        """
        Raises:
            InvalidEndpointError: before any network call, for a malformed proxy endpoint.
        """
        return cls(select_transport(endpoint, settings=settings))

    async def execute(self, query: str) -> PrometheusResponse:
        """
        Raises:
            UpstreamHTTPError / UpstreamProxyError: transport failure or non-2xx status.
            DecodeError: the body is not a Prometheus response.
            QueryFailedError: Prometheus reported a status other than 'success'.
        """
        logger.debug("Querying Prometheus via %s transport at %s: %s", self.transport.name, self.transport.describe(), query)
        body = await self.transport.get(QUERY_PATH, {"query": query})

        try:
            response = PrometheusResponse.model_validate_json(body)
        except ValidationError as e:
            raise DecodeError(f"parsing Prometheus response: {e}") from e

        if response.status != "success":
            raise QueryFailedError(response.status, response.error)

        for warning in response.warnings:
            logger.warning("Prometheus returned a warning for query %r: %s", query, warning)

        logger.info("Prometheus at %s returned %d result(s)", self.transport.describe(), len(response.results))
        return response

    async def close(self) -> None:
        await self.transport.close()


async def execute_query(endpoint: str, query: str, settings: Optional[Config] = None) -> PrometheusResponse:
    """Convenience wrapper: pick the transport for `endpoint` and run `query` once."""
    executor = QueryExecutor.for_endpoint(endpoint, settings=settings)
    try:
        return await executor.execute(query)
    finally:
        await executor.close()
