# src/kubecapacity/collectors/prometheus_collector.py

"""
PrometheusUsageCollector builds a pod and node usage snapshot from Prometheus.
It stands in for metrics-server when the cluster does not run one.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Tuple

from kubecapacity.collectors.discovery.prometheus import PrometheusDiscovery
from kubecapacity.collectors.query_executor import QueryExecutor
from kubecapacity.core.aggregator import build_node_usage, build_pod_usage
from kubecapacity.core.config import Config
from kubecapacity.core.config import config as global_config
from kubecapacity.core.exceptions import KubeCapacityError, UsageCollectionError
from kubecapacity.models.prometheus_metrics import PrometheusResponse
from kubecapacity.models.usage import UsageSnapshot

logger = logging.getLogger(__name__)


def build_queries(rate_window: str = "5m") -> List[Tuple[str, str]]:
    """
    Returns the (description, PromQL) pairs of the four queries, in execution order.
    """
    return [
        (
            "container CPU",
            "sum by (namespace, pod, container) "
            f'(rate(container_cpu_usage_seconds_total{{container!="",container!="POD"}}[{rate_window}]))',
        ),
        (
            "container memory",
            'sum by (namespace, pod, container) (container_memory_working_set_bytes{container!="",container!="POD"})',
        ),
        (
            "node CPU",
            f'sum by (node) (rate(container_cpu_usage_seconds_total{{container!=""}}[{rate_window}]))',
        ),
        (
            "node memory",
            'sum by (node) (container_memory_working_set_bytes{container!=""})',
        ),
    ]


class PrometheusUsageCollector:
    """
    Collects container and node CPU/memory usage from Prometheus.

    Every call starts from scratch: nothing is cached and nothing is retried.
    Any failure aborts the whole collection, a partial snapshot is never returned.
    """

    def __init__(
        self,
        settings: Optional[Config] = None,
        endpoint: Optional[str] = None,
        discovery: Optional[PrometheusDiscovery] = None,
    ):
        self.settings = settings or global_config
        # An explicit endpoint bypasses discovery.
        self.endpoint = endpoint or self.settings.PROMETHEUS_ENDPOINT or None
        self.discovery = discovery or PrometheusDiscovery(default_port=self.settings.PROMETHEUS_DEFAULT_PORT)
        self.concurrent = getattr(self.settings, "PROMETHEUS_CONCURRENT_QUERIES", False)
        self.queries = build_queries(self.settings.PROMETHEUS_RATE_WINDOW)

    async def resolve_endpoint(self) -> str:
        if self.endpoint:
            return self.endpoint

        try:
            endpoint = await self.discovery.locate()
        except KubeCapacityError as e:
            raise UsageCollectionError("auto-discovering Prometheus", e) from e

        logger.info("Discovered Prometheus at %s", endpoint)
        return endpoint

    async def collect(self) -> UsageSnapshot:
        """
        Raises:
            UsageCollectionError: wrapping the first error met, with the failing stage.
        """
        endpoint = await self.resolve_endpoint()

        try:
            executor = QueryExecutor.for_endpoint(endpoint, settings=self.settings)
        except KubeCapacityError as e:
            raise UsageCollectionError("resolving Prometheus endpoint", e) from e

        try:
            if self.concurrent:
                responses = await self._run_concurrently(executor)
            else:
                responses = await self._run_sequentially(executor)
        finally:
            await executor.close()

        pods = build_pod_usage(responses["container CPU"], responses["container memory"])
        nodes = build_node_usage(responses["node CPU"], responses["node memory"])
        logger.info("Built usage for %d pod(s) and %d node(s) from Prometheus.", len(pods), len(nodes))
        return UsageSnapshot(pods=pods, nodes=nodes)

    async def _query(self, executor: QueryExecutor, description: str, query: str) -> PrometheusResponse:
        try:
            return await executor.execute(query)
        except KubeCapacityError as e:
            raise UsageCollectionError(f"querying {description}", e) from e

    async def _run_sequentially(self, executor: QueryExecutor) -> Dict[str, PrometheusResponse]:
        responses = {}
        for description, query in self.queries:
            responses[description] = await self._query(executor, description, query)
        return responses

    async def _run_concurrently(self, executor: QueryExecutor) -> Dict[str, PrometheusResponse]:
        tasks = [asyncio.ensure_future(self._query(executor, description, query)) for description, query in self.queries]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            # First failure wins; the other queries are abandoned.
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return {description: result for (description, _), result in zip(self.queries, results)}
