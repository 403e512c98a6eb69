# src/kubecapacity/collectors/discovery/prometheus.py
import logging
from typing import List, Optional, Sequence

from kubecapacity.core.config import config
from kubecapacity.core.exceptions import NotFoundError
from kubecapacity.models.endpoint import ServiceCandidate

from .base import BaseDiscovery

logger = logging.getLogger(__name__)

# Checked in order; the first match wins when several services qualify.
PROMETHEUS_LABEL_SELECTORS = (
    "app.kubernetes.io/name=prometheus",
    "app=kube-prometheus-stack-prometheus",
    "operated-prometheus=true",
)


class PrometheusDiscovery(BaseDiscovery):
    """
    Finds the Prometheus service to query by listing services that carry one of
    the well-known Prometheus labels.
    """

    def __init__(self, label_selectors: Sequence[str] = PROMETHEUS_LABEL_SELECTORS, default_port: Optional[int] = None):
        super().__init__(default_port=default_port or config.PROMETHEUS_DEFAULT_PORT)
        self.label_selectors = tuple(label_selectors)

    async def collect_candidates(self) -> List[ServiceCandidate]:
        """
        Returns candidates in selector-then-discovery order, deduplicated by
        (namespace, name). Services without ports are dropped.
        """
        seen = set()
        candidates = []

        for selector in self.label_selectors:
            services = await self.list_services(selector)
            if services is None:
                logger.debug("Prometheus discovery: skipping selector %r after a listing failure.", selector)
                continue

            for svc in services:
                name = getattr(svc.metadata, "name", "") or ""
                ns = getattr(svc.metadata, "namespace", "") or ""
                key = (ns, name)
                if key in seen:
                    continue
                seen.add(key)

                ports = getattr(svc.spec, "ports", None) or []
                port = self.pick_port(ports)
                if port is None:
                    logger.debug("Prometheus discovery: service %s/%s declares no ports.", ns, name)
                    continue

                candidates.append(ServiceCandidate(namespace=ns, name=name, port=port))

        return candidates

    async def locate(self) -> str:
        """
        Returns the endpoint of the first candidate as 'namespace/service:port'.

        Raises:
            NotFoundError: when no selector yields a usable service.
        """
        candidates = await self.collect_candidates()
        if not candidates:
            raise NotFoundError(
                f"no Prometheus service found (searched labels: {', '.join(self.label_selectors)})"
            )

        if len(candidates) > 1:
            logger.warning(
                "Found %d Prometheus services, using first match. Set PROMETHEUS_ENDPOINT to choose explicitly: %s",
                len(candidates),
                ", ".join(c.endpoint for c in candidates),
                extra={"candidates": [c.endpoint for c in candidates]},
            )

        return candidates[0].endpoint
