# src/kubecapacity/collectors/discovery/base.py
"""
Base discovery utilities for Kubernetes services.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from kubernetes_asyncio import client

from kubecapacity.core.k8s_client import kube_api_client

logger = logging.getLogger(__name__)


class BaseDiscovery:
    """Base class encapsulating Kubernetes service listing and port selection."""

    def __init__(self, default_port: int = 9090):
        self.default_port = default_port

    async def list_services(self, label_selector: Optional[str] = None) -> Optional[Sequence[client.V1Service]]:
        """
        List services across all namespaces, optionally filtered by a label selector.

        Returns None when the listing fails for any reason (no kube config, API or
        network error, an undecodable reply) so callers can skip this lookup.
        """
        try:
            async with kube_api_client() as api_client:
                v1 = client.CoreV1Api(api_client)
                kwargs = {"label_selector": label_selector} if label_selector else {}
                services = await v1.list_service_for_all_namespaces(**kwargs)
                return services.items

        except Exception as e:
            logger.debug("Failed to list services for selector %r: %s", label_selector, e)
            return None

    def pick_port(self, ports) -> Optional[int]:
        """
        Prefer the default port when the service declares it, otherwise the first
        declared port. Returns None for a service without ports.
        """
        if not ports:
            return None
        for p in ports:
            if getattr(p, "port", None) == self.default_port:
                return self.default_port
        return getattr(ports[0], "port", None)
