"""
Access to the Kubernetes API.

The configuration (in-cluster service account, else the local kubeconfig) is
loaded once per process. Every caller then opens its own short-lived
ApiClient through `kube_api_client()`.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from kubernetes_asyncio import client, config

from .exceptions import KubeConfigError

logger = logging.getLogger(__name__)

_CONFIG_LOCK = asyncio.Lock()
_CONFIG_LOADED = False


async def _load_config() -> bool:
    try:
        config.load_incluster_config()
        logger.info("Using in-cluster Kubernetes configuration.")
        return True
    except config.ConfigException:
        logger.debug("Not running inside a cluster, trying kubeconfig.")
    except Exception as e:
        logger.warning("Unexpected error loading in-cluster config: %s", e)

    try:
        await config.load_kube_config()
        logger.info("Using Kubernetes configuration from kubeconfig.")
        return True
    except Exception as e:
        logger.warning("Could not load kubeconfig: %s", e)
    return False


async def ensure_k8s_config() -> bool:
    """
    Returns True once a Kubernetes configuration is loaded. A failed attempt is
    retried on the next call.
    """
    global _CONFIG_LOADED

    if _CONFIG_LOADED:
        return True

    async with _CONFIG_LOCK:
        if not _CONFIG_LOADED:
            _CONFIG_LOADED = await _load_config()
    return _CONFIG_LOADED


@asynccontextmanager
async def kube_api_client() -> AsyncIterator[client.ApiClient]:
    """
    Yields an ApiClient that is closed on exit.

    Raises:
        KubeConfigError: when neither in-cluster config nor a kubeconfig is available.
    """
    if not await ensure_k8s_config():
        raise KubeConfigError("no Kubernetes configuration available")

    async with client.ApiClient() as api_client:
        yield api_client
