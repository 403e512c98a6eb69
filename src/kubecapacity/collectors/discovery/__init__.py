from .base import BaseDiscovery
from .prometheus import PROMETHEUS_LABEL_SELECTORS, PrometheusDiscovery

__all__ = ["BaseDiscovery", "PrometheusDiscovery", "PROMETHEUS_LABEL_SELECTORS"]
