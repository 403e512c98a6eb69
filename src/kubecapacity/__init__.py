"""kubecapacity: Kubernetes resource usage snapshots sourced from Prometheus."""

__version__ = "0.3.0"
