from typing import Optional


class KubeCapacityError(Exception):
    """Base exception for kubecapacity."""

    pass


class KubeConfigError(KubeCapacityError):
    """Raised when no Kubernetes configuration can be loaded."""

    pass


class PrometheusError(KubeCapacityError):
    """Base exception for errors talking to the Prometheus backend."""

    pass


class NotFoundError(PrometheusError):
    """Raised when no Prometheus service can be discovered in the cluster."""

    pass


class InvalidEndpointError(PrometheusError):
    """Raised when an explicit endpoint is neither a URL nor 'namespace/service:port'."""

    def __init__(self, endpoint: str):
        self.endpoint = endpoint
        super().__init__(f"invalid Prometheus endpoint format {endpoint!r}, expected namespace/service:port")


class UpstreamError(PrometheusError):
    """Base exception for transport-level failures."""

    transport = "unknown"

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class UpstreamHTTPError(UpstreamError):
    """Raised when a direct HTTP request to Prometheus fails or returns a non-2xx status."""

    transport = "direct"


class UpstreamProxyError(UpstreamError):
    """Raised when a request through the Kubernetes API service proxy fails."""

    transport = "proxy"


class DecodeError(PrometheusError):
    """Raised when a response body is not a valid Prometheus query response."""

    pass


class QueryFailedError(PrometheusError):
    """Raised when Prometheus reports a status other than 'success'."""

    def __init__(self, status: str, error: Optional[str] = None):
        self.status = status
        self.error = error
        message = f"Prometheus query failed with status: {status}"
        if error:
            message = f"{message} ({error})"
        super().__init__(message)


class MalformedSampleError(PrometheusError):
    """Raised for a single sample that cannot be turned into a number."""

    pass


class UsageCollectionError(KubeCapacityError):
    """Raised when building a usage snapshot fails. The original error is chained as __cause__."""

    def __init__(self, stage: str, cause: Exception):
        self.stage = stage
        super().__init__(f"{stage}: {cause}")
