# src/kubecapacity/models/endpoint.py
"""
Models describing where the Prometheus backend lives.
"""

import re

from pydantic import BaseModel, ConfigDict, Field

from ..core.exceptions import InvalidEndpointError

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://")


def is_url_endpoint(endpoint: str) -> bool:
    """True when the endpoint starts with a URL scheme (e.g. 'http://')."""
    return bool(_SCHEME_RE.match(endpoint or ""))


class ServiceCandidate(BaseModel):
    """
    A Prometheus service found during discovery.
    """

    model_config = ConfigDict(frozen=True)

    namespace: str
    name: str
    port: int

    @property
    def endpoint(self) -> str:
        return f"{self.namespace}/{self.name}:{self.port}"


class ProxyEndpoint(BaseModel):
    """
    A 'namespace/service:port' endpoint reached through the Kubernetes API service proxy.
    The port may be a number or a named service port.
    """

    model_config = ConfigDict(frozen=True)

    namespace: str = Field(..., min_length=1)
    service: str = Field(..., min_length=1)
    port: str = Field(..., min_length=1)

    @classmethod
    def parse(cls, endpoint: str) -> "ProxyEndpoint":
        """
        Raises:
            InvalidEndpointError: unless the string is exactly two '/' segments
                followed by two ':' segments, none of them empty.
        """
        parts = endpoint.split("/")
        if len(parts) != 2:
            raise InvalidEndpointError(endpoint)
        namespace, service_port = parts

        svc_parts = service_port.split(":")
        if len(svc_parts) != 2:
            raise InvalidEndpointError(endpoint)
        service, port = svc_parts

        if not (namespace and service and port):
            raise InvalidEndpointError(endpoint)
        return cls(namespace=namespace, service=service, port=port)

    @property
    def proxy_name(self) -> str:
        return f"{self.service}:{self.port}"

    def __str__(self) -> str:
        return f"{self.namespace}/{self.service}:{self.port}"
