# src/kubecapacity/models/usage.py
"""
Pydantic models for the resource usage snapshot.

The shapes mirror the Kubernetes metrics API (metrics.k8s.io/v1beta1), so a
consumer written against metrics-server can read them unchanged.
"""

import math
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..utils.k8s_utils import format_binary_quantity, format_milli_quantity, round_half_away

METRICS_API_VERSION = "metrics.k8s.io/v1beta1"


class Quantity(BaseModel):
    """
    An immutable resource amount.

    CPU is stored as milli-units (scale -3, DecimalSI) and memory as whole
    bytes (scale 0, BinarySI), matching resource.Quantity in Kubernetes.
    """

    model_config = ConfigDict(frozen=True)

    amount: int = Field(..., description="Integer amount at the given scale")
    scale: Literal[0, -3] = Field(0, description="Base-10 exponent applied to amount")
    format: Literal["DecimalSI", "BinarySI"] = "DecimalSI"

    @classmethod
    def from_milli(cls, milli: int) -> "Quantity":
        return cls(amount=milli, scale=-3, format="DecimalSI")

    @classmethod
    def from_bytes(cls, amount: int) -> "Quantity":
        return cls(amount=amount, scale=0, format="BinarySI")

    @classmethod
    def cpu_from_cores(cls, cores: float) -> "Quantity":
        """Build a CPU quantity from a (fractional) core count, rounded to the nearest milli-core."""
        return cls.from_milli(round_half_away(cores * 1000))

    @classmethod
    def memory_from_bytes(cls, amount: float) -> "Quantity":
        """Build a memory quantity from a (fractional) byte count, rounded to the nearest byte."""
        return cls.from_bytes(round_half_away(amount))

    def milli_value(self) -> int:
        if self.scale == -3:
            return self.amount
        return self.amount * 1000

    def value(self) -> int:
        """Whole units, rounded up like Quantity.Value() in Kubernetes."""
        if self.scale == -3:
            return math.ceil(self.amount / 1000)
        return self.amount

    def __str__(self) -> str:
        if self.scale == -3:
            return format_milli_quantity(self.amount)
        if self.format == "BinarySI":
            return format_binary_quantity(self.amount)
        return str(self.amount)


class ContainerUsage(BaseModel):
    """
    CPU and memory usage of one container. A resource that was not observed is None.
    """

    name: str
    cpu: Optional[Quantity] = None
    memory: Optional[Quantity] = None

    @property
    def usage(self) -> Dict[str, Quantity]:
        """ResourceList view; unobserved resources are omitted rather than zero-filled."""
        resources = {}
        if self.cpu is not None:
            resources["cpu"] = self.cpu
        if self.memory is not None:
            resources["memory"] = self.memory
        return resources

    def to_metrics_api(self) -> Dict[str, Any]:
        return {"name": self.name, "usage": {k: str(v) for k, v in self.usage.items()}}


class PodUsage(BaseModel):
    """
    Usage of every container of one pod.
    """

    namespace: str
    name: str
    containers: List[ContainerUsage] = Field(default_factory=list)

    def to_metrics_api(self) -> Dict[str, Any]:
        return {
            "metadata": {"name": self.name, "namespace": self.namespace},
            "containers": [c.to_metrics_api() for c in self.containers],
        }


class NodeUsage(BaseModel):
    """
    CPU and memory usage of one node. A resource that was not observed is None.
    """

    name: str
    cpu: Optional[Quantity] = None
    memory: Optional[Quantity] = None

    @property
    def usage(self) -> Dict[str, Quantity]:
        resources = {}
        if self.cpu is not None:
            resources["cpu"] = self.cpu
        if self.memory is not None:
            resources["memory"] = self.memory
        return resources

    def to_metrics_api(self) -> Dict[str, Any]:
        return {
            "metadata": {"name": self.name},
            "usage": {k: str(v) for k, v in self.usage.items()},
        }


class UsageSnapshot(BaseModel):
    """
    The result of one collection: pod usage and node usage. Ordering of both lists is unspecified.
    """

    pods: List[PodUsage] = Field(default_factory=list)
    nodes: List[NodeUsage] = Field(default_factory=list)

    def pod_metrics_list(self) -> Dict[str, Any]:
        return {
            "kind": "PodMetricsList",
            "apiVersion": METRICS_API_VERSION,
            "items": [p.to_metrics_api() for p in self.pods],
        }

    def node_metrics_list(self) -> Dict[str, Any]:
        return {
            "kind": "NodeMetricsList",
            "apiVersion": METRICS_API_VERSION,
            "items": [n.to_metrics_api() for n in self.nodes],
        }
