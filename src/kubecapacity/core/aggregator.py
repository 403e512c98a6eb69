# src/kubecapacity/core/aggregator.py
"""
Folds Prometheus CPU and memory result sets into pod and node usage records.

CPU and memory come from two independent queries whose series do not have to
line up: a container can be missing from one scrape but present in the other.
Each fold therefore upserts both result sets into one accumulator per entity
and only then builds the records. A resource that was never observed is left
out of the record rather than reported as zero.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Dict, Hashable, List, Optional, Tuple

from ..models.prometheus_metrics import PrometheusResponse, PrometheusResult
from ..models.usage import ContainerUsage, NodeUsage, PodUsage, Quantity
from ..utils.prometheus_utils import parse_sample
from .exceptions import MalformedSampleError

logger = logging.getLogger(__name__)

ContainerKey = Tuple[str, str, str]


@dataclass
class _Usage:
    cpu: Optional[Quantity] = None
    memory: Optional[Quantity] = None


def _container_key(result: PrometheusResult) -> ContainerKey:
    """(namespace, pod, container); a missing label becomes an empty string."""
    metric = result.metric
    return (metric.get("namespace", ""), metric.get("pod", ""), metric.get("container", ""))


def _node_key(result: PrometheusResult) -> Optional[str]:
    return result.metric.get("node") or None


def _fold(
    accumulators: Dict[Hashable, _Usage],
    response: PrometheusResponse,
    key_for: Callable[[PrometheusResult], Optional[Hashable]],
    resource: str,
) -> None:
    """
    Upserts every row of `response` into `accumulators` under `resource` ('cpu' or 'memory').

    Rows without a key are dropped; rows with a malformed sample are skipped and
    counted, the batch is never aborted.
    """
    to_quantity = Quantity.cpu_from_cores if resource == "cpu" else Quantity.memory_from_bytes
    malformed = 0

    for result in response.results:
        key = key_for(result)
        if key is None:
            continue

        try:
            value = parse_sample(result.value)
        except MalformedSampleError as e:
            logger.debug("Skipping %s sample for %s: %s", resource, key, e)
            malformed += 1
            continue

        if key not in accumulators:
            accumulators[key] = _Usage()
        setattr(accumulators[key], resource, to_quantity(value))

    if malformed:
        logger.warning("Skipped %d malformed %s sample(s).", malformed, resource)


def build_pod_usage(cpu_response: PrometheusResponse, memory_response: PrometheusResponse) -> List[PodUsage]:
    """
    Builds one PodUsage per (namespace, pod) with a container entry per container name.

    Order of pods and containers is unspecified.
    """
    containers: Dict[ContainerKey, _Usage] = {}
    _fold(containers, cpu_response, _container_key, "cpu")
    _fold(containers, memory_response, _container_key, "memory")

    pods: Dict[Tuple[str, str], List[ContainerUsage]] = defaultdict(list)
    for (namespace, pod, container), usage in containers.items():
        pods[(namespace, pod)].append(ContainerUsage(name=container, cpu=usage.cpu, memory=usage.memory))

    return [
        PodUsage(namespace=namespace, name=pod, containers=container_list)
        for (namespace, pod), container_list in pods.items()
    ]


def build_node_usage(cpu_response: PrometheusResponse, memory_response: PrometheusResponse) -> List[NodeUsage]:
    """
    Builds one NodeUsage per node name. Series without a node label are ignored.
    """
    nodes: Dict[str, _Usage] = {}
    _fold(nodes, cpu_response, _node_key, "cpu")
    _fold(nodes, memory_response, _node_key, "memory")

    return [NodeUsage(name=name, cpu=usage.cpu, memory=usage.memory) for name, usage in nodes.items()]
