from .prometheus_collector import PrometheusUsageCollector
from .query_executor import QueryExecutor, execute_query

__all__ = [
    "PrometheusUsageCollector",
    "QueryExecutor",
    "execute_query",
]
