# src/kubecapacity/cli/usage.py
"""
Implements the `usage` command: collect a pod and node usage snapshot from Prometheus.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from ..collectors.prometheus_collector import PrometheusUsageCollector
from ..core.config import config
from ..core.exceptions import KubeCapacityError
from ..exporters.json_exporter import JSONExporter
from ..models.usage import UsageSnapshot
from ..reporters.console_reporter import ConsoleReporter

logger = logging.getLogger(__name__)

app = typer.Typer(help="Show pod and node resource usage read from Prometheus.", add_completion=False)


def get_collector(endpoint: Optional[str] = None) -> PrometheusUsageCollector:
    return PrometheusUsageCollector(settings=config, endpoint=endpoint)


async def handle_export(snapshot: UsageSnapshot, output_path: Optional[Path]) -> str:
    """Writes the snapshot as a JSON document holding both metrics lists."""
    exporter = JSONExporter()
    if not output_path:
        output_path = Path.cwd() / "data" / exporter.DEFAULT_FILENAME

    document = {
        "pods": snapshot.pod_metrics_list(),
        "nodes": snapshot.node_metrics_list(),
    }
    written_path = await exporter.export(document, str(output_path))
    logger.info(f"Successfully exported usage snapshot to {written_path}")
    return written_path


@app.callback(invoke_without_command=True)
def usage(
    ctx: typer.Context,
    prometheus_endpoint: Annotated[
        Optional[str],
        typer.Option(
            "--prometheus-endpoint",
            help="Prometheus URL (http://host:9090) or 'namespace/service:port'. Auto-discovered when omitted.",
        ),
    ] = None,
    output_format: Annotated[
        Optional[str],
        typer.Option(
            "--output",
            help="Output format (json). If set, writes to a file instead of the console.",
            case_sensitive=False,
        ),
    ] = None,
    output_path: Annotated[
        Optional[Path],
        typer.Option(
            "--output-path",
            help="Specify output file path. Default: './data/kubecapacity-usage.json'",
            exists=False,
            dir_okay=False,
            writable=True,
        ),
    ] = None,
):
    """
    Collect current CPU and memory usage per container and per node.

    Displays tables in the console by default.
    Use --output json to export the PodMetricsList/NodeMetricsList document.
    """
    if ctx.invoked_subcommand is not None:
        return

    if output_format and output_format.lower() != "json":
        logger.error(f"Invalid output format '{output_format}'.")
        raise typer.Exit(code=1)

    async def _usage_async():
        snapshot = await get_collector(prometheus_endpoint).collect()

        if output_format:
            written_path = await handle_export(snapshot, output_path)
            print(f"Usage snapshot exported to: {written_path}", file=sys.stderr)
        else:
            ConsoleReporter().report(snapshot)

    try:
        asyncio.run(_usage_async())
    except KubeCapacityError as e:
        logger.error(f"Failed to collect usage from Prometheus: {e}")
        raise typer.Exit(code=1)
    except OSError as e:
        logger.error(f"Failed to export usage snapshot: {e}")
        raise typer.Exit(code=1)
