# src/kubecapacity/reporters/console_reporter.py
"""
A reporter that displays a usage snapshot as tables in the console.
"""

import logging

from rich.console import Console
from rich.table import Table

from ..models.usage import Quantity, UsageSnapshot
from .base_reporter import BaseReporter

logger = logging.getLogger(__name__)


def _fmt(quantity: Quantity | None) -> str:
    return str(quantity) if quantity is not None else "-"


class ConsoleReporter(BaseReporter):
    """
    Renders pod and node usage to the console using the 'rich' library.
    """

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def report(self, snapshot: UsageSnapshot):
        if not snapshot.pods and not snapshot.nodes:
            self.console.print("No usage data to report.", style="yellow")
            return

        if snapshot.pods:
            table = Table(title="Pod Usage", header_style="bold magenta")
            table.add_column("Namespace", style="cyan")
            table.add_column("Pod", style="cyan")
            table.add_column("Container", style="cyan")
            table.add_column("CPU", style="blue", justify="right")
            table.add_column("Memory", style="blue", justify="right")

            # Prometheus returns series in no particular order; sort for readability.
            for pod in sorted(snapshot.pods, key=lambda p: (p.namespace, p.name)):
                for container in sorted(pod.containers, key=lambda c: c.name):
                    table.add_row(pod.namespace, pod.name, container.name, _fmt(container.cpu), _fmt(container.memory))
            self.console.print(table)
        else:
            self.console.print("No pod usage to report.", style="yellow")

        if snapshot.nodes:
            table = Table(title="Node Usage", header_style="bold magenta")
            table.add_column("Node", style="cyan")
            table.add_column("CPU", style="blue", justify="right")
            table.add_column("Memory", style="blue", justify="right")
            for node in sorted(snapshot.nodes, key=lambda n: n.name):
                table.add_row(node.name, _fmt(node.cpu), _fmt(node.memory))
            self.console.print(table)
        else:
            self.console.print("No node usage to report.", style="yellow")
