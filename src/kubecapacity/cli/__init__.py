# src/kubecapacity/cli/__init__.py
"""
kubecapacity CLI Package

This package exposes the top-level Typer `app` for the console entrypoint and tests.
"""

# Re-export commonly patched symbols for tests
from ..reporters.console_reporter import ConsoleReporter
from .main import app

__all__ = ["app", "ConsoleReporter"]
