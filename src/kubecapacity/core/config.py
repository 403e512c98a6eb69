# src/kubecapacity/core/config.py

import logging
import os
import re

from dotenv import load_dotenv

from .. import __version__

# Load environment variables from a .env file located in the project root
dotenv_path = os.path.join(os.path.dirname(__file__), "..", "..", "..", ".env")
load_dotenv(dotenv_path=dotenv_path)


def _env_bool(key: str, default: str) -> bool:
    return os.getenv(key, default).lower() in ("true", "1", "t", "y", "yes")


class Config:
    """
    Handles the application's configuration by loading values from environment variables.
    """

    def __init__(self):
        # -- Prometheus credentials ---
        self.PROMETHEUS_BEARER_TOKEN = self._get_secret("PROMETHEUS_BEARER_TOKEN")
        self.PROMETHEUS_USERNAME = self._get_secret("PROMETHEUS_USERNAME")
        self.PROMETHEUS_PASSWORD = self._get_secret("PROMETHEUS_PASSWORD")

    @staticmethod
    def _get_secret(key: str, default: str = None) -> str:
        """
        Retrieves a secret from a file (Docker secret/volume) or falls back to environment variable.

        Raises:
            PermissionError: If the secret file exists but cannot be read due to permissions.
            IOError: If the secret file exists but cannot be read due to I/O errors.
        """
        secret_file = f"/etc/kubecapacity/secrets/{key}"
        if os.path.exists(secret_file):
            try:
                with open(secret_file, "r") as f:
                    value = f.read().strip()
                    logging.getLogger(__name__).debug(f"Loaded secret '{key}' from {secret_file}")
                    return value
            except PermissionError as e:
                raise PermissionError(
                    f"Secret file '{secret_file}' exists but cannot be read due to permission denied. "
                    f"Please check file permissions or run with appropriate privileges."
                ) from e
            except (IOError, OSError) as e:
                raise IOError(
                    f"Secret file '{secret_file}' exists but cannot be read: {e}. "
                    f"Please check the file integrity and system resources."
                ) from e
        return os.getenv(key, default)

    # --- Logging variables ---
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # --- HTTP client variables ---
    DEFAULT_TIMEOUT_CONNECT = float(os.getenv("DEFAULT_TIMEOUT_CONNECT", "5"))
    DEFAULT_TIMEOUT_READ = float(os.getenv("DEFAULT_TIMEOUT_READ", "30"))
    USER_AGENT = os.getenv("USER_AGENT", f"kubecapacity/{__version__}")

    # -- Prometheus variables ---
    # Either a full URL (queried directly) or 'namespace/service:port' (queried
    # through the Kubernetes API service proxy). Empty means auto-discovery.
    PROMETHEUS_ENDPOINT = os.getenv("PROMETHEUS_ENDPOINT", "")
    PROMETHEUS_DEFAULT_PORT = int(os.getenv("PROMETHEUS_DEFAULT_PORT", "9090"))
    PROMETHEUS_RATE_WINDOW = os.getenv("PROMETHEUS_RATE_WINDOW", "5m")
    PROMETHEUS_VERIFY_CERTS = _env_bool("PROMETHEUS_VERIFY_CERTS", "True")
    PROMETHEUS_CONCURRENT_QUERIES = _env_bool("PROMETHEUS_CONCURRENT_QUERIES", "False")

    def validate_instance(self):
        if not re.match(r"^\d+[smh]$", self.PROMETHEUS_RATE_WINDOW or ""):
            raise ValueError("PROMETHEUS_RATE_WINDOW format is invalid. Use '<int>s', '<int>m' or '<int>h'.")
        if not 0 < self.PROMETHEUS_DEFAULT_PORT < 65536:
            raise ValueError("PROMETHEUS_DEFAULT_PORT must be between 1 and 65535.")
        if self.LOG_LEVEL.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError("LOG_LEVEL must be one of DEBUG, INFO, WARNING, ERROR or CRITICAL.")
        if self.PROMETHEUS_USERNAME and not self.PROMETHEUS_PASSWORD:
            logging.warning("PROMETHEUS_USERNAME is set without PROMETHEUS_PASSWORD; basic auth is disabled.")


# Instantiate the config to be imported by other modules
config = Config()
config.validate_instance()
