"""Configuration management for duewatch."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DUEWATCH_HOME = Path(os.environ.get("DUEWATCH_HOME", Path.home() / ".duewatch"))
CONFIG_FILE = DUEWATCH_HOME / "config" / "duewatch.conf"

DEFAULT_API_BASE_URL = "http://localhost:8080/api"


@dataclass
class Config:
    """duewatch configuration."""

    api_base_url: str = DEFAULT_API_BASE_URL
    request_timeout: float = 10.0
    # Seconds between reminder checks in `duewatch watch`
    reminder_interval: int = 30
    default_filter: str = "all"
    default_sort: str = "dueDate"


def _unquote(value: str) -> str:
    """Strip quotes, or an inline comment from unquoted values."""
    for quote in ('"', "'"):
        if value.startswith(quote):
            end_quote = value.find(quote, 1)
            return value[1:end_quote] if end_quote != -1 else value[1:]
    if "#" in value:
        value = value.split("#")[0].strip()
    return value


def load_config(path: Path | None = None) -> Config:
    """Load configuration from duewatch.conf, then apply environment overrides."""
    config = Config()
    path = path or CONFIG_FILE

    if path.exists():
        for line in path.read_text().splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue

            if "=" not in line:
                continue

            key, _, value = line.partition("=")
            key = key.strip().lower()
            value = _unquote(value.strip())

            match key:
                case "api_base_url":
                    config.api_base_url = value
                case "request_timeout":
                    try:
                        config.request_timeout = float(value)
                    except ValueError:
                        logger.warning(f"Invalid REQUEST_TIMEOUT {value!r}, using {config.request_timeout}")
                case "reminder_interval":
                    try:
                        config.reminder_interval = int(value)
                    except ValueError:
                        logger.warning(f"Invalid REMINDER_INTERVAL {value!r}, using {config.reminder_interval}")
                case "default_filter":
                    config.default_filter = value
                case "default_sort":
                    config.default_sort = value

    if os.environ.get("DUEWATCH_API_URL"):
        config.api_base_url = os.environ["DUEWATCH_API_URL"]

    return config
