"""
Configuration loader for RelayDNS.
An optional JSON file provides the listen address, the upstream resolver
and logging options; anything missing falls back to the defaults.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "server": {
        "host": "0.0.0.0",
        "port": 8053,
        "upstream": "8.8.8.8",
        "upstream_port": 53,
        "upstream_timeout": None,
        "log_level": "INFO",
        "log_queries": True,
    }
}

EXAMPLE_CONFIG = {
    "server": {
        "host": "0.0.0.0",
        "port": 8053,
        "upstream": "1.1.1.1",
        "upstream_port": 53,
        "upstream_timeout": 5,
        "log_level": "INFO",
        "log_queries": True,
    }
}

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 8053
    upstream: str = "8.8.8.8"
    upstream_port: int = 53
    upstream_timeout: Optional[float] = None  # None blocks until the upstream answers
    log_level: str = "INFO"
    log_queries: bool = True


@dataclass
class Config:
    server: ServerConfig = field(default_factory=ServerConfig)


def load_config(path: Optional[str] = None) -> Config:
    """Load configuration from a JSON file. Uses defaults if no path given."""
    if path is None:
        return _parse_config(DEFAULT_CONFIG)

    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(p) as f:
        data = json.load(f)

    config = _parse_config(data)
    logger.info(f"Loaded config from {p}")
    return config


def _parse_config(data: dict) -> Config:
    server_data = data.get("server", {})

    upstream = server_data.get("upstream", "8.8.8.8")
    if not isinstance(upstream, str) or not upstream:
        raise ValueError(f"'upstream' must be a single server address, got {upstream!r}")

    port = server_data.get("port", 8053)
    upstream_port = server_data.get("upstream_port", 53)
    for label, value in (("port", port), ("upstream_port", upstream_port)):
        # bool is an int subclass, so JSON true/false must be rejected explicitly
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 65535:
            raise ValueError(f"'{label}' must be an integer between 0 and 65535, got {value!r}")

    timeout = server_data.get("upstream_timeout")
    if timeout is not None and (
        isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0
    ):
        raise ValueError(f"'upstream_timeout' must be a positive number or null, got {timeout!r}")

    log_level = str(server_data.get("log_level", "INFO")).upper()
    if log_level not in LOG_LEVELS:
        raise ValueError(f"'log_level' must be one of {', '.join(LOG_LEVELS)}, got {log_level!r}")

    server = ServerConfig(
        host=server_data.get("host", "0.0.0.0"),
        port=port,
        upstream=upstream,
        upstream_port=upstream_port,
        upstream_timeout=timeout,
        log_level=log_level,
        log_queries=server_data.get("log_queries", True),
    )
    return Config(server=server)


def generate_example_config(path: str):
    """Write an example config file."""
    with open(path, "w") as f:
        json.dump(EXAMPLE_CONFIG, f, indent=2)
    print(f"Example config written to: {path}")
