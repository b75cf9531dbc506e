"""Shared nodeflow configuration utilities.

Centralises reading of ~/.nodeflow/configuration.json so the CLI and any
embedding application resolve engine settings the same way.

Example configuration.json:

    {
      "engine": {"node_timeout": 30, "fail_fast": false, "simulate_delay": true},
      "logging": {"level": "INFO", "format": "human"}
    }
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Low-level config file access
# ---------------------------------------------------------------------------

NODEFLOW_CONFIG_FILE = Path.home() / ".nodeflow" / "configuration.json"


def get_config_path() -> Path:
    """Config file location; NODEFLOW_CONFIG overrides the default."""
    override = os.environ.get("NODEFLOW_CONFIG")
    return Path(override) if override else NODEFLOW_CONFIG_FILE


def get_nodeflow_config() -> dict[str, Any]:
    """Load nodeflow configuration. Missing or malformed files yield {}."""
    path = get_config_path()
    if not path.exists():
        return {}
    try:
        with open(path, encoding="utf-8-sig") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(f"Ignoring unreadable config file {path}: {e}")
        return {}
    return data if isinstance(data, dict) else {}


# ---------------------------------------------------------------------------
# Derived helpers
# ---------------------------------------------------------------------------


def _section(name: str) -> dict[str, Any]:
    value = get_nodeflow_config().get(name, {})
    return value if isinstance(value, dict) else {}


def get_node_timeout() -> float | None:
    """Per-node timeout in seconds; NODEFLOW_NODE_TIMEOUT overrides the file."""
    raw = os.environ.get("NODEFLOW_NODE_TIMEOUT")
    if raw is None:
        raw = _section("engine").get("node_timeout")
    if raw in (None, ""):
        return None
    try:
        timeout = float(raw)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring invalid node timeout: {raw!r}")
        return None
    return timeout if timeout > 0 else None


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def get_log_level() -> str:
    """Log level; NODEFLOW_LOG_LEVEL overrides the file. Unknown levels fall back to INFO."""
    raw = os.environ.get("NODEFLOW_LOG_LEVEL") or _section("logging").get("level", "INFO")
    level = str(raw).strip().upper()
    if level not in LOG_LEVELS:
        logger.warning(f"Ignoring invalid log level: {raw!r}")
        return "INFO"
    return level


def get_log_format() -> str:
    return _section("logging").get("format", "auto")


# ---------------------------------------------------------------------------
# EngineConfig
# ---------------------------------------------------------------------------


@dataclass
class EngineConfig:
    """Executor and logging settings loaded from the configuration file."""

    node_timeout: float | None = field(default_factory=get_node_timeout)
    fail_fast: bool = field(default_factory=lambda: bool(_section("engine").get("fail_fast")))
    simulate_delay: bool = field(
        default_factory=lambda: bool(_section("engine").get("simulate_delay"))
    )
    log_level: str = field(default_factory=get_log_level)
    log_format: str = field(default_factory=get_log_format)
