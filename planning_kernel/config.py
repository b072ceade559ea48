"""
Planning Kernel Configuration (``planning_kernel.config``).

Responsibility
--------------
Defines the runtime settings of the kernel as a frozen dataclass and loads
them from a YAML file.  Field defaults are the values the console ships with;
a deployment overrides them with a file such as::

    database:
      url: postgresql://planner:secret@db/planning
      echo: false
    logging:
      level: INFO
    inventory:
      transaction_history_limit: 100
      allow_negative_inventory: false

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Out-of-range values  -> ``ValueError`` from ``PlanningConfig.__post_init__``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml

from planning_kernel.logging_config import get_logger

logger = get_logger("config")

CONFIG_PATH_ENV = "PLANNING_CONFIG"
DATABASE_URL_ENV = "DATABASE_URL"

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class PlanningConfig:
    """
    Configuration schema for the planning kernel.

    ``transaction_history_limit`` bounds how many ledger rows a single
    ``get_transactions`` call returns.  ``allow_negative_inventory`` lets
    ``adjust_stock`` drive on-hand quantity below zero.
    """

    database_url: str = "sqlite://"
    echo: bool = False
    log_level: str = "INFO"
    transaction_history_limit: int = 100
    allow_negative_inventory: bool = False

    def __post_init__(self):
        if not self.database_url:
            raise ValueError("database_url must not be empty")
        if self.log_level.upper() not in VALID_LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {sorted(VALID_LOG_LEVELS)}, got '{self.log_level}'"
            )
        if self.transaction_history_limit <= 0:
            raise ValueError("transaction_history_limit must be positive")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file and return its contents as a dict."""
    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top-level YAML value must be a mapping")
    return data


def parse_config(data: dict[str, Any]) -> PlanningConfig:
    """Build a PlanningConfig from the sectioned mapping of a YAML file."""
    database = data.get("database") or {}
    logging_section = data.get("logging") or {}
    inventory = data.get("inventory") or {}

    defaults = PlanningConfig()
    return PlanningConfig(
        database_url=str(database.get("url", defaults.database_url)),
        echo=bool(database.get("echo", defaults.echo)),
        log_level=str(logging_section.get("level", defaults.log_level)).upper(),
        transaction_history_limit=int(
            inventory.get(
                "transaction_history_limit", defaults.transaction_history_limit
            )
        ),
        allow_negative_inventory=bool(
            inventory.get(
                "allow_negative_inventory", defaults.allow_negative_inventory
            )
        ),
    )


def load_config(path: str | Path) -> PlanningConfig:
    """Load and validate a configuration file."""
    config = parse_config(load_yaml_file(Path(path)))
    logger.info(
        "config_loaded",
        extra={
            "path": str(path),
            "transaction_history_limit": config.transaction_history_limit,
            "allow_negative_inventory": config.allow_negative_inventory,
        },
    )
    return config


def get_active_config() -> PlanningConfig:
    """
    Return the configuration for this process.

    Reads the YAML file named by ``PLANNING_CONFIG`` when set, otherwise
    uses defaults.  ``DATABASE_URL`` overrides the configured database URL.
    """
    path = os.environ.get(CONFIG_PATH_ENV)
    config = load_config(path) if path else PlanningConfig()

    database_url = os.environ.get(DATABASE_URL_ENV)
    if database_url:
        config = replace(config, database_url=database_url)
    return config
