"""
Configuration Loader (``ledger_kernel.config``).

Responsibility
--------------
Loads the settings of the SQL reference store and of logging from an
optional YAML file, then applies environment overrides. The kernel core
(validators and repository) takes no configuration; only the wiring in
``ledger_kernel.wiring`` reads these settings.

Resolution order
----------------
1. Dataclass defaults (in-memory SQLite, INFO logging).
2. YAML file passed to ``load_settings`` (or named by ``LEDGER_CONFIG``).
3. Environment: ``LEDGER_DATABASE_URL``, ``LEDGER_LOG_LEVEL``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys or wrong value types  -> ``ValueError``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping

import yaml

ENV_CONFIG_PATH = "LEDGER_CONFIG"
ENV_DATABASE_URL = "LEDGER_DATABASE_URL"
ENV_LOG_LEVEL = "LEDGER_LOG_LEVEL"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class LedgerSettings:
    """Runtime settings for the reference store and logging."""

    database_url: str = "sqlite://"
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    create_tables: bool = True
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.log_level not in _LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {', '.join(_LOG_LEVELS)}, got {self.log_level!r}"
            )
        if self.pool_size < 1:
            raise ValueError(f"pool_size must be positive, got {self.pool_size}")
        if self.max_overflow < 0:
            raise ValueError(f"max_overflow must not be negative, got {self.max_overflow}")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at the top level")
    return data


def parse_settings(data: Mapping[str, Any]) -> LedgerSettings:
    """
    Build LedgerSettings from a mapping, accepting an optional ``ledger:``
    wrapper key.

    Raises:
        ValueError: on unknown keys or values of the wrong type.
    """
    if set(data) == {"ledger"}:
        data = data["ledger"] or {}

    known = {f.name: f for f in fields(LedgerSettings)}
    unknown = sorted(set(data) - set(known))
    if unknown:
        raise ValueError(f"Unknown ledger settings: {', '.join(unknown)}")

    defaults = LedgerSettings()
    values: dict[str, Any] = {}
    for key, value in data.items():
        expected = type(getattr(defaults, key))
        if expected is int and isinstance(value, bool):
            raise ValueError(f"{key} must be an integer, got {value!r}")
        if not isinstance(value, expected):
            raise ValueError(
                f"{key} must be {expected.__name__}, got {type(value).__name__}"
            )
        values[key] = value.upper() if key == "log_level" else value
    return LedgerSettings(**values)


def load_settings(
    path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> LedgerSettings:
    """
    Resolve settings from defaults, an optional YAML file and the environment.

    Args:
        path: YAML file; falls back to ``$LEDGER_CONFIG`` when None.
        environ: Environment mapping (``os.environ`` by default).
    """
    env = os.environ if environ is None else environ

    config_path = path if path is not None else env.get(ENV_CONFIG_PATH)
    settings = (
        parse_settings(load_yaml_file(Path(config_path)))
        if config_path
        else LedgerSettings()
    )

    overrides: dict[str, Any] = {}
    if env.get(ENV_DATABASE_URL):
        overrides["database_url"] = env[ENV_DATABASE_URL]
    if env.get(ENV_LOG_LEVEL):
        overrides["log_level"] = env[ENV_LOG_LEVEL].upper()
    return replace(settings, **overrides) if overrides else settings
