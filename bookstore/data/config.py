"""
config.py

Dataclasses for the query runner configuration (MongoDB connection,
execution limits and logging) and their loading from a YAML file.

The connection string is normally kept out of the YAML file: it is read
from the ``MONGODB_ATLAS_URI`` environment variable, which may itself come
from a ``.env`` file in the working directory.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import find_dotenv, load_dotenv

MONGO_URI_ENV_VAR = "MONGODB_ATLAS_URI"
DEFAULT_MONGO_URI = "mongodb://localhost:27017/"


class ConfigError(Exception):
    """Raised when the configuration file is missing or malformed."""

    pass


@dataclass
class MongoConfig:
    """MongoDB connection settings."""

    mongo_uri: str = DEFAULT_MONGO_URI
    database: str = "plp_bookstore"
    collection: str = "books"
    server_selection_timeout_ms: int = 5000


@dataclass
class ExecutionConfig:
    """Per-query execution limits."""

    timeout_s: int = 30


@dataclass
class LoggingConfig:
    level: str = "INFO"


@dataclass
class RunnerConfig:
    """Complete configuration for the query runner and the seeder."""

    mongo: MongoConfig = field(default_factory=MongoConfig)
    execution: ExecutionConfig = field(default_factory=ExecutionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _load_yaml(path: Path) -> Dict[str, Any]:
    """Load a YAML file and return its content as a dictionary."""
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}")

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Top level of {path} must be a mapping")
    return raw


def _section(raw: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = raw.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"Section '{name}' must be a mapping")
    return section


def resolve_mongo_uri(configured: Optional[str] = None) -> str:
    """
    Resolve the MongoDB connection string.

    Precedence: ``MONGODB_ATLAS_URI`` environment variable (``.env`` files
    are loaded first without overriding variables already set), then the
    value from the YAML file, then the localhost default.
    """
    load_dotenv(find_dotenv(usecwd=True), override=False)
    return os.getenv(MONGO_URI_ENV_VAR) or configured or DEFAULT_MONGO_URI


def load_query_config(config_path: str | Path | None = None) -> RunnerConfig:
    """
    Load the runner configuration from a YAML file.

    Expected YAML format (every key optional):

        mongo:
          mongo_uri: mongodb://localhost:27017/
          database: plp_bookstore
          collection: books
          server_selection_timeout_ms: 5000
        execution:
          timeout_s: 30
        logging:
          level: INFO

    Without a path the defaults are used. In both cases the connection
    string is resolved through :func:`resolve_mongo_uri`.
    """
    raw: Dict[str, Any] = {}
    if config_path is not None:
        path = Path(config_path).expanduser().resolve()
        raw = _load_yaml(path)

    try:
        mongo_cfg = MongoConfig(**_section(raw, "mongo"))
        execution_cfg = ExecutionConfig(**_section(raw, "execution"))
        logging_cfg = LoggingConfig(**_section(raw, "logging"))
    except TypeError as e:
        raise ConfigError(f"Unknown configuration key: {e}")

    mongo_cfg.mongo_uri = resolve_mongo_uri(mongo_cfg.mongo_uri)

    return RunnerConfig(mongo=mongo_cfg, execution=execution_cfg, logging=logging_cfg)


def display_uri(mongo_uri: str) -> str:
    """Strip credentials from a connection string so it can be logged."""
    if "@" not in mongo_uri:
        return mongo_uri
    scheme, sep, rest = mongo_uri.partition("://")
    if not sep:
        return mongo_uri.split("@")[-1]
    return f"{scheme}://{rest.split('@')[-1]}"
