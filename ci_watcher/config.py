"""
This module defines constants for the CI watcher and loads the service
configuration file.
It includes the repository polling interval, the default branch, logging
levels, status reporter settings and the typed per-service configuration.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import yaml

# Timing configurations
REPO_POLL_INTERVAL = 5  # Seconds between repository checks
NOTIFICATION_TIMEOUT = 10  # Seconds before giving up on a webhook post

# Repository settings
DEFAULT_BRANCH = "master"
DEFAULT_REMOTE = "origin"

# Logging configuration
LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Web reporter settings
REPORTER_HOST = "0.0.0.0"
REPORTER_PORT = 5050


class ConfigError(Exception):
    """Raised when the service configuration is missing or malformed."""


@dataclass
class ServiceConfig:
    name: str
    path: str
    branch: str = DEFAULT_BRANCH
    commands: List[str] = field(default_factory=list)
    notification_url: str = ""


@dataclass
class ServerConfig:
    dir: str = "."
    notification_url: str = ""
    services: List[ServiceConfig] = field(default_factory=list)


def parse_commands(value) -> List[str]:
    """
    Turn the ``command`` entry of a service into an ordered command list.

    :param value: None, a single command string or a list of command strings
    :return: the commands in declared order
    :raises ConfigError: if the value has any other shape
    """
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        raise ConfigError(f"command must be a string or a list, got {type(value).__name__}")

    commands = []
    for command in value:
        if not isinstance(command, str) or not command.strip():
            raise ConfigError(f"invalid command entry: {command!r}")
        commands.append(command)
    return commands


def _service_from_options(name: str, options, base_dir: str, notification_url: str) -> ServiceConfig:
    if not isinstance(options, dict):
        raise ConfigError(f"service '{name}': options must be a mapping")

    path = options.get("path")
    if not isinstance(path, str) or not path:
        raise ConfigError(f"service '{name}': 'path' is required")

    branch = options.get("branch") or DEFAULT_BRANCH
    if not isinstance(branch, str):
        raise ConfigError(f"service '{name}': 'branch' must be a string")

    try:
        commands = parse_commands(options.get("command"))
    except ConfigError as e:
        raise ConfigError(f"service '{name}': {e}")

    return ServiceConfig(
        name=name,
        path=str(Path(base_dir) / path),
        branch=branch,
        commands=commands,
        notification_url=notification_url,
    )


def parse_config(data: Optional[dict]) -> ServerConfig:
    """Build a ServerConfig from an already decoded configuration document."""
    if not isinstance(data, dict):
        raise ConfigError("configuration must be a mapping")

    services = data.get("services")
    if not isinstance(services, dict) or not services:
        raise ConfigError("configuration must define at least one service")

    base_dir = str(data.get("dir") or ".")
    notification_url = data.get("notification_url") or ""
    if not isinstance(notification_url, str):
        raise ConfigError("'notification_url' must be a string")

    return ServerConfig(
        dir=base_dir,
        notification_url=notification_url,
        services=[
            _service_from_options(str(name), options, base_dir, notification_url)
            for name, options in services.items()
        ],
    )


def load_config(path) -> ServerConfig:
    """Read and validate a YAML service configuration file."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"cannot read configuration {path}: {e}")
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}")
    return parse_config(data)
