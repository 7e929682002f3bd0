"""
Configuration management for Contiguity Base clients.

Credentials come from a TOML file, from environment variables, or both
(environment wins). The file looks like::

    [contiguity]
    api_key = "..."
    project_id = "..."
    base_url = "https://api.base.contiguity.co/v1"   # optional
    debug = false                                    # optional
    timeout = 30.0                                   # optional
"""

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import tomli_w

from .errors import ConfigError
from .transport import DEFAULT_TIMEOUT

CONFIG_FILENAME = "contiguity.toml"
CONFIG_SECTION = "contiguity"
DEFAULT_BASE_URL = "https://api.base.contiguity.co/v1"

ENV_API_KEY = "CONTIGUITY_API_KEY"
ENV_PROJECT_ID = "CONTIGUITY_PROJECT_ID"
ENV_BASE_URL = "CONTIGUITY_BASE_URL"
ENV_DEBUG = "CONTIGUITY_DEBUG"
ENV_TIMEOUT = "CONTIGUITY_TIMEOUT"

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class ClientConfig:
    """Everything needed to build a client handle."""
    api_key: str
    project_id: str
    base_url: str = DEFAULT_BASE_URL
    debug: bool = False
    timeout: float = DEFAULT_TIMEOUT


def get_config_dir() -> Path:
    """Directory holding contiguity.toml and the CLI error log."""
    home = os.environ.get("CONTIGUITY_HOME")
    if home:
        return Path(home)
    return Path.home() / ".contiguity"


def default_config_path() -> Path:
    return get_config_dir() / CONFIG_FILENAME


def _read_section(path: Path) -> dict:
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    with open(path, "rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid config file {path}: {e}") from e
    section = data.get(CONFIG_SECTION, {})
    if not isinstance(section, dict):
        raise ConfigError(f"[{CONFIG_SECTION}] in {path} must be a table")
    return section


def _build(values: Mapping, source: str) -> ClientConfig:
    missing = [k for k in ("api_key", "project_id") if not values.get(k)]
    if missing:
        raise ConfigError(f"Missing {', '.join(missing)} in {source}")
    try:
        timeout = float(values.get("timeout", DEFAULT_TIMEOUT))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid timeout in {source}: {values.get('timeout')!r}") from e
    return ClientConfig(
        api_key=values["api_key"],
        project_id=values["project_id"],
        base_url=values.get("base_url") or DEFAULT_BASE_URL,
        debug=bool(values.get("debug", False)),
        timeout=timeout,
    )


def load_config(path: Path) -> ClientConfig:
    """
    Load configuration from a TOML file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ConfigError: If it is not valid TOML or lacks credentials
    """
    return _build(_read_section(path), str(path))


def save_config(config: ClientConfig, path: Optional[Path] = None) -> Path:
    """
    Write configuration to a TOML file, readable only by the owner.

    Creates the parent directory if it doesn't exist.
    """
    path = path or default_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        CONFIG_SECTION: {
            "api_key": config.api_key,
            "project_id": config.project_id,
            "base_url": config.base_url,
            "debug": config.debug,
            "timeout": config.timeout,
        }
    }
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "wb") as f:
        tomli_w.dump(data, f)
    return path


def _env_values(environ: Mapping[str, str]) -> dict:
    values = {}
    if environ.get(ENV_API_KEY):
        values["api_key"] = environ[ENV_API_KEY]
    if environ.get(ENV_PROJECT_ID):
        values["project_id"] = environ[ENV_PROJECT_ID]
    if environ.get(ENV_BASE_URL):
        values["base_url"] = environ[ENV_BASE_URL]
    if environ.get(ENV_DEBUG):
        values["debug"] = environ[ENV_DEBUG].strip().lower() in _TRUE_VALUES
    if environ.get(ENV_TIMEOUT):
        values["timeout"] = environ[ENV_TIMEOUT]
    return values


def config_from_env(environ: Optional[Mapping[str, str]] = None) -> ClientConfig:
    """Build configuration from CONTIGUITY_* environment variables."""
    environ = os.environ if environ is None else environ
    return _build(_env_values(environ), "environment")


def resolve_config(
    path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ClientConfig:
    """
    Merge the config file (if any) with environment variables.

    This is the main entry point for config management. An explicit
    `path` must exist; the default path is optional.
    """
    environ = os.environ if environ is None else environ
    values: dict = {}
    if path is not None:
        values.update(_read_section(path))
    elif default_config_path().exists():
        values.update(_read_section(default_config_path()))
    values.update(_env_values(environ))
    return _build(values, str(path or "environment/config"))
