"""Configuration loading for host applications and the CLI.

The composer itself never reads files or environment variables; it is
handed a :class:`~httpcomposer.models.ComposerConfig`.  This module is
how a host builds one:

* :func:`get_config_dir` and :func:`get_cache_dir` follow the XDG base
  directories on Linux/BSD and use ``~/.httpcomposer/`` elsewhere.
* :func:`load_config` reads one JSON file;
  :func:`load_project_config` reads ``./httpcomposer.json``.
* :func:`resolve_config` merges CLI flags, environment variables, the
  project file and the user file into one configuration.
"""

from __future__ import annotations

import json
import os
import platform
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from httpcomposer.exceptions import ConfigurationError
from httpcomposer.models import AdapterKind, ComposerConfig

_APP_NAME = "httpcomposer"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "httpcomposer.json"

ENV_CONFIG = "HTTPCOMPOSER_CONFIG"
ENV_SEEDS_DIR = "HTTPCOMPOSER_SEEDS_DIR"
ENV_ADAPTER = "HTTPCOMPOSER_ADAPTER"


# --- Directories ---


def _base_dir(xdg_var: str, xdg_default: str, fallback_child: Optional[str]) -> Path:
    """Pick the XDG directory on Linux/BSD, ``~/.httpcomposer`` elsewhere."""
    system = platform.system()
    if system == "Linux" or system.endswith("BSD"):
        root = os.environ.get(xdg_var) or str(Path.home() / xdg_default)
        path = Path(root) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
        if fallback_child:
            path = path / fallback_child
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """Directory holding the user ``config.json``, created on demand.

    ``$XDG_CONFIG_HOME/httpcomposer`` (default ``~/.config/httpcomposer``)
    on Linux/BSD, ``~/.httpcomposer`` on macOS and Windows.
    """
    return _base_dir("XDG_CONFIG_HOME", ".config", None)


def get_cache_dir() -> Path:
    """Directory for the CLI's response cache, created on demand.

    ``$XDG_CACHE_HOME/httpcomposer`` (default ``~/.cache/httpcomposer``)
    on Linux/BSD, ``~/.httpcomposer/cache`` on macOS and Windows.
    """
    return _base_dir("XDG_CACHE_HOME", ".cache", "cache")


# --- Config files ---


def load_config(path: str | Path) -> ComposerConfig:
    """Load and validate a composer configuration file.

    Args:
        path: Path to a JSON file matching :class:`~httpcomposer.models.ComposerConfig`.

    Raises:
        ConfigurationError: If the file is missing, is not valid JSON, or
            fails validation.
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(f"Config file not found at {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return ComposerConfig.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as exc:
        raise ConfigurationError(f"Invalid config at {path}: {exc}") from exc


def load_project_config() -> Optional[ComposerConfig]:
    """Load ``./httpcomposer.json`` if it exists, else return ``None``."""
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    return load_config(path)


def load_user_config() -> Optional[ComposerConfig]:
    """Load ``<config dir>/config.json`` if it exists, else return ``None``."""
    path = get_config_dir() / _CONFIG_FILENAME
    if not path.is_file():
        return None
    return load_config(path)


# --- Precedence resolution ---


def resolve_config(
    cli_config: Optional[str] = None,
    cli_seeds_dir: Optional[str] = None,
    cli_adapter: Optional[str] = None,
) -> ComposerConfig:
    """Resolve the effective configuration.

    Precedence (high to low):
        1. CLI flags
        2. Environment variables (``HTTPCOMPOSER_CONFIG``,
           ``HTTPCOMPOSER_SEEDS_DIR``, ``HTTPCOMPOSER_ADAPTER``)
        3. Project config (``./httpcomposer.json``)
        4. User config (``~/.config/httpcomposer/config.json``)
        5. Defaults

    An explicit config file (flag or env) replaces the project and user
    files entirely.  Supplying a seeds directory also enables seeds.

    Raises:
        ConfigurationError: If a config file is invalid or the adapter
            name is unknown.
    """
    explicit = cli_config or os.environ.get(ENV_CONFIG)
    if explicit:
        config = load_config(explicit)
    else:
        config = load_project_config() or load_user_config() or ComposerConfig()

    seeds_dir = cli_seeds_dir or os.environ.get(ENV_SEEDS_DIR)
    if seeds_dir:
        config.seeds.enabled = True
        config.seeds.directory = seeds_dir

    adapter = cli_adapter or os.environ.get(ENV_ADAPTER)
    if adapter:
        try:
            config.adapter = AdapterKind(adapter.lower())
        except ValueError as exc:
            raise ConfigurationError(
                f"Unknown adapter '{adapter}' (expected one of: "
                f"{', '.join(kind.value for kind in AdapterKind)})"
            ) from exc

    return config
