"""Configuration file loading and merging.

Handles loading configuration from:
- Project-level config (.binstage.yml in the package root, or --config)
- Environment variables (BINSTAGE_REMOTE_BASE_URL, BINSTAGE_MAX_ATTEMPTS, ...)
- Environment variable expansion inside YAML values (${VAR})
- The host package manifest (package.json) for name and version
"""

from __future__ import annotations

import json
import os
import re
from functools import partial
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import urlsplit

import yaml

from binstage.config.models import ProvisionConfig
from binstage.config.validation import validate_config
from binstage.core.logging import get_logger

LOGGER = get_logger(__name__)

# Config file names
PROJECT_CONFIG_NAMES = [".binstage.yml", ".binstage.yaml", "binstage.yml", "binstage.yaml"]
MANIFEST_NAME = "package.json"

# Environment variable -> config key
ENV_OVERRIDES: Dict[str, str] = {
    "BINSTAGE_REMOTE_BASE_URL": "remote_base_url",
    "BINSTAGE_MAX_ATTEMPTS": "max_attempts",
    "BINSTAGE_TIMEOUT": "timeout",
}

# Environment variable pattern: ${VAR} or ${VAR:-default}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


class ConfigError(Exception):
    """Configuration loading or parsing error."""

    pass


def load_config(
    package_root: Path,
    cli_config_path: Optional[Path] = None,
    cli_overrides: Optional[Dict[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ProvisionConfig:
    """Load configuration with proper precedence.

    Precedence (highest to lowest):
    1. CLI flags (cli_overrides)
    2. Environment variables (BINSTAGE_*)
    3. Custom config file (cli_config_path) OR project config (.binstage.yml)
    4. Built-in defaults

    Args:
        package_root: Root directory of the host package.
        cli_config_path: Optional path to custom config file (--config flag).
        cli_overrides: Dict of CLI flag overrides.
        environ: Environment mapping (defaults to os.environ).

    Returns:
        Merged ProvisionConfig instance.

    Raises:
        ConfigError: If the config file is missing or invalid, or a value is
            out of range.
    """
    sources: List[str] = []
    merged: Dict[str, Any] = {}
    environ = os.environ if environ is None else environ

    # Layer 1: Project or custom config
    config_path = cli_config_path or find_project_config(package_root)
    if cli_config_path and not cli_config_path.exists():
        raise ConfigError(f"Config file not found: {cli_config_path}")
    if config_path:
        try:
            file_dict = load_yaml_file(config_path, environ=environ)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Could not read config file {config_path}: {e}") from e
        validate_config(file_dict, source=str(config_path))
        merged = merge_configs(merged, file_dict)
        sources.append(f"file:{config_path}")
        LOGGER.debug(f"Loaded config from {config_path}")

    # Layer 2: Environment
    env_dict = env_to_overrides(environ)
    if env_dict:
        merged = merge_configs(merged, env_dict)
        sources.append("env")
        LOGGER.debug(f"Applied environment overrides: {sorted(env_dict)}")

    # Layer 3: CLI overrides
    if cli_overrides:
        merged = merge_configs(
            merged, {k: v for k, v in cli_overrides.items() if v is not None}
        )
        sources.append("cli")
        LOGGER.debug("Applied CLI overrides")

    # Manifest fills in identity only when nothing else did
    manifest = load_manifest(package_root)
    if manifest.get("name") and not merged.get("package_name"):
        merged["package_name"] = manifest["name"]
    if manifest.get("version") and not merged.get("package_version"):
        merged["package_version"] = manifest["version"]

    config = dict_to_config(merged, package_root)
    config._config_sources = sources

    LOGGER.debug(f"Config loaded from sources: {sources}")
    return config


def find_project_config(package_root: Path) -> Optional[Path]:
    """Find a config file in the package root.

    Args:
        package_root: Directory to search in.

    Returns:
        Path to config file if found, None otherwise.
    """
    for name in PROJECT_CONFIG_NAMES:
        config_path = package_root / name
        if config_path.exists():
            return config_path
    return None


def load_yaml_file(
    path: Path, environ: Optional[Mapping[str, str]] = None
) -> Dict[str, Any]:
    """Load and parse a YAML config file.

    Performs environment variable expansion on string values, resolved
    against ``environ`` (defaults to os.environ).

    Raises:
        yaml.YAMLError: If YAML parsing fails.
        OSError: If the file cannot be read.
        ConfigError: If the document is not a mapping.
    """
    with open(path, "r", encoding="utf-8") as f:
        content = f.read()

    data = yaml.safe_load(content)

    if data is None:
        return {}

    if not isinstance(data, dict):
        raise ConfigError(f"Config file must be a YAML mapping, got {type(data).__name__}")

    return expand_env_vars(data, environ=environ)


def load_manifest(package_root: Path) -> Dict[str, Any]:
    """Read name and version from the host package manifest, if any.

    A missing or unreadable manifest yields an empty dict.
    """
    manifest_path = package_root / MANIFEST_NAME
    if not manifest_path.is_file():
        return {}
    try:
        data = json.loads(manifest_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        LOGGER.warning(f"Could not read {manifest_path}: {e}")
        return {}
    if not isinstance(data, dict):
        return {}
    return {k: data[k] for k in ("name", "version") if isinstance(data.get(k), str)}


def env_to_overrides(environ: Mapping[str, str]) -> Dict[str, Any]:
    """Collect BINSTAGE_* environment overrides as config keys."""
    overrides: Dict[str, Any] = {}
    for env_name, key in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value:
            overrides[key] = value
    return overrides


def expand_env_vars(data: Any, environ: Optional[Mapping[str, str]] = None) -> Any:
    """Recursively expand environment variables in config values.

    Supports ${VAR} and ${VAR:-default} syntax.
    """
    if environ is None:
        environ = os.environ
    if isinstance(data, dict):
        return {k: expand_env_vars(v, environ) for k, v in data.items()}
    elif isinstance(data, list):
        return [expand_env_vars(item, environ) for item in data]
    elif isinstance(data, str):
        return ENV_VAR_PATTERN.sub(partial(_env_var_replacer, environ), data)
    else:
        return data


def _env_var_replacer(environ: Mapping[str, str], match: re.Match[str]) -> str:
    """Replace environment variable reference with its value."""
    var_name = match.group(1)
    default_value = match.group(2)

    value = environ.get(var_name)
    if value is not None:
        return value
    if default_value is not None:
        return default_value

    LOGGER.warning(f"Environment variable ${var_name} is not set and has no default")
    return ""


def merge_configs(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    """Merge two config dicts, with overlay taking precedence.

    Rules:
    - Scalar values: overlay replaces base
    - Dicts: recursive merge
    """
    result = base.copy()

    for key, overlay_value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(overlay_value, dict):
            result[key] = merge_configs(result[key], overlay_value)
        else:
            result[key] = overlay_value

    return result


def dict_to_config(data: Dict[str, Any], package_root: Path) -> ProvisionConfig:
    """Convert a merged dict to a typed ProvisionConfig.

    String values (from the environment) are coerced to the field type.

    Raises:
        ConfigError: If a value cannot be coerced or is out of range.
    """
    defaults = ProvisionConfig(package_root=package_root)

    remote_base_url = data.get("remote_base_url") or None
    if remote_base_url is not None:
        remote_base_url = str(remote_base_url)
        _check_remote_base_url(remote_base_url)

    max_attempts = _coerce(data, "max_attempts", int, defaults.max_attempts)
    if max_attempts < 1:
        raise ConfigError(f"max_attempts must be at least 1, got {max_attempts}")

    timeout = _coerce(data, "timeout", float, defaults.timeout)
    if timeout <= 0:
        raise ConfigError(f"timeout must be positive, got {timeout}")

    base_delay = _coerce(data, "base_delay", float, defaults.base_delay)
    backoff_factor = _coerce(data, "backoff_factor", float, defaults.backoff_factor)
    if base_delay < 0 or backoff_factor < 1:
        raise ConfigError("base_delay must be >= 0 and backoff_factor must be >= 1")

    version = data.get("package_version")

    return ProvisionConfig(
        package_root=package_root,
        package_name=str(data.get("package_name") or package_root.name),
        package_version=str(version) if version is not None else None,
        remote_base_url=remote_base_url,
        max_attempts=max_attempts,
        timeout=timeout,
        base_delay=base_delay,
        backoff_factor=backoff_factor,
        installed_name=str(data.get("installed_name", defaults.installed_name)),
        staging_dir_name=str(data.get("staging_dir_name", defaults.staging_dir_name)),
        disable_marker_name=str(
            data.get("disable_marker_name", defaults.disable_marker_name)
        ),
    )


def _coerce(data: Dict[str, Any], key: str, type_: type, default: Any) -> Any:
    value = data.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        raise ConfigError(f"Invalid value for {key}: {value!r}")
    try:
        return type_(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid value for {key}: {value!r}") from e


def _check_remote_base_url(url: str) -> None:
    """Reject base URLs that could never be fetched."""
    parts = urlsplit(url)
    if parts.scheme != "https":
        raise ConfigError(f"remote_base_url must be an https URL, got {url!r}")
    if not parts.hostname:
        raise ConfigError(f"remote_base_url has no host: {url!r}")
    try:
        parts.port
    except ValueError as e:
        raise ConfigError(f"remote_base_url has an invalid port: {url!r}") from e
