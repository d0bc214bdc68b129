"""Updater configuration — image identity and remote service endpoints.

Settings are read from a YAML file and may be overridden through
environment variables. Nothing in the diff engines reads process-wide
state; callers load an ``UpdaterConfig`` once and pass the relevant parts
down explicitly.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path

import yaml

from rootdiff.errors import ConfigError

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_NAME = "vanillaos/desktop"
DEFAULT_DIFFER_URL = "https://differ.vanillaos.org"
DEFAULT_PACKAGES_API_URL = "https://packages.vanillaos.org/api/pkg/{packageName}"
DEFAULT_PACKAGES_ADD_FILE = "/etc/abroot/packages.add"
DEFAULT_TIMEOUT_SECONDS = 30.0

CONFIG_ENV_VAR = "ROOTDIFF_CONFIG"

# Environment variable -> UpdaterConfig field
_ENV_OVERRIDES = {
    "ROOTDIFF_NAME": "name",
    "ROOTDIFF_DIFFER_URL": "differ_url",
    "ROOTDIFF_PACKAGES_API_URL": "packages_api_url",
    "ROOTDIFF_PACKAGES_ADD_FILE": "packages_add_file",
    "ROOTDIFF_TIMEOUT": "timeout_seconds",
}

# camelCase spellings accepted in YAML files
_KEY_ALIASES = {
    "differURL": "differ_url",
    "differUrl": "differ_url",
    "packagesApiUrl": "packages_api_url",
    "iPkgMngApi": "packages_api_url",
    "packagesAddFile": "packages_add_file",
    "timeout": "timeout_seconds",
    "timeoutSeconds": "timeout_seconds",
}


@dataclass(frozen=True)
class RemoteServiceConfig:
    """Everything the base image diff call needs to reach the differ."""

    image_name: str
    differ_url: str
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    @property
    def diff_endpoint(self) -> str:
        return f"{self.differ_url.rstrip('/')}/images/{self.image_name}/diff"


@dataclass
class UpdaterConfig:
    """Top-level settings for the updater's diff operations."""

    name: str = DEFAULT_NAME
    differ_url: str = DEFAULT_DIFFER_URL
    packages_api_url: str = DEFAULT_PACKAGES_API_URL
    packages_add_file: str = DEFAULT_PACKAGES_ADD_FILE
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    @property
    def image_name(self) -> str:
        """Last path component of the image reference (``vanillaos/desktop`` -> ``desktop``)."""
        return self.name.rstrip("/").split("/")[-1]

    def remote_service(self) -> RemoteServiceConfig:
        return RemoteServiceConfig(
            image_name=self.image_name,
            differ_url=self.differ_url,
            timeout_seconds=self.timeout_seconds,
        )


def load_config(path: str | Path | None = None) -> UpdaterConfig:
    """Load the updater configuration.

    Args:
        path: YAML file to read. When omitted, ``$ROOTDIFF_CONFIG`` is used
              if set; otherwise the built-in defaults apply.

    Returns:
        UpdaterConfig with file values and environment overrides applied.

    Raises:
        ConfigError: If an explicit file is missing, is not valid YAML,
                     or holds a value of the wrong type.
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR) or None

    values: dict[str, object] = {}
    if path is not None:
        values.update(_read_config_file(Path(path)))

    for env_var, field_name in _ENV_OVERRIDES.items():
        env_value = os.environ.get(env_var)
        if env_value:
            values[field_name] = env_value

    if "timeout_seconds" in values:
        values["timeout_seconds"] = _parse_timeout(values["timeout_seconds"])

    for key in ("name", "differ_url", "packages_api_url", "packages_add_file"):
        if key in values and not isinstance(values[key], str):
            raise ConfigError(f"Config key '{key}' must be a string", details={"key": key})

    return UpdaterConfig(**values)  # type: ignore[arg-type]


def _read_config_file(path: Path) -> dict[str, object]:
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}", details={"path": str(path)})

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}", details={"path": str(path)}) from e
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}", details={"path": str(path)}) from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    # Settings may live at the top level or under a "rootdiff:" section
    section = data.get("rootdiff", data)
    if not isinstance(section, dict):
        raise ConfigError(f"'rootdiff' section in {path} must be a mapping")

    known = {f.name for f in fields(UpdaterConfig)}
    values: dict[str, object] = {}
    for key, value in section.items():
        field_name = _KEY_ALIASES.get(key, key)
        if field_name in known:
            values[field_name] = value
    return values


def _parse_timeout(raw: object) -> float:
    if isinstance(raw, bool):
        raise ConfigError("timeout_seconds must be a number", details={"value": raw})
    try:
        timeout = float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError) as e:
        raise ConfigError(f"timeout_seconds must be a number, got {raw!r}") from e
    if timeout <= 0:
        raise ConfigError(f"timeout_seconds must be positive, got {timeout}")
    return timeout
