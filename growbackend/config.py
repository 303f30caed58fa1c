"""Layered configuration: a config file, environment variables and defaults."""

from __future__ import annotations

import json
import os
import tomllib
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import yaml

_EXTENSIONS = ("json", "toml", "yaml", "yml")


class ConfigError(Exception):
    """Raised when no usable configuration file can be loaded."""


def _flatten(data: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    flat: dict[str, Any] = {}
    for key, value in data.items():
        full = f"{prefix}{str(key).lower()}"
        if isinstance(value, Mapping):
            flat.update(_flatten(value, f"{full}."))
        else:
            flat[full] = value
    return flat


class Config:
    """Case-insensitive settings.

    A lookup checks the environment first (``<PREFIX>_<KEY>``), then the
    values read from the config file, then registered defaults.
    """

    def __init__(
        self,
        values: Mapping[str, Any] | None = None,
        env_prefix: str = "",
        environ: Mapping[str, str] | None = None,
        source: Path | None = None,
    ) -> None:
        self._values = _flatten(values or {})
        self._defaults: dict[str, Any] = {}
        self.env_prefix = env_prefix
        self._environ = os.environ if environ is None else environ
        self.source = source

    def _env_name(self, key: str) -> str:
        name = key.upper()
        return f"{self.env_prefix.upper()}_{name}" if self.env_prefix else name

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value for ``key``, or ``default`` if it is set nowhere."""
        env_name = self._env_name(key)
        if env_name in self._environ:
            return self._environ[env_name]
        lowered = key.lower()
        if lowered in self._values:
            return self._values[lowered]
        if lowered in self._defaults:
            return self._defaults[lowered]
        return default

    def set_default(self, key: str, value: Any) -> None:
        """Register the value used when ``key`` is set nowhere else."""
        self._defaults[key.lower()] = value

    def __contains__(self, key: str) -> bool:
        sentinel = object()
        return self.get(key, sentinel) is not sentinel


def _parse(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    suffix = path.suffix.lstrip(".")
    if suffix == "json":
        return json.loads(text)
    if suffix == "toml":
        return tomllib.loads(text)
    return yaml.safe_load(text) or {}


def load_config(
    name: str = "appbackend",
    search_paths: Iterable[str | os.PathLike[str]] | None = None,
    env_prefix: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> Config:
    """Find ``<name>.<ext>`` in the search paths and load it.

    The first path holding a file with a supported extension wins.
    Raises :class:`ConfigError` if none is found or it cannot be parsed.
    """
    paths = [f"/etc/{name}", "."] if search_paths is None else list(search_paths)
    prefix = name.upper() if env_prefix is None else env_prefix
    for directory in paths:
        for ext in _EXTENSIONS:
            candidate = Path(directory) / f"{name}.{ext}"
            if not candidate.is_file():
                continue
            try:
                data = _parse(candidate)
            except (OSError, ValueError, yaml.YAMLError) as exc:
                raise ConfigError(f"fatal error config file: {exc}") from exc
            if not isinstance(data, Mapping):
                raise ConfigError(
                    f"fatal error config file: {candidate} does not hold a mapping"
                )
            return Config(data, env_prefix=prefix, environ=environ, source=candidate)
    raise ConfigError(
        f'fatal error config file: Config File "{name}" Not Found in {paths}'
    )