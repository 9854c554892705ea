from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping

import tomllib

from .util import env_value

_CONFIG_FILENAME = "axeldash.toml"
_ENV_PREFIX = "AXELDASH_"
_DEFAULT_CATEGORIES = ("solutions", "errors", "patterns")

# Fields that may be left unset and are derived from another directory.
_DERIVED_PATHS = {
    "activity_file": ("logs_dir", "activity.log"),
    "conversations_dir": ("logs_dir", "conversations"),
    "inventory_file": ("memory_dir", "INVENTORY.md"),
}


class ConfigValidationError(ValueError):
    pass


@dataclass(frozen=True)
class DashboardConfig:
    logs_dir: Path
    memory_dir: Path
    advisors_dir: Path
    activity_file: Path | None = None
    conversations_dir: Path | None = None
    inventory_file: Path | None = None
    conversation_suffix: str = ".jsonl"
    memory_categories: tuple[str, ...] = _DEFAULT_CATEGORIES
    activity_limit: int = 100
    host: str = "0.0.0.0"
    port: int = 3847
    status_name: str = "cliproxyapi"
    status_url: str = "http://localhost:8317/v1/models"
    status_marker: str = "claude"
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        for name, (base, leaf) in _DERIVED_PATHS.items():
            if getattr(self, name) is None:
                object.__setattr__(self, name, getattr(self, base) / leaf)

    @classmethod
    def defaults(cls, cwd: Path | None = None) -> DashboardConfig:
        base = (cwd or Path.cwd()).absolute()
        return cls(
            logs_dir=base / "logs",
            memory_dir=Path.home() / ".claude" / "memory",
            advisors_dir=Path.home() / "advisors",
        )


_PATH_FIELDS = {
    "logs_dir",
    "memory_dir",
    "advisors_dir",
    "activity_file",
    "conversations_dir",
    "inventory_file",
}
_INT_FIELDS = {"activity_limit", "port"}
_FIELD_NAMES = {f.name for f in fields(DashboardConfig)}


def _as_path(value: object, *, field: str) -> Path:
    if not isinstance(value, (str, Path)) or not str(value).strip():
        raise ConfigValidationError(f"{field} must be a non-empty path")
    return Path(str(value).strip()).expanduser().absolute()


def _as_int(value: object, *, field: str) -> int:
    if isinstance(value, bool):
        raise ConfigValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        out = value
    elif isinstance(value, str):
        try:
            out = int(value.strip())
        except ValueError:
            raise ConfigValidationError(f"{field} must be an integer, got {value!r}") from None
    else:
        raise ConfigValidationError(f"{field} must be an integer")
    if out < 1:
        raise ConfigValidationError(f"{field} must be positive")
    return out


def _as_categories(value: object) -> tuple[str, ...]:
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, (list, tuple)):
        raise ConfigValidationError("memory_categories must be an array of strings")
    out = tuple(str(item).strip() for item in value if str(item).strip())
    if not out:
        raise ConfigValidationError("memory_categories must not be empty")
    return out


def _coerce(name: str, value: object) -> Any:
    if name not in _FIELD_NAMES:
        raise ConfigValidationError(f"unknown config key {name!r}")
    if name in _PATH_FIELDS:
        return _as_path(value, field=name)
    if name in _INT_FIELDS:
        return _as_int(value, field=name)
    if name == "memory_categories":
        return _as_categories(value)
    if not isinstance(value, str):
        raise ConfigValidationError(f"{name} must be a string")
    if name == "log_level":
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ConfigValidationError(f"unknown log_level {value!r}")
        return level
    return value


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        raw = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigValidationError(f"invalid TOML in {path}: {exc}") from exc
    section = raw.get("dashboard", {})
    if not isinstance(section, dict):
        raise ConfigValidationError(f"{path}: [dashboard] must be a table")
    return section


def _from_env(env: Mapping[str, str] | None) -> dict[str, str]:
    out: dict[str, str] = {}
    port = env_value("PORT", env)
    if port is not None:
        out["port"] = port
    for name in sorted(_FIELD_NAMES):
        val = env_value(_ENV_PREFIX + name.upper(), env)
        if val is not None:
            out[name] = val
    return out


def discover_config_path(cwd: Path | None = None, env: Mapping[str, str] | None = None) -> Path | None:
    """Return the config file to load, if any.

    Resolution order:
    1. AXELDASH_CONFIG
    2. ./axeldash.toml
    """
    raw = env_value(_ENV_PREFIX + "CONFIG", env)
    if raw:
        return Path(raw).expanduser()
    candidate = (cwd or Path.cwd()) / _CONFIG_FILENAME
    if candidate.is_file():
        return candidate
    return None


def load_config(
    path: Path | None = None,
    *,
    env: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
    cwd: Path | None = None,
) -> DashboardConfig:
    """Build the dashboard config from defaults, TOML, environment and overrides.

    Later layers win. Derived paths (activity file, conversations dir,
    inventory file) follow their base directory unless set explicitly.
    """
    values: dict[str, Any] = {}
    config_path = path or discover_config_path(cwd, env)
    if config_path is not None:
        if not config_path.is_file():
            raise ConfigValidationError(f"config file not found: {config_path}")
        values.update(_read_toml(config_path))
    values.update(_from_env(env))
    values.update({k: v for k, v in (overrides or {}).items() if v is not None})

    coerced = {name: _coerce(name, value) for name, value in values.items()}
    base = DashboardConfig.defaults(cwd)
    for name in _DERIVED_PATHS:
        if name not in coerced:
            coerced[name] = None
    return replace(base, **coerced)
