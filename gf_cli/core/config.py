"""Configuration loading and persistence."""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

try:  # Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # Python 3.9-3.10
    import tomli as tomllib  # type: ignore[no-redef]

from gf_cli.core.constants import (
    DEFAULT_ACTIVITY_TYPES,
    DEFAULT_CHART_MONTHS,
    DEFAULT_START_DATE,
    DEFAULT_Y_MAX,
    DEFAULT_Y_STEP,
)


class ConfigError(RuntimeError):
    """Raised when config file parsing fails."""


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of base with override applied table by table."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = _deep_merge(current, value)
        merged[key] = value
    return merged


def expand_path(path_str: str) -> Path:
    """Expand user/env vars and return absolute path."""
    return Path(os.path.expandvars(path_str)).expanduser().resolve()


def default_data_dir() -> Path:
    """Resolve XDG-style data directory with env override."""
    raw = os.getenv("GF_DATA_DIR", "~/.local/share/gf")
    return expand_path(raw)


def default_config_path() -> Path:
    """Get default config file path."""
    raw = os.getenv("GF_CONFIG_FILE", "~/.config/gf/config.toml")
    return expand_path(raw)


def _default_config() -> Dict[str, Any]:
    data_dir = default_data_dir()
    return {
        "auth": {
            "client_secret": "~/.config/gf/client_secret.json",
            "token_store": str(data_dir / "token.json"),
        },
        "query": {
            "start_date": DEFAULT_START_DATE,
            "activity_types": list(DEFAULT_ACTIVITY_TYPES),
        },
        "chart": {
            "anchor_date": "",
            "months": DEFAULT_CHART_MONTHS,
            "y_max": DEFAULT_Y_MAX,
            "y_step": DEFAULT_Y_STEP,
        },
        "api": {
            "rate_limit_delay": 0.2,
            "max_retries": 3,
            "timeout_seconds": 30,
        },
        "export": {
            "default_directory": ".",
        },
    }


DEFAULT_CONFIG: Dict[str, Any] = _default_config()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text()
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc

    if path.suffix.lower() == ".json":
        try:
            loaded = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid JSON in config file {path}: {exc}") from exc
    else:
        try:
            loaded = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid TOML in config file {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ConfigError(f"Config file {path} must contain an object/table at the root")
    return loaded


def load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load configuration from disk, merged with defaults."""
    cfg_path = path or default_config_path()
    cfg = _default_config()
    if cfg_path.exists():
        cfg = _deep_merge(cfg, _read_config(cfg_path))
    return cfg


def _toml_value(value: Any) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        # JSON string escapes are valid TOML basic-string escapes.
        return json.dumps(value)
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(_toml_value(item) for item in value if item is not None) + "]"
    raise TypeError(f"Cannot write {type(value).__name__} to TOML")


def _toml_lines(table: Dict[str, Any], path: Tuple[str, ...] = ()) -> Iterator[str]:
    scalars = [
        (key, value) for key, value in table.items() if value is not None and not isinstance(value, dict)
    ]
    tables = [(key, value) for key, value in table.items() if isinstance(value, dict)]

    if path and (scalars or not tables):
        yield f"[{'.'.join(path)}]"
    for key, value in scalars:
        yield f"{key} = {_toml_value(value)}"
    for key, value in tables:
        yield ""
        yield from _toml_lines(value, path + (key,))


def save_config(config: Dict[str, Any], path: Optional[Path] = None) -> Path:
    """Save configuration to disk as TOML (default) or JSON."""
    cfg_path = path or default_config_path()
    cfg_path.parent.mkdir(parents=True, exist_ok=True)

    if cfg_path.suffix.lower() == ".json":
        cfg_path.write_text(json.dumps(config, indent=2) + "\n")
        return cfg_path

    cfg_path.write_text("\n".join(_toml_lines(config)).strip() + "\n")
    return cfg_path


def resolve_client_secret(config: Dict[str, Any], explicit: Optional[Path] = None) -> Path:
    """Resolve OAuth client secret path: CLI override, env, then config."""
    if explicit is not None:
        return explicit.expanduser().resolve()
    raw = os.getenv("GF_CLIENT_SECRET") or config.get("auth", {}).get("client_secret")
    if not raw:
        raw = "~/.config/gf/client_secret.json"
    return expand_path(raw)


def resolve_token_store(config: Dict[str, Any]) -> Path:
    """Resolve cached OAuth token path from env/config."""
    raw = os.getenv("GF_TOKEN_STORE") or config.get("auth", {}).get("token_store")
    if not raw:
        raw = str(default_data_dir() / "token.json")
    return expand_path(raw)


def resolve_output_dir(config: Dict[str, Any], explicit: Optional[Path] = None) -> Path:
    """Resolve output directory with CLI override first."""
    if explicit is not None:
        return explicit.expanduser().resolve()
    raw = os.getenv("GF_OUTPUT_DIR") or config.get("export", {}).get("default_directory", ".")
    return expand_path(raw)


def resolve_activity_types(config: Dict[str, Any], explicit: Optional[List[int]] = None) -> List[int]:
    """Activity-type filter: CLI values if given, else config, else defaults."""
    if explicit:
        return [int(value) for value in explicit]
    configured = config.get("query", {}).get("activity_types")
    if configured:
        return [int(value) for value in configured]
    return list(DEFAULT_ACTIVITY_TYPES)
