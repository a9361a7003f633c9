"""Shared configuration service for the executor, handlers and CLI."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict

import yaml

_CONFIG_CACHE: Dict[str, Dict[str, Any]] = {}

DEFAULT_MAX_EXECUTION_TIME = 300.0
DEFAULT_HTTP_TIMEOUT = 30.0


def _default_config_path() -> Path:
    """``$FLOW_CONFIG_PATH`` when set, else ``flow.yaml`` in the working directory."""
    override = os.getenv("FLOW_CONFIG_PATH")
    if override:
        return Path(override).expanduser()
    return Path.cwd() / "flow.yaml"


def clear_config_cache() -> None:
    """Forget every loaded file so the next call re-reads from disk."""
    _CONFIG_CACHE.clear()


def load_config(path: str | Path | None = None) -> Dict[str, Any]:
    """
    Read a YAML config file once and serve it from cache afterwards.

    ``path`` defaults to ``$FLOW_CONFIG_PATH`` or ``./flow.yaml``. A missing
    default file means "no config" and yields ``{}``; a missing explicit path
    raises FileNotFoundError.
    """
    source = _default_config_path() if path is None else Path(path).expanduser()
    cache_key = str(source.resolve())
    if cache_key in _CONFIG_CACHE:
        return _CONFIG_CACHE[cache_key]
    if path is None and not source.exists():
        return {}
    _CONFIG_CACHE[cache_key] = yaml.safe_load(source.read_text(encoding="utf-8")) or {}
    return _CONFIG_CACHE[cache_key]


def _get_section(section_path: str, path: str | Path | None = None) -> Dict[str, Any]:
    """Walk a dotted path such as ``capabilities.overrides``; anything but a mapping gives ``{}``."""
    node: Any = load_config(path)
    for part in section_path.split("."):
        node = node.get(part) if isinstance(node, dict) else None
    return node if isinstance(node, dict) else {}


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return float(value)


def get_executor_settings(path: str | Path | None = None) -> Dict[str, Any]:
    """Return executor settings (FLOW_MAX_EXECUTION_TIME wins over the file)."""
    settings = dict(_get_section("executor", path))
    settings["max_execution_time"] = _env_float(
        "FLOW_MAX_EXECUTION_TIME",
        float(settings.get("max_execution_time", DEFAULT_MAX_EXECUTION_TIME)),
    )
    return settings


def get_http_settings(path: str | Path | None = None) -> Dict[str, Any]:
    """Return settings for outbound ``http`` nodes."""
    settings = dict(_get_section("http", path))
    settings["timeout"] = _env_float(
        "FLOW_HTTP_TIMEOUT",
        float(settings.get("timeout", DEFAULT_HTTP_TIMEOUT)),
    )
    return settings


def get_capability_settings(path: str | Path | None = None) -> Dict[str, Any]:
    """Return capability transport settings and per-capability overrides."""
    settings = dict(_get_section("capabilities", path))
    base_url = os.getenv("FLOW_CAPABILITY_BASE_URL")
    if base_url:
        settings["base_url"] = base_url
    settings.setdefault("overrides", {})
    return settings
