"""Runtime services (configuration)."""
from .config_service import (
    clear_config_cache,
    get_capability_settings,
    get_executor_settings,
    get_http_settings,
    load_config,
)

__all__ = [
    "clear_config_cache",
    "get_capability_settings",
    "get_executor_settings",
    "get_http_settings",
    "load_config",
]
