"""Application configuration helpers."""

from __future__ import annotations

from .env import require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging, parse_log_level
from .remote import RemoteApiConfig, get_remote_api_config
from .resilience import CircuitBreakerOptions, RetryOptions, get_retry_options
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .sync import SyncConfig, get_sync_config

__all__ = [
    "CircuitBreakerOptions",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "RateLimit",
    "RemoteApiConfig",
    "ResilienceConfig",
    "RetryOptions",
    "RetryPolicy",
    "StorageConfig",
    "SyncConfig",
    "configure_logging",
    "get_database_config",
    "get_remote_api_config",
    "get_retry_options",
    "get_storage_config",
    "get_sync_config",
    "parse_log_level",
    "require_env_vars",
]
