"""Remote todo API configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_float, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .resilience import RetryOptions, get_retry_options

DEFAULT_REMOTE_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True, slots=True)
class RemoteApiConfig:
    source_id: str
    resilience: ResilienceConfig


def get_remote_api_config(retry_options: RetryOptions | None = None) -> RemoteApiConfig:
    values = require_env_vars(("TODOSYNC_REMOTE_BASE_URL", "TODOSYNC_SOURCE_ID"))
    timeout = env_float(
        "TODOSYNC_REMOTE_TIMEOUT_SECONDS", DEFAULT_REMOTE_TIMEOUT_SECONDS, minimum=0.0
    )
    rate = env_float("TODOSYNC_REMOTE_RATE_LIMIT_PER_SECOND", 0.0, minimum=0.0)

    resilience = ResilienceConfig(
        name="remote-todo-api",
        base_url=values["TODOSYNC_REMOTE_BASE_URL"].rstrip("/"),
        timeout_seconds=timeout,
        retry=RetryPolicy.from_options(retry_options or get_retry_options()),
        ratelimit=RateLimit(max_calls=int(rate), per_seconds=1.0) if rate >= 1 else None,
        default_headers={"Accept": "application/json"},
    )
    return RemoteApiConfig(source_id=values["TODOSYNC_SOURCE_ID"], resilience=resilience)
