from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from logging import getLogger
from typing import (
    TYPE_CHECKING,
    TypedDict,
    Unpack,
)

import httpx
from aiolimiter import AsyncLimiter
from httpx_retries import RetryTransport

from todosync.config.http_resilience import RateLimit, ResilienceConfig, RetryPolicy

if TYPE_CHECKING:
    from types import TracebackType

    from httpx._client import UseClientDefault
    from httpx._types import (
        AuthTypes,
        CookieTypes,
        HeaderTypes,
        QueryParamTypes,
        RequestContent,
        RequestData,
        RequestExtensions,
        RequestFiles,
        TimeoutTypes,
        URLTypes,
    )

__all__ = [
    "AttemptTrackingTransport",
    "RateLimit",
    "ResilienceConfig",
    "ResilientClient",
    "RetryBudgetExceededError",
    "RetryPolicy",
]

log = getLogger(__name__)

_ATTEMPT_EXTENSION = "todosync.attempt"


class RetryBudgetExceededError(httpx.TransportError):
    """Raised instead of a retry that would start after the policy's time budget."""


class AttemptTrackingTransport(httpx.AsyncBaseTransport):
    """Inner transport of ``RetryTransport``: numbers and logs the attempts of a request.

    The retry transport resends the same request object, so the attempt count and the
    start of the first attempt live in the request's extensions.
    """

    def __init__(
        self,
        name: str,
        policy: RetryPolicy,
        transport: httpx.AsyncBaseTransport,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._name = name
        self._policy = policy
        self._transport = transport
        self._clock = clock

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        attempt, started = request.extensions.get(_ATTEMPT_EXTENSION, (0, self._clock()))
        attempt += 1
        request.extensions[_ATTEMPT_EXTENSION] = (attempt, started)

        budget = self._policy.timeout_budget_seconds
        if attempt > 1 and budget is not None and self._clock() - started > budget:
            raise RetryBudgetExceededError(
                f"{self._name}: {request.method} {request.url.path} gave up after "
                f"{attempt - 1} attempt(s), retry budget of {budget:.1f}s exceeded",
                request=request,
            )

        try:
            response = await self._transport.handle_async_request(request)
        except self._policy.retry_on_exceptions as exc:
            self._log_failed_attempt(request, attempt, f"{type(exc).__name__}: {exc}")
            raise
        if response.status_code in self._policy.status_forcelist:
            self._log_failed_attempt(request, attempt, f"status {response.status_code}")
        return response

    async def aclose(self) -> None:
        await self._transport.aclose()

    def _log_failed_attempt(self, request: httpx.Request, attempt: int, reason: str) -> None:
        if attempt > self._policy.total:
            return
        log.warning(
            "%s retry attempt %s of %s for %s %s due to %s",
            self._name,
            attempt,
            self._policy.total,
            request.method,
            request.url.path,
            reason,
        )


class RequestOptions(TypedDict, total=False):
    content: RequestContent | None
    data: RequestData | None
    files: RequestFiles | None
    json: object
    params: QueryParamTypes | None
    headers: HeaderTypes | None
    cookies: CookieTypes | None
    auth: AuthTypes | UseClientDefault | None
    follow_redirects: bool | UseClientDefault
    timeout: TimeoutTypes | UseClientDefault
    extensions: RequestExtensions | None


class AsyncClientOptions(TypedDict, total=False):
    base_url: str
    timeout: TimeoutTypes
    headers: HeaderTypes
    transport: httpx.AsyncBaseTransport


class ResilientClient:
    """Async HTTP client with a per-client timeout, transport retries and a rate limit.

    ``transport`` replaces the network transport underneath the retry layer.
    """

    def __init__(
        self,
        config: ResilienceConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._limiter: AsyncLimiter | None = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit
            else None
        )

        retry_transport = RetryTransport(
            retry=config.retry.build(),
            transport=AttemptTrackingTransport(
                config.name, config.retry, transport or httpx.AsyncHTTPTransport()
            ),
        )

        client_kwargs: AsyncClientOptions = {
            "timeout": config.timeout_seconds,
            "transport": retry_transport,
        }
        if config.base_url is not None:
            client_kwargs["base_url"] = config.base_url
        if config.default_headers is not None:
            client_kwargs["headers"] = dict(config.default_headers)

        self._client = httpx.AsyncClient(**client_kwargs)

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        url: URLTypes,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        async def do_request() -> httpx.Response:
            return await self._client.request(method, url, **kwargs)

        return await self._send(do_request)

    async def get(
        self,
        url: URLTypes,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(
        self,
        url: URLTypes,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def patch(
        self,
        url: URLTypes,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        return await self.request("PATCH", url, **kwargs)

    async def delete(
        self,
        url: URLTypes,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        return await self.request("DELETE", url, **kwargs)

    async def _send(self, func: Callable[[], Awaitable[httpx.Response]]) -> httpx.Response:
        if self._limiter is None:
            return await func()
        async with self._limiter:
            return await func()
