#!/usr/bin/env python3
import asyncio
import json
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional

import aiohttp

from constants import C_RED, C_RESET, C_YELLOW, DEFAULT_BASE_DELAY, DEFAULT_MAX_RETRIES, DEFAULT_REQUEST_TIMEOUT
from errors import FetchError


def log_error(message: str) -> None:
    """Centralized error logging."""
    print(f"{C_RED}{message}{C_RESET}")


def linear_backoff(base_delay: float) -> Callable[[int], float]:
    """Delay after the n-th failed attempt: base_delay * n."""
    def _delay(attempt: int) -> float:
        return base_delay * attempt
    return _delay


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = DEFAULT_MAX_RETRIES
    backoff: Callable[[int], float] = field(default_factory=lambda: linear_backoff(DEFAULT_BASE_DELAY))

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    @classmethod
    def linear(cls, max_attempts: int = DEFAULT_MAX_RETRIES, base_delay: float = DEFAULT_BASE_DELAY) -> "RetryPolicy":
        return cls(max_attempts=max_attempts, backoff=linear_backoff(base_delay))


@dataclass(frozen=True)
class FetchRequest:
    """One idempotent remote read."""
    url: str
    method: str = 'GET'
    json_body: Optional[Dict[str, Any]] = None
    params: Optional[Dict[str, Any]] = None

    def describe(self) -> str:
        if self.json_body and 'type' in self.json_body:
            return f"{self.method} {self.url} [{self.json_body['type']}]"
        return f"{self.method} {self.url}"


class _RetryableResponse(Exception):
    def __init__(self, status: int, reason: Optional[str]):
        self.status = status
        super().__init__(f"HTTP {status} {reason or ''}".strip())


class RetryingFetcher:
    """Performs remote reads with a bounded retry budget and backoff.

    Non-success statuses (including 429 rate limiting), transport errors,
    timeouts and undecodable bodies all count as a failed attempt. The error
    of the final attempt is carried by the raised FetchError.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        policy: Optional[RetryPolicy] = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.session = session
        self.policy = policy or RetryPolicy()
        self.timeout = timeout
        self._sleep = sleep
        self.attempts_made = 0

    async def fetch(self, request: FetchRequest) -> Any:
        last_error: Optional[BaseException] = None
        for attempt in range(1, self.policy.max_attempts + 1):
            self.attempts_made += 1
            try:
                return await self._attempt(request)
            except (aiohttp.ClientError, asyncio.TimeoutError, _RetryableResponse, json.JSONDecodeError, UnicodeDecodeError) as exc:
                last_error = exc
                if attempt < self.policy.max_attempts:
                    delay = self.policy.backoff(attempt)
                    print(f"{C_YELLOW}{request.describe()} attempt {attempt}/{self.policy.max_attempts} failed ({exc}); retrying in {delay:.2f}s{C_RESET}")
                    await self._sleep(delay)

        log_error(f"API request {request.describe()} failed after {self.policy.max_attempts} attempts: {last_error}")
        raise FetchError(request.describe(), self.policy.max_attempts, last_error)

    async def _attempt(self, request: FetchRequest) -> Any:
        kwargs: Dict[str, Any] = {'timeout': aiohttp.ClientTimeout(total=self.timeout)}
        if request.json_body is not None:
            kwargs['json'] = request.json_body
        if request.params is not None:
            kwargs['params'] = request.params
        async with self.session.request(request.method, request.url, **kwargs) as response:
            if response.status >= 400:
                raise _RetryableResponse(response.status, getattr(response, 'reason', None))
            body = await response.text()
        return json.loads(body)
