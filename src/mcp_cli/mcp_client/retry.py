"""Retry policy for MCP operations.

Failures are classified by message because the transport and protocol layers
(the MCP SDK, anyio, httpx, the OS) do not share an error hierarchy. Matching
is deliberately broad: an occasional retry of a permanent error is preferred
over giving up on a transient one.
"""

from __future__ import annotations

import asyncio
import os
import random
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import TypeVar

from mcp_cli.observability.logging import get_logger

T = TypeVar("T")

DEBUG_ENV_VAR = "MCP_DEBUG"

_TRANSIENT_MARKERS = (
    # connection refused
    "econnrefused",
    "connection refused",
    # connection reset
    "econnreset",
    "connection reset",
    # timed out
    "etimedout",
    "timed out",
    # host not found
    "enotfound",
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo failed",
    "temporary failure in name resolution",
    # broken pipe
    "epipe",
    "broken pipe",
    # broad buckets
    "network",
    "connection",
    "timeout",
    # HTTP overload / gateway statuses
    "429",
    "502",
    "503",
    "504",
)

_FALSY = frozenset({"", "0", "false", "no", "off"})

_log = get_logger("mcp_cli.retry")


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    max_retries: int = 3
    base_delay_ms: int = 1000
    max_delay_ms: int = 10000


DEFAULT_RETRY_POLICY = RetryPolicy()


@dataclass(frozen=True, slots=True)
class Attempt:
    """State of one `with_retry` call: zero-based index and last failure."""

    index: int = 0
    last_error: BaseException | None = None

    def failed(self, error: BaseException) -> Attempt:
        return Attempt(index=self.index, last_error=error)

    def next(self) -> Attempt:
        return Attempt(index=self.index + 1, last_error=self.last_error)


def debug_enabled(environ: Mapping[str, str] | None = None) -> bool:
    env = os.environ if environ is None else environ
    return env.get(DEBUG_ENV_VAR, "").strip().lower() not in _FALSY


def error_message(error: BaseException) -> str:
    """Text used for classification and diagnostics.

    Exception groups contribute every leaf message; an exception with an empty
    message falls back to its class name.
    """

    children = getattr(error, "exceptions", None)
    if isinstance(children, (list, tuple)) and children:
        return "; ".join(error_message(e) for e in children)
    return str(error) or type(error).__name__


def is_transient_error(error: BaseException) -> bool:
    message = error_message(error).lower()
    return any(marker in message for marker in _TRANSIENT_MARKERS)


def calculate_delay(
    attempt: int,
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    *,
    rng: Callable[[], float] = random.random,
) -> int:
    """Backoff in milliseconds before retry number `attempt` (zero-based)."""

    capped = min(policy.base_delay_ms * (2**attempt), policy.max_delay_ms)
    jitter = capped * 0.25 * (rng() * 2 - 1)
    return max(0, round(capped + jitter))


async def sleep_ms(ms: int) -> None:
    await asyncio.sleep(ms / 1000)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    label: str,
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    *,
    sleep: Callable[[int], Awaitable[None]] = sleep_ms,
    rng: Callable[[], float] = random.random,
    verbose: bool | None = None,
) -> T:
    """Run `operation`, retrying transient failures up to `policy.max_retries`.

    The error that ends the loop (fatal, or the last transient one) is
    re-raised as-is.
    """

    if verbose is None:
        verbose = debug_enabled()

    attempt = Attempt()
    while True:
        try:
            return await operation()
        except Exception as e:
            attempt = attempt.failed(e)
            if attempt.index >= policy.max_retries or not is_transient_error(e):
                raise

            delay = calculate_delay(attempt.index, policy, rng=rng)
            if verbose:
                _log.warning(
                    "retry",
                    operation=label,
                    attempt=attempt.index + 1,
                    max_attempts=policy.max_retries + 1,
                    error=error_message(e),
                    delay_ms=delay,
                )
            await sleep(delay)
            attempt = attempt.next()
