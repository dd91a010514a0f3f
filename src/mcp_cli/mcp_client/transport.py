"""Transport construction for the two server variants.

`build_transport` is pure: it resolves everything a transport needs from the
descriptor and an explicitly passed ambient environment. I/O (spawning the
child process, opening the HTTP stream) only happens in `open()`, which the
session manager calls inside the retry loop.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from typing import Any, Protocol

from .errors import McpDependencyMissingError
from .types import HttpServerConfig, ServerConfig, StdioServerConfig

_INSTALL_HINT = "Install it with: pip install mcp"

# Matches the MCP SDK's own defaults for streamable HTTP.
DEFAULT_HTTP_TIMEOUT_S = 30.0
DEFAULT_SSE_READ_TIMEOUT_S = 300.0


class Transport(Protocol):
    async def open(self, stack: AsyncExitStack) -> Any:
        """Open the transport and return an un-initialized MCP client session.

        Every resource acquired must be registered on `stack`.
        """
        ...


TransportFactory = Callable[[ServerConfig, Mapping[str, "str | None"]], Transport]


def merge_environment(
    ambient: Mapping[str, str | None],
    overlay: Mapping[str, str] | None,
) -> dict[str, str]:
    """Ambient variables with a defined value, overlaid by the descriptor's."""

    merged = {k: v for k, v in ambient.items() if v is not None}
    if overlay:
        merged.update(overlay)
    return merged


@dataclass(frozen=True, slots=True)
class StdioTransport:
    command: str
    args: tuple[str, ...]
    env: dict[str, str]
    cwd: str | None = None

    async def open(self, stack: AsyncExitStack) -> Any:
        try:
            from mcp import ClientSession, StdioServerParameters
            from mcp.client.stdio import stdio_client
        except ImportError as e:  # pragma: no cover
            raise McpDependencyMissingError(missing="mcp", install_hint=_INSTALL_HINT) from e

        params = StdioServerParameters(
            command=self.command,
            args=list(self.args),
            env=dict(self.env),
            cwd=self.cwd,
        )
        read, write = await stack.enter_async_context(stdio_client(params))
        return await stack.enter_async_context(ClientSession(read, write))


@dataclass(frozen=True, slots=True)
class HttpTransport:
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    timeout_s: float | None = None

    async def open(self, stack: AsyncExitStack) -> Any:
        try:
            import httpx
            from mcp import ClientSession
            from mcp.client.streamable_http import streamable_http_client
        except ImportError as e:  # pragma: no cover
            raise McpDependencyMissingError(missing="mcp", install_hint=_INSTALL_HINT) from e

        if self.timeout_s is None:
            timeout = httpx.Timeout(DEFAULT_HTTP_TIMEOUT_S, read=DEFAULT_SSE_READ_TIMEOUT_S)
        else:
            timeout = httpx.Timeout(self.timeout_s)

        http_client = await stack.enter_async_context(
            httpx.AsyncClient(headers=dict(self.headers), timeout=timeout, follow_redirects=True)
        )
        read, write, _get_session_id = await stack.enter_async_context(
            streamable_http_client(self.url, http_client=http_client)
        )
        return await stack.enter_async_context(ClientSession(read, write))


def build_transport(
    config: ServerConfig,
    environ: Mapping[str, str | None],
) -> StdioTransport | HttpTransport:
    if isinstance(config, StdioServerConfig):
        return StdioTransport(
            command=config.command,
            args=tuple(config.args),
            env=merge_environment(environ, config.env),
            cwd=config.cwd,
        )
    if isinstance(config, HttpServerConfig):
        return HttpTransport(url=config.url, headers=dict(config.headers), timeout_s=config.timeout)
    raise TypeError(f"unsupported server config: {type(config).__name__}")
