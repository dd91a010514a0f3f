"""Session lifecycle for one MCP server.

A session goes UNCONNECTED -> CONNECTING -> OPEN -> CLOSED. Connecting and
every operation on an open session run inside `with_retry`; the session owns
its transport resources through an `AsyncExitStack` and releases them once.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import AsyncIterator, Mapping
from contextlib import AsyncExitStack, asynccontextmanager
from enum import Enum
from typing import Any

from mcp_cli.core.errors import McpCliError
from mcp_cli.core.types import ServerInfo, ToolInfo, ToolResult
from mcp_cli.observability.logging import get_logger

from .errors import McpConnectionError, McpSessionClosedError
from .retry import DEFAULT_RETRY_POLICY, RetryPolicy, error_message, with_retry
from .transport import TransportFactory, build_transport
from .types import ServerConfig


class SessionState(Enum):
    UNCONNECTED = "unconnected"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


def _tool_info(tool: Any) -> ToolInfo:
    schema = getattr(tool, "inputSchema", None)
    return ToolInfo(
        name=str(tool.name),
        description=getattr(tool, "description", None),
        input_schema=dict(schema) if isinstance(schema, Mapping) else {},
    )


def _dump(payload: Any) -> dict[str, Any]:
    dump = getattr(payload, "model_dump", None)
    if callable(dump):
        out = dump(mode="json", by_alias=True, exclude_none=True)
        if isinstance(out, dict):
            return out
    if isinstance(payload, Mapping):
        return dict(payload)
    return {"repr": repr(payload)}


def _tool_result(payload: Any) -> ToolResult:
    raw = _dump(payload)
    content = raw.get("content")
    structured = raw.get("structuredContent")
    return ToolResult(
        content=[c for c in content if isinstance(c, dict)] if isinstance(content, list) else [],
        structured_content=structured if isinstance(structured, dict) else None,
        is_error=bool(raw.get("isError", False)),
        raw=raw,
    )


def _server_info(init_result: Any) -> ServerInfo | None:
    info = getattr(init_result, "serverInfo", None)
    if info is None:
        return None
    return ServerInfo(
        name=str(getattr(info, "name", "")),
        version=getattr(info, "version", None),
        protocol_version=getattr(init_result, "protocolVersion", None),
    )


class McpSession:
    """One exclusively owned connection to one server."""

    def __init__(
        self,
        name: str,
        config: ServerConfig,
        *,
        policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        environ: Mapping[str, str | None] | None = None,
        transport_factory: TransportFactory = build_transport,
    ) -> None:
        self.name = name
        self.config = config
        self.state = SessionState.UNCONNECTED
        self.server_info: ServerInfo | None = None

        self._policy = policy
        self._environ = dict(os.environ) if environ is None else dict(environ)
        self._transport_factory = transport_factory
        self._stack: AsyncExitStack | None = None
        self._client: Any = None
        # Operations against one transport never overlap.
        self._lock = asyncio.Lock()
        self._log = get_logger("mcp_cli.session")

    async def __aenter__(self) -> McpSession:
        if self.state is SessionState.UNCONNECTED:
            await self.connect()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def connect(self) -> None:
        if self.state is not SessionState.UNCONNECTED:
            raise RuntimeError(f"session {self.name!r} is {self.state.value}, cannot connect")

        self.state = SessionState.CONNECTING
        try:
            await with_retry(self._open_once, f"connect to {self.name}", self._policy)
        except McpCliError:
            self.state = SessionState.UNCONNECTED
            raise
        except Exception as e:
            self.state = SessionState.UNCONNECTED
            raise McpConnectionError(server=self.name, message=error_message(e)) from e

        self.state = SessionState.OPEN
        self._log.debug(
            "session_open",
            server=self.name,
            server_version=self.server_info.version if self.server_info else None,
        )

    async def _open_once(self) -> None:
        stack = AsyncExitStack()
        try:
            transport = self._transport_factory(self.config, self._environ)
            client = await transport.open(stack)
            init_result = await client.initialize()
        except Exception:
            await self._release(stack)
            raise

        self._stack = stack
        self._client = client
        self.server_info = _server_info(init_result)

    def _require_open(self) -> Any:
        if self.state is not SessionState.OPEN or self._client is None:
            raise McpSessionClosedError(server=self.name)
        return self._client

    async def list_tools(self) -> list[ToolInfo]:
        client = self._require_open()

        async def do_list() -> list[ToolInfo]:
            tools: list[ToolInfo] = []
            cursor: str | None = None
            while True:
                result = await (client.list_tools(cursor) if cursor else client.list_tools())
                tools.extend(_tool_info(t) for t in result.tools)
                cursor = getattr(result, "nextCursor", None)
                if not cursor:
                    return tools

        async with self._lock:
            return await with_retry(do_list, "list tools", self._policy)

    async def get_tool(self, name: str) -> ToolInfo | None:
        for tool in await self.list_tools():
            if tool.name == name:
                return tool
        return None

    async def call_tool(self, name: str, args: dict[str, Any]) -> ToolResult:
        client = self._require_open()

        async def do_call() -> ToolResult:
            return _tool_result(await client.call_tool(name, arguments=args))

        async with self._lock:
            return await with_retry(do_call, f"call tool {name}", self._policy)

    async def close(self) -> None:
        """Release the transport. Safe to call any number of times."""

        if self.state is SessionState.CLOSED:
            return
        stack, self._stack = self._stack, None
        self._client = None
        self.state = SessionState.CLOSED
        if stack is not None:
            await self._release(stack)

    async def _release(self, stack: AsyncExitStack) -> None:
        try:
            await stack.aclose()
        except Exception as e:
            self._log.warning("session_close_failed", server=self.name, error=error_message(e))


async def connect_to_server(
    name: str,
    config: ServerConfig,
    *,
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    environ: Mapping[str, str | None] | None = None,
    transport_factory: TransportFactory = build_transport,
) -> McpSession:
    """Open a session, retrying transient failures.

    Raises McpConnectionError (server name + last message) when giving up.
    """

    session = McpSession(
        name,
        config,
        policy=policy,
        environ=environ,
        transport_factory=transport_factory,
    )
    await session.connect()
    return session


@asynccontextmanager
async def open_session(
    name: str,
    config: ServerConfig,
    *,
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    environ: Mapping[str, str | None] | None = None,
    transport_factory: TransportFactory = build_transport,
) -> AsyncIterator[McpSession]:
    session = await connect_to_server(
        name,
        config,
        policy=policy,
        environ=environ,
        transport_factory=transport_factory,
    )
    try:
        yield session
    finally:
        await session.close()
