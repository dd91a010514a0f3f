from __future__ import annotations

import sys
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest


def pytest_configure() -> None:
    root = Path(__file__).resolve().parents[1]
    src = root / "src"
    if src.exists():
        sys.path.insert(0, str(src))


@dataclass(slots=True)
class FakeTool:
    name: str
    description: str | None = None
    inputSchema: dict[str, Any] = field(default_factory=lambda: {"type": "object"})  # noqa: N815


@dataclass(slots=True)
class FakeClient:
    """Stands in for `mcp.ClientSession` after the transport is open."""

    tools: list[FakeTool] = field(default_factory=list)
    page_size: int | None = None
    init_failures: list[Exception] = field(default_factory=list)
    list_failures: list[Exception] = field(default_factory=list)
    call_failures: list[Exception] = field(default_factory=list)
    call_result: Any = field(default_factory=lambda: {"content": [{"type": "text", "text": "ok"}]})
    init_calls: int = 0
    list_calls: int = 0
    calls: list[tuple[str, Any]] = field(default_factory=list)

    async def initialize(self) -> Any:
        self.init_calls += 1
        if self.init_failures:
            raise self.init_failures.pop(0)
        return SimpleNamespace(
            serverInfo=SimpleNamespace(name="fake-server", version="1.2.3"),
            protocolVersion="2025-06-18",
        )

    async def list_tools(self, cursor: str | None = None) -> Any:
        self.list_calls += 1
        if self.list_failures:
            raise self.list_failures.pop(0)
        if self.page_size is None:
            return SimpleNamespace(tools=list(self.tools), nextCursor=None)
        start = int(cursor or 0)
        end = start + self.page_size
        return SimpleNamespace(
            tools=self.tools[start:end],
            nextCursor=str(end) if end < len(self.tools) else None,
        )

    async def call_tool(self, name: str, arguments: Any = None) -> Any:
        self.calls.append((name, arguments))
        if self.call_failures:
            raise self.call_failures.pop(0)
        return self.call_result


@dataclass(slots=True)
class FakeServer:
    client: FakeClient
    connect_failures: list[Exception] = field(default_factory=list)
    opens: int = 0
    releases: int = 0

    async def release(self) -> None:
        self.releases += 1


@dataclass(slots=True)
class FakeTransport:
    server: FakeServer

    async def open(self, stack: AsyncExitStack) -> Any:
        self.server.opens += 1
        if self.server.connect_failures:
            raise self.server.connect_failures.pop(0)
        stack.push_async_callback(self.server.release)
        return self.server.client


class FakeNetwork:
    """Transport factory serving fake servers keyed by command or URL."""

    def __init__(self) -> None:
        self.servers: dict[str, FakeServer] = {}
        self.built: list[tuple[Any, Any]] = []

    def add_server(
        self,
        key: str,
        *,
        tools: list[FakeTool] | None = None,
        connect_failures: list[Exception] | None = None,
        **client_kwargs: Any,
    ) -> FakeServer:
        server = FakeServer(
            client=FakeClient(tools=list(tools or []), **client_kwargs),
            connect_failures=list(connect_failures or []),
        )
        self.servers[key] = server
        return server

    def __call__(self, config: Any, environ: Any) -> FakeTransport:
        self.built.append((config, environ))
        key = getattr(config, "url", None) or config.command
        return FakeTransport(self.servers[key])


@pytest.fixture
def network() -> FakeNetwork:
    return FakeNetwork()


@pytest.fixture
def tool() -> type[FakeTool]:
    return FakeTool


@pytest.fixture
def no_backoff() -> Any:
    from mcp_cli.mcp_client.retry import RetryPolicy

    return RetryPolicy(max_retries=3, base_delay_ms=0, max_delay_ms=0)
