from __future__ import annotations

from dataclasses import dataclass

from mcp_cli.core.config import McpServersConfig, get_server_config
from mcp_cli.core.errors import ConfigError, McpCliError
from mcp_cli.core.types import ServerInfo, ToolInfo
from mcp_cli.mcp_client.client import McpSession, open_session
from mcp_cli.mcp_client.errors import McpToolListError, McpToolNotFoundError
from mcp_cli.mcp_client.retry import DEFAULT_RETRY_POLICY, RetryPolicy, error_message
from mcp_cli.mcp_client.transport import TransportFactory, build_transport
from mcp_cli.mcp_client.types import ServerConfig
from mcp_cli.observability.context import set_server


@dataclass(frozen=True, slots=True)
class ServerDetails:
    name: str
    config: ServerConfig
    server_info: ServerInfo | None
    tools: list[ToolInfo]


def parse_target(target: str) -> tuple[str, str | None]:
    """Split `server` or `server/tool` (tool names may contain '/')."""

    server, sep, tool = target.partition("/")
    if not server:
        raise ConfigError(f"invalid target {target!r}", suggestion="Use <server> or <server>/<tool>")
    if sep and not tool:
        return server, None
    return server, tool or None


async def _list_tools(session: McpSession, server: str) -> list[ToolInfo]:
    try:
        return await session.list_tools()
    except McpCliError:
        raise
    except Exception as e:
        raise McpToolListError(server=server, message=error_message(e)) from e


async def server_info(
    config: McpServersConfig,
    server: str,
    *,
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    transport_factory: TransportFactory = build_transport,
) -> ServerDetails:
    server_config = get_server_config(config, server)
    set_server(server)
    async with open_session(
        server,
        server_config,
        policy=policy,
        transport_factory=transport_factory,
    ) as session:
        tools = await _list_tools(session, server)
        return ServerDetails(
            name=server,
            config=server_config,
            server_info=session.server_info,
            tools=tools,
        )


async def tool_info(
    config: McpServersConfig,
    server: str,
    tool: str,
    *,
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    transport_factory: TransportFactory = build_transport,
) -> ToolInfo:
    server_config = get_server_config(config, server)
    set_server(server)
    async with open_session(
        server,
        server_config,
        policy=policy,
        transport_factory=transport_factory,
    ) as session:
        tools = await _list_tools(session, server)

    for t in tools:
        if t.name == tool:
            return t
    raise McpToolNotFoundError(tool=tool, server=server, available=[t.name for t in tools])
