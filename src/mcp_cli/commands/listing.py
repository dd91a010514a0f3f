from __future__ import annotations

from mcp_cli.core.config import McpServersConfig, get_server_config, list_server_names
from mcp_cli.core.types import ServerTools
from mcp_cli.mcp_client.client import open_session
from mcp_cli.mcp_client.retry import DEFAULT_RETRY_POLICY, RetryPolicy
from mcp_cli.mcp_client.transport import TransportFactory, build_transport
from mcp_cli.observability.context import add_error, set_server
from mcp_cli.observability.logging import get_logger

_log = get_logger("mcp_cli.commands.list")


async def list_servers(
    config: McpServersConfig,
    *,
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    transport_factory: TransportFactory = build_transport,
) -> list[ServerTools]:
    """Tools of every configured server, in configuration order.

    A server that cannot be reached yields a row with `error` set instead of
    aborting the whole listing.
    """

    results: list[ServerTools] = []
    for name in list_server_names(config):
        set_server(name)
        try:
            async with open_session(
                name,
                get_server_config(config, name),
                policy=policy,
                transport_factory=transport_factory,
            ) as session:
                tools = await session.list_tools()
        except Exception as e:  # noqa: BLE001
            add_error(f"{name}: {e}")
            _log.info("server_unavailable", error=str(e))
            results.append(ServerTools(name=name, tools=[], error=str(e)))
            continue
        results.append(ServerTools(name=name, tools=tools))

    set_server(None)
    return results
