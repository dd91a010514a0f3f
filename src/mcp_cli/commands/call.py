from __future__ import annotations

import json
from typing import Any

from mcp_cli.core.config import McpServersConfig, get_server_config
from mcp_cli.core.errors import McpCliError
from mcp_cli.core.types import ToolResult
from mcp_cli.mcp_client.client import McpSession, open_session
from mcp_cli.mcp_client.errors import InvalidToolArgumentsError, McpToolCallError, McpToolNotFoundError
from mcp_cli.mcp_client.retry import (
    DEFAULT_RETRY_POLICY,
    RetryPolicy,
    error_message,
    is_transient_error,
)
from mcp_cli.mcp_client.transport import TransportFactory, build_transport
from mcp_cli.observability.context import set_server


def parse_arguments(text: str | None) -> dict[str, Any]:
    """Decode tool arguments; blank input means no arguments."""

    if text is None or not text.strip():
        return {}
    try:
        value = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidToolArgumentsError("Tool arguments are not valid JSON", detail=str(e)) from e
    if not isinstance(value, dict):
        raise InvalidToolArgumentsError(
            f"Tool arguments must be a JSON object, got {type(value).__name__}",
        )
    return value


async def _raise_if_unknown(session: McpSession, server: str, tool: str, cause: Exception) -> None:
    # If listing fails too, the caller re-raises the call error.
    try:
        tools = await session.list_tools()
    except Exception:  # noqa: BLE001
        return
    if all(t.name != tool for t in tools):
        raise McpToolNotFoundError(tool=tool, server=server, available=[t.name for t in tools]) from cause


async def call(
    config: McpServersConfig,
    server: str,
    tool: str,
    args: dict[str, Any],
    *,
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    transport_factory: TransportFactory = build_transport,
) -> ToolResult:
    """Invoke one tool. Arguments are passed through without schema checks.

    A fatal failure is reported as McpToolNotFoundError when the server does
    not advertise `tool`, otherwise as McpToolCallError.
    """

    server_config = get_server_config(config, server)
    set_server(server)
    async with open_session(
        server,
        server_config,
        policy=policy,
        transport_factory=transport_factory,
    ) as session:
        try:
            return await session.call_tool(tool, args)
        except McpCliError:
            raise
        except Exception as e:
            if not is_transient_error(e):
                await _raise_if_unknown(session, server, tool, e)
            raise McpToolCallError(tool=tool, server=server, message=error_message(e)) from e
