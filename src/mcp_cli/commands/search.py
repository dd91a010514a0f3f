from __future__ import annotations

import re

from mcp_cli.core.config import McpServersConfig, get_server_config, list_server_names
from mcp_cli.core.types import SearchResult
from mcp_cli.mcp_client.client import open_session
from mcp_cli.mcp_client.retry import DEFAULT_RETRY_POLICY, RetryPolicy, debug_enabled
from mcp_cli.mcp_client.transport import TransportFactory, build_transport
from mcp_cli.observability.context import set_server
from mcp_cli.observability.logging import get_logger

_log = get_logger("mcp_cli.commands.grep")


def glob_to_regex(pattern: str) -> re.Pattern[str]:
    """`*` matches any run of characters, `?` exactly one; whole-string, case-insensitive."""

    escaped = re.escape(pattern).replace(r"\*", ".*").replace(r"\?", ".")
    return re.compile(f"^{escaped}$", re.IGNORECASE | re.DOTALL)


def _matches(regex: re.Pattern[str], server: str, name: str, description: str | None) -> bool:
    if regex.match(name) or regex.match(f"{server}/{name}"):
        return True
    return bool(description) and regex.match(description) is not None


async def grep(
    config: McpServersConfig,
    pattern: str,
    *,
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    transport_factory: TransportFactory = build_transport,
) -> list[SearchResult]:
    """Tools on any server whose name, `server/name` path or description match.

    Servers that fail to connect are skipped.
    """

    regex = glob_to_regex(pattern)
    results: list[SearchResult] = []
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
            if debug_enabled():
                _log.warning("grep_server_skipped", error=str(e))
            continue

        results.extend(
            SearchResult(server=name, tool=t) for t in tools if _matches(regex, name, t.name, t.description)
        )

    set_server(None)
    return results
