from __future__ import annotations

from collections.abc import Iterable

from mcp_cli.core.errors import ErrorCode, McpCliError

_AUTH_MARKERS = ("401", "403", "unauthorized", "forbidden")


class McpClientError(McpCliError):
    """Base exception for MCP client failures.

    Transport and protocol failures are normalized into a small set of stable
    error types so the CLI can map them onto exit codes and messages.
    """

    exit_code = ErrorCode.SERVER_ERROR


class McpDependencyMissingError(McpClientError):
    exit_code = ErrorCode.CLIENT_ERROR

    def __init__(self, *, missing: str, install_hint: str):
        super().__init__(
            "dependency_missing",
            f"Missing dependency {missing!r}. {install_hint}",
            details={"missing": missing, "install_hint": install_hint},
        )


class McpConnectionError(McpClientError):
    """Connecting to a server failed for good (fatal, or retries exhausted)."""

    def __init__(self, *, server: str, message: str):
        auth = any(m in message.lower() for m in _AUTH_MARKERS)
        super().__init__(
            "auth_failed" if auth else "connection_failed",
            f"Failed to connect to server {server!r}: {message}",
            details={"server": server, "cause": message},
            suggestion=(
                "Check the credentials in the server headers/env"
                if auth
                else "Check that the server command exists or the URL is reachable"
            ),
        )
        self.server = server
        self.cause_message = message
        self.exit_code = ErrorCode.AUTH_ERROR if auth else ErrorCode.NETWORK_ERROR


class McpToolNotFoundError(McpClientError):
    exit_code = ErrorCode.CLIENT_ERROR

    def __init__(self, *, tool: str, server: str, available: Iterable[str]):
        available = list(available)
        super().__init__(
            "tool_not_found",
            f"Tool {tool!r} not found on server {server!r}",
            details={"tool": tool, "server": server, "available": ", ".join(available) or "(none)"},
            suggestion=f"Run `mcp-cli info {server}` to see available tools",
        )
        self.tool = tool
        self.server = server
        self.available = available


class McpToolCallError(McpClientError):
    def __init__(self, *, tool: str, server: str, message: str):
        super().__init__(
            "tool_call_failed",
            f"Tool {tool!r} on server {server!r} failed: {message}",
            details={"tool": tool, "server": server},
        )
        self.tool = tool
        self.server = server


class McpSessionClosedError(McpClientError):
    """Programmer error: an operation was issued on a closed session."""

    exit_code = ErrorCode.CLIENT_ERROR

    def __init__(self, *, server: str):
        super().__init__(
            "session_closed",
            f"Session to server {server!r} is not open",
            details={"server": server},
        )
        self.server = server


class InvalidToolArgumentsError(McpClientError):
    exit_code = ErrorCode.CLIENT_ERROR

    def __init__(self, message: str, *, detail: str | None = None):
        super().__init__(
            "invalid_arguments",
            message,
            details={"parse_error": detail} if detail else None,
            suggestion='Pass arguments as a JSON object, e.g. \'{"path": "."}\'',
        )


class McpTimeoutError(McpClientError):
    exit_code = ErrorCode.NETWORK_ERROR

    def __init__(self, *, timeout_s: float):
        super().__init__(
            "timeout",
            f"MCP command timed out after {timeout_s}s",
            details={"timeout_s": str(timeout_s)},
            suggestion="Raise MCP_TIMEOUT if the server is slow",
        )


class McpToolListError(McpClientError):
    """Listing a server's tools failed after the session was open."""

    def __init__(self, *, server: str, message: str):
        super().__init__(
            "list_tools_failed",
            f"Could not list tools on server {server!r}: {message}",
            details={"server": server, "cause": message},
            suggestion="Check that the server implements tools/list",
        )
        self.server = server
