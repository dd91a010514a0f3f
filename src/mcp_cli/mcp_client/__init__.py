"""MCP (Model Context Protocol) client-side integration.

This package intentionally avoids the top-level name `mcp` to prevent shadowing
the upstream MCP Python SDK module (`import mcp`).
"""

from __future__ import annotations

from .client import McpSession, SessionState, connect_to_server, open_session
from .errors import (
    InvalidToolArgumentsError,
    McpClientError,
    McpConnectionError,
    McpDependencyMissingError,
    McpSessionClosedError,
    McpTimeoutError,
    McpToolCallError,
    McpToolListError,
    McpToolNotFoundError,
)
from .retry import DEFAULT_RETRY_POLICY, RetryPolicy, is_transient_error, with_retry
from .transport import build_transport, merge_environment
from .types import HttpServerConfig, ServerConfig, StdioServerConfig, parse_server_config

__all__ = [
    "DEFAULT_RETRY_POLICY",
    "HttpServerConfig",
    "InvalidToolArgumentsError",
    "McpClientError",
    "McpConnectionError",
    "McpDependencyMissingError",
    "McpSession",
    "McpSessionClosedError",
    "McpTimeoutError",
    "McpToolCallError",
    "McpToolListError",
    "McpToolNotFoundError",
    "RetryPolicy",
    "ServerConfig",
    "SessionState",
    "StdioServerConfig",
    "build_transport",
    "connect_to_server",
    "is_transient_error",
    "merge_environment",
    "open_session",
    "parse_server_config",
    "with_retry",
]
