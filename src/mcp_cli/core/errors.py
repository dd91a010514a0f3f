from __future__ import annotations

from collections.abc import Iterable
from enum import IntEnum


class ErrorCode(IntEnum):
    """Process exit codes, grouped by who is at fault."""

    CLIENT_ERROR = 1
    SERVER_ERROR = 2
    NETWORK_ERROR = 3
    AUTH_ERROR = 4


class McpCliError(Exception):
    """Base exception for this project.

    Every error carries a stable `error_type` plus enough structured context
    (details, suggestion) for `core.output.format_cli_error` to render it.
    """

    exit_code: ErrorCode = ErrorCode.CLIENT_ERROR

    def __init__(
        self,
        error_type: str,
        message: str,
        *,
        details: dict[str, str] | None = None,
        suggestion: str | None = None,
    ) -> None:
        super().__init__(message)
        self.error_type = error_type
        self.message = message
        self.details = details or {}
        self.suggestion = suggestion


class ConfigError(McpCliError):
    """Raised when configuration is invalid or incomplete."""

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        error_type: str = "config_invalid",
        details: dict[str, str] | None = None,
        suggestion: str | None = None,
    ) -> None:
        super().__init__(
            error_type,
            f"{path}: {message}" if path else message,
            details=details,
            suggestion=suggestion,
        )
        self.path = path


class ConfigNotFoundError(ConfigError):
    def __init__(self, *, path: str) -> None:
        super().__init__(
            "config file not found",
            path=path,
            error_type="config_not_found",
            suggestion="Check the --config argument or the MCP_CONFIG_PATH variable",
        )


class ConfigSearchError(ConfigError):
    def __init__(self, *, searched: Iterable[str]) -> None:
        searched = list(searched)
        super().__init__(
            "no MCP server config found",
            error_type="config_search_failed",
            details={"searched": ", ".join(searched)},
            suggestion="Create mcp_servers.json or pass --config <path>",
        )
        self.searched = searched


class InvalidServerConfigError(ConfigError):
    def __init__(self, message: str, *, server: str) -> None:
        super().__init__(
            message,
            path=f"mcpServers.{server}",
            error_type="invalid_server_config",
            details={"server": server},
            suggestion='Each server needs either "command" (local) or "url" (remote), not both',
        )
        self.server = server


class ServerNotFoundError(ConfigError):
    def __init__(self, *, server: str, available: Iterable[str]) -> None:
        available = list(available)
        super().__init__(
            f"server {server!r} not found in config",
            error_type="server_not_found",
            details={"server": server, "available": ", ".join(available) or "(none)"},
            suggestion=f"Available servers: {', '.join(available)}" if available else None,
        )
        self.server = server
        self.available = available
