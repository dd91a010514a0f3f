from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class ToolInfo:
    """A tool as advertised by a server's tools/list response."""

    name: str
    description: str | None = None
    input_schema: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


@dataclass(frozen=True, slots=True)
class ServerInfo:
    """Server identity reported by the initialize handshake."""

    name: str
    version: str | None = None
    protocol_version: str | None = None


@dataclass(frozen=True, slots=True)
class ToolResult:
    """Result of a tools/call request.

    `raw` is the JSON-compatible dump of the whole response and is what
    `--raw` / `--json` output prints.
    """

    content: list[dict[str, Any]]
    structured_content: dict[str, Any] | None = None
    is_error: bool = False
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ServerTools:
    """One row of a multi-server listing.

    `error` is set (and `tools` empty) when the server could not be reached.
    """

    name: str
    tools: list[ToolInfo]
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True, slots=True)
class SearchResult:
    server: str
    tool: ToolInfo
