"""Text and JSON rendering for command results and errors."""

from __future__ import annotations

import json
from typing import Any

from mcp_cli.mcp_client.types import HttpServerConfig, ServerConfig

from .errors import McpCliError
from .types import SearchResult, ServerInfo, ServerTools, ToolInfo, ToolResult


def format_json(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False)


def _first_line(text: str | None) -> str:
    lines = (text or "").strip().splitlines()
    return lines[0] if lines else ""


def _tool_line(tool: ToolInfo, *, with_descriptions: bool, prefix: str = "") -> str:
    line = f"{prefix}{tool.name}"
    desc = _first_line(tool.description)
    if with_descriptions and desc:
        line += f" - {desc}"
    return line


def format_server_list(servers: list[ServerTools], *, with_descriptions: bool = False) -> str:
    lines: list[str] = []
    for server in servers:
        lines.append(server.name)
        if not server.ok:
            lines.append(f"  <error: {server.error}>")
            continue
        if not server.tools:
            lines.append("  (no tools)")
        for tool in server.tools:
            lines.append(_tool_line(tool, with_descriptions=with_descriptions, prefix="  "))
    return "\n".join(lines)


def server_list_json(servers: list[ServerTools]) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for server in servers:
        row: dict[str, Any] = {"name": server.name, "tools": [t.to_dict() for t in server.tools]}
        if not server.ok:
            row["error"] = server.error
        out.append(row)
    return out


def _describe_transport(config: ServerConfig) -> str:
    if isinstance(config, HttpServerConfig):
        return f"http {config.url}"
    return "stdio " + " ".join([config.command, *config.args])


def format_server_details(
    name: str,
    config: ServerConfig,
    server_info: ServerInfo | None,
    tools: list[ToolInfo],
    *,
    with_descriptions: bool = False,
) -> str:
    lines = [f"Server: {name}", f"Transport: {_describe_transport(config)}"]
    if server_info is not None:
        version = f" {server_info.version}" if server_info.version else ""
        lines.append(f"Reports as: {server_info.name}{version}")
        if server_info.protocol_version:
            lines.append(f"Protocol: {server_info.protocol_version}")
    lines.append(f"Tools ({len(tools)}):")
    for tool in tools:
        lines.append(_tool_line(tool, with_descriptions=with_descriptions, prefix="  "))
    return "\n".join(lines)


def format_tool_schema(server: str, tool: ToolInfo) -> str:
    lines = [f"Tool: {server}/{tool.name}"]
    if tool.description:
        lines.append(f"Description: {tool.description.strip()}")
    lines.append("Input schema:")
    lines.append(format_json(tool.input_schema))
    return "\n".join(lines)


def format_search_results(results: list[SearchResult], *, with_descriptions: bool = False) -> str:
    return "\n".join(
        _tool_line(r.tool, with_descriptions=with_descriptions, prefix=f"{r.server}/") for r in results
    )


def search_results_json(results: list[SearchResult]) -> list[dict[str, Any]]:
    return [
        {
            "server": r.server,
            "tool": r.tool.name,
            "description": r.tool.description,
            "inputSchema": r.tool.input_schema,
        }
        for r in results
    ]


def format_tool_result(result: ToolResult) -> str:
    """Text blocks joined by newlines; structured content or the raw result otherwise."""

    texts = [
        block["text"]
        for block in result.content
        if block.get("type") == "text" and isinstance(block.get("text"), str)
    ]
    if texts:
        return "\n".join(texts)
    if result.structured_content:
        return format_json(result.structured_content)
    return format_json(result.raw)


def format_cli_error(error: McpCliError) -> str:
    lines = [f"Error [{error.error_type}]: {error.message}"]
    for key, value in error.details.items():
        lines.append(f"  {key}: {value}")
    if error.suggestion:
        lines.append(f"  Suggestion: {error.suggestion}")
    return "\n".join(lines)
