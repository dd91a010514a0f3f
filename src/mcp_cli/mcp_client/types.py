from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlsplit

from mcp_cli.core.errors import InvalidServerConfigError


@dataclass(frozen=True, slots=True)
class StdioServerConfig:
    """Configuration for launching an MCP server as a local subprocess."""

    command: str
    args: tuple[str, ...] = ()
    env: dict[str, str] = field(default_factory=dict)
    cwd: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"command": self.command, "args": list(self.args)}
        if self.env:
            out["env"] = dict(self.env)
        if self.cwd is not None:
            out["cwd"] = self.cwd
        return out


@dataclass(frozen=True, slots=True)
class HttpServerConfig:
    """Configuration for connecting to an MCP server over Streamable HTTP.

    `timeout` is in seconds; None keeps the transport default.
    """

    url: str
    headers: dict[str, str] = field(default_factory=dict)
    timeout: float | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"url": self.url}
        if self.headers:
            out["headers"] = dict(self.headers)
        if self.timeout is not None:
            out["timeout"] = self.timeout
        return out


ServerConfig = StdioServerConfig | HttpServerConfig


def _str_mapping(value: Any, *, server: str, key: str) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, Mapping) or not all(isinstance(k, str) for k in value):
        raise InvalidServerConfigError(f"{key} must be a mapping of strings", server=server)
    if not all(isinstance(v, str) for v in value.values()):
        raise InvalidServerConfigError(f"{key} values must be strings", server=server)
    return dict(value)


def _check_url(url: str, *, server: str) -> None:
    try:
        parts = urlsplit(url)
    except ValueError as e:
        raise InvalidServerConfigError(f"invalid url {url!r}: {e}", server=server) from e
    if parts.scheme not in {"http", "https"} or not parts.netloc:
        raise InvalidServerConfigError(f"url must be an absolute http(s) URL, got {url!r}", server=server)


def parse_server_config(name: str, raw: Any) -> ServerConfig:
    """Turn one raw `mcpServers` entry into a tagged descriptor.

    Discrimination is structural: `command` selects stdio, `url` selects HTTP.
    Entries carrying both or neither are rejected here, before any transport
    is built.
    """

    if not isinstance(raw, Mapping):
        raise InvalidServerConfigError("server config must be a mapping", server=name)

    has_command = "command" in raw
    has_url = "url" in raw
    if has_command and has_url:
        raise InvalidServerConfigError('server config has both "command" and "url"', server=name)
    if not has_command and not has_url:
        raise InvalidServerConfigError('server config needs "command" or "url"', server=name)

    if has_command:
        command = raw["command"]
        if not isinstance(command, str) or not command.strip():
            raise InvalidServerConfigError("command must be a non-empty string", server=name)
        args = raw.get("args", [])
        if args is None:
            args = []
        if not isinstance(args, list) or not all(isinstance(a, str) for a in args):
            raise InvalidServerConfigError("args must be a list of strings", server=name)
        cwd = raw.get("cwd")
        if cwd is not None and not isinstance(cwd, str):
            raise InvalidServerConfigError("cwd must be a string", server=name)
        return StdioServerConfig(
            command=command,
            args=tuple(args),
            env=_str_mapping(raw.get("env"), server=name, key="env"),
            cwd=cwd,
        )

    url = raw["url"]
    if not isinstance(url, str) or not url.strip():
        raise InvalidServerConfigError("url must be a non-empty string", server=name)
    _check_url(url, server=name)

    timeout = raw.get("timeout")
    if timeout is not None:
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise InvalidServerConfigError("timeout must be a positive number of seconds", server=name)
        timeout = float(timeout)

    return HttpServerConfig(
        url=url,
        headers=_str_mapping(raw.get("headers"), server=name, key="headers"),
        timeout=timeout,
    )
