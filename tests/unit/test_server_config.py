from __future__ import annotations

import pytest

from mcp_cli.core.errors import InvalidServerConfigError
from mcp_cli.mcp_client.types import HttpServerConfig, StdioServerConfig, parse_server_config


def test_command_selects_stdio() -> None:
    cfg = parse_server_config(
        "fs",
        {"command": "node", "args": ["./server.js"], "env": {"DEBUG": "true"}, "cwd": "/tmp"},
    )
    assert isinstance(cfg, StdioServerConfig)
    assert cfg.command == "node"
    assert cfg.args == ("./server.js",)
    assert cfg.env == {"DEBUG": "true"}
    assert cfg.cwd == "/tmp"


def test_minimal_stdio() -> None:
    cfg = parse_server_config("echo", {"command": "echo"})
    assert cfg == StdioServerConfig(command="echo")


def test_url_selects_http() -> None:
    cfg = parse_server_config(
        "remote",
        {"url": "https://mcp.example.com/mcp", "headers": {"Authorization": "Bearer t"}, "timeout": 5},
    )
    assert isinstance(cfg, HttpServerConfig)
    assert cfg.headers == {"Authorization": "Bearer t"}
    assert cfg.timeout == 5.0


def test_minimal_http() -> None:
    cfg = parse_server_config("remote", {"url": "http://127.0.0.1:8001/mcp"})
    assert cfg == HttpServerConfig(url="http://127.0.0.1:8001/mcp")


def test_both_command_and_url_rejected() -> None:
    with pytest.raises(InvalidServerConfigError) as ei:
        parse_server_config("mixed", {"command": "node", "url": "https://x.example"})
    assert ei.value.server == "mixed"
    assert "mcpServers.mixed" in str(ei.value)


def test_neither_command_nor_url_rejected() -> None:
    with pytest.raises(InvalidServerConfigError):
        parse_server_config("empty", {"args": ["x"]})


@pytest.mark.parametrize(
    "raw",
    [
        "node server.js",
        {"command": ""},
        {"command": "node", "args": "server.js"},
        {"command": "node", "args": [1, 2]},
        {"command": "node", "env": {"PORT": 8080}},
        {"command": "node", "cwd": 3},
        {"url": "not a url"},
        {"url": "ftp://example.com/mcp"},
        {"url": "/relative/mcp"},
        {"url": "https://x.example", "timeout": -1},
        {"url": "https://x.example", "timeout": "10"},
        {"url": "https://x.example", "headers": ["a"]},
    ],
)
def test_malformed_entries_rejected(raw: object) -> None:
    with pytest.raises(InvalidServerConfigError):
        parse_server_config("bad", raw)


def test_to_dict_round_trips_fields() -> None:
    cfg = StdioServerConfig(command="uvx", args=("srv",), env={"A": "1"})
    assert cfg.to_dict() == {"command": "uvx", "args": ["srv"], "env": {"A": "1"}}
    assert HttpServerConfig(url="https://x.example").to_dict() == {"url": "https://x.example"}
