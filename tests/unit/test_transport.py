from __future__ import annotations

from mcp_cli.mcp_client.transport import HttpTransport, StdioTransport, build_transport, merge_environment
from mcp_cli.mcp_client.types import HttpServerConfig, StdioServerConfig


def test_merge_environment_descriptor_wins() -> None:
    assert merge_environment({"A": "1"}, {"A": "2", "B": "3"}) == {"A": "2", "B": "3"}


def test_merge_environment_drops_undefined_ambient_values() -> None:
    assert merge_environment({"A": "1", "UNSET": None}, None) == {"A": "1"}


def test_build_stdio_transport_uses_passed_environment() -> None:
    cfg = StdioServerConfig(command="node", args=("srv.js",), env={"A": "2", "B": "3"}, cwd="/srv")

    transport = build_transport(cfg, {"A": "1", "PATH": "/bin"})

    assert isinstance(transport, StdioTransport)
    assert transport.command == "node"
    assert transport.args == ("srv.js",)
    assert transport.env == {"A": "2", "B": "3", "PATH": "/bin"}
    assert transport.cwd == "/srv"


def test_build_stdio_transport_does_not_mutate_inputs() -> None:
    ambient = {"A": "1"}
    cfg = StdioServerConfig(command="node", env={"B": "2"})

    build_transport(cfg, ambient)

    assert ambient == {"A": "1"}
    assert cfg.env == {"B": "2"}


def test_build_http_transport() -> None:
    cfg = HttpServerConfig(url="https://mcp.example.com/mcp", headers={"X-Key": "k"}, timeout=12.5)

    transport = build_transport(cfg, {"IGNORED": "x"})

    assert isinstance(transport, HttpTransport)
    assert transport.url == "https://mcp.example.com/mcp"
    assert transport.headers == {"X-Key": "k"}
    assert transport.timeout_s == 12.5
