from __future__ import annotations

import asyncio
import functools
import json
from pathlib import Path
from typing import Any

import pytest

from mcp_cli.core import cli
from mcp_cli.core.types import SearchResult, ServerTools, ToolInfo, ToolResult


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "configure_logging", lambda level="WARNING": None)
    monkeypatch.delenv("MCP_TIMEOUT", raising=False)
    monkeypatch.delenv("MCP_DEBUG", raising=False)


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    p = tmp_path / "mcp_servers.json"
    p.write_text(
        json.dumps({"mcpServers": {"fs": {"command": "fs-server"}, "web": {"url": "https://w.example/mcp"}}}),
        encoding="utf-8",
    )
    return p


def test_missing_config_is_client_error(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = cli.main(["-c", str(tmp_path / "nope.json"), "list"])

    assert code == 1
    err = capsys.readouterr().err
    assert "config_not_found" in err
    assert "Suggestion:" in err


def test_list_json(config_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    async def fake_list(cfg: Any) -> list[ServerTools]:
        assert list(cfg.servers) == ["fs", "web"]
        return [
            ServerTools(name="fs", tools=[ToolInfo(name="read", description="Read")]),
            ServerTools(name="web", tools=[], error="Failed to connect"),
        ]

    monkeypatch.setattr(cli, "list_servers", fake_list)

    code = cli.main(["-c", str(config_path), "list", "--json"])

    assert code == 0
    out = json.loads(capsys.readouterr().out)
    assert out[0] == {"name": "fs", "tools": [{"name": "read", "description": "Read", "inputSchema": {}}]}
    assert out[1]["error"] == "Failed to connect"


def test_default_command_is_list(
    config_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    async def fake_list(cfg: Any) -> list[ServerTools]:
        return [ServerTools(name="fs", tools=[ToolInfo(name="read")])]

    monkeypatch.setattr(cli, "list_servers", fake_list)

    assert cli.main(["-c", str(config_path)]) == 0
    assert capsys.readouterr().out.splitlines() == ["fs", "  read"]


def test_grep_no_results(config_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    async def fake_grep(cfg: Any, pattern: str) -> list[SearchResult]:
        return []

    monkeypatch.setattr(cli, "grep", fake_grep)

    assert cli.main(["-c", str(config_path), "grep", "*zzz*"]) == 0
    assert 'No tools found matching "*zzz*"' in capsys.readouterr().out


def test_info_unknown_server(config_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = cli.main(["-c", str(config_path), "info", "nope"])

    assert code == 1
    err = capsys.readouterr().err
    assert "server_not_found" in err
    assert "fs, web" in err


def test_call_invalid_json_arguments(config_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = cli.main(["-c", str(config_path), "call", "fs/read", "{oops"])

    assert code == 1
    assert "invalid_arguments" in capsys.readouterr().err


def test_call_requires_tool(config_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["-c", str(config_path), "call", "fs", "{}"]) == 1
    assert "invalid_arguments" in capsys.readouterr().err


def test_call_prints_text_and_maps_tool_errors(
    config_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    seen: dict[str, Any] = {}

    async def fake_call(cfg: Any, server: str, tool: str, args: dict[str, Any]) -> ToolResult:
        seen.update(server=server, tool=tool, args=args)
        return ToolResult(content=[{"type": "text", "text": "denied"}], is_error=True)

    monkeypatch.setattr(cli, "call", fake_call)

    code = cli.main(["-c", str(config_path), "call", "fs/read", '{"path": "."}'])

    assert code == 2
    assert seen == {"server": "fs", "tool": "read", "args": {"path": "."}}
    assert capsys.readouterr().out.strip() == "denied"


def test_invalid_timeout_env(config_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setenv("MCP_TIMEOUT", "soon")

    assert cli.main(["-c", str(config_path), "list"]) == 1
    assert "MCP_TIMEOUT" in capsys.readouterr().err


def test_hard_timeout(config_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    async def slow_list(cfg: Any) -> list[ServerTools]:
        await asyncio.sleep(5)
        return []

    monkeypatch.setattr(cli, "list_servers", slow_list)
    monkeypatch.setenv("MCP_TIMEOUT", "0.05")

    assert cli.main(["-c", str(config_path), "list"]) == 3
    assert "timeout" in capsys.readouterr().err


def test_info_list_failure_is_reported_not_raised(
    config_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    network: Any,
    no_backoff: Any,
) -> None:
    network.add_server("fs-server", list_failures=[RuntimeError("Method not found: tools/list")])
    monkeypatch.setattr(
        cli,
        "server_info",
        functools.partial(cli.server_info, policy=no_backoff, transport_factory=network),
    )

    code = cli.main(["-c", str(config_path), "info", "fs"])

    assert code == 2
    err = capsys.readouterr().err
    assert "list_tools_failed" in err
    assert "'fs'" in err
    assert "Method not found" in err


def test_output_flags_before_command(
    config_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    async def fake_list(cfg: Any) -> list[ServerTools]:
        return [ServerTools(name="fs", tools=[ToolInfo(name="read", description="Read\nmore")])]

    monkeypatch.setattr(cli, "list_servers", fake_list)

    assert cli.main(["-c", str(config_path), "--json", "list"]) == 0
    assert json.loads(capsys.readouterr().out)[0]["name"] == "fs"

    assert cli.main(["-c", str(config_path), "-d", "list"]) == 0
    assert capsys.readouterr().out.splitlines() == ["fs", "  read - Read"]

    assert cli.main(["-c", str(config_path), "list"]) == 0
    assert capsys.readouterr().out.splitlines() == ["fs", "  read"]
