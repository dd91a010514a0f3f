from __future__ import annotations

import json
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from mcp_cli.mcp_client.types import ServerConfig, parse_server_config
from mcp_cli.observability.logging import get_logger

from .errors import ConfigError, ConfigNotFoundError, ConfigSearchError, ServerNotFoundError

__all__ = [
    "CONFIG_PATH_ENV_VAR",
    "ConfigError",
    "McpServersConfig",
    "default_config_paths",
    "get_server_config",
    "list_server_names",
    "load_config",
    "resolve_config_path",
]

CONFIG_PATH_ENV_VAR = "MCP_CONFIG_PATH"
CONFIG_FILE_NAME = "mcp_servers.json"

_ENV_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")

_log = get_logger("mcp_cli.config")


@dataclass(frozen=True)
class McpServersConfig:
    """Parsed `mcpServers` mapping; iteration order is file order."""

    servers: dict[str, ServerConfig] = field(default_factory=dict)
    source: Path | None = None


def default_config_paths(*, cwd: Path | None = None, home: Path | None = None) -> list[Path]:
    cwd = cwd or Path.cwd()
    home = home or Path.home()
    return [
        cwd / CONFIG_FILE_NAME,
        home / f".{CONFIG_FILE_NAME}",
        home / ".config" / "mcp" / CONFIG_FILE_NAME,
    ]


def _expand_env_in_str(value: str, *, key_path: str, missing: list[str]) -> str:
    def repl(match: re.Match[str]) -> str:
        name = match.group(1)
        env_value = os.environ.get(name)
        if env_value is None:
            missing.append(f"{name} at {key_path or '<root>'}")
            return ""
        return env_value

    return _ENV_PATTERN.sub(repl, value)


def _expand_env(obj: Any, *, key_path: str, missing: list[str]) -> Any:
    if isinstance(obj, str):
        return _expand_env_in_str(obj, key_path=key_path, missing=missing)
    if isinstance(obj, list):
        return [
            _expand_env(v, key_path=f"{key_path}[{i}]", missing=missing) for i, v in enumerate(obj)
        ]
    if isinstance(obj, Mapping):
        return {
            str(k): _expand_env(v, key_path=f"{key_path}.{k}" if key_path else str(k), missing=missing)
            for k, v in obj.items()
        }
    return obj


def _parse_file(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigError(
                f"Invalid JSON: {e}",
                path=str(path),
                error_type="config_invalid",
                suggestion="Check the file with a JSON validator",
            ) from e
    try:
        return yaml.safe_load(text) if text.strip() else {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML: {e}", path=str(path), error_type="config_invalid") from e


def resolve_config_path(explicit: str | Path | None = None) -> Path:
    """Pick the config file: explicit path, then MCP_CONFIG_PATH, then search paths."""

    chosen = explicit if explicit else os.environ.get(CONFIG_PATH_ENV_VAR)
    if chosen:
        path = Path(chosen).expanduser().resolve()
        if not path.is_file():
            raise ConfigNotFoundError(path=str(path))
        return path

    searched = default_config_paths()
    for candidate in searched:
        if candidate.is_file():
            return candidate
    raise ConfigSearchError(searched=[str(p) for p in searched])


def load_config(
    path: str | Path | None = None,
    *,
    load_dotenv_file: bool = True,
) -> McpServersConfig:
    """Load the server config and substitute ${ENV_VAR} placeholders.

    Unset variables are replaced with an empty string. Every server entry is
    parsed into a typed descriptor here, so malformed entries fail at load
    time rather than when a command first touches them.

    Raises:
        ConfigError: If the file is missing, unparseable or malformed.
    """

    if load_dotenv_file:
        # Local dev: allow injecting secrets from .env (do not commit it).
        load_dotenv(Path.cwd() / ".env", override=False)

    config_path = resolve_config_path(path)
    raw = _parse_file(config_path)

    if not isinstance(raw, Mapping):
        raise ConfigError("top level must be a mapping", path=str(config_path))

    servers_raw = raw.get("mcpServers")
    if not isinstance(servers_raw, Mapping):
        raise ConfigError(
            'missing "mcpServers" mapping',
            path=str(config_path),
            error_type="config_missing_field",
            suggestion='Add a top-level "mcpServers" object mapping server names to configs',
        )

    missing: list[str] = []
    expanded = _expand_env(servers_raw, key_path="mcpServers", missing=missing)
    if missing:
        _log.warning("config_env_unset", variables=missing, path=str(config_path))

    servers: dict[str, ServerConfig] = {}
    for name, server_raw in expanded.items():
        if not name:
            raise ConfigError("server name must be a non-empty string", path="mcpServers")
        servers[name] = parse_server_config(name, server_raw)

    return McpServersConfig(servers=servers, source=config_path)


def get_server_config(config: McpServersConfig, name: str) -> ServerConfig:
    server = config.servers.get(name)
    if server is None:
        raise ServerNotFoundError(server=name, available=list_server_names(config))
    return server


def list_server_names(config: McpServersConfig) -> list[str]:
    return list(config.servers)
