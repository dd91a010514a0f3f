from __future__ import annotations

import argparse
import asyncio
import os
import sys
from typing import Any

from mcp_cli.commands import (
    call,
    grep,
    list_servers,
    parse_arguments,
    parse_target,
    server_info,
    tool_info,
)
from mcp_cli.mcp_client.errors import InvalidToolArgumentsError, McpTimeoutError
from mcp_cli.mcp_client.retry import debug_enabled
from mcp_cli.observability.context import add_error, bind_context
from mcp_cli.observability.ids import new_run_id
from mcp_cli.observability.logging import configure_logging, get_logger

from . import __version__
from .config import McpServersConfig, load_config
from .errors import ConfigError, ErrorCode, McpCliError
from .output import (
    format_cli_error,
    format_json,
    format_search_results,
    format_server_details,
    format_server_list,
    format_tool_result,
    format_tool_schema,
    search_results_json,
    server_list_json,
)

TIMEOUT_ENV_VAR = "MCP_TIMEOUT"
DEFAULT_TIMEOUT_S = 1800.0


def _add_output_flags(
    p: argparse.ArgumentParser, *, descriptions: bool = True, default: Any = argparse.SUPPRESS
) -> None:
    # Subcommands suppress their defaults so flags given before COMMAND survive.
    p.add_argument("-j", "--json", action="store_true", default=default, help="print JSON instead of text")
    if descriptions:
        p.add_argument(
            "-d",
            "--with-descriptions",
            action="store_true",
            default=default,
            help="include tool descriptions",
        )


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="mcp-cli", description="Inspect and call tools on MCP servers")
    p.add_argument("-c", "--config", default=None, help="path to mcp_servers.json (or MCP_CONFIG_PATH)")
    p.add_argument("--log-level", default=None, help="log level (default WARNING, DEBUG with MCP_DEBUG)")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    _add_output_flags(p, default=False)

    sub = p.add_subparsers(dest="command", metavar="COMMAND")

    ls = sub.add_parser("list", help="list all servers and their tools")
    _add_output_flags(ls)

    info = sub.add_parser("info", help="show a server's tools or one tool's schema")
    info.add_argument("target", help="<server> or <server>/<tool>")
    _add_output_flags(info)

    gp = sub.add_parser("grep", help="search tools by glob pattern")
    gp.add_argument("pattern", help="glob matched against tool name, server/tool or description")
    _add_output_flags(gp)

    cl = sub.add_parser("call", help="call a tool")
    cl.add_argument("target", help="<server>/<tool>")
    cl.add_argument("args", nargs="?", default=None, help="JSON object of arguments (or read from stdin)")
    cl.add_argument("-r", "--raw", action="store_true", help="print the raw result payload")
    _add_output_flags(cl, descriptions=False)

    p.set_defaults(command="list")
    return p


def _timeout_from_env() -> float:
    raw = os.environ.get(TIMEOUT_ENV_VAR, "").strip()
    if not raw:
        return DEFAULT_TIMEOUT_S
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigError(f"must be a number of seconds, got {raw!r}", path=TIMEOUT_ENV_VAR) from e
    if value <= 0:
        raise ConfigError("must be > 0", path=TIMEOUT_ENV_VAR)
    return value


def _read_call_arguments(args: argparse.Namespace) -> dict[str, Any]:
    text = args.args
    if text is None and not sys.stdin.isatty():
        text = sys.stdin.read()
    return parse_arguments(text)


async def _dispatch(args: argparse.Namespace, cfg: McpServersConfig) -> int:
    if args.command == "list":
        servers = await list_servers(cfg)
        if args.json:
            print(format_json(server_list_json(servers)))
        else:
            print(format_server_list(servers, with_descriptions=args.with_descriptions))
        return 0

    if args.command == "grep":
        results = await grep(cfg, args.pattern)
        if args.json:
            print(format_json(search_results_json(results)))
        elif not results:
            print(f'No tools found matching "{args.pattern}"')
        else:
            print(format_search_results(results, with_descriptions=args.with_descriptions))
        return 0

    server, tool = parse_target(args.target)

    if args.command == "info":
        if tool is not None:
            found = await tool_info(cfg, server, tool)
            print(format_json(found.to_dict()) if args.json else format_tool_schema(server, found))
            return 0
        details = await server_info(cfg, server)
        if args.json:
            print(
                format_json(
                    {
                        "name": details.name,
                        "config": details.config.to_dict(),
                        "tools": [t.to_dict() for t in details.tools],
                    }
                )
            )
        else:
            print(
                format_server_details(
                    details.name,
                    details.config,
                    details.server_info,
                    details.tools,
                    with_descriptions=args.with_descriptions,
                )
            )
        return 0

    # call
    if tool is None:
        raise InvalidToolArgumentsError(
            f"call needs <server>/<tool>, got {args.target!r}",
        )
    result = await call(cfg, server, tool, _read_call_arguments(args))
    if args.raw or args.json:
        print(format_json(result.raw))
    else:
        print(format_tool_result(result))
    return int(ErrorCode.SERVER_ERROR) if result.is_error else 0


async def _run(args: argparse.Namespace, cfg: McpServersConfig, timeout_s: float) -> int:
    try:
        return await asyncio.wait_for(_dispatch(args, cfg), timeout=timeout_s)
    except asyncio.TimeoutError as e:
        raise McpTimeoutError(timeout_s=timeout_s) from e


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging(level=args.log_level or ("DEBUG" if debug_enabled() else "WARNING"))
    bind_context(run_id=new_run_id(), command=args.command)
    log = get_logger("mcp_cli.cli")

    try:
        timeout_s = _timeout_from_env()
        cfg = load_config(args.config)
        log.debug("config_loaded", source=str(cfg.source), servers=len(cfg.servers))
        return asyncio.run(_run(args, cfg, timeout_s))
    except McpCliError as e:
        add_error(e.error_type)
        log.debug("command_failed", error_type=e.error_type)
        print(format_cli_error(e), file=sys.stderr)
        return int(e.exit_code)
    except KeyboardInterrupt:
        return 130


def run() -> None:
    raise SystemExit(main())
