"""Command-line client for Model Context Protocol (MCP) servers.

Subpackages:
- core: config loading, errors, shared types, output and CLI entrypoint
- mcp_client: transports, retry policy and the session manager
- commands: list / info / grep / call operations built on the session manager
- observability: structured logging
"""
