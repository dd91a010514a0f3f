"""User-visible operations composed from the session manager.

Each operation loads nothing itself: it takes an already parsed
`McpServersConfig`, opens one short-lived session per server it touches and
closes it before returning.
"""

from __future__ import annotations

from .call import call, parse_arguments
from .info import ServerDetails, parse_target, server_info, tool_info
from .listing import list_servers
from .search import glob_to_regex, grep

__all__ = [
    "ServerDetails",
    "call",
    "glob_to_regex",
    "grep",
    "list_servers",
    "parse_arguments",
    "parse_target",
    "server_info",
    "tool_info",
]
