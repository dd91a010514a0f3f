"""Project core.

This package hosts the stable, non-protocol building blocks (config, errors,
shared types, output formatting and the CLI entrypoint).
"""

from __future__ import annotations

__all__ = [
    "__version__",
]

__version__ = "0.1.0"
