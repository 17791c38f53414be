"""Logging setup shared by every module.

Logs go to stderr: stdout carries the MCP stdio transport.
"""

import logging
import os
import sys

LOG_LEVEL_ENV_VAR = "VSCODE_SEARCH_PROVIDER_LOG_LEVEL"


def log_level_from_env(value: str | None) -> int:
    """Numeric level for a level name; unset or unknown names mean INFO."""
    if not value:
        return logging.INFO
    if value.strip().isdigit():
        return int(value)
    level = logging.getLevelName(value.strip().upper())
    if not isinstance(level, int):
        print(f"Unknown log level {value!r} in {LOG_LEVEL_ENV_VAR}, using INFO", file=sys.stderr)
        return logging.INFO
    return level


logging.basicConfig(
    stream=sys.stderr,
    level=log_level_from_env(os.environ.get(LOG_LEVEL_ENV_VAR)),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

__all__ = ["logging", "log_level_from_env"]
