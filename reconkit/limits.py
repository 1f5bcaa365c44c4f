"""Raising and reporting the open file descriptor limit."""

from __future__ import annotations

import sys

DEFAULT_LIMIT = 50000
WINDOWS_LIMIT = 10000


def get_file_limit() -> int:
    """Raise the open file soft limit to the hard limit and return the resulting limit."""
    if sys.platform == "win32":
        return WINDOWS_LIMIT

    import resource

    limit = DEFAULT_LIMIT
    try:
        _, hard = resource.getrlimit(resource.RLIMIT_NOFILE)
    except (OSError, ValueError):
        hard = None

    if hard is not None:
        if hard != resource.RLIM_INFINITY:
            limit = hard
        try:
            resource.setrlimit(resource.RLIMIT_NOFILE, (hard, hard))
        except (OSError, ValueError):
            return limit

    try:
        soft, _ = resource.getrlimit(resource.RLIMIT_NOFILE)
    except (OSError, ValueError):
        return limit
    if soft != resource.RLIM_INFINITY and soft < limit:
        limit = soft
    return limit