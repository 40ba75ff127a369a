#!/usr/bin/env python3
"""
Per-issue / per-PR comment counter.

Keeps .claude/session-counter.json, a flat mapping such as
{"issue-42": 3, "pr-57": 1}, used to number progress comments.
Counts only ever go up.
"""

from pathlib import Path
from typing import Dict, Optional

import devlog_common

COUNTER_FILE_NAME = "session-counter.json"


def debug_log(message: str, level: str = "INFO") -> None:
    devlog_common.write_debug_log("session_counter", message, level)


def get_counter_path() -> Path:
    """Get path to the counter file."""
    return devlog_common.get_claude_dir() / COUNTER_FILE_NAME


def counter_key(kind: str, number: int) -> str:
    """
    Build the counter key for an issue or a pull request

    Args:
        kind: "issue" or "pr"
        number: Issue or PR number

    Returns:
        Key such as "issue-42"
    """
    if kind not in ("issue", "pr"):
        raise ValueError(f"Unknown counter kind: {kind}")
    return f"{kind}-{number}"


def load_counters(path: Optional[Path] = None) -> Dict[str, int]:
    """Load the counter table; missing or corrupt files give an empty table."""
    data = devlog_common.load_json_file(path or get_counter_path(), {})
    return {k: v for k, v in data.items() if isinstance(v, int)}


def next_session_number(key: str, path: Optional[Path] = None) -> int:
    """
    Increment and persist the counter for ``key``

    Args:
        key: Counter key (see counter_key)
        path: Counter file (defaults to .claude/session-counter.json)

    Returns:
        The new count, starting at 1
    """
    path = path or get_counter_path()
    counters = load_counters(path)
    counters[key] = counters.get(key, 0) + 1
    devlog_common.save_json_file(path, counters)
    debug_log(f"Counter {key} -> {counters[key]}")
    return counters[key]


def peek_session_number(key: str, path: Optional[Path] = None) -> int:
    """Number the next call to next_session_number(key) will return."""
    return load_counters(path or get_counter_path()).get(key, 0) + 1
