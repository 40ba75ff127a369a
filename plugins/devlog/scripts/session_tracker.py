#!/usr/bin/env python3
"""
Session tracker for progress comments.

A session is one user prompt plus the significant tool uses that follow
it. State lives in .claude/session-tracking.json:

    {
      "userPrompt": "...",
      "claudeResponse": "...",
      "toolsUsed": [{"tool": "Edit", "description": "...", "command": ""}],
      "filesModified": [{"file": "src/app.py", "operation": "modified"}],
      "startTime": 1760000000000
    }

EMPTY (no file) -> ACCUMULATING (file present) -> EMPTY once a comment
is posted. The file is rewritten in full after every change and nothing
locks it between read and write.
"""

import os
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import devlog_common
import git_context

SESSION_FILE_NAME = "session-tracking.json"

DEFAULT_SIGNIFICANT_TOOLS = ["Write", "Edit", "Bash"]

# Tools that change a file, and the operation recorded for them
FILE_TOOLS = {
    "Write": "created",
    "Edit": "modified",
    "MultiEdit": "modified",
}


def debug_log(message: str, level: str = "INFO") -> None:
    devlog_common.write_debug_log("session_tracker", message, level)


def get_session_path() -> Path:
    """Get path to the session state file."""
    return devlog_common.get_claude_dir() / SESSION_FILE_NAME


def now_ms() -> int:
    return int(time.time() * 1000)


def new_session(prompt: str) -> Dict[str, Any]:
    return {
        "userPrompt": prompt,
        "claudeResponse": "",
        "toolsUsed": [],
        "filesModified": [],
        "startTime": now_ms(),
    }


def load_session() -> Optional[Dict[str, Any]]:
    """
    Load the in-flight session

    Returns:
        Session dict, or None when no session is being tracked
    """
    path = get_session_path()
    if not path.exists():
        return None
    data = devlog_common.load_json_file(path, {})
    if not data:
        return None
    # Corrupt or partial files are normalised rather than rejected
    data.setdefault("userPrompt", "")
    data.setdefault("claudeResponse", "")
    data.setdefault("startTime", now_ms())
    for key in ("toolsUsed", "filesModified"):
        if not isinstance(data.get(key), list):
            data[key] = []
    return data


def save_session(state: Dict[str, Any]) -> None:
    devlog_common.save_json_file(get_session_path(), state)


def clear_session() -> None:
    """Delete the session file (back to EMPTY)."""
    get_session_path().unlink(missing_ok=True)
    debug_log("Session cleared")


def start_session(prompt: str) -> Dict[str, Any]:
    """
    Start (or restart) a session for a newly submitted prompt

    Args:
        prompt: The user's prompt

    Returns:
        The new session state
    """
    state = new_session(prompt)
    save_session(state)
    debug_log(f"Session started, prompt length={len(prompt)}")
    return state


def tool_parameters(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Collect tool parameters from a PostToolUse payload.

    Claude Code nests them under tool_input; older payloads used
    parameters or put them on the top level.
    """
    params: Dict[str, Any] = {}
    for nested in ("parameters", "tool_input"):
        value = event.get(nested)
        if isinstance(value, dict):
            params.update(value)
    for key in ("file_path", "description", "command"):
        if event.get(key):
            params[key] = event[key]
    return params


def normalize_file_path(file_path: str, project_dir: Optional[Path] = None) -> str:
    """
    Turn a tool's file path into a project relative POSIX path

    Paths outside the project are kept as given.
    """
    if not file_path:
        return ""
    project_dir = project_dir or devlog_common.get_project_dir()
    path = Path(file_path)
    if path.is_absolute():
        try:
            path = Path(os.path.realpath(path)).relative_to(os.path.realpath(project_dir))
        except ValueError:
            return path.as_posix()
    return Path(os.path.normpath(path)).as_posix()


def file_operation(tool: str, rel_path: str) -> str:
    """Classify a file change; a Write over a file present at HEAD is a modification."""
    operation = FILE_TOOLS[tool]
    if operation == "created" and git_context.existed_at_head(rel_path):
        return "modified"
    return operation


def record_tool_use(state: Dict[str, Any], event: Dict[str, Any],
                    significant_tools: Optional[List[str]] = None) -> bool:
    """
    Add a PostToolUse event to the session

    Args:
        state: Session state (mutated in place)
        event: PostToolUse payload
        significant_tools: Tool names that count toward the threshold

    Returns:
        True if the event was recorded
    """
    tools = significant_tools or DEFAULT_SIGNIFICANT_TOOLS
    tool = event.get("tool_name", "")
    if tool not in tools:
        return False

    params = tool_parameters(event)
    state["toolsUsed"].append({
        "tool": tool,
        "description": str(params.get("description", "") or ""),
        "command": str(params.get("command", "") or ""),
    })

    if tool in FILE_TOOLS:
        rel_path = normalize_file_path(str(params.get("file_path", "") or ""))
        if rel_path:
            record = {"file": rel_path, "operation": file_operation(tool, rel_path)}
            # A file created then edited is listed under both operations
            if record not in state["filesModified"]:
                state["filesModified"].append(record)

    debug_log(f"Recorded {tool}, tools used={len(state['toolsUsed'])}")
    return True


def threshold_reached(state: Dict[str, Any], threshold: int) -> bool:
    return len(state.get("toolsUsed", [])) >= threshold


def session_duration_ms(state: Dict[str, Any]) -> int:
    start = state.get("startTime")
    if not isinstance(start, (int, float)):
        return 0
    return max(0, now_ms() - int(start))
