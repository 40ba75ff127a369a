#!/usr/bin/env python3
"""
Development log files, their index, and the prompt history.

Layout (relative to the project directory):
    docs/dev-logs/issue-<n>.md          one log per issue
    docs/dev-logs/session-<date>.md     one log per day when no issue is known
    docs/dev-logs/README.md             index of log files
    .claude/prompt-history.json         last 50 logged prompts
"""

from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import devlog_common
from devlog_common import truncate

INDEX_FILE_NAME = "README.md"
HISTORY_FILE_NAME = "prompt-history.json"
DEFAULT_HISTORY_LIMIT = 50
ENTRY_PROMPT_LIMIT = 2000
RESPONSE_LIMIT = 1500
ENTRY_SEPARATOR = "---\n\n"

INDEX_PREAMBLE = """# Development Logs

Index of development session logs, maintained by the devlog hooks.
Each file collects the prompts for one issue, or for one day when the
branch names no issue.

"""


def debug_log(message: str, level: str = "INFO") -> None:
    devlog_common.write_debug_log("dev_log_writer", message, level)


def get_history_path() -> Path:
    return devlog_common.get_claude_dir() / HISTORY_FILE_NAME


def log_file_name(issue_number: Optional[int], today: Optional[date] = None) -> str:
    """
    Name of the log file for an issue, or for the day when there is none

    Args:
        issue_number: Issue number or None
        today: Date to use for per-day logs (defaults to today)

    Returns:
        File name such as "issue-42.md" or "session-2025-01-31.md"
    """
    if issue_number is not None:
        return f"issue-{issue_number}.md"
    today = today or date.today()
    return f"session-{today.isoformat()}.md"


def _log_header(issue_number: Optional[int], branch: str, now: datetime) -> str:
    if issue_number is not None:
        title = f"# Development Log: Issue #{issue_number}"
    else:
        title = f"# Development Log: {now.date().isoformat()}"
    lines = [title, "", f"**Started:** {now.strftime('%Y-%m-%d %H:%M')}"]
    if branch:
        lines.append(f"**Branch:** `{branch}`")
    lines += ["", "---", ""]
    return "\n".join(lines) + "\n"


def format_entry(prompt: str, branch: str = "", now: Optional[datetime] = None,
                 response: str = "") -> str:
    """
    Render one log entry for a prompt

    Args:
        prompt: The user's prompt (already redacted)
        branch: Current branch name
        now: Entry timestamp
        response: Assistant answer, when already known

    Returns:
        Markdown block; it only ends with a separator when the response
        is included, otherwise the entry stays open for it
    """
    now = now or datetime.now()
    quoted = "\n".join(f"> {line}" if line else ">"
                       for line in truncate(prompt, ENTRY_PROMPT_LIMIT).splitlines())
    lines = [f"## {now.strftime('%Y-%m-%d %H:%M:%S')}", ""]
    if branch:
        lines += [f"**Branch:** `{branch}`", ""]
    lines += ["### Prompt", "", quoted, ""]
    entry = "\n".join(lines) + "\n"
    if response:
        entry += format_response(response)
    return entry


def format_response(response: str) -> str:
    """Render the assistant response block added under the newest entry."""
    return "\n".join([
        "### Response",
        "",
        truncate(response, RESPONSE_LIMIT),
        "",
        "---",
        "",
    ]) + "\n"


def append_entry(log_dir: Path, issue_number: Optional[int], entry_markdown: str,
                 branch: str = "", now: Optional[datetime] = None) -> Path:
    """
    Append an entry to the issue (or daily) log, creating it with a header

    An entry left open by the previous prompt is closed with a separator
    first.

    Args:
        log_dir: Directory holding the logs
        issue_number: Issue number, or None for the daily log
        entry_markdown: Rendered entry
        branch: Branch name for the header of a new file
        now: Timestamp used for new headers and the daily file name

    Returns:
        Path of the log file written

    Raises:
        OSError: If the directory or file cannot be written
    """
    now = now or datetime.now()
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    log_path = log_dir / log_file_name(issue_number, now.date())
    if not log_path.exists():
        log_path.write_text(_log_header(issue_number, branch, now), encoding="utf-8")
        debug_log(f"Created log file {log_path}")

    content = log_path.read_text(encoding="utf-8")
    with open(log_path, "a", encoding="utf-8") as f:
        if not content.endswith(ENTRY_SEPARATOR):
            f.write(("" if content.endswith("\n") else "\n") + ENTRY_SEPARATOR)
        f.write(entry_markdown)
    return log_path


def append_to_latest_entry(log_path: Path, block: str) -> None:
    """
    Append a block to the newest entry of a log

    The newest entry is the end of the file and is still open (no
    separator yet), so this is a plain append.
    """
    if not log_path.exists():
        raise FileNotFoundError(log_path)
    with open(log_path, "a", encoding="utf-8") as f:
        f.write(block)


def update_index(index_path: Path, file_name: str, branch: str = "",
                 now: Optional[datetime] = None) -> bool:
    """
    Reference a log file from the index, once

    The check is a substring test on the whole index, so a file name that
    already appears anywhere is not added again.

    Args:
        index_path: Path of README.md
        file_name: Log file name to reference
        branch: Branch the log was started on
        now: Timestamp for the new line

    Returns:
        True if a line was added
    """
    now = now or datetime.now()
    index_path = Path(index_path)
    index_path.parent.mkdir(parents=True, exist_ok=True)

    if index_path.exists():
        content = index_path.read_text(encoding="utf-8")
    else:
        content = INDEX_PREAMBLE
        index_path.write_text(content, encoding="utf-8")

    if file_name in content:
        return False

    line = f"- [{file_name}]({file_name}) - {now.strftime('%Y-%m-%d %H:%M')}"
    if branch:
        line += f" (branch: `{branch}`)"

    with open(index_path, "a", encoding="utf-8") as f:
        if content and not content.endswith("\n"):
            f.write("\n")
        f.write(line + "\n")
    debug_log(f"Indexed {file_name}")
    return True


def load_history(history_path: Optional[Path] = None) -> List[Dict[str, Any]]:
    data = devlog_common.load_json_file(history_path or get_history_path(), [])
    return [item for item in data if isinstance(item, dict)]


def append_history(history_path: Optional[Path], prompt: str,
                   issue_number: Optional[int], branch: str,
                   limit: int = DEFAULT_HISTORY_LIMIT,
                   now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """
    Add a prompt to the rolling history, dropping the oldest past ``limit``

    Args:
        history_path: History file (defaults to .claude/prompt-history.json)
        prompt: The logged prompt
        issue_number: Issue the prompt was logged under
        branch: Current branch
        limit: Maximum entries kept

    Returns:
        The saved history
    """
    history_path = history_path or get_history_path()
    history = load_history(history_path)
    history.append({
        "prompt": prompt,
        "timestamp": (now or datetime.now()).isoformat(),
        "issueNumber": issue_number,
        "branch": branch,
    })
    if limit > 0 and len(history) > limit:
        history = history[-limit:]
    devlog_common.save_json_file(history_path, history)
    return history


def mark_response_handled(history_path: Optional[Path] = None) -> None:
    """
    Flag the newest history entry as answered

    Set whether or not the answer was logged, so a later Stop never puts
    another turn's answer under this prompt.
    """
    history_path = history_path or get_history_path()
    history = load_history(history_path)
    if not history:
        return
    history[-1]["responseHandled"] = True
    devlog_common.save_json_file(history_path, history)
