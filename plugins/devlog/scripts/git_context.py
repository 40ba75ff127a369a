#!/usr/bin/env python3
"""
Git/GitHub context resolver for the devlog hooks.

Every function here tolerates a missing or failing git/gh binary and
returns an empty value instead of raising: the hooks must never get in
the way of the assistant.
"""

import json
import re
import subprocess
from typing import Optional

import devlog_common


def debug_log(message: str, level: str = "INFO") -> None:
    devlog_common.write_debug_log("git_context", message, level)


# Branch name patterns carrying an issue number, tried in order
BRANCH_ISSUE_PATTERNS = [
    re.compile(r"^[\w.-]+/(\d+)(?:[-_].*)?$"),  # feature/123-login, fix/123
    re.compile(r"^(\d+)[-_]"),                   # 123-login
    re.compile(r"^issue[-_]?(\d+)(?:[-_].*)?$", re.IGNORECASE),  # issue-123
]


def _run(cmd: list) -> Optional[subprocess.CompletedProcess]:
    """Run a git/gh command, returning None when it could not run."""
    try:
        return devlog_common.run_command(cmd)
    except subprocess.TimeoutExpired:
        debug_log(f"Command timed out: {' '.join(cmd)}", "WARN")
    except (subprocess.SubprocessError, OSError) as e:
        debug_log(f"Command failed to start: {' '.join(cmd)} ({e})", "WARN")
    return None


def current_branch() -> str:
    """
    Get the current git branch name

    Returns:
        Branch name, or empty string when detached or not a repo
    """
    result = _run(["git", "branch", "--show-current"])
    if result is None or result.returncode != 0:
        return ""
    return result.stdout.strip()


def issue_number_from_branch(branch: str) -> Optional[int]:
    """
    Parse an issue number out of a branch name

    Recognised forms:
      - feature/123-add-login, fix/123, bugfix/123_typo
      - 123-add-login
      - issue-123, issue123

    Args:
        branch: Branch name

    Returns:
        Issue number, or None if the branch does not name one
    """
    if not branch:
        return None
    for pattern in BRANCH_ISSUE_PATTERNS:
        match = pattern.search(branch)
        if match:
            return int(match.group(1))
    return None


def current_open_pr(branch: Optional[str] = None) -> Optional[int]:
    """
    Find the open pull request whose head is the given branch

    Args:
        branch: Head branch (defaults to the current branch)

    Returns:
        PR number, or None if there is none or gh is unavailable
    """
    if branch is None:
        branch = current_branch()
    if not branch:
        return None

    result = _run([
        "gh", "pr", "list",
        "--head", branch,
        "--state", "open",
        "--json", "number",
        "--limit", "1",
    ])
    if result is None or result.returncode != 0:
        return None

    try:
        prs = json.loads(result.stdout or "[]")
    except json.JSONDecodeError:
        debug_log(f"Unparseable gh pr list output: {result.stdout[:200]!r}", "WARN")
        return None

    if isinstance(prs, list) and prs and isinstance(prs[0], dict):
        number = prs[0].get("number")
        if isinstance(number, int):
            return number
    return None


def existed_at_head(path: str) -> bool:
    """
    Check whether a file existed in the HEAD commit

    Args:
        path: Path relative to the project directory, which may be
            a subdirectory of the repository

    Returns:
        True if HEAD contains the file
    """
    if not path or path.startswith("/"):
        return False
    # "HEAD:./<path>" resolves against the cwd, "HEAD:<path>" against the repo root
    result = _run(["git", "cat-file", "-e", f"HEAD:./{path}"])
    return result is not None and result.returncode == 0


__all__ = [
    'current_branch', 'issue_number_from_branch',
    'current_open_pr', 'existed_at_head',
]
