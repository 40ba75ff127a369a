#!/usr/bin/env python3
"""
Markdown templates for progress comments.

Two renderings of the same session data:
- issue comments summarise what a session achieved ("Development Session N")
- PR comments describe one review iteration ("Iteration N")

Pure string formatting, no I/O.
"""

import re
from typing import Any, Dict, List, NamedTuple

from devlog_common import truncate

PROMPT_LIMIT = 400

# Prompts that ask to correct earlier work
FIX_PATTERN = re.compile(
    r"\b(fix(es|ed|ing)?|bugs?|broken|wrong|incorrect|errors?|fail(s|ed|ing)?|"
    r"review|feedback|address(ed)?|correct(ion)?|revert|regression)\b",
    re.IGNORECASE,
)


class CommentContext(NamedTuple):
    session_number: int
    user_prompt: str
    tools_used: List[Dict[str, Any]]
    files_modified: List[Dict[str, Any]]
    duration: str


def format_duration(ms: int) -> str:
    """Render milliseconds as "45s", "2m 5s" or "1h 3m"."""
    seconds = max(0, int(ms) // 1000)
    if seconds < 60:
        return f"{seconds}s"
    minutes, seconds = divmod(seconds, 60)
    if minutes < 60:
        return f"{minutes}m {seconds}s"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes}m"


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def _files_by_operation(ctx: CommentContext, operation: str) -> List[str]:
    return [f.get("file", "") for f in ctx.files_modified if f.get("operation") == operation]


def _quote(text: str) -> str:
    return "\n".join(f"> {line}" if line else ">" for line in text.splitlines()) or "> (empty prompt)"


def _mentions_tests(tools: List[Dict[str, Any]], only_bash: bool = False) -> bool:
    for tool in tools:
        if only_bash and tool.get("tool") != "Bash":
            continue
        if "test" in str(tool.get("description", "")).lower():
            return True
    return False


def achievement_summary(ctx: CommentContext) -> str:
    """One-paragraph plain language summary of the session."""
    created = len(_files_by_operation(ctx, "created"))
    modified = len(_files_by_operation(ctx, "modified"))

    if created and modified:
        summary = (f"Created {_plural(created, 'new file')} and "
                   f"updated {_plural(modified, 'existing file')}.")
    elif created:
        summary = f"Created {_plural(created, 'new file')}."
    elif modified:
        summary = f"Updated {_plural(modified, 'existing file')}."
    else:
        summary = f"Ran {_plural(len(ctx.tools_used), 'command')} without changing files."

    if _mentions_tests(ctx.tools_used, only_bash=True):
        summary += " Ran tests to verify the changes."
    return summary


def format_issue_comment(ctx: CommentContext) -> str:
    """
    Render the issue progress comment

    Args:
        ctx: Session data

    Returns:
        Markdown comment body
    """
    created = _files_by_operation(ctx, "created")
    modified = _files_by_operation(ctx, "modified")

    lines = [
        f"## Development Session {ctx.session_number}",
        "",
        f"**Duration:** {ctx.duration}",
        "",
        "### Request",
        "",
        _quote(truncate(ctx.user_prompt, PROMPT_LIMIT)),
        "",
        "### What was achieved",
        "",
        achievement_summary(ctx),
        "",
    ]

    if created or modified:
        lines += ["### File changes", ""]
        if created:
            lines.append("**Created:**")
            lines += [f"- `{name}`" for name in created]
            lines.append("")
        if modified:
            lines.append("**Modified:**")
            lines += [f"- `{name}`" for name in modified]
            lines.append("")

    lines += [
        "### Totals",
        "",
        f"- Files created: {len(created)}",
        f"- Files modified: {len(modified)}",
        f"- Tool actions: {len(ctx.tools_used)}",
    ]
    return "\n".join(lines) + "\n"


def format_pr_comment(ctx: CommentContext) -> str:
    """
    Render the pull request iteration comment

    The "What was wrong" block only appears from the second iteration on,
    and only when the prompt asks for a fix or responds to review.

    Args:
        ctx: Session data

    Returns:
        Markdown comment body
    """
    prompt = truncate(ctx.user_prompt, PROMPT_LIMIT)

    lines = [
        f"## Iteration {ctx.session_number}",
        "",
        f"**Duration:** {ctx.duration}",
        "",
        "### Request",
        "",
        _quote(prompt),
        "",
    ]

    if ctx.session_number > 1 and FIX_PATTERN.search(ctx.user_prompt):
        first_line = ctx.user_prompt.strip().splitlines()[0] if ctx.user_prompt.strip() else ""
        lines += [
            "### What was wrong",
            "",
            f"The previous iteration needed changes: {truncate(first_line, 200)}",
            "",
        ]

    lines += ["### What was corrected", ""]
    if ctx.files_modified:
        lines += [f"- `{f.get('file', '')}` ({f.get('operation', 'modified')})"
                  for f in ctx.files_modified]
    else:
        lines.append(f"- No file changes ({_plural(len(ctx.tools_used), 'command')} run)")
    lines.append("")

    if _mentions_tests(ctx.tools_used):
        lines += ["**Verification:** tests were run during this iteration.", ""]

    return "\n".join(lines).rstrip("\n") + "\n"
