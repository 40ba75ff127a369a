#!/usr/bin/env python3
"""
Hook: progress comments on GitHub issues and pull requests

Registered for UserPromptSubmit, PostToolUse and Stop.

- UserPromptSubmit starts a new session for the prompt
- PostToolUse records Write/Edit/Bash uses; once enough have piled up
  (comment_threshold, default 2) the session is posted as a comment to
  the issue named by the branch and to the branch's open PR, and the
  session file is removed
- Stop keeps the assistant's last answer in the session file

Always exits 0: a failure here must never block the assistant.
"""

import json
import sys
from pathlib import Path
from typing import Any, Dict, List

# Add scripts directory to path for imports
_script_dir = Path(__file__).parent.resolve()
if str(_script_dir) not in sys.path:
    sys.path.insert(0, str(_script_dir))

import comment_formatter  # noqa: E402
import comment_publisher  # noqa: E402
import devlog_common  # noqa: E402
import git_context  # noqa: E402
import session_counter  # noqa: E402
import session_tracker  # noqa: E402
from devlog_common import HookResult, get_bool_setting, get_int_setting  # noqa: E402


def debug_log(message: str, level: str = "INFO") -> None:
    devlog_common.write_debug_log("progress_comment", message, level)


def handle_prompt(payload: Dict[str, Any]) -> HookResult:
    prompt = payload.get("prompt", "")
    if not isinstance(prompt, str) or not prompt.strip():
        return HookResult(True, "Empty prompt, no session started")

    session_tracker.start_session(prompt)
    branch = git_context.current_branch()
    issue = git_context.issue_number_from_branch(branch)
    return HookResult(True, f"Session started (branch={branch or '-'}, issue={issue})")


def publish_session(state: Dict[str, Any]) -> List[str]:
    """
    Render and post the session to its issue and/or PR

    Args:
        state: Session state

    Returns:
        Targets posted to, e.g. ["issue-42", "pr-57"]
    """
    branch = git_context.current_branch()
    issue = git_context.issue_number_from_branch(branch)
    pr = git_context.current_open_pr(branch) if branch else None

    targets = []
    if issue is not None and get_bool_setting("post_to_issue"):
        targets.append(("issue", issue, comment_formatter.format_issue_comment))
    if pr is not None and get_bool_setting("post_to_pr"):
        targets.append(("pr", pr, comment_formatter.format_pr_comment))

    if not targets:
        debug_log(f"No issue or PR for branch '{branch}', nothing to post")
        return []

    duration = comment_formatter.format_duration(session_tracker.session_duration_ms(state))
    posted = []
    for kind, number, render in targets:
        key = session_counter.counter_key(kind, number)
        ctx = comment_formatter.CommentContext(
            session_number=session_counter.peek_session_number(key),
            user_prompt=state.get("userPrompt", ""),
            tools_used=state.get("toolsUsed", []),
            files_modified=state.get("filesModified", []),
            duration=duration,
        )
        if comment_publisher.publish(kind, number, render(ctx)):
            # Only a posted comment consumes a number
            session_counter.next_session_number(key)
            posted.append(key)
    return posted


def handle_tool_use(payload: Dict[str, Any]) -> HookResult:
    state = session_tracker.load_session()
    if state is None:
        return HookResult(True, "No active session, tool use ignored")

    tools = devlog_common.get_list_setting("significant_tools")
    if not session_tracker.record_tool_use(state, payload, tools):
        return HookResult(True, f"Tool {payload.get('tool_name', '?')} not tracked")
    session_tracker.save_session(state)

    threshold = get_int_setting("comment_threshold")
    count = len(state["toolsUsed"])
    if not session_tracker.threshold_reached(state, threshold):
        return HookResult(True, f"Recorded tool use {count}/{threshold}")

    posted = publish_session(state)
    if not posted:
        return HookResult(False, f"Threshold reached ({count}/{threshold}) but nothing was posted")

    session_tracker.clear_session()
    return HookResult(True, f"Posted progress comment to {', '.join(posted)}")


def handle_stop(payload: Dict[str, Any]) -> HookResult:
    state = session_tracker.load_session()
    if state is None:
        return HookResult(True, "No active session")

    response = devlog_common.read_last_assistant_message(payload.get("transcript_path", ""))
    if not response:
        return HookResult(True, "No assistant response found")

    state["claudeResponse"] = response
    session_tracker.save_session(state)
    return HookResult(True, f"Stored assistant response ({len(response)} chars)")


HANDLERS = {
    "UserPromptSubmit": handle_prompt,
    "PostToolUse": handle_tool_use,
    "Stop": handle_stop,
}


def handle_event(payload: Dict[str, Any]) -> HookResult:
    """
    Dispatch one hook payload

    Args:
        payload: Decoded stdin JSON

    Returns:
        HookResult describing what happened
    """
    if not get_bool_setting("enabled"):
        return HookResult(True, "Disabled in settings")

    event = payload.get("hook_event_name", "")
    handler = HANDLERS.get(event)
    if handler is None:
        return HookResult(True, f"Ignored event {event or '(none)'}")
    return handler(payload)


def main() -> None:
    """Main entry point for the progress comment hook."""
    debug_log("progress_comment started")

    try:
        payload = json.load(sys.stdin)
    except (json.JSONDecodeError, ValueError) as e:
        debug_log(f"JSON decode error: {e}", "ERROR")
        devlog_common.silent_exit("unknown")
        return

    if not isinstance(payload, dict):
        debug_log("Payload is not a JSON object", "ERROR")
        devlog_common.silent_exit("unknown")
        return

    event = payload.get("hook_event_name", "") or "unknown"
    try:
        result = handle_event(payload)
    except Exception as e:
        result = HookResult(False, f"Unhandled {type(e).__name__}: {e}")

    debug_log(f"{event}: {result.message}", "INFO" if result.ok else "WARN")
    devlog_common.silent_exit(event)


if __name__ == "__main__":
    main()
