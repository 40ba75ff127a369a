#!/usr/bin/env python3
"""
Hook: development log of technically relevant prompts

Registered for UserPromptSubmit and Stop.

- UserPromptSubmit: if the prompt passes the relevance filter it is
  appended to docs/dev-logs/issue-<n>.md (or session-<date>.md when the
  branch names no issue), the log is listed in docs/dev-logs/README.md and
  the prompt joins .claude/prompt-history.json (last 50 kept)
- Stop: the assistant's answer to the newest logged prompt is appended
  under it, when prompt and answer together still pass the filter

Always exits 0: a failure here must never block the assistant.
"""

import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

# Add scripts directory to path for imports
_script_dir = Path(__file__).parent.resolve()
if str(_script_dir) not in sys.path:
    sys.path.insert(0, str(_script_dir))

import dev_log_writer  # noqa: E402
import devlog_common  # noqa: E402
import git_context  # noqa: E402
import relevance_filter  # noqa: E402
from devlog_common import HookResult, get_int_setting, redact_sensitive  # noqa: E402

# Prompts produced by hooks rather than typed by the user
HOOK_FEEDBACK_MARKERS = [
    "Stop hook feedback:",
    "PreToolUse hook feedback:",
    "PostToolUse hook feedback:",
    "SessionStart hook feedback:",
    "UserPromptSubmit hook feedback:",
    "[devlog]",
]


def debug_log(message: str, level: str = "INFO") -> None:
    devlog_common.write_debug_log("log_prompt", message, level)


def is_hook_feedback(prompt: str) -> bool:
    """Check if this prompt is hook feedback (should be skipped)."""
    return any(marker in prompt for marker in HOOK_FEEDBACK_MARKERS)


def get_log_dir() -> Path:
    return devlog_common.get_project_dir() / devlog_common.get_setting("log_dir")


def handle_prompt(payload: Dict[str, Any]) -> HookResult:
    prompt = payload.get("prompt", "")
    if not isinstance(prompt, str) or not prompt.strip():
        return HookResult(True, "Empty prompt")
    if is_hook_feedback(prompt):
        return HookResult(True, "Hook feedback, not logged")

    min_length = get_int_setting("min_prompt_length")
    if not relevance_filter.is_relevant(prompt, "", min_length):
        rule = relevance_filter.explain(prompt, "", min_length)
        return HookResult(True, f"Prompt not logged (rule: {rule})")

    branch = git_context.current_branch()
    issue = git_context.issue_number_from_branch(branch)
    safe_prompt = redact_sensitive(prompt)
    now = datetime.now()

    log_dir = get_log_dir()
    entry = dev_log_writer.format_entry(safe_prompt, branch, now)
    log_path = dev_log_writer.append_entry(log_dir, issue, entry, branch, now)
    dev_log_writer.update_index(log_dir / dev_log_writer.INDEX_FILE_NAME, log_path.name, branch, now)
    dev_log_writer.append_history(None, safe_prompt, issue, branch,
                                  get_int_setting("history_limit"), now)

    return HookResult(True, f"Logged prompt to {log_path.name}")


def handle_stop(payload: Dict[str, Any]) -> HookResult:
    history = dev_log_writer.load_history()
    if not history:
        return HookResult(True, "No logged prompt to answer")

    latest = history[-1]
    if latest.get("responseHandled"):
        return HookResult(True, "Newest logged prompt already answered")

    # The first Stop after a logged prompt answers it, logged or not
    dev_log_writer.mark_response_handled()

    response = devlog_common.read_last_assistant_message(payload.get("transcript_path", ""))
    if not response:
        return HookResult(True, "No assistant response found")

    prompt = latest.get("prompt", "")
    min_length = get_int_setting("min_prompt_length")
    if not relevance_filter.is_relevant(prompt, response, min_length):
        rule = relevance_filter.explain(prompt, response, min_length)
        return HookResult(True, f"Response not logged (rule: {rule})")

    try:
        logged_at = datetime.fromisoformat(latest.get("timestamp", ""))
    except (TypeError, ValueError):
        logged_at = datetime.now()

    log_path = get_log_dir() / dev_log_writer.log_file_name(latest.get("issueNumber"), logged_at.date())
    dev_log_writer.append_to_latest_entry(log_path, dev_log_writer.format_response(redact_sensitive(response)))
    return HookResult(True, f"Logged response to {log_path.name}")


HANDLERS = {
    "UserPromptSubmit": handle_prompt,
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
    if not devlog_common.get_bool_setting("enabled"):
        return HookResult(True, "Disabled in settings")

    event = payload.get("hook_event_name", "")
    handler = HANDLERS.get(event)
    if handler is None:
        return HookResult(True, f"Ignored event {event or '(none)'}")
    return handler(payload)


def main() -> None:
    """Main entry point for the dev-log hook."""
    debug_log("log_prompt started")

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
