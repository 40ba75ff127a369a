#!/usr/bin/env python3
"""
Devlog Common Library
Shared functions for the devlog hook scripts: project paths, settings,
debug logging, subprocess helpers and JSON state files.
"""

import json
import os
import re
import subprocess
import sys
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional

# Colors for terminal output (ANSI escape codes)
DEVLOG_RED = '\033[0;31m'
DEVLOG_GREEN = '\033[0;32m'
DEVLOG_YELLOW = '\033[1;33m'
DEVLOG_NC = '\033[0m'  # No Color

SETTINGS_FILE_NAME = "devlog.local.md"
DEBUG_LOG_NAME = "hook_debug.log"


class HookResult(NamedTuple):
    """Outcome of one hook invocation, logged by the entry point."""
    ok: bool
    message: str


# Default values for all settings
DEFAULTS: Dict[str, str] = {
    "enabled": "true",
    "comment_threshold": "2",
    "significant_tools": "Write,Edit,Bash",
    "min_prompt_length": "50",
    "history_limit": "50",
    "log_dir": "docs/dev-logs",
    "command_timeout": "30",
    "post_to_issue": "true",
    "post_to_pr": "true",
}


def get_project_dir() -> Path:
    """
    Get the project directory all state and log paths are relative to.

    Claude Code exports CLAUDE_PROJECT_DIR to hooks; outside of a hook
    the current working directory is used.

    Returns:
        Project directory path
    """
    env_dir = os.environ.get("CLAUDE_PROJECT_DIR")
    if env_dir and Path(env_dir).is_dir():
        return Path(env_dir)
    return Path.cwd()


def get_claude_dir() -> Path:
    """Get the .claude directory of the project (not created here)."""
    return get_project_dir() / ".claude"


def write_debug_log(source: str, message: str, level: str = "INFO") -> None:
    """
    Append debug message to .claude/hook_debug.log in standard log format.

    Format: YYYY-MM-DD HH:MM:SS,mmm LEVEL [source] - message
    Compatible with: lnav, glogg, Splunk, ELK, Log4j viewers
    """
    try:
        log_file = get_claude_dir() / DEBUG_LOG_NAME
        log_file.parent.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S,%f")[:-3]
        with open(log_file, "a", encoding="utf-8") as f:
            f.write(f"{timestamp} {level:<5} [{source}] - {message}\n")
    except Exception:
        pass  # Never fail on logging


def debug_log(message: str, level: str = "INFO") -> None:
    write_debug_log("devlog_common", message, level)


def devlog_info(*args: Any) -> None:
    """Print info message with green [devlog] prefix"""
    message = ' '.join(str(arg) for arg in args)
    print(f"{DEVLOG_GREEN}[devlog]{DEVLOG_NC} {message}")


def devlog_warn(*args: Any) -> None:
    """Print warning message with yellow [devlog] prefix to stderr"""
    message = ' '.join(str(arg) for arg in args)
    print(f"{DEVLOG_YELLOW}[devlog]{DEVLOG_NC} {message}", file=sys.stderr)


def devlog_error(*args: Any) -> None:
    """Print error message with red [devlog] prefix to stderr"""
    message = ' '.join(str(arg) for arg in args)
    print(f"{DEVLOG_RED}[devlog]{DEVLOG_NC} {message}", file=sys.stderr)


# =============================================================================
# SETTINGS
# =============================================================================


def find_settings_file() -> Optional[Path]:
    """
    Find the settings file (.claude/devlog.local.md)

    Returns:
        Path to settings file if found, None otherwise
    """
    config_path = get_claude_dir() / SETTINGS_FILE_NAME
    if config_path.is_file():
        return config_path
    return None


def extract_frontmatter(content: str) -> str:
    """
    Extract YAML frontmatter from content (everything between --- markers)

    Args:
        content: File content

    Returns:
        Frontmatter content without delimiters
    """
    lines = content.split("\n")
    in_frontmatter = False
    frontmatter_lines = []

    for line in lines:
        if line.strip() == "---":
            if in_frontmatter:
                break
            in_frontmatter = True
            continue
        if in_frontmatter:
            frontmatter_lines.append(line)

    return "\n".join(frontmatter_lines)


def extract_field_value(frontmatter: str, field: str) -> str:
    """
    Extract a field value from frontmatter, stripping surrounding quotes

    Args:
        frontmatter: YAML frontmatter content
        field: Field name to extract

    Returns:
        Field value or empty string if not found
    """
    pattern = rf"^{re.escape(field)}:\s*(.*)$"
    match = re.search(pattern, frontmatter, re.MULTILINE)
    if not match:
        return ""

    value = match.group(1).strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
        value = value[1:-1]
    if value == "null":
        return ""
    return value


def get_setting(key: str, default: Optional[str] = None) -> str:
    """
    Read a setting: DEVLOG_<KEY> environment variable first, then the
    settings file frontmatter, then DEFAULTS.

    Args:
        key: The setting key to read
        default: Fallback used instead of DEFAULTS when given

    Returns:
        The setting value
    """
    fallback = DEFAULTS.get(key, "") if default is None else default

    env_value = os.environ.get(f"DEVLOG_{key.upper()}")
    if env_value:
        return env_value

    config_file = find_settings_file()
    if config_file:
        try:
            content = config_file.read_text(encoding="utf-8")
            value = extract_field_value(extract_frontmatter(content), key)
            if value:
                return value
        except (IOError, OSError) as e:
            debug_log(f"Error reading settings file {config_file}: {e}", "WARN")

    return fallback


def get_int_setting(key: str) -> int:
    """Read an integer setting, falling back to DEFAULTS on a bad value."""
    value = get_setting(key)
    try:
        return int(value)
    except ValueError:
        debug_log(f"Setting '{key}' is not an integer: {value!r}", "WARN")
        return int(DEFAULTS[key])


def get_bool_setting(key: str) -> bool:
    """Read a true/false setting."""
    return get_setting(key).strip().lower() in ("true", "yes", "1", "on")


def get_list_setting(key: str) -> List[str]:
    """Read a comma separated setting."""
    return [item.strip() for item in get_setting(key).split(",") if item.strip()]


# =============================================================================
# COMMANDS
# =============================================================================


def run_command(cmd: List[str], cwd: Optional[str] = None,
                capture: bool = True, check: bool = False,
                timeout: Optional[float] = None) -> subprocess.CompletedProcess:
    """
    Run a command and return the result

    Args:
        cmd: Command and arguments as list
        cwd: Working directory (defaults to the project directory)
        capture: Capture stdout/stderr
        check: Raise exception on non-zero exit
        timeout: Seconds before the command is killed
            (defaults to the command_timeout setting)

    Returns:
        CompletedProcess instance

    Raises:
        subprocess.TimeoutExpired: If the command runs past the timeout
        OSError: If the executable cannot be started
    """
    if timeout is None:
        timeout = get_int_setting("command_timeout")
    return subprocess.run(
        cmd,
        cwd=cwd or str(get_project_dir()),
        capture_output=capture,
        text=True,
        check=check,
        timeout=timeout,
    )


# =============================================================================
# FILES
# =============================================================================


def load_json_file(path: Path, default: Any) -> Any:
    """
    Load a JSON state file.

    A missing, unreadable or corrupt file yields ``default``, so the
    next save simply overwrites it.
    """
    try:
        if path.exists():
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            if isinstance(data, type(default)):
                return data
            debug_log(f"Unexpected JSON shape in {path}, starting fresh", "WARN")
    except (json.JSONDecodeError, IOError, OSError) as e:
        debug_log(f"Could not read {path}: {e}", "WARN")
    return default


def save_json_file(path: Path, data: Any) -> None:
    """
    Write a JSON state file through a temp file and os.replace.

    Readers never see a half-written file. There is no lock: two
    overlapping invocations still race and the last writer wins.

    Raises:
        OSError: If the file cannot be written
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
            f.write("\n")
        os.replace(temp_name, path)
    except BaseException:
        Path(temp_name).unlink(missing_ok=True)
        raise


# =============================================================================
# TEXT
# =============================================================================


def redact_sensitive(text: str) -> str:
    """
    Redact sensitive data before it leaves the machine

    Args:
        text: Text to redact

    Returns:
        Redacted text
    """
    # API keys and tokens
    text = re.sub(r"sk-ant-[a-zA-Z0-9_-]+", "[REDACTED_API_KEY]", text)
    text = re.sub(r"sk-[a-zA-Z0-9]{20,}", "[REDACTED_KEY]", text)
    text = re.sub(r"gh[pousr]_[a-zA-Z0-9]{36}", "[REDACTED_GH_TOKEN]", text)
    text = re.sub(r"AKIA[0-9A-Z]{16}", "[REDACTED_AWS_KEY]", text)

    # Passwords in common patterns
    text = re.sub(
        r"(password|passwd|pwd|secret|token|api_key)([\"']?\s*[:=]\s*[\"']?)[^\"'\s]+",
        r"\1\2[REDACTED]",
        text,
        flags=re.IGNORECASE,
    )

    # User home paths (keep structure visible)
    text = re.sub(r"/Users/[^/\s]+/", "/Users/[USER]/", text)
    text = re.sub(r"/home/[^/\s]+/", "/home/[USER]/", text)

    # Email addresses (except GitHub noreply)
    text = re.sub(
        r"[a-zA-Z0-9._%+-]+@(?!users\.noreply\.github\.com)[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}",
        "[REDACTED_EMAIL]",
        text,
    )

    return text


def truncate(text: str, limit: int) -> str:
    """Cut text to ``limit`` characters, adding an ellipsis when cut."""
    text = text.strip()
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + "..."


def read_last_assistant_message(transcript_path: str) -> str:
    """
    Get the text of the last assistant message in a Claude transcript.

    Args:
        transcript_path: Path to the JSONL transcript (tilde allowed)

    Returns:
        Message text, or empty string if none is found
    """
    if not transcript_path:
        return ""

    expanded_path = Path(os.path.expanduser(transcript_path))
    if not expanded_path.is_file():
        debug_log(f"Transcript not found: {expanded_path}", "WARN")
        return ""

    last_text = ""
    try:
        with open(expanded_path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    entry = json.loads(line)
                except json.JSONDecodeError:
                    continue

                message = entry.get("message", {})
                if not isinstance(message, dict) or message.get("role") != "assistant":
                    continue

                content = message.get("content", "")
                if isinstance(content, list):
                    parts = []
                    for block in content:
                        if isinstance(block, dict) and block.get("type") == "text":
                            parts.append(block.get("text", ""))
                        elif isinstance(block, str):
                            parts.append(block)
                    content = "\n".join(parts)

                if isinstance(content, str) and content.strip():
                    last_text = content.strip()
    except (IOError, OSError) as e:
        debug_log(f"Error reading transcript: {e}", "ERROR")
        return ""

    return last_text


def silent_exit(event: str) -> None:
    """Exit 0 with the JSON acknowledgement Claude Code expects."""
    print(json.dumps({"event": event, "suppressOutput": True}), flush=True)
    sys.stdout.flush()
    sys.exit(0)


# Export all public symbols
__all__ = [
    # Constants
    'HookResult',
    'DEVLOG_RED', 'DEVLOG_GREEN', 'DEVLOG_YELLOW', 'DEVLOG_NC', 'DEFAULTS',
    # Paths
    'get_project_dir', 'get_claude_dir',
    # Logging
    'write_debug_log', 'devlog_info', 'devlog_warn', 'devlog_error',
    # Settings
    'find_settings_file', 'extract_frontmatter', 'extract_field_value',
    'get_setting', 'get_int_setting', 'get_bool_setting', 'get_list_setting',
    # Commands and files
    'run_command', 'load_json_file', 'save_json_file',
    # Text
    'redact_sensitive', 'truncate', 'read_last_assistant_message', 'silent_exit',
]
