#!/usr/bin/env python3
"""
comment_publisher.py - Post markdown comments to GitHub issues and PRs

Can be used as a library (import publish) or CLI tool.

Usage as library:
    from comment_publisher import publish
    publish("issue", 42, "## Development Session 1 ...")

Usage as CLI:
    python3 comment_publisher.py issue 42 < body.md
    python3 comment_publisher.py pr 57 --body-file body.md
"""

import argparse
import os
import subprocess
import sys
import tempfile
from pathlib import Path

import devlog_common
from devlog_common import devlog_error, devlog_info, devlog_warn, redact_sensitive

KINDS = ("issue", "pr")


def debug_log(message: str, level: str = "INFO") -> None:
    devlog_common.write_debug_log("comment_publisher", message, level)


def publish(kind: str, number: int, body: str) -> bool:
    """
    Post a comment through the gh CLI.

    The body goes through a temp file (--body-file) so that quoting and
    size limits of the command line do not matter. Never raises.

    Args:
        kind: "issue" or "pr"
        number: Issue or PR number
        body: Markdown comment body

    Returns:
        True if gh reported success
    """
    if kind not in KINDS:
        debug_log(f"Refusing to publish to unknown target kind {kind!r}", "ERROR")
        return False

    tmp_path = None
    try:
        fd, tmp_path = tempfile.mkstemp(prefix=f"devlog-{kind}-{number}-", suffix=".md")
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(redact_sensitive(body))

        debug_log(f"Posting comment to {kind} #{number} ({len(body)} chars)")
        result = devlog_common.run_command(
            ["gh", kind, "comment", str(number), "--body-file", tmp_path]
        )
        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            debug_log(f"gh {kind} comment #{number} failed: {stderr}", "ERROR")
            devlog_warn(f"Could not comment on {kind} #{number}: {stderr}")
            return False

        debug_log(f"Successfully posted comment to {kind} #{number}")
        return True
    except subprocess.TimeoutExpired:
        debug_log(f"gh {kind} comment #{number} timed out", "ERROR")
        devlog_warn(f"Timed out commenting on {kind} #{number}")
        return False
    except (subprocess.SubprocessError, OSError) as e:
        debug_log(f"gh {kind} comment #{number} could not run: {e}", "ERROR")
        devlog_warn(f"Could not comment on {kind} #{number}: {e}")
        return False
    finally:
        if tmp_path:
            try:
                Path(tmp_path).unlink(missing_ok=True)
            except OSError as e:
                debug_log(f"Could not remove temp file {tmp_path}: {e}", "WARN")


def main() -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Post a markdown comment to a GitHub issue or pull request",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Body from stdin
  %(prog)s issue 42 < body.md

  # Body from a file
  %(prog)s pr 57 --body-file body.md
        """,
    )
    parser.add_argument("kind", choices=KINDS, help="Target type")
    parser.add_argument("number", type=int, help="Issue or PR number")
    parser.add_argument("--body-file", metavar="PATH", help="Read the body from PATH instead of stdin")

    args = parser.parse_args()

    try:
        if args.body_file:
            body = Path(args.body_file).read_text(encoding="utf-8")
        else:
            body = sys.stdin.read()
    except (IOError, OSError) as e:
        devlog_error(f"Cannot read comment body: {e}")
        return 1

    if not body.strip():
        devlog_error("Comment body is empty")
        return 1

    if publish(args.kind, args.number, body):
        devlog_info(f"Posted comment to {args.kind} #{args.number}")
        return 0
    return 1


if __name__ == "__main__":
    sys.exit(main())
