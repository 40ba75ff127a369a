"""End-to-end tests for the progress comment hook."""

import io
import json

import pytest

import progress_comment
import session_tracker


@pytest.fixture
def github(on_branch):
    """fix/42-login branch, no open PR, comments succeed."""
    runner = on_branch("fix/42-login")
    runner.respond(["gh", "pr", "list"], stdout="[]")
    runner.respond(["gh", "issue", "comment"])
    runner.respond(["gh", "pr", "comment"])
    return runner


def prompt_event(prompt="Fix the login bug in auth.js"):
    return {"hook_event_name": "UserPromptSubmit", "prompt": prompt}


def write_event(project, name="src/auth.js"):
    return {"hook_event_name": "PostToolUse", "tool_name": "Write",
            "file_path": str(project / name), "description": "Create auth helper"}


def edit_event(project, name="src/login.js"):
    return {"hook_event_name": "PostToolUse", "tool_name": "Edit",
            "tool_input": {"file_path": str(project / name)}}


def session_file(project):
    return project / ".claude" / "session-tracking.json"


def test_prompt_starts_session_without_posting(github, project):
    result = progress_comment.handle_event(prompt_event())

    assert result.ok
    assert "issue=42" in result.message
    assert session_tracker.load_session()["userPrompt"] == "Fix the login bug in auth.js"
    assert github.commands("gh", "issue", "comment") == []


def test_threshold_posts_issue_comment_and_clears_session(github, project):
    progress_comment.handle_event(prompt_event())

    first = progress_comment.handle_event(write_event(project))
    assert first.message == "Recorded tool use 1/2"
    assert github.commands("gh", "issue", "comment") == []

    second = progress_comment.handle_event(edit_event(project))
    assert second.ok
    assert "issue-42" in second.message

    assert len(github.bodies) == 1
    body = github.bodies[0]
    assert body.startswith("## Development Session 1")
    assert "**Created:**\n- `src/auth.js`" in body
    assert "**Modified:**\n- `src/login.js`" in body
    assert "> Fix the login bug in auth.js" in body
    assert github.commands("gh", "issue", "comment", "42")

    assert not session_file(project).exists()
    counters = json.loads((project / ".claude" / "session-counter.json").read_text())
    assert counters == {"issue-42": 1}


def test_next_session_on_same_issue_is_numbered_two(github, project):
    for _ in range(2):
        progress_comment.handle_event(prompt_event())
        progress_comment.handle_event(write_event(project))
        progress_comment.handle_event(edit_event(project))

    assert github.bodies[1].startswith("## Development Session 2")


def test_open_pr_gets_iteration_comment_too(github, project):
    github.respond(["gh", "pr", "list"], stdout='[{"number": 57}]')

    progress_comment.handle_event(prompt_event())
    progress_comment.handle_event(write_event(project))
    result = progress_comment.handle_event(edit_event(project))

    assert result.message == "Posted progress comment to issue-42, pr-57"
    assert github.bodies[1].startswith("## Iteration 1")
    assert github.commands("gh", "pr", "comment", "57")


def test_no_issue_and_no_pr_keeps_session(on_branch, project):
    runner = on_branch("main")
    runner.respond(["gh", "pr", "list"], stdout="[]")

    progress_comment.handle_event(prompt_event())
    progress_comment.handle_event(write_event(project))
    result = progress_comment.handle_event(edit_event(project))

    assert not result.ok
    assert runner.bodies == []
    assert len(session_tracker.load_session()["toolsUsed"]) == 2


def test_failed_post_keeps_session_and_counter(github, project):
    github.respond(["gh", "issue", "comment"], returncode=1, stderr="HTTP 403")

    progress_comment.handle_event(prompt_event())
    progress_comment.handle_event(write_event(project))
    result = progress_comment.handle_event(edit_event(project))

    assert not result.ok
    assert session_file(project).exists()
    assert not (project / ".claude" / "session-counter.json").exists()


def test_tool_use_without_session_is_ignored(github, project):
    result = progress_comment.handle_event(write_event(project))

    assert result.message == "No active session, tool use ignored"
    assert not session_file(project).exists()


def test_untracked_tool_does_not_count(github, project):
    progress_comment.handle_event(prompt_event())
    result = progress_comment.handle_event({"hook_event_name": "PostToolUse", "tool_name": "Read",
                                            "file_path": "a.py"})

    assert result.message == "Tool Read not tracked"
    assert session_tracker.load_session()["toolsUsed"] == []


def test_threshold_from_settings(github, project, monkeypatch):
    monkeypatch.setenv("DEVLOG_COMMENT_THRESHOLD", "3")

    progress_comment.handle_event(prompt_event())
    progress_comment.handle_event(write_event(project))
    result = progress_comment.handle_event(edit_event(project))

    assert result.message == "Recorded tool use 2/3"
    assert github.bodies == []


def test_stop_stores_assistant_response(github, project, transcript):
    progress_comment.handle_event(prompt_event())
    path = transcript("I fixed the login bug.")

    result = progress_comment.handle_event({"hook_event_name": "Stop", "transcript_path": path})

    assert result.ok
    assert session_tracker.load_session()["claudeResponse"] == "I fixed the login bug."


def test_disabled_hook_does_nothing(github, project, monkeypatch):
    monkeypatch.setenv("DEVLOG_ENABLED", "false")

    result = progress_comment.handle_event(prompt_event())

    assert result.message == "Disabled in settings"
    assert not session_file(project).exists()


def test_unknown_event_is_ignored(github, project):
    assert progress_comment.handle_event({"hook_event_name": "SessionStart"}).ok


def run_main(monkeypatch, stdin_text):
    monkeypatch.setattr("sys.stdin", io.StringIO(stdin_text))
    with pytest.raises(SystemExit) as excinfo:
        progress_comment.main()
    return excinfo.value.code


def test_main_exits_zero_on_garbage_input(project, monkeypatch, capsys):
    assert run_main(monkeypatch, "this is not json") == 0
    assert json.loads(capsys.readouterr().out)["suppressOutput"] is True


def test_main_exits_zero_on_unexpected_error(github, project, monkeypatch, capsys):
    def explode(payload):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(progress_comment, "handle_event", explode)

    assert run_main(monkeypatch, json.dumps(prompt_event())) == 0
    log = (project / ".claude" / "hook_debug.log").read_text()
    assert "Unhandled RuntimeError: disk on fire" in log


def test_main_runs_prompt_event(github, project, monkeypatch, capsys):
    assert run_main(monkeypatch, json.dumps(prompt_event())) == 0
    assert json.loads(capsys.readouterr().out)["event"] == "UserPromptSubmit"
    assert session_file(project).exists()


def test_file_created_then_edited_shows_in_both_sections(github, project):
    progress_comment.handle_event(prompt_event())
    progress_comment.handle_event(write_event(project, "a.js"))
    progress_comment.handle_event(edit_event(project, "a.js"))

    body = github.bodies[0]
    assert "**Created:**\n- `a.js`" in body
    assert "**Modified:**\n- `a.js`" in body
    assert "- Files created: 1" in body
    assert "- Files modified: 1" in body
    assert "- Tool actions: 2" in body
