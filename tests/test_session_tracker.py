"""Tests for the session state machine and its state file."""

import json

import session_tracker


def session_file(project):
    return project / ".claude" / "session-tracking.json"


def test_no_session_when_file_missing(project):
    assert session_tracker.load_session() is None


def test_start_session_writes_fresh_state(project):
    state = session_tracker.start_session("Add pagination to the users endpoint")

    on_disk = json.loads(session_file(project).read_text())
    assert on_disk == state
    assert state["userPrompt"] == "Add pagination to the users endpoint"
    assert state["claudeResponse"] == ""
    assert state["toolsUsed"] == []
    assert state["filesModified"] == []
    assert isinstance(state["startTime"], int)


def test_new_prompt_resets_accumulated_tools(fake_runner, project):
    state = session_tracker.start_session("first")
    session_tracker.record_tool_use(state, {"tool_name": "Bash", "command": "ls"})
    session_tracker.save_session(state)

    session_tracker.start_session("second")

    state = session_tracker.load_session()
    assert state["userPrompt"] == "second"
    assert state["toolsUsed"] == []


def test_corrupt_session_file_counts_as_empty(project):
    path = session_file(project)
    path.parent.mkdir()
    path.write_text("[1, 2")
    assert session_tracker.load_session() is None


def test_partial_session_file_is_normalised(project):
    path = session_file(project)
    path.parent.mkdir()
    path.write_text(json.dumps({"userPrompt": "hi", "toolsUsed": "oops"}))

    state = session_tracker.load_session()
    assert state["toolsUsed"] == []
    assert state["filesModified"] == []


def test_write_is_recorded_as_created(fake_runner, project):
    state = session_tracker.new_session("p")
    event = {"tool_name": "Write", "file_path": str(project / "src" / "auth.js"),
             "description": "Create auth module"}

    assert session_tracker.record_tool_use(state, event)
    assert state["toolsUsed"] == [{"tool": "Write", "description": "Create auth module", "command": ""}]
    assert state["filesModified"] == [{"file": "src/auth.js", "operation": "created"}]


def test_write_over_file_present_at_head_is_modified(fake_runner, project):
    fake_runner.respond(["git", "cat-file", "-e", "HEAD:./README.md"])
    state = session_tracker.new_session("p")

    session_tracker.record_tool_use(state, {"tool_name": "Write", "file_path": str(project / "README.md")})
    assert state["filesModified"] == [{"file": "README.md", "operation": "modified"}]


def test_edit_reads_nested_tool_input(fake_runner, project):
    state = session_tracker.new_session("p")
    event = {"tool_name": "Edit", "tool_input": {"file_path": str(project / "src" / "login.js")}}

    session_tracker.record_tool_use(state, event)
    assert state["filesModified"] == [{"file": "src/login.js", "operation": "modified"}]


def test_edit_reads_parameters_object(fake_runner, project):
    state = session_tracker.new_session("p")
    event = {"tool_name": "Edit", "parameters": {"file_path": "lib/util.py"}}

    session_tracker.record_tool_use(state, event)
    assert state["filesModified"] == [{"file": "lib/util.py", "operation": "modified"}]


def test_bash_counts_but_touches_no_file(fake_runner, project):
    state = session_tracker.new_session("p")
    event = {"tool_name": "Bash", "tool_input": {"command": "pytest -q", "description": "Run unit tests"}}

    assert session_tracker.record_tool_use(state, event)
    assert state["toolsUsed"] == [{"tool": "Bash", "description": "Run unit tests", "command": "pytest -q"}]
    assert state["filesModified"] == []


def test_insignificant_tools_are_ignored(fake_runner, project):
    state = session_tracker.new_session("p")
    assert not session_tracker.record_tool_use(state, {"tool_name": "Read", "file_path": "a.py"})
    assert state["toolsUsed"] == []


def test_significant_tools_can_be_overridden(fake_runner, project):
    state = session_tracker.new_session("p")
    assert not session_tracker.record_tool_use(state, {"tool_name": "Bash"}, ["Write", "Edit"])


def test_created_then_edited_file_keeps_both_operations(fake_runner, project):
    state = session_tracker.new_session("p")
    session_tracker.record_tool_use(state, {"tool_name": "Write", "file_path": "a.py"})
    session_tracker.record_tool_use(state, {"tool_name": "Edit", "file_path": "a.py"})
    session_tracker.record_tool_use(state, {"tool_name": "Edit", "file_path": "a.py"})

    assert len(state["toolsUsed"]) == 3
    assert state["filesModified"] == [
        {"file": "a.py", "operation": "created"},
        {"file": "a.py", "operation": "modified"},
    ]


def test_normalize_file_path(project, tmp_path):
    assert session_tracker.normalize_file_path(str(project / "src" / "a.py")) == "src/a.py"
    assert session_tracker.normalize_file_path("./src/../src/a.py") == "src/a.py"
    outside = tmp_path / "elsewhere" / "b.py"
    assert session_tracker.normalize_file_path(str(outside)) == outside.as_posix()
    assert session_tracker.normalize_file_path("") == ""


def test_threshold_reached():
    state = {"toolsUsed": [{"tool": "Bash"}]}
    assert not session_tracker.threshold_reached(state, 2)
    state["toolsUsed"].append({"tool": "Edit"})
    assert session_tracker.threshold_reached(state, 2)


def test_clear_session(project):
    session_tracker.start_session("p")
    session_tracker.clear_session()
    assert not session_file(project).exists()
    # Clearing twice is harmless
    session_tracker.clear_session()
