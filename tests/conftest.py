"""Pytest configuration for the devlog hook tests.

Every test runs inside a throwaway project directory, and git/gh are
replaced by a fake command runner so nothing touches a real repository
or GitHub.
"""

import json
import subprocess
from pathlib import Path

import pytest

import devlog_common


class FakeRunner:
    """Stands in for devlog_common.run_command.

    Responses are keyed by a command prefix, e.g. ("git", "branch").
    Unmatched commands fail with exit code 1, like a missing repo would.
    """

    def __init__(self):
        self.calls = []
        self.bodies = []
        self.responses = {}

    def respond(self, prefix, stdout="", returncode=0, stderr=""):
        self.responses[tuple(prefix)] = (returncode, stdout, stderr)

    def raise_on(self, prefix, exc):
        self.responses[tuple(prefix)] = exc

    def __call__(self, cmd, cwd=None, capture=True, check=False, timeout=None):
        cmd = list(cmd)
        self.calls.append(cmd)
        if "--body-file" in cmd:
            body_path = Path(cmd[cmd.index("--body-file") + 1])
            self.bodies.append(body_path.read_text(encoding="utf-8"))

        best = None
        for prefix, response in self.responses.items():
            if tuple(cmd[:len(prefix)]) == prefix and (best is None or len(prefix) > len(best[0])):
                best = (prefix, response)

        if best is None:
            return subprocess.CompletedProcess(cmd, 1, "", "not mocked")
        response = best[1]
        if isinstance(response, BaseException):
            raise response
        returncode, stdout, stderr = response
        return subprocess.CompletedProcess(cmd, returncode, stdout, stderr)

    def commands(self, *prefix):
        return [c for c in self.calls if tuple(c[:len(prefix)]) == prefix]


@pytest.fixture
def project(tmp_path, monkeypatch):
    """A clean project directory used as CLAUDE_PROJECT_DIR and cwd."""
    project_dir = tmp_path / "project"
    project_dir.mkdir()
    monkeypatch.setenv("CLAUDE_PROJECT_DIR", str(project_dir))
    monkeypatch.chdir(project_dir)
    for key in devlog_common.DEFAULTS:
        monkeypatch.delenv(f"DEVLOG_{key.upper()}", raising=False)
    return project_dir


@pytest.fixture
def fake_runner(project, monkeypatch):
    """Replace git/gh with a FakeRunner."""
    runner = FakeRunner()
    monkeypatch.setattr(devlog_common, "run_command", runner)
    return runner


@pytest.fixture
def on_branch(fake_runner):
    """Set the branch the fake git reports."""
    def _set(branch):
        fake_runner.respond(["git", "branch", "--show-current"], stdout=f"{branch}\n")
        return fake_runner
    return _set


@pytest.fixture
def transcript(project):
    """Write a minimal Claude JSONL transcript and return its path."""
    def _write(*assistant_texts):
        path = project / "transcript.jsonl"
        lines = [json.dumps({"message": {"role": "user", "content": "hello"}})]
        for text in assistant_texts:
            lines.append(json.dumps({
                "message": {"role": "assistant", "content": [{"type": "text", "text": text}]}
            }))
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return str(path)
    return _write
