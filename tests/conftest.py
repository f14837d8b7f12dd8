"""Pytest configuration and fixtures for Codex Review tests."""

import shutil
import stat
import subprocess
from pathlib import Path
from typing import Generator

import pytest

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def git(repo: Path, *args: str) -> str:
    """Run a git command in ``repo`` and return stdout."""
    result = subprocess.run(
        ["git", *args],
        cwd=repo,
        check=True,
        capture_output=True,
        text=True,
    )
    return result.stdout


# =============================================================================
# DIRECTORY FIXTURES
# =============================================================================

@pytest.fixture
def plain_dir(tmp_path: Path) -> Path:
    """A directory outside any git repository with one source file."""
    root = tmp_path / "plain"
    root.mkdir()
    (root / "a.txt").write_text("hi")
    (root / "node_modules").mkdir()
    (root / "node_modules" / "x.js").write_text("module.exports = 1;\n")
    return root


@pytest.fixture
def temp_git_repo(tmp_path: Path) -> Generator[Path, None, None]:
    """
    Create a repository whose only commit is HEAD.

    Yields:
        Path to the initialized git repository
    """
    repo_path = tmp_path / "test_repo"
    repo_path.mkdir()

    git(repo_path, "init")
    git(repo_path, "config", "user.email", "test@test.com")
    git(repo_path, "config", "user.name", "Test User")
    git(repo_path, "config", "commit.gpgsign", "false")

    (repo_path / "initial.py").write_text("# Initial file\n")
    git(repo_path, "add", ".")
    git(repo_path, "commit", "-m", "Initial commit")

    yield repo_path


@pytest.fixture
def repo_with_history(temp_git_repo: Path) -> Path:
    """A repository with a second commit modifying initial.py."""
    (temp_git_repo / "initial.py").write_text("# Initial file\nprint('hello')\n")
    git(temp_git_repo, "commit", "-am", "Second commit")
    return temp_git_repo


# =============================================================================
# FAKE CODEX
# =============================================================================

FAKE_CODEX = """\
#!/bin/sh
printf '%s\\n' "$@" > "$FAKE_CODEX_ARGS"
out=""
prev=""
for arg in "$@"; do
  if [ "$prev" = "--output-last-message" ]; then out="$arg"; fi
  prev="$arg"
done
printf '%s' "$out" > "$FAKE_CODEX_RECORD"
printf 'Looks good to me.\\n' > "$out"
case "$FAKE_CODEX_MODE" in
  fail) echo "model overloaded" >&2; exit 3 ;;
  hang) exec sleep 30 ;;
  badbytes) printf 'caf\\351\\n' > "$out" ;;
esac
exit 0
"""


class FakeCodex:
    """Handle on the fake codex executable and what it recorded."""

    def __init__(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        self.bin = tmp_path / "fake-codex"
        self.bin.write_text(FAKE_CODEX)
        self.bin.chmod(self.bin.stat().st_mode | stat.S_IXUSR)
        self.args_file = tmp_path / "codex-args.txt"
        self.record_file = tmp_path / "codex-output-path.txt"
        self._monkeypatch = monkeypatch
        monkeypatch.setenv("FAKE_CODEX_ARGS", str(self.args_file))
        monkeypatch.setenv("FAKE_CODEX_RECORD", str(self.record_file))
        monkeypatch.setenv("FAKE_CODEX_MODE", "ok")

    def set_mode(self, mode: str) -> None:
        self._monkeypatch.setenv("FAKE_CODEX_MODE", mode)

    @property
    def args(self) -> list[str]:
        return self.args_file.read_text().splitlines()

    @property
    def output_file(self) -> Path:
        return Path(self.record_file.read_text())


@pytest.fixture
def fake_codex(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> FakeCodex:
    """A shell script standing in for the codex CLI."""
    return FakeCodex(tmp_path, monkeypatch)
