from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest

from gemini_plugin.errors import GitContextError
from gemini_plugin.git_context import GitAnalyzer, build_git_context

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def _git(repo: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args], cwd=str(repo), capture_output=True, text=True, check=True
    )
    return result.stdout.strip()


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    repo = tmp_path / "repo"
    repo.mkdir()
    _git(repo, "init", "-q")
    _git(repo, "config", "user.email", "ci@example.com")
    _git(repo, "config", "user.name", "CI")
    _git(repo, "config", "commit.gpgsign", "false")
    (repo / "app.py").write_text("print('v1')\n", encoding="utf-8")
    _git(repo, "add", "app.py")
    _git(repo, "commit", "-q", "-m", "Initial commit")
    (repo / "app.py").write_text("print('v2')\n", encoding="utf-8")
    _git(repo, "commit", "-q", "-am", "Bump to v2")
    return repo


@requires_git
def test_build_git_context_for_head(repo: Path) -> None:
    context = build_git_context(repo)

    assert context.startswith("## Git Commit")
    assert "Bump to v2" in context
    assert "Author: CI <ci@example.com>" in context
    assert "app.py" in context
    assert "-print('v1')" in context
    assert "+print('v2')" in context


@requires_git
def test_explicit_sha_wins_over_drone_env(repo: Path, monkeypatch) -> None:
    first = _git(repo, "rev-list", "--max-parents=0", "HEAD")
    monkeypatch.setenv("DRONE_COMMIT_SHA", _git(repo, "rev-parse", "HEAD"))

    context = build_git_context(repo, commit_sha=first)

    assert "Initial commit" in context
    assert "Bump to v2" not in context


@requires_git
def test_detect_commit_sha_prefers_drone_env(repo: Path, monkeypatch) -> None:
    monkeypatch.setenv("DRONE_COMMIT_SHA", "abc123")
    assert GitAnalyzer(repo).detect_commit_sha() == "abc123"

    monkeypatch.delenv("DRONE_COMMIT_SHA")
    assert GitAnalyzer(repo).detect_commit_sha() == _git(repo, "rev-parse", "HEAD")


@requires_git
def test_large_diff_is_truncated(repo: Path) -> None:
    analyzer = GitAnalyzer(repo, max_diff_chars=20)
    context = analyzer.build_git_context("HEAD")
    assert "... (diff truncated)" in context


@requires_git
def test_not_a_repository(tmp_path: Path) -> None:
    with pytest.raises(GitContextError, match="not a git repository"):
        build_git_context(tmp_path)


@requires_git
def test_unknown_sha_raises(repo: Path) -> None:
    with pytest.raises(GitContextError):
        GitAnalyzer(repo).build_git_context("deadbeef" * 5)
