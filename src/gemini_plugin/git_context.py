from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import Optional

from .errors import GitContextError
from .logging import PluginLogger, null_logger

MAX_DIFF_CHARS = 100_000


class GitAnalyzer:
    """Render the commit under test as text for the gemini CLI stdin."""

    def __init__(
        self,
        repo_dir: str | Path,
        logger: Optional[PluginLogger] = None,
        *,
        max_diff_chars: int = MAX_DIFF_CHARS,
    ) -> None:
        self.repo_dir = Path(repo_dir)
        self.logger = logger or null_logger()
        self.max_diff_chars = max_diff_chars

    def _git(self, *args: str) -> str:
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=str(self.repo_dir),
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                check=False,
            )
        except OSError as exc:
            raise GitContextError(f"git {args[0]} failed: {exc}") from exc
        if result.returncode != 0:
            stderr = result.stderr.strip() or "unknown error"
            raise GitContextError(f"git {args[0]} failed: {stderr}")
        return result.stdout

    def is_git_repository(self) -> bool:
        try:
            return self._git("rev-parse", "--is-inside-work-tree").strip() == "true"
        except GitContextError:
            return False

    def detect_commit_sha(self, explicit: str = "") -> str:
        """Explicit SHA, then DRONE_COMMIT_SHA, then HEAD. Empty string if none."""
        if explicit.strip():
            return explicit.strip()
        drone_sha = os.environ.get("DRONE_COMMIT_SHA", "").strip()
        if drone_sha:
            return drone_sha
        try:
            return self._git("rev-parse", "HEAD").strip()
        except GitContextError as exc:
            self.logger.debug("Could not resolve HEAD", error=str(exc))
            return ""

    def build_git_context(self, sha: str) -> str:
        header = self._git(
            "show",
            "-s",
            "--no-color",
            "--format=Commit: %H%nAuthor: %an <%ae>%nDate: %aI%n%nMessage:%n%B",
            sha,
        ).strip()
        stat = self._git("show", "--no-color", "--stat", "--format=", sha).strip()
        diff = self._git("show", "--no-color", "--no-ext-diff", "--patch", "--format=", sha)

        if len(diff) > self.max_diff_chars:
            self.logger.warning(
                "Git diff truncated",
                sha=sha,
                diff_chars=len(diff),
                max_diff_chars=self.max_diff_chars,
            )
            diff = diff[: self.max_diff_chars] + "\n... (diff truncated)\n"

        return "\n".join(
            [
                "## Git Commit",
                header,
                "",
                "## Changed Files",
                stat or "(no file changes)",
                "",
                "## Diff",
                "```diff",
                diff.rstrip(),
                "```",
                "",
            ]
        )


def build_git_context(
    repo_dir: str | Path,
    commit_sha: str = "",
    logger: Optional[PluginLogger] = None,
) -> str:
    """Build git context for ``commit_sha`` (auto-detected when empty)."""
    analyzer = GitAnalyzer(repo_dir, logger)
    if not analyzer.is_git_repository():
        raise GitContextError(f"not a git repository: {repo_dir}")

    sha = analyzer.detect_commit_sha(commit_sha)
    if not sha:
        raise GitContextError("could not detect commit SHA")

    return analyzer.build_git_context(sha)
