"""Resolve diff-bounded review scopes with the git command line."""

import subprocess
from pathlib import Path
from typing import List, Optional, Union

from ...domain.exceptions import ScopeError
from ...domain.models.git_scope import GitScope
from ..logging import CodeReviewLogger


class GitScopeResolver:
    """
    Compute the files a branch or commit review covers.

    Every git call runs as ``git -C <repo> ...`` with a timeout. Failures
    raise ScopeError carrying git's stderr; nothing is swallowed.
    """

    def __init__(
        self,
        repo_path: Union[str, Path] = ".",
        base_branch: str = "main",
        remote: str = "origin",
        timeout: int = 30,
    ):
        """
        Initialize resolver.

        Args:
            repo_path: Directory inside the repository
            base_branch: Default base for branch scopes
            remote: Remote name
            timeout: Seconds allowed per git command
        """
        self.repo_path = Path(repo_path)
        self.base_branch = base_branch
        self.remote = remote
        self.timeout = timeout
        self.logger = CodeReviewLogger.get_instance()

    def _run(self, *args: str, strip: bool = True) -> str:
        """
        Run a git command and return its stdout, stripped unless strip is False.

        Raises:
            ScopeError: If git is missing, times out or exits non-zero
        """
        cmd = ["git", "-C", str(self.repo_path), *args]
        self.logger.debug("Running git", extra={"command": " ".join(args)})
        try:
            process = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise ScopeError("git executable not found. Install git and make sure it is on PATH") from e
        except subprocess.TimeoutExpired as e:
            raise ScopeError(f"git {' '.join(args)} timed out after {self.timeout}s") from e

        if process.returncode != 0:
            message = (process.stderr or process.stdout or "unknown git error").strip()
            raise ScopeError(f"git {' '.join(args)} failed: {message[:500]}")
        return process.stdout.strip() if strip else process.stdout

    @staticmethod
    def _lines(output: str) -> List[str]:
        return [line.strip() for line in output.splitlines() if line.strip()]

    def ensure_repository(self) -> None:
        """
        Raises:
            ScopeError: If repo_path is not inside a git repository
        """
        try:
            self._run("rev-parse", "--git-dir")
        except ScopeError as e:
            raise ScopeError(f"{self.repo_path} is not a git repository: {e}") from e

    def get_repository_root(self) -> Path:
        return Path(self._run("rev-parse", "--show-toplevel"))

    def get_current_branch(self) -> str:
        """Current branch name (empty on a detached HEAD)."""
        return self._run("branch", "--show-current")

    def get_changed_files(self, base: str, current: str) -> List[str]:
        """Files changed on current since it diverged from base."""
        return self._lines(self._run("diff", "--name-only", f"{base}...{current}"))

    def get_file_diff(self, file_path: str, base: Optional[str] = None, current: Optional[str] = None) -> str:
        """Unified diff of one file between base and current."""
        base = base or self.base_branch
        current = current or self.get_current_branch()
        return self._run("diff", f"{base}...{current}", "--", file_path)

    def resolve_branch_scope(
        self,
        base: Optional[str] = None,
        current: Optional[str] = None,
        include_diffs: bool = True,
    ) -> GitScope:
        """
        Scope for a pull request style review of the current branch.

        Args:
            base: Base branch (defaults to the configured base branch)
            current: Branch under review (defaults to the checked out branch)
            include_diffs: Attach per-file diff text

        Returns:
            GitScope

        Raises:
            ScopeError: If current equals base or git fails
        """
        self.ensure_repository()
        base = base or self.base_branch
        current = current or self.get_current_branch()
        if not current:
            raise ScopeError("HEAD is detached. Check out a branch or pass the branch to review")
        if current == base:
            raise ScopeError(f"Current branch is {base}. Switch to a feature branch first.")

        changed = self.get_changed_files(base, current)
        diffs = {}
        if include_diffs:
            for path in changed:
                diffs[path] = self.get_file_diff(path, base, current)

        self.logger.info(
            "Resolved branch scope",
            extra={"base": base, "current": current, "changed_files": len(changed)},
        )
        return GitScope(base=base, current=current, changed_files=changed, diffs=diffs)

    def resolve_commit_scope(self, commit: str) -> GitScope:
        """
        Scope for the files touched by a single commit.

        A root commit has no parent to diff against, so its file list
        comes from ``git show`` instead.
        """
        self.ensure_repository()
        sha = self._run("rev-parse", "--verify", f"{commit}^{{commit}}")
        try:
            output = self._run("diff", "--name-only", f"{sha}^..{sha}")
        except ScopeError:
            output = self._run("show", "--name-only", "--pretty=format:", sha)

        changed = self._lines(output)
        self.logger.info(
            "Resolved commit scope",
            extra={"commit": sha, "changed_files": len(changed)},
        )
        return GitScope(base=f"{sha}^", current=sha, changed_files=changed, commit=sha)

    def read_file_at_revision(self, commit: str, file_path: str) -> str:
        """
        File content as of commit, byte for byte.

        Raises:
            ScopeError: If the path does not exist at that revision
        """
        return self._run("show", f"{commit}:{file_path}", strip=False)
