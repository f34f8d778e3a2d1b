"""Git operations against the working repository.

``GitRepository`` is the only thing in release-cycle that reads or changes
repository state (checked-out branch, index, tags). Each method maps to one
or two git commands, runs them to completion, and raises with the command's
raw output on failure. Nothing is retried and nothing is pushed.

The process runner is injectable so tests can substitute a fake:

    repo = GitRepository(Path("."), runner=fake_run)
"""

from __future__ import annotations

import subprocess
from collections.abc import Callable, Sequence
from pathlib import Path

from .errors import GitCommandFailed, NothingToCommit, TagAlreadyExists
from .shell import run

Runner = Callable[..., subprocess.CompletedProcess[str]]


def _output(result: subprocess.CompletedProcess[str]) -> str:
    return "\n".join(part for part in (result.stdout, result.stderr) if part).strip()


class GitRepository:
    """A git working copy.

    Attributes:
        root: Repository root; every command runs here.
    """

    def __init__(self, root: Path, *, runner: Runner = run) -> None:
        self.root = root
        self._runner = runner

    def _git(self, *args: str, operation: str) -> str:
        """Run a git command and return stripped stdout.

        Raises:
            GitCommandFailed: On non-zero exit, carrying stdout and stderr.
        """
        result = self._runner("git", *args, cwd=self.root)
        if result.returncode != 0:
            raise GitCommandFailed(
                f"`git {' '.join(args)}` exited with {result.returncode}",
                operation=operation,
                output=_output(result),
            )
        return result.stdout.strip()

    def current_branch(self) -> str:
        branch = self._git(
            "rev-parse", "--abbrev-ref", "HEAD", operation="read current branch"
        )
        if branch == "HEAD":
            raise GitCommandFailed(
                "detached HEAD; release from a named branch",
                operation="read current branch",
            )
        return branch

    def checkout(self, branch: str) -> None:
        """Check out ``branch`` and confirm it is now current.

        Fails if the branch does not exist or uncommitted changes conflict.
        """
        self._git("checkout", branch, operation=f"checkout {branch}")
        current = self.current_branch()
        if current != branch:
            raise GitCommandFailed(
                f"expected to be on '{branch}' after checkout, on '{current}'",
                operation=f"checkout {branch}",
            )

    def stage(self, paths: Sequence[str]) -> None:
        """Stage exactly ``paths``; unrelated changes stay unstaged."""
        self._git("add", "--", *paths, operation="stage " + ", ".join(paths))

    def commit(self, message: str, paths: Sequence[str]) -> None:
        """Commit the staged changes to ``paths`` and nothing else.

        Anything else already in the index stays staged and out of the
        commit.

        Raises:
            NothingToCommit: If none of ``paths`` has staged changes.
        """
        staged = self._git(
            "diff",
            "--cached",
            "--name-only",
            "--",
            *paths,
            operation="list staged files",
        )
        if not staged:
            raise NothingToCommit("no staged changes", operation=f"commit '{message}'")
        self._git(
            "commit", "-m", message, "--", *paths, operation=f"commit '{message}'"
        )

    def tag_exists(self, name: str) -> bool:
        return bool(self._git("tag", "--list", name, operation=f"look up tag {name}"))

    def tag(self, name: str) -> None:
        """Create a lightweight tag on HEAD.

        Raises:
            TagAlreadyExists: If the tag is already present.
        """
        if self.tag_exists(name):
            raise TagAlreadyExists(
                f"tag '{name}' already exists", operation=f"tag {name}"
            )
        try:
            self._git("tag", name, operation=f"tag {name}")
        except GitCommandFailed as exc:
            if "already exists" in exc.output:
                raise TagAlreadyExists(
                    f"tag '{name}' already exists",
                    operation=f"tag {name}",
                    output=exc.output,
                ) from exc
            raise
