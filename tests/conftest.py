"""Shared test fixtures."""

from __future__ import annotations

import subprocess
from collections.abc import Sequence
from pathlib import Path

import pytest

from release_cycle.errors import GitCommandFailed, NothingToCommit, TagAlreadyExists
from release_cycle.git import GitRepository

GRADLE = """\
plugins {
    id 'java'
}

group = 'com.example'
version = '1.0.0-SNAPSHOT'

dependencies {
    implementation 'org.slf4j:slf4j-api:2.0.9'
}
"""

README = """\
# Widget

A widget library.
"""


class FakeRepository(GitRepository):
    """In-memory stand-in for a git working copy.

    Tracks branches, per-branch committed file contents, the index, commits
    and tags. Checking out a branch writes that branch's committed files to
    disk, so two-branch workflows behave like the real thing.
    """

    def __init__(self, root: Path, branches: Sequence[str] = ("master",)) -> None:
        super().__init__(root, runner=_no_process)
        snapshot = {
            p.name: p.read_text(encoding="utf-8")
            for p in root.iterdir()
            if p.is_file()
        }
        self.branch = branches[0]
        self.committed: dict[str, dict[str, str]] = {
            b: dict(snapshot) for b in branches
        }
        self.staged: dict[str, str] = {}
        self.commits: list[tuple[str, str]] = []
        self.tags: dict[str, int] = {}
        self.fail_tag = False

    def current_branch(self) -> str:
        return self.branch

    def checkout(self, branch: str) -> None:
        if branch not in self.committed:
            raise GitCommandFailed(
                f"`git checkout {branch}` exited with 1",
                operation=f"checkout {branch}",
                output=f"error: pathspec '{branch}' did not match any file(s)",
            )
        self.branch = branch
        for name, contents in self.committed[branch].items():
            (self.root / name).write_text(contents, encoding="utf-8")

    def stage(self, paths: Sequence[str]) -> None:
        for path in paths:
            self.staged[path] = (self.root / path).read_text(encoding="utf-8")

    def commit(self, message: str, paths: Sequence[str]) -> None:
        head = self.committed[self.branch]
        changed = {
            p: self.staged[p]
            for p in paths
            if p in self.staged and head.get(p) != self.staged[p]
        }
        for p in paths:
            self.staged.pop(p, None)
        if not changed:
            raise NothingToCommit("no staged changes", operation=f"commit '{message}'")
        head.update(changed)
        self.commits.append((self.branch, message))

    def tag_exists(self, name: str) -> bool:
        return name in self.tags

    def tag(self, name: str) -> None:
        if name in self.tags:
            raise TagAlreadyExists(
                f"tag '{name}' already exists", operation=f"tag {name}"
            )
        if self.fail_tag:
            raise GitCommandFailed(
                f"`git tag {name}` exited with 128",
                operation=f"tag {name}",
                output="fatal: cannot lock ref",
            )
        self.tags[name] = len(self.commits)


def _no_process(
    *args: str, cwd: Path | None = None
) -> subprocess.CompletedProcess[str]:
    raise AssertionError(f"unexpected process: {args}")


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A project directory with a Gradle manifest and a readme."""
    root = tmp_path / "widget"
    root.mkdir()
    (root / "build.gradle").write_text(GRADLE, encoding="utf-8")
    (root / "README.md").write_text(README, encoding="utf-8")
    return root


@pytest.fixture
def repo(project: Path) -> FakeRepository:
    """A single-branch fake repository over ``project``."""
    return FakeRepository(project)


@pytest.fixture
def flow_repo(project: Path) -> FakeRepository:
    """A two-branch (develop/master) fake repository over ``project``."""
    return FakeRepository(project, branches=("develop", "master"))
