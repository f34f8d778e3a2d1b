"""Full release cycles against a real git repository."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest
from conftest import GRADLE, README

from release_cycle.errors import TagAlreadyExists
from release_cycle.models import Phase, ReleaseConfig
from release_cycle.pipeline import run_release

pytestmark = pytest.mark.skipif(
    shutil.which("git") is None, reason="git not available"
)


def _git(cwd: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=False,
    )
    if result.returncode != 0:
        raise RuntimeError(
            f"git {' '.join(args)} failed (code {result.returncode}): "
            f"{result.stderr.strip()}"
        )
    return result.stdout.strip()


def _subjects(root: Path, ref: str = "HEAD") -> list[str]:
    return _git(root, "log", "--format=%s", ref).splitlines()


def _files_in(root: Path, ref: str) -> list[str]:
    return sorted(_git(root, "show", "--name-only", "--format=", ref).splitlines())


@pytest.fixture
def git_project(tmp_path: Path) -> Path:
    """A git repository on master with a Gradle manifest and a readme."""
    root = tmp_path / "widget"
    root.mkdir()
    _git(root, "init", "-b", "master")
    _git(root, "config", "user.email", "test@example.com")
    _git(root, "config", "user.name", "Test")
    _git(root, "config", "commit.gpgsign", "false")
    (root / "build.gradle").write_text(GRADLE, encoding="utf-8")
    (root / "README.md").write_text(README, encoding="utf-8")
    _git(root, "add", "build.gradle", "README.md")
    _git(root, "commit", "-m", "init")
    return root


class TestSingleBranch:
    def test_minor_bump_cycle(self, git_project: Path) -> None:
        """1.0.0-SNAPSHOT → tagged 1.0.0 → 1.1.0-SNAPSHOT on one branch."""
        run_release(ReleaseConfig(bump="minor"), root=git_project)

        assert _subjects(git_project) == [
            "[post-release] 1.0.0",
            "[pre-release] 1.0.0",
            "init",
        ]
        assert _git(git_project, "rev-parse", "releases/v1.0.0^{commit}") == (
            _git(git_project, "rev-parse", "HEAD~1")
        )
        tagged_manifest = _git(git_project, "show", "releases/v1.0.0:build.gradle")
        assert "version = '1.0.0'" in tagged_manifest
        tagged_readme = _git(git_project, "show", "releases/v1.0.0:README.md")
        assert "Latest release: `widget:1.0.0`" in tagged_readme
        manifest = (git_project / "build.gradle").read_text(encoding="utf-8")
        assert "version = '1.1.0-SNAPSHOT'" in manifest
        assert _git(git_project, "status", "--porcelain") == ""

    def test_postrelease_rerun_leaves_head_alone(self, git_project: Path) -> None:
        run_release(ReleaseConfig(bump="minor"), root=git_project)
        head = _git(git_project, "rev-parse", "HEAD")

        run_release(
            ReleaseConfig(
                bump="minor", release_version="1.0.0", phases=(Phase.POSTRELEASE,)
            ),
            root=git_project,
        )

        assert _git(git_project, "rev-parse", "HEAD") == head

    def test_existing_tag_changes_nothing(self, git_project: Path) -> None:
        _git(git_project, "tag", "releases/v1.0.0")
        head = _git(git_project, "rev-parse", "HEAD")

        with pytest.raises(TagAlreadyExists) as excinfo:
            run_release(ReleaseConfig(), root=git_project)

        assert excinfo.value.phase == "PRERELEASE"
        assert _git(git_project, "rev-parse", "HEAD") == head
        assert _git(git_project, "status", "--porcelain") == ""


class TestUnrelatedChanges:
    """Changes the operator staged before the run stay out of release commits."""

    def test_staged_file_not_in_release_commits(self, git_project: Path) -> None:
        (git_project / "secret.txt").write_text("hunter2\n", encoding="utf-8")
        _git(git_project, "add", "secret.txt")

        run_release(ReleaseConfig(bump="minor"), root=git_project)

        assert _files_in(git_project, "releases/v1.0.0") == [
            "README.md",
            "build.gradle",
        ]
        assert _files_in(git_project, "HEAD") == ["build.gradle"]
        assert _git(git_project, "diff", "--cached", "--name-only") == "secret.txt"

    def test_postrelease_rerun_ignores_staged_file(self, git_project: Path) -> None:
        run_release(ReleaseConfig(bump="minor"), root=git_project)
        head = _git(git_project, "rev-parse", "HEAD")
        (git_project / "other.txt").write_text("scratch\n", encoding="utf-8")
        _git(git_project, "add", "other.txt")

        run_release(
            ReleaseConfig(
                bump="minor", release_version="1.0.0", phases=(Phase.POSTRELEASE,)
            ),
            root=git_project,
        )

        assert _git(git_project, "rev-parse", "HEAD") == head
        assert _git(git_project, "diff", "--cached", "--name-only") == "other.txt"


def test_two_branch_cycle(git_project: Path) -> None:
    """Release commits land on master, the next snapshot on develop."""
    _git(git_project, "branch", "develop")
    _git(git_project, "checkout", "develop")

    run_release(
        ReleaseConfig(dev_branch="develop", release_branch="master"),
        root=git_project,
    )

    assert _subjects(git_project, "master") == ["[pre-release] 1.0.0", "init"]
    assert _subjects(git_project, "develop") == ["[post-release] 1.0.0", "init"]
    assert _git(git_project, "rev-parse", "--abbrev-ref", "HEAD") == "develop"
    develop_manifest = _git(git_project, "show", "develop:build.gradle")
    assert "version = '1.0.1-SNAPSHOT'" in develop_manifest
