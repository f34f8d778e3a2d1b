"""Release state machine: prerelease → release → postrelease → complete.

This module drives one snapshot → release → next-snapshot cycle:
1. PRERELEASE: on the release branch, write the release version into the
   manifest and the release block into the notes file, commit
   "[pre-release] <version>" and tag "releases/v<version>"
2. RELEASE: reserved for publish actions composed around this tool; always
   entered and exited, never touches the repository
3. POSTRELEASE: on the development branch, write the next development
   version and commit "[post-release] <version>"
4. COMPLETE: nothing is pushed; the operator pushes branches and tags

Any error moves the machine to FAILED and aborts the run. The one exception
is a POSTRELEASE commit with nothing to commit, which means a previous run
already got this far.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import semver

from .errors import (
    GitCommandFailed,
    InvariantViolation,
    NothingToCommit,
    ReleaseError,
    TagAlreadyExists,
)
from .git import GitRepository, Runner
from .manifest import read_version, set_version, verify_version
from .models import Phase, ReleaseConfig, ReleasePlan, State
from .notes import Markers, render_block, upsert
from .shell import echo, run, step
from .versions import (
    check_forward_progress,
    parse_version,
    to_next_version,
    to_release_version,
)


def resolve_plan(config: ReleaseConfig, manifest: str) -> ReleasePlan:
    """Compute the versions for this run from the manifest contents.

    The release version is the manifest's version without the development
    marker, unless ``config.release_version`` pins it (used to resume a run
    whose manifest already moved on to the next version).

    Raises:
        VersionDeclarationNotFound: If the manifest has no single declaration.
        MalformedVersion: If a version string can't be parsed.
        InvariantViolation: If the next version isn't ahead of the release.
    """
    marker = config.dev_marker
    current = read_version(manifest, config.version_pattern)
    if config.release_version is not None:
        release = to_release_version(parse_version(config.release_version), marker)
    else:
        release = to_release_version(current, marker)
    if config.next_version is not None:
        requested = parse_version(config.next_version)
        if requested.prerelease not in (None, marker):
            echo(
                f"Next version override {requested} carries marker "
                f"'{requested.prerelease}'; replacing it with '{marker}'"
            )
    next_ = to_next_version(release, config.bump, config.next_version, marker)
    check_forward_progress(release, next_)
    return ReleasePlan(
        current_version=current,
        release_version=release,
        next_version=next_,
        tag=f"{config.tag_prefix}{release}",
        release_candidate=config.release_candidate,
    )


class ReleaseStateMachine:
    """Runs the configured phases of a release against one repository.

    Attributes:
        config: Settings for this run.
        repo: The working copy; the only way repository state is touched.
        state: Current state. ``None`` until ``run`` starts.
        plan: Versions for this run, resolved by the first phase that needs
            them and fixed from then on.
    """

    def __init__(self, config: ReleaseConfig, repo: GitRepository) -> None:
        self.config = config
        self.repo = repo
        self.state: State | None = None
        self.plan: ReleasePlan | None = None

    def run(self) -> ReleasePlan:
        """Execute the configured phases in order.

        Returns:
            The resolved plan.

        Raises:
            ReleaseError: Whatever aborted the run, with its phase filled in.
        """
        if self.config.dry_run:
            return self._dry_run()

        handlers: dict[Phase, Callable[[], None]] = {
            Phase.PRERELEASE: self._prerelease,
            Phase.RELEASE: self._release,
            Phase.POSTRELEASE: self._postrelease,
        }
        for phase in self.config.phases:
            self.state = State(phase.value)
            step(f"{phase.name} started")
            try:
                handlers[phase]()
            except ReleaseError as exc:
                self.state = State.FAILED
                exc.phase = phase.name
                print(f"{phase.name} failed")
                raise
            print(f"{phase.name} completed")

        if self.plan is None:
            raise InvariantViolation(
                "no phase resolved a release plan", operation="run release"
            )
        self.state = State.COMPLETE
        self._complete()
        return self.plan

    # Phases

    def _prerelease(self) -> None:
        cfg = self.config
        self._checkout(cfg.release_branch)
        manifest = self._read(cfg.manifest_file)
        plan = self._ensure_plan(manifest)

        # Refuse before touching any file: the release was already cut
        if self.repo.tag_exists(plan.tag):
            raise TagAlreadyExists(
                f"tag '{plan.tag}' already exists; "
                f"{plan.release_version} has already been released",
                operation=f"tag {plan.tag}",
            )

        notes = self._read(cfg.notes_file, missing_ok=True)
        block = render_block(
            cfg.group,
            cfg.artifact or self.repo.root.name,
            str(plan.release_version),
            cfg.notes,
        )
        markers = Markers(cfg.begin_marker, cfg.end_marker)
        updated_notes = upsert(notes, markers, block)

        self._write_version(cfg.manifest_file, manifest, plan.release_version)
        self._write(cfg.notes_file, updated_notes)
        echo(f"Updated release block in {cfg.notes_file}")

        paths = [cfg.manifest_file, cfg.notes_file]
        self.repo.stage(paths)
        self.repo.commit(plan.prerelease_message, paths)
        echo(f"Committed '{plan.prerelease_message}' on {cfg.release_branch}")

        try:
            self.repo.tag(plan.tag)
        except GitCommandFailed:
            echo(
                f"'{plan.prerelease_message}' is committed but {plan.tag} was "
                "not created; tag or reset manually before re-running"
            )
            raise
        echo(f"Tagged {plan.tag}")

    def _release(self) -> None:
        plan = self._ensure_plan(self._read(self.config.manifest_file))
        kind = "release candidate" if plan.release_candidate else "final release"
        echo(f"Release {plan.release_version} ({kind})")
        echo("No publish actions configured")

    def _postrelease(self) -> None:
        cfg = self.config
        self._checkout(cfg.dev_branch)
        manifest = self._read(cfg.manifest_file)
        plan = self._ensure_plan(manifest)

        self._write_version(cfg.manifest_file, manifest, plan.next_version)
        self.repo.stage([cfg.manifest_file])
        try:
            self.repo.commit(plan.postrelease_message, [cfg.manifest_file])
        except NothingToCommit:
            echo(
                f"{cfg.manifest_file} already at {plan.next_version}; "
                "no change needed"
            )
            return
        echo(f"Committed '{plan.postrelease_message}' on {cfg.dev_branch}")

    def _complete(self) -> None:
        cfg = self.config
        branches = list(dict.fromkeys([cfg.release_branch, cfg.dev_branch]))
        step("COMPLETE")
        echo("Nothing has been pushed. When ready, push branches and tags:")
        echo(f"  git push origin {' '.join(branches)} --tags")

    def _dry_run(self) -> ReleasePlan:
        step("Dry run: resolving plan only")
        plan = self._ensure_plan(self._read(self.config.manifest_file))
        echo("Dry run: nothing was changed")
        return plan

    # Helpers

    def _ensure_plan(self, manifest: str) -> ReleasePlan:
        if self.plan is None:
            self.plan = resolve_plan(self.config, manifest)
            self._print_plan(self.plan)
        return self.plan

    def _print_plan(self, plan: ReleasePlan) -> None:
        echo(f"Current version: {plan.current_version}")
        echo(f"Release version: {plan.release_version}")
        echo(f"Next version:    {plan.next_version}")
        echo(f"Release tag:     {plan.tag}")
        if plan.release_candidate:
            echo("Release candidate: yes")

    def _checkout(self, branch: str) -> None:
        self.repo.checkout(branch)
        echo(f"Checked out {branch}")

    def _write_version(
        self, rel_path: str, manifest: str, version: semver.Version
    ) -> None:
        pattern = self.config.version_pattern
        self._write(rel_path, set_version(manifest, version, pattern))
        # Re-read from disk: don't commit a file that wasn't actually changed
        verify_version(self._read(rel_path), version, pattern)
        echo(f"Set version {version} in {rel_path}")

    def _read(self, rel_path: str, *, missing_ok: bool = False) -> str:
        path = self.repo.root / rel_path
        if missing_ok and not path.exists():
            return ""
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeError) as exc:
            raise ReleaseError(str(exc), operation=f"read {rel_path}") from exc

    def _write(self, rel_path: str, contents: str) -> None:
        try:
            (self.repo.root / rel_path).write_text(contents, encoding="utf-8")
        except (OSError, UnicodeError) as exc:
            raise ReleaseError(str(exc), operation=f"write {rel_path}") from exc


def run_release(
    config: ReleaseConfig,
    *,
    root: Path | None = None,
    runner: Runner = run,
) -> ReleasePlan:
    """Run a release cycle in ``root`` (the current directory by default)."""
    repo = GitRepository((root or Path.cwd()).resolve(), runner=runner)
    return ReleaseStateMachine(config, repo).run()
