"""Data models for release-cycle.

These Pydantic models represent the configuration a run is started with and
the plan it computes. Both are frozen: once a run starts, neither changes.
"""

from __future__ import annotations

import re
from enum import Enum

import semver
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from .errors import MalformedVersion
from .versions import DEFAULT_MARKER, Bump, parse_version

DEFAULT_VERSION_PATTERN = (
    r"""^(?P<prefix>[ \t]*version[ \t]*=[ \t]*)(?P<quote>['"])"""
    r"""(?P<version>[^'"\r\n]*)(?P=quote)"""
)


class Phase(str, Enum):
    """Working phases of a release, in execution order."""

    PRERELEASE = "prerelease"
    RELEASE = "release"
    POSTRELEASE = "postrelease"


class State(str, Enum):
    """Every state the state machine can be in, including the terminal ones."""

    PRERELEASE = "prerelease"
    RELEASE = "release"
    POSTRELEASE = "postrelease"
    COMPLETE = "complete"
    FAILED = "failed"


ALL_PHASES: tuple[Phase, ...] = (Phase.PRERELEASE, Phase.RELEASE, Phase.POSTRELEASE)


class ReleaseConfig(BaseModel):
    """Settings for one release run.

    Built once from ``[tool.release-cycle]`` in pyproject.toml plus
    command-line options, then passed explicitly to everything that needs it.

    Attributes:
        dev_branch: Branch that receives the next development version.
        release_branch: Branch the release commit and tag land on. Defaults
            to ``dev_branch`` (single-branch workflow).
        manifest_file: File holding the version declaration, relative to the
            repository root.
        notes_file: File holding the release-notes block.
        next_version: Explicit next development version.
        release_version: Explicit release version, used when resuming a run
            whose manifest has already moved past the release.
        bump: Component incremented for the next development version.
        release_candidate: Marks the release as non-final. Only propagated.
        dev_marker: Development marker, without the leading ``-``.
        version_pattern: Regex locating the version declaration. Must have a
            ``version`` named group.
        tag_prefix: Prepended to the release version to form the tag name.
        group: Group coordinate written into the release block.
        artifact: Artifact coordinate; defaults to the repository directory.
        notes: Free-form text written into the release block.
        begin_marker: Line opening the release block.
        end_marker: Line closing the release block.
        phases: Phases to run. Always executed in canonical order.
        dry_run: Resolve and print the plan without touching anything.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    dev_branch: str = "master"
    release_branch: str = ""
    manifest_file: str = "build.gradle"
    notes_file: str = "README.md"
    next_version: str | None = None
    release_version: str | None = None
    bump: Bump = "patch"
    release_candidate: bool = False
    dev_marker: str = DEFAULT_MARKER
    version_pattern: str = DEFAULT_VERSION_PATTERN
    tag_prefix: str = "releases/v"
    group: str = ""
    artifact: str = ""
    notes: str = ""
    begin_marker: str = "<!-- release:begin -->"
    end_marker: str = "<!-- release:end -->"
    phases: tuple[Phase, ...] = ALL_PHASES
    dry_run: bool = False

    @model_validator(mode="before")
    @classmethod
    def _default_release_branch(cls, data: object) -> object:
        # Single-branch workflow unless told otherwise
        if isinstance(data, dict) and not data.get("release_branch"):
            data = {**data, "release_branch": data.get("dev_branch") or "master"}
        return data

    @field_validator("next_version", "release_version")
    @classmethod
    def _check_version(cls, value: str | None) -> str | None:
        if value is not None:
            try:
                parse_version(value)
            except MalformedVersion as exc:
                raise ValueError(str(exc)) from exc
        return value

    @field_validator("version_pattern")
    @classmethod
    def _check_pattern(cls, value: str) -> str:
        try:
            compiled = re.compile(value, re.MULTILINE)
        except re.error as exc:
            raise ValueError(f"invalid regex: {exc}") from exc
        if "version" not in compiled.groupindex:
            raise ValueError("pattern must define a 'version' named group")
        return value

    @field_validator("dev_marker", "begin_marker", "end_marker")
    @classmethod
    def _not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("phases")
    @classmethod
    def _canonical_order(cls, value: tuple[Phase, ...]) -> tuple[Phase, ...]:
        if not value:
            raise ValueError("at least one phase must run")
        return tuple(p for p in ALL_PHASES if p in value)


class ReleasePlan(BaseModel):
    """Versions resolved once per run.

    Attributes:
        current_version: Version read from the manifest at the start.
        release_version: Version being released; never carries the marker.
        next_version: Next development version; always carries the marker.
        tag: Name of the release tag.
        release_candidate: Propagated from the config.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    current_version: semver.Version
    release_version: semver.Version
    next_version: semver.Version
    tag: str
    release_candidate: bool = False

    @property
    def prerelease_message(self) -> str:
        return f"[pre-release] {self.release_version}"

    @property
    def postrelease_message(self) -> str:
        # Refers to the release just cut, not the new development version
        return f"[post-release] {self.release_version}"
