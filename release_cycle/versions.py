"""Version parsing and bumping utilities.

Versions are ``MAJOR.MINOR.PATCH`` with an optional ``-MARKER`` suffix.
A marker equal to the configured development marker (``SNAPSHOT`` by
default) means "in development, not a release":

    1.4.2-SNAPSHOT  →  release 1.4.2  →  next 1.4.3-SNAPSHOT

Everything here is pure: no I/O, no git.
"""

from __future__ import annotations

import re
from typing import Literal

import semver

from .errors import InvariantViolation, MalformedVersion

Bump = Literal["patch", "minor", "major"]

DEFAULT_MARKER = "SNAPSHOT"

_VERSION_RE = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)


def parse_version(text: str) -> semver.Version:
    """Parse a ``MAJOR.MINOR.PATCH[-MARKER]`` string into a semver.Version.

    Unlike semver's own parser, build metadata (``+build``) and leading
    zeros are rejected so that parsing and formatting round-trip exactly.

    Raises:
        MalformedVersion: If the text does not match the expected shape.
    """
    m = _VERSION_RE.match(text.strip())
    if m is None:
        raise MalformedVersion(
            f"'{text}' is not a MAJOR.MINOR.PATCH[-MARKER] version",
            operation="parse version",
        )
    major, minor, patch, marker = m.groups()
    return semver.Version(int(major), int(minor), int(patch), prerelease=marker)


def format_version(version: semver.Version) -> str:
    return str(version)


def is_development(version: semver.Version, marker: str = DEFAULT_MARKER) -> bool:
    """True if the version carries the development marker."""
    return version.prerelease == marker


def to_release_version(
    version: semver.Version, marker: str = DEFAULT_MARKER
) -> semver.Version:
    """Strip the development marker, leaving the components alone.

    Other markers (``1.0.0-rc1``) are not development markers and survive.

    Examples:
        "1.4.2-SNAPSHOT" → "1.4.2"
        "1.4.2" → "1.4.2"
    """
    if is_development(version, marker):
        return version.replace(prerelease=None)
    return version


def to_next_version(
    version: semver.Version,
    bump: Bump = "patch",
    override: str | None = None,
    marker: str = DEFAULT_MARKER,
) -> semver.Version:
    """Compute the next development version.

    If ``override`` is given it wins outright, except that the development
    marker is forced onto it. Otherwise the selected component is
    incremented, lower components are zeroed, and the marker is applied.

    Examples:
        ("1.4.2", "patch") → "1.4.3-SNAPSHOT"
        ("1.4.2", "minor") → "1.5.0-SNAPSHOT"
        ("1.4.2", "major") → "2.0.0-SNAPSHOT"
        ("1.4.2", override="2.0.0") → "2.0.0-SNAPSHOT"
    """
    if override is not None:
        return parse_version(override).replace(prerelease=marker)

    if bump == "major":
        bumped = version.bump_major()
    elif bump == "minor":
        bumped = version.bump_minor()
    elif bump == "patch":
        bumped = version.bump_patch()
    else:
        raise InvariantViolation(
            f"unknown bump component '{bump}'", operation="compute next version"
        )
    return bumped.replace(prerelease=marker)


def check_forward_progress(release: semver.Version, next_: semver.Version) -> None:
    """Assert that ``next_`` is strictly ahead of ``release``.

    Only major/minor/patch are compared; markers are not ordered.

    Raises:
        InvariantViolation: If the next version does not move forward.
    """
    if next_.finalize_version() <= release.finalize_version():
        raise InvariantViolation(
            f"next version {next_} is not ahead of release version {release}",
            operation="compute next version",
        )
