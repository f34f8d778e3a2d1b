"""Manifest version declaration handling.

The manifest is the project definition file (``build.gradle`` by default)
that holds the one authoritative version string, declared assignment-style:

    version = '1.0.0-SNAPSHOT'

Only the declared value is rewritten. Quotes, indentation and the rest of
the file are left exactly as they were.
"""

from __future__ import annotations

import re

import semver

from .errors import VerificationFailed, VersionDeclarationNotFound
from .models import DEFAULT_VERSION_PATTERN
from .versions import parse_version


def find_declaration(
    contents: str, pattern: str = DEFAULT_VERSION_PATTERN
) -> re.Match[str]:
    """Locate the single version declaration.

    Raises:
        VersionDeclarationNotFound: If zero or several lines match. Several
            matches are ambiguous and treated as a hard stop.
    """
    matches = list(re.finditer(pattern, contents, re.MULTILINE))
    if len(matches) != 1:
        raise VersionDeclarationNotFound(
            f"expected exactly one version declaration, found {len(matches)}",
            operation="locate version declaration",
        )
    return matches[0]


def read_version(
    contents: str, pattern: str = DEFAULT_VERSION_PATTERN
) -> semver.Version:
    """Parse the declared version."""
    return parse_version(find_declaration(contents, pattern).group("version"))


def set_version(
    contents: str, version: semver.Version, pattern: str = DEFAULT_VERSION_PATTERN
) -> str:
    """Return ``contents`` with the declared version replaced by ``version``."""
    match = find_declaration(contents, pattern)
    start, end = match.span("version")
    return contents[:start] + str(version) + contents[end:]


def verify_version(
    contents: str, version: semver.Version, pattern: str = DEFAULT_VERSION_PATTERN
) -> None:
    """Check that a rewritten manifest declares ``version`` verbatim.

    Raises:
        VerificationFailed: If the declaration is missing or holds anything
            other than the expected string.
    """
    try:
        declared = find_declaration(contents, pattern).group("version")
    except VersionDeclarationNotFound as exc:
        raise VerificationFailed(
            f"version declaration lost after rewrite ({exc.message})",
            operation="verify manifest",
        ) from exc
    if declared != str(version):
        raise VerificationFailed(
            f"manifest declares '{declared}', expected '{version}'",
            operation="verify manifest",
        )
