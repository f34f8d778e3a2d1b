"""Error kinds raised by the release cycle.

Every error aborts the current phase and the run. The state machine stamps
the phase name onto the error as it crosses a phase boundary, so the
rendered message always reads ``[phase] operation: message`` followed by
the raw output of the tool that failed.
"""

from __future__ import annotations


class ReleaseError(Exception):
    """Base exception for all release-related errors."""

    def __init__(
        self, message: str, *, operation: str | None = None, output: str = ""
    ) -> None:
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.output = output
        self.phase: str | None = None

    def __str__(self) -> str:
        prefix = f"[{self.phase}] " if self.phase else ""
        where = f"{self.operation}: " if self.operation else ""
        text = f"{prefix}{where}{self.message}"
        if self.output.strip():
            text += "\n" + self.output.rstrip()
        return text


class ConfigurationError(ReleaseError):
    """Invalid or missing settings."""


class MalformedVersion(ReleaseError):
    """Text is not a MAJOR.MINOR.PATCH[-MARKER] version."""


class InvariantViolation(ReleaseError):
    """A computed plan would not move the version forward."""


class VersionDeclarationNotFound(ReleaseError):
    """The manifest has zero, or more than one, version declaration."""


class VerificationFailed(ReleaseError):
    """A rewritten file does not contain the version that was written."""


class MalformedDocument(ReleaseError):
    """A release block begin marker has no matching end marker."""


class GitCommandFailed(ReleaseError):
    """A git command exited non-zero."""


class NothingToCommit(GitCommandFailed):
    """The index has no staged changes."""


class TagAlreadyExists(GitCommandFailed):
    """The release tag is already present."""
