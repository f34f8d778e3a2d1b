"""TOML configuration loading.

Release settings live in the ``[tool.release-cycle]`` table of the
repository's pyproject.toml:

    [tool.release-cycle]
    dev-branch = "develop"
    release-branch = "master"
    manifest-file = "build.gradle"
    group = "com.example"

Keys may use dashes or underscores. Command-line options override them.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import tomlkit
from pydantic import ValidationError
from tomlkit.exceptions import TOMLKitError

from .errors import ConfigurationError
from .models import ReleaseConfig

TABLE = "release-cycle"


def load_pyproject(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse a pyproject.toml file."""
    return tomlkit.parse(path.read_text(encoding="utf-8"))


def get_release_settings(doc: tomlkit.TOMLDocument) -> dict[str, Any]:
    """Extract ``[tool.release-cycle]`` as plain Python values.

    Dashed keys are normalized to underscores so they line up with
    ReleaseConfig field names. Returns an empty dict if the table is absent.
    """
    table = doc.get("tool", {}).get(TABLE)
    if not table:
        return {}
    return {str(k).replace("-", "_"): v for k, v in table.unwrap().items()}


def load_config(
    root: Path, overrides: Mapping[str, Any] | None = None
) -> ReleaseConfig:
    """Build the ReleaseConfig for a repository.

    Args:
        root: Repository root. Its pyproject.toml is read if present.
        overrides: Values that take precedence over the file, typically
            command-line options. ``None`` values are ignored so unset
            options don't mask file settings.

    Raises:
        ConfigurationError: If the file can't be parsed or a value is invalid.
    """
    settings: dict[str, Any] = {}
    pyproject = root / "pyproject.toml"
    if pyproject.exists():
        try:
            settings = get_release_settings(load_pyproject(pyproject))
        except TOMLKitError as exc:
            raise ConfigurationError(
                f"could not parse {pyproject}: {exc}", operation="load config"
            ) from exc

    for key, value in (overrides or {}).items():
        if value is not None:
            settings[key] = value

    try:
        return ReleaseConfig(**settings)
    except ValidationError as exc:
        raise ConfigurationError(str(exc), operation="load config") from exc
