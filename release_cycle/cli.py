"""CLI entry point for release-cycle."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

from release_cycle.errors import ReleaseError
from release_cycle.manifest import read_version
from release_cycle.models import Phase, ReleaseConfig
from release_cycle.pipeline import run_release
from release_cycle.toml import load_config


def release_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by every command that reads the release settings."""
    options = [
        click.option(
            "--repo",
            type=click.Path(file_okay=False, path_type=Path),
            default=".",
            show_default=True,
            help="Repository root.",
        ),
        click.option("--dev-branch", help="Branch for the next development version."),
        click.option(
            "--release-branch",
            help="Branch the release is committed and tagged on [default: dev branch].",
        ),
        click.option("--manifest-file", help="File holding the version declaration."),
        click.option("--notes-file", help="File holding the release block."),
        click.option("--next-version", help="Explicit next development version."),
        click.option(
            "--release-version",
            help="Explicit release version, to resume an interrupted run.",
        ),
        click.option(
            "--bump",
            type=click.Choice(["patch", "minor", "major"]),
            help="Component to increment for the next version [default: patch].",
        ),
        click.option(
            "--rc/--no-rc",
            "release_candidate",
            default=None,
            help="Treat this release as a release candidate.",
        ),
        click.option("--notes", help="Free-form text for the release block."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _config(repo: Path, **overrides: Any) -> ReleaseConfig:
    try:
        return load_config(repo, overrides)
    except ReleaseError as exc:
        raise click.ClickException(str(exc)) from exc


@click.group()
@click.version_option(package_name="release-cycle")
def cli() -> None:
    """Snapshot → release → next-snapshot version cycle, driven by git."""


@cli.command()
@release_options
@click.option(
    "--phase",
    "phases",
    multiple=True,
    type=click.Choice([p.value for p in Phase]),
    help="Run only this phase (repeatable). Phases always run in order.",
)
@click.option("--dry-run", is_flag=True, help="Print the plan, change nothing.")
def release(
    repo: Path, phases: tuple[str, ...], dry_run: bool, **options: Any
) -> None:
    """Cut a release: commit and tag it, then start the next snapshot."""
    config = _config(repo, phases=phases or None, dry_run=dry_run or None, **options)
    try:
        run_release(config, root=repo)
    except ReleaseError as exc:
        raise click.ClickException(str(exc)) from exc


@cli.command()
@release_options
def plan(repo: Path, **options: Any) -> None:
    """Print the versions a release would use, without changing anything."""
    config = _config(repo, dry_run=True, **options)
    try:
        run_release(config, root=repo)
    except ReleaseError as exc:
        raise click.ClickException(str(exc)) from exc


@cli.command("show-version")
@click.option(
    "--repo",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Repository root.",
)
@click.option("--manifest-file", help="File holding the version declaration.")
def show_version(repo: Path, manifest_file: str | None) -> None:
    """Print the version currently declared in the manifest."""
    config = _config(repo, manifest_file=manifest_file)
    path = repo / config.manifest_file
    if not path.exists():
        raise click.ClickException(f"No {config.manifest_file} found in {repo}.")
    try:
        contents = path.read_text(encoding="utf-8")
    except (OSError, UnicodeError) as exc:
        raise click.ClickException(f"read {config.manifest_file}: {exc}") from exc
    try:
        version = read_version(contents, config.version_pattern)
    except ReleaseError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(str(version))
