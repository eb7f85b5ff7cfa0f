from __future__ import annotations

from pathlib import Path

import typer

from cratepub.cli.commands.release_common import exit_failure, exit_release, release_error_code
from cratepub.cli.context import build_context, build_orchestrator
from cratepub.core.result import Err
from cratepub.output.console import Style
from cratepub.release.manifest import read_version
from cratepub.release.semver import validate


_PROJECT_OPTION = typer.Option(
    None,
    "--project",
    help="Crate root (defaults to the current directory)",
)


def release(
    version: str = typer.Argument(..., help="Target version, MAJOR.MINOR.PATCH"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Validate and print the plan only."),
    project: Path | None = _PROJECT_OPTION,
) -> None:
    """Bump, commit, tag and publish VERSION."""
    ctx = build_context(project)
    orchestrator = build_orchestrator(ctx)

    result = orchestrator.run(version, dry_run=dry_run)
    if isinstance(result, Err):
        exit_failure(result.error)

    summary = result.value
    if summary.dry_run:
        return
    ctx.console.success(f"released {summary.version}")


def publish(
    version: str = typer.Argument(..., help="Already tagged version to publish"),
    project: Path | None = _PROJECT_OPTION,
) -> None:
    """Publish an already committed and tagged VERSION (resume after a failed publish)."""
    ctx = build_context(project)
    orchestrator = build_orchestrator(ctx)

    result = orchestrator.publish_only(version)
    if isinstance(result, Err):
        exit_failure(result.error)
    ctx.console.success(f"released {result.value.version}")


def check_version(
    version: str = typer.Argument(..., help="Target version, MAJOR.MINOR.PATCH"),
    project: Path | None = _PROJECT_OPTION,
) -> None:
    """Check that VERSION would be accepted, without changing anything."""
    ctx = build_context(project)

    current = read_version(ctx.config.manifest_path)
    if isinstance(current, Err):
        exit_release(current.error.pretty(), code=release_error_code(current.error.kind))

    validated = validate(current.value, version.strip())
    if isinstance(validated, Err):
        exit_release(validated.error.pretty(), code=release_error_code(validated.error.kind))

    ctx.console.print(f"current: {current.value}", Style.DIM)
    ctx.console.success(f"{validated.value} can be released")


def current(project: Path | None = _PROJECT_OPTION) -> None:
    """Print the version declared by the manifest."""
    ctx = build_context(project)

    value = read_version(ctx.config.manifest_path)
    if isinstance(value, Err):
        exit_release(value.error.pretty(), code=release_error_code(value.error.kind))
    typer.echo(value.value)
