from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from cratepub.core.config import ReleaseConfig, load_project_config
from cratepub.core.errors import ErrorCode
from cratepub.core.result import Err
from cratepub.output.console import ConsoleProtocol, RichConsole
from cratepub.release.gate import CommandGate
from cratepub.release.model import AuthorIdentity, RegistryCredentials
from cratepub.release.orchestrator import ReleaseOrchestrator
from cratepub.release.registry import CargoPublisher
from cratepub.release.vcs import GitRecorder


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: ReleaseConfig
    console: ConsoleProtocol


def build_context(project: Path | None) -> CLIContext:
    root = (project or Path.cwd()).expanduser().resolve()
    if not root.is_dir():
        typer.echo(f"error: project directory not found: {root}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    config_result = load_project_config(root)
    if isinstance(config_result, Err):
        typer.echo(f"error: {config_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    return CLIContext(config=config_result.value, console=RichConsole())


def read_credentials(config: ReleaseConfig) -> RegistryCredentials:
    """Registry token from the configured environment variable.

    This is the only place the process environment is consulted for secrets.
    """
    return RegistryCredentials(token=os.environ.get(config.registry.token_env, ""))


def build_orchestrator(ctx: CLIContext) -> ReleaseOrchestrator:
    config = ctx.config
    return ReleaseOrchestrator(
        manifest_path=config.manifest_path,
        gate=CommandGate(
            project_root=config.project_root,
            command=config.gate.command,
            timeout_seconds=config.gate.timeout_seconds,
            console=ctx.console,
        ),
        recorder=GitRecorder(
            repo_root=config.project_root,
            manifest_path=config.manifest_path,
            remote=config.git.remote,
            branch=config.git.branch,
            tag_prefix=config.git.tag_prefix,
            console=ctx.console,
        ),
        publisher=CargoPublisher(
            project_root=config.project_root,
            console=ctx.console,
            timeout_seconds=config.registry.timeout_seconds,
        ),
        credentials=read_credentials(config),
        author=AuthorIdentity(name=config.git.author_name, email=config.git.author_email),
        console=ctx.console,
    )
