from __future__ import annotations

from typing import NoReturn

import typer

from cratepub.core.errors import ErrorCode
from cratepub.release.errors import ReleaseErrorKind
from cratepub.release.model import ReleaseFailure


_EXIT_CODES: dict[ReleaseErrorKind, ErrorCode] = {
    "malformed_version": ErrorCode.USER_ERROR,
    "version_not_advancing": ErrorCode.USER_ERROR,
    "not_recorded": ErrorCode.USER_ERROR,
    "manifest_not_found": ErrorCode.IO_ERROR,
    "no_version_field": ErrorCode.IO_ERROR,
    "ambiguous_manifest": ErrorCode.IO_ERROR,
    "manifest_io": ErrorCode.IO_ERROR,
    "gate_failed": ErrorCode.BUILD_ERROR,
    "commit_failed": ErrorCode.VCS_ERROR,
    "push_rejected": ErrorCode.VCS_ERROR,
    "tag_already_exists": ErrorCode.VCS_ERROR,
    "authentication_failed": ErrorCode.REGISTRY_ERROR,
    "version_conflict": ErrorCode.REGISTRY_ERROR,
    "publish_failed": ErrorCode.REGISTRY_ERROR,
    "network_error": ErrorCode.NETWORK_ERROR,
}


def release_error_code(kind: ReleaseErrorKind) -> ErrorCode:
    return _EXIT_CODES.get(kind, ErrorCode.USER_ERROR)


def exit_release(err: str, *, code: ErrorCode) -> NoReturn:
    typer.echo(f"error: {err}", err=True)
    raise typer.Exit(code=int(code))


def exit_failure(failure: ReleaseFailure) -> NoReturn:
    """Exit for a failed run; the orchestrator already printed the details."""
    raise typer.Exit(code=int(release_error_code(failure.error.kind)))
