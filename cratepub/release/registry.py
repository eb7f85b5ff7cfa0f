from __future__ import annotations

import re
from pathlib import Path

from cratepub.core.result import Err, Ok, Result
from cratepub.output.console import ConsoleProtocol, Style
from cratepub.platform.process import ProcessError
from cratepub.platform.process import run as run_process
from cratepub.release.errors import ReleaseError
from cratepub.release.model import ArtifactRef, PublishResult, RegistryCredentials

# cargo reads the token from this variable; it never appears in argv.
CARGO_TOKEN_ENV = "CARGO_REGISTRY_TOKEN"

_UPLOADED_RE = re.compile(r"\b(?:Published|Uploaded|Uploading)\s+(\S+)\s+v(\d+\.\d+\.\d+)\b")

_CONFLICT_MARKERS = (
    "is already uploaded",
    "already exists",
)
_AUTH_MARKERS = (
    "401 unauthorized",
    "403 forbidden",
    "status 401",
    "status 403",
    "authentication failed",
    "invalid token",
    "no token found",
    "please run `cargo login`",
    "unauthorized",
)
_NETWORK_MARKERS = (
    "timed out",
    "timeout",
    "spurious network error",
    "couldn't resolve host",
    "could not resolve host",
    "failed to connect",
    "connection reset",
    "connection refused",
    "network is unreachable",
    "temporarily unavailable",
    "service unavailable",
    "bad gateway",
    "gateway timeout",
    "status 429",
    "status 500",
    "status 502",
    "status 503",
    "status 504",
)


def classify_publish_error(error: ProcessError) -> ReleaseError:
    """Map a failed `cargo publish` to a typed release error.

    Conflict is checked first: "already exists" is final whatever else the
    output says. Anything unrecognised is `publish_failed`, not
    `network_error`, so an unknown failure is never advertised as safe to retry.
    """
    text = error.output.lower()
    hint = error.stderr.strip() or error.stdout.strip() or None

    if error.timed_out:
        return ReleaseError(
            kind="network_error",
            message="cargo publish timed out",
            hint="The registry rejects duplicate versions; re-running publish is safe.",
        )
    if any(marker in text for marker in _CONFLICT_MARKERS):
        return ReleaseError(
            kind="version_conflict",
            message="registry already has this version",
            hint=hint,
        )
    if any(marker in text for marker in _AUTH_MARKERS):
        return ReleaseError(
            kind="authentication_failed",
            message="registry rejected the credentials",
            hint=hint,
        )
    if any(marker in text for marker in _NETWORK_MARKERS):
        return ReleaseError(kind="network_error", message="registry unreachable", hint=hint)
    return ReleaseError(
        kind="publish_failed",
        message=f"cargo publish failed (exit {error.returncode})",
        hint=hint,
    )


def parse_registry_id(output: str) -> str | None:
    m = _UPLOADED_RE.search(output)
    if m is None:
        return None
    return f"{m.group(1)}@{m.group(2)}"


class CargoPublisher:
    """Uploads a verified crate with `cargo publish`.

    Credentials are handed to the child process environment for the duration
    of one call. `cargo login` is never used, so nothing is written to the
    cargo credentials file.
    """

    def __init__(
        self,
        *,
        project_root: Path,
        console: ConsoleProtocol,
        timeout_seconds: float,
    ) -> None:
        self.project_root = project_root
        self.timeout_seconds = timeout_seconds
        self._console = console

    def command(self, artifact: ArtifactRef) -> list[str]:
        return ["cargo", "publish", "--manifest-path", str(artifact.manifest_path)]

    def publish(
        self, artifact: ArtifactRef, credentials: RegistryCredentials
    ) -> Result[PublishResult, ReleaseError]:
        if not artifact.gate.passed:
            return Err(
                ReleaseError(
                    kind="publish_failed",
                    message="refusing to publish an artifact that did not pass the gate",
                    hint=" ".join(artifact.gate.command),
                )
            )

        if credentials.is_empty:
            return Err(
                ReleaseError(
                    kind="authentication_failed",
                    message="registry token is empty",
                    hint=f"Provide the token through {CARGO_TOKEN_ENV}.",
                )
            )

        cmd = self.command(artifact)
        self._console.print(" ".join(cmd), Style.DIM)
        result = run_process(
            cmd,
            cwd=self.project_root,
            extra_env={CARGO_TOKEN_ENV: credentials.token},
            timeout=self.timeout_seconds,
        )
        if isinstance(result, Err):
            return Err(classify_publish_error(result.error))

        return Ok(PublishResult(success=True, registry_id=parse_registry_id(result.value)))
