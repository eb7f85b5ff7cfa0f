from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from cratepub.release.errors import ReleaseError
from cratepub.release.semver import SemanticVersion


ReleaseState = Literal[
    "idle",
    "validating",
    "verifying",
    "mutating",
    "recording",
    "publishing",
    "done",
    "failed",
]

# States a run can fail in.
ReleaseStage = Literal["validating", "verifying", "mutating", "recording", "publishing"]


@dataclass(frozen=True, slots=True)
class ReleaseRequest:
    """Raw inputs of one run; discarded once validation is done."""

    target_raw: str
    current_raw: str


@dataclass(frozen=True, slots=True)
class AuthorIdentity:
    name: str
    email: str


@dataclass(frozen=True, slots=True)
class RegistryCredentials:
    """Registry token for a single invocation.

    The token is excluded from repr so it cannot leak through error messages
    or test assertion output.
    """

    token: str = field(repr=False)

    @property
    def is_empty(self) -> bool:
        return not self.token.strip()


@dataclass(frozen=True, slots=True)
class ReleaseRecord:
    commit_sha: str
    tag: str
    branch_ref: str  # refs/heads/<branch> on the remote

    @property
    def short_sha(self) -> str:
        return self.commit_sha[:8]


@dataclass(frozen=True, slots=True)
class GateReport:
    command: tuple[str, ...]
    passed: bool


@dataclass(frozen=True, slots=True)
class ArtifactRef:
    """What the publisher uploads: the crate at `manifest_path`.

    Carries the gate report it was verified by; the publisher refuses an
    artifact whose gate did not pass.
    """

    manifest_path: Path
    version: SemanticVersion
    gate: GateReport


@dataclass(frozen=True, slots=True)
class PublishResult:
    success: bool
    registry_id: str | None = None


@dataclass(frozen=True, slots=True)
class ReleaseSummary:
    version: SemanticVersion
    record: ReleaseRecord | None
    publish: PublishResult | None
    dry_run: bool = False


@dataclass(frozen=True, slots=True)
class ReleaseFailure:
    """Terminal `failed(stage, reason)` outcome of a run."""

    stage: ReleaseStage
    error: ReleaseError

    def pretty(self) -> str:
        return f"{self.stage}: [{self.error.kind}] {self.error.pretty()}"
