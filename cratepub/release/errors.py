"""Error types for the release stages."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ReleaseErrorKind = Literal[
    # version validator
    "malformed_version",
    "version_not_advancing",
    # manifest mutator
    "manifest_not_found",
    "no_version_field",
    "ambiguous_manifest",
    "manifest_io",
    # build/test gate
    "gate_failed",
    # vcs recorder
    "commit_failed",
    "push_rejected",
    "tag_already_exists",
    # registry publisher
    "authentication_failed",
    "version_conflict",
    "network_error",
    "publish_failed",
    # publish-only reconciliation
    "not_recorded",
]


@dataclass(frozen=True, slots=True)
class ReleaseError:
    """Canonical release error payload.

    `message` says what failed; `hint` carries tool output or the next step
    for the operator. Neither ever contains credentials.
    """

    kind: ReleaseErrorKind
    message: str
    hint: str | None = None

    @property
    def retryable(self) -> bool:
        # Only a transient registry failure is safe to re-run: the registry
        # itself rejects a second upload of the same version.
        return self.kind == "network_error"

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message
