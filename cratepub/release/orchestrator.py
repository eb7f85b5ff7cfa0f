"""Release orchestrator: validate -> verify -> mutate -> record -> publish.

Stages run strictly in order and the first failure ends the run in the
terminal `failed` state, tagged with the stage it happened in. Earlier stages
are never rolled back: if publishing fails after the tag was pushed, the tag
stays and `publish_only` is the way to finish the release.

Collaborators (gate, recorder, publisher) are injected so that tests, and
callers with other tooling, can swap them without touching the sequencing.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from cratepub.core.result import Err, Ok, Result
from cratepub.output.console import ConsoleProtocol, Style
from cratepub.release.errors import ReleaseError
from cratepub.release.manifest import read_version, rewrite_version
from cratepub.release.model import (
    ArtifactRef,
    AuthorIdentity,
    GateReport,
    PublishResult,
    RegistryCredentials,
    ReleaseFailure,
    ReleaseRecord,
    ReleaseRequest,
    ReleaseStage,
    ReleaseState,
    ReleaseSummary,
)
from cratepub.release.semver import SemanticVersion, parse_version, validate
from cratepub.release.vcs import commit_message


class Gate(Protocol):
    def run(self) -> Result[GateReport, ReleaseError]: ...


class Recorder(Protocol):
    @property
    def branch_ref(self) -> str: ...

    def tag_name(self, version: SemanticVersion) -> str: ...

    def head_sha(self) -> Result[str, ReleaseError]: ...

    def local_tag_target(self, tag: str) -> str | None: ...

    def manifest_matches_tag(self, tag: str) -> Result[bool, ReleaseError]: ...

    def ensure_tag_free(self, version: SemanticVersion) -> Result[None, ReleaseError]: ...

    def record_release(
        self, version: SemanticVersion, author: AuthorIdentity
    ) -> Result[ReleaseRecord, ReleaseError]: ...


class Publisher(Protocol):
    def command(self, artifact: ArtifactRef) -> list[str]: ...

    def publish(
        self, artifact: ArtifactRef, credentials: RegistryCredentials
    ) -> Result[PublishResult, ReleaseError]: ...


class ReleaseOrchestrator:
    """Runs one release. Not reusable: create one per invocation."""

    def __init__(
        self,
        *,
        manifest_path: Path,
        gate: Gate,
        recorder: Recorder,
        publisher: Publisher,
        credentials: RegistryCredentials,
        author: AuthorIdentity,
        console: ConsoleProtocol,
    ) -> None:
        self.manifest_path = manifest_path
        self.gate = gate
        self.recorder = recorder
        self.publisher = publisher
        self._credentials = credentials
        self._author = author
        self._console = console
        self._history: list[ReleaseState] = ["idle"]

    @property
    def state(self) -> ReleaseState:
        return self._history[-1]

    @property
    def history(self) -> tuple[ReleaseState, ...]:
        return tuple(self._history)

    def run(
        self, target_raw: str, *, dry_run: bool = False
    ) -> Result[ReleaseSummary, ReleaseFailure]:
        """Release `target_raw`, or with `dry_run` only validate and print the plan."""
        self._enter("validating")
        current = read_version(self.manifest_path)
        if isinstance(current, Err):
            return self._fail("validating", current.error)

        request = ReleaseRequest(target_raw=target_raw.strip(), current_raw=current.value)
        validated = validate(request.current_raw, request.target_raw)
        if isinstance(validated, Err):
            return self._fail("validating", validated.error)
        version = validated.value
        self._console.print(f"version: {request.current_raw} -> {version}")

        if dry_run:
            self._print_plan(version)
            self._enter("done")
            return Ok(ReleaseSummary(version=version, record=None, publish=None, dry_run=True))

        free = self.recorder.ensure_tag_free(version)
        if isinstance(free, Err):
            return self._fail("validating", free.error)

        self._enter("verifying")
        report = self.gate.run()
        if isinstance(report, Err):
            return self._fail("verifying", report.error)

        self._enter("mutating")
        changed = rewrite_version(self.manifest_path, version)
        if isinstance(changed, Err):
            return self._fail("mutating", changed.error)
        self._console.print(f"{self.manifest_path.name}: version = \"{version}\"", Style.DIM)

        self._enter("recording")
        record = self.recorder.record_release(version, self._author)
        if isinstance(record, Err):
            return self._fail("recording", record.error)
        self._console.success(f"tagged {record.value.tag} at {record.value.short_sha}")

        published = self._publish(version, report.value)
        if isinstance(published, Err):
            self._console.warning(
                f"{record.value.tag} is already pushed; finish with: cratepub publish {version}"
            )
            return published

        self._enter("done")
        return Ok(ReleaseSummary(version=version, record=record.value, publish=published.value))

    def publish_only(self, version_raw: str) -> Result[ReleaseSummary, ReleaseFailure]:
        """Finish a release whose commit and tag were already pushed.

        The manifest must already declare `version_raw`, and HEAD must be the
        commit its tag points at, so exactly what was tagged gets published.
        """
        self._enter("validating")
        version = parse_version(version_raw.strip())
        if version is None:
            return self._fail(
                "validating",
                ReleaseError(
                    kind="malformed_version",
                    message=f"invalid version: {version_raw!r}",
                    hint="Expected MAJOR.MINOR.PATCH, e.g. 1.4.0",
                ),
            )

        current = read_version(self.manifest_path)
        if isinstance(current, Err):
            return self._fail("validating", current.error)
        if parse_version(current.value) != version:
            return self._fail(
                "validating",
                ReleaseError(
                    kind="not_recorded",
                    message=f"manifest declares {current.value}, not {version}",
                    hint=f"Run: cratepub release {version}",
                ),
            )

        recorded = self._ensure_recorded(version)
        if isinstance(recorded, Err):
            return self._fail("validating", recorded.error)

        self._enter("verifying")
        report = self.gate.run()
        if isinstance(report, Err):
            return self._fail("verifying", report.error)

        published = self._publish(version, report.value)
        if isinstance(published, Err):
            return published

        self._enter("done")
        return Ok(ReleaseSummary(version=version, record=None, publish=published.value))

    def _ensure_recorded(self, version: SemanticVersion) -> Result[str, ReleaseError]:
        tag = self.recorder.tag_name(version)
        target = self.recorder.local_tag_target(tag)
        if target is None:
            return Err(
                ReleaseError(
                    kind="not_recorded",
                    message=f"tag {tag} does not exist",
                    hint="Run `git fetch --tags`, or release the version first.",
                )
            )

        head = self.recorder.head_sha()
        if isinstance(head, Err):
            return head
        if head.value != target:
            return Err(
                ReleaseError(
                    kind="not_recorded",
                    message=f"HEAD {head.value[:8]} is not the tagged commit {target[:8]}",
                    hint=f"git checkout {tag}",
                )
            )

        same = self.recorder.manifest_matches_tag(tag)
        if isinstance(same, Err):
            return same
        if not same.value:
            return Err(
                ReleaseError(
                    kind="not_recorded",
                    message=f"{self.manifest_path.name} differs from the one tagged {tag}",
                    hint=f"git checkout {tag} -- {self.manifest_path.name}",
                )
            )
        return Ok(target)

    def _publish(
        self, version: SemanticVersion, report: GateReport
    ) -> Result[PublishResult, ReleaseFailure]:
        self._enter("publishing")
        artifact = ArtifactRef(manifest_path=self.manifest_path, version=version, gate=report)
        published = self.publisher.publish(artifact, self._credentials)
        if isinstance(published, Err):
            return self._fail("publishing", published.error)

        label = published.value.registry_id or str(version)
        self._console.success(f"published {label}")
        return published

    def _print_plan(self, version: SemanticVersion) -> None:
        tag = self.recorder.tag_name(version)
        artifact = ArtifactRef(
            manifest_path=self.manifest_path,
            version=version,
            gate=GateReport(command=(), passed=False),
        )
        self._console.info("dry run: nothing will be changed")
        name = self.manifest_path.name
        self._console.print(f'rewrite {name}: version = "{version}"', Style.DIM)
        self._console.print(f"git commit -m {commit_message(version)}", Style.DIM)
        self._console.print(f"git push -> {self.recorder.branch_ref}", Style.DIM)
        self._console.print(f"git tag {tag} && git push {tag}", Style.DIM)
        self._console.print(" ".join(self.publisher.command(artifact)), Style.DIM)

    def _enter(self, state: ReleaseState) -> None:
        self._history.append(state)
        self._console.stage(state)

    def _fail(self, stage: ReleaseStage, error: ReleaseError) -> Err[ReleaseFailure]:
        self._history.append("failed")
        failure = ReleaseFailure(stage=stage, error=error)
        self._console.error(failure.pretty())
        if error.retryable:
            self._console.print("this failure is transient; the step can be re-run", Style.DIM)
        return Err(failure)
