"""Git side of a release: commit the bumped manifest, push it, tag it.

Order is fixed: stage -> commit -> push branch -> tag -> push tag. The branch
is pushed before the tag exists so a tag can never reference a commit the
remote has not seen. Nothing is ever forced: a rejected push or an existing
tag stops the run. `ensure_tag_free` is the read-only preflight, run before
the manifest is rewritten; only the manifest path is committed.

Usage:
    recorder = GitRecorder(repo_root=root, manifest_path=root / "Cargo.toml",
                           remote="origin", branch="main", tag_prefix="version/",
                           console=console)
    match recorder.record_release(version, author):
        case Ok(record):
            print(record.tag, record.commit_sha)
        case Err(e):
            print(e.kind, e.message)
"""

from __future__ import annotations

from pathlib import Path

from cratepub.core.result import Err, Ok, Result
from cratepub.output.console import ConsoleProtocol, Style
from cratepub.platform.process import ProcessError
from cratepub.platform.process import run as run_process
from cratepub.release.errors import ReleaseError, ReleaseErrorKind
from cratepub.release.model import AuthorIdentity, ReleaseRecord
from cratepub.release.semver import SemanticVersion
from cratepub.release.timeouts import GIT_NETWORK_TIMEOUT_SECONDS, GIT_TIMEOUT_SECONDS

COMMIT_MESSAGE_TEMPLATE = "Bump version to {version}"

_TAG_EXISTS_MARKERS = ("already exists",)


def commit_message(version: SemanticVersion) -> str:
    return COMMIT_MESSAGE_TEMPLATE.format(version=version)


def _hint(error: ProcessError) -> str | None:
    return error.stderr.strip() or error.stdout.strip() or None


class GitRecorder:
    """Records a release in a local git checkout and its remote.

    Attributes:
        repo_root: Working tree root
        manifest_path: The mutated manifest, the only path that gets staged
        remote: Remote name to push to
        branch: Remote branch receiving the release commit
        tag_prefix: Prepended to the version to form the tag name
    """

    def __init__(
        self,
        *,
        repo_root: Path,
        manifest_path: Path,
        remote: str,
        branch: str,
        tag_prefix: str,
        console: ConsoleProtocol,
    ) -> None:
        self.repo_root = repo_root
        self.manifest_path = manifest_path
        self.remote = remote
        self.branch = branch
        self.tag_prefix = tag_prefix
        self._console = console

    def tag_name(self, version: SemanticVersion) -> str:
        return f"{self.tag_prefix}{version}"

    @property
    def branch_ref(self) -> str:
        return f"refs/heads/{self.branch}"

    def record_release(
        self, version: SemanticVersion, author: AuthorIdentity
    ) -> Result[ReleaseRecord, ReleaseError]:
        tag = self.tag_name(version)
        rel = self._manifest_relpath()
        add = self._git(["add", "--", rel])
        if isinstance(add, Err):
            return self._fail("commit_failed", "git add failed", add.error)

        message = commit_message(version)
        commit = self._git(
            [
                "-c",
                f"user.name={author.name}",
                "-c",
                f"user.email={author.email}",
                "commit",
                "-m",
                message,
                "--",
                rel,
            ],
            display=["commit", "-m", message, "--", rel],
        )
        if isinstance(commit, Err):
            return self._fail("commit_failed", "git commit failed", commit.error)

        sha = self.head_sha()
        if isinstance(sha, Err):
            return sha

        push = self._git(["push", self.remote, f"HEAD:{self.branch_ref}"], network=True)
        if isinstance(push, Err):
            return self._fail(
                "push_rejected",
                f"push to {self.remote}/{self.branch} was rejected",
                push.error,
            )

        created = self._git(["tag", tag, sha.value])
        if isinstance(created, Err):
            e = created.error
            if any(marker in e.output for marker in _TAG_EXISTS_MARKERS):
                return self._fail("tag_already_exists", f"tag already exists: {tag}", e)
            return self._fail("commit_failed", f"failed to create tag {tag}", e)

        push_tag = self._git(["push", self.remote, f"refs/tags/{tag}"], network=True)
        if isinstance(push_tag, Err):
            e = push_tag.error
            if any(marker in e.output for marker in _TAG_EXISTS_MARKERS):
                return self._fail(
                    "tag_already_exists", f"tag already exists on {self.remote}: {tag}", e
                )
            return self._fail("push_rejected", f"push of tag {tag} was rejected", e)

        return Ok(ReleaseRecord(commit_sha=sha.value, tag=tag, branch_ref=self.branch_ref))

    def head_sha(self) -> Result[str, ReleaseError]:
        result = self._git(["rev-parse", "HEAD"], quiet=True)
        if isinstance(result, Err):
            return self._fail("commit_failed", "failed to read HEAD sha", result.error)

        sha = result.value.strip()
        if len(sha) != 40:
            return Err(
                ReleaseError(kind="commit_failed", message="invalid HEAD sha", hint=sha or None)
            )
        return Ok(sha)

    def local_tag_target(self, tag: str) -> str | None:
        """Commit sha a local tag points at, or None if there is no such tag."""
        result = self._git(
            ["rev-parse", "-q", "--verify", f"refs/tags/{tag}^{{commit}}"],
            quiet=True,
        )
        if isinstance(result, Err):
            return None
        return result.value.strip() or None

    def manifest_matches_tag(self, tag: str) -> Result[bool, ReleaseError]:
        """True when the manifest on disk is byte-identical to the tagged one."""
        rel = self._manifest_relpath()
        result = self._git(["diff", "--quiet", f"refs/tags/{tag}", "--", rel], quiet=True)
        if isinstance(result, Ok):
            return Ok(True)
        # `git diff --quiet` exits 1 for "differs"; anything else is a failure.
        if result.error.returncode == 1 and not result.error.timed_out:
            return Ok(False)
        return self._fail("commit_failed", f"cannot compare {rel} with {tag}", result.error)

    def remote_has_tag(self, tag: str) -> Result[bool, ReleaseError]:
        result = self._git(
            ["ls-remote", "--tags", self.remote, f"refs/tags/{tag}"],
            network=True,
        )
        if isinstance(result, Err):
            return self._fail(
                "push_rejected",
                f"cannot query tags on remote {self.remote}; nothing was pushed, safe to re-run",
                result.error,
            )
        return Ok(bool(result.value.strip()))

    def ensure_tag_free(self, version: SemanticVersion) -> Result[None, ReleaseError]:
        """Fail with `tag_already_exists` if the release tag exists locally or remotely.

        Read-only; the orchestrator calls it before touching the manifest.
        """
        tag = self.tag_name(version)
        target = self.local_tag_target(tag)
        if target is not None:
            return Err(
                ReleaseError(
                    kind="tag_already_exists",
                    message=f"tag already exists: {tag} -> {target[:8]}",
                    hint=f"If only publishing failed, run: cratepub publish {version}",
                )
            )

        remote = self.remote_has_tag(tag)
        if isinstance(remote, Err):
            return remote
        if remote.value:
            return Err(
                ReleaseError(
                    kind="tag_already_exists",
                    message=f"tag already exists on {self.remote}: {tag}",
                    hint="Run `git fetch --tags` and inspect the tag before retrying.",
                )
            )
        return Ok(None)

    def _manifest_relpath(self) -> str:
        try:
            return str(self.manifest_path.relative_to(self.repo_root))
        except ValueError:
            return str(self.manifest_path)

    def _fail(
        self, kind: ReleaseErrorKind, message: str, error: ProcessError
    ) -> Err[ReleaseError]:
        return Err(ReleaseError(kind=kind, message=message, hint=_hint(error)))

    def _git(
        self,
        args: list[str],
        *,
        network: bool = False,
        quiet: bool = False,
        display: list[str] | None = None,
    ) -> Result[str, ProcessError]:
        """Run git in the repository.

        The command is echoed unless `quiet`; `display` replaces the echoed
        arguments when the real ones are noisy (identity overrides).
        """
        if not quiet:
            shown = display if display is not None else args
            self._console.print(f"git {' '.join(shown)}", Style.DIM)

        timeout = GIT_NETWORK_TIMEOUT_SECONDS if network else GIT_TIMEOUT_SECONDS
        return run_process(
            ["git", "-C", str(self.repo_root), *args],
            cwd=self.repo_root,
            timeout=timeout,
        )
