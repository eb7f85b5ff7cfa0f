"""Single-field patching of the crate manifest.

The manifest is handled as raw bytes split into lines (line endings kept), so
a rewrite changes the quoted version value and nothing else: no TOML
round-trip, no reformatting, no newline normalisation.

A version declaration is a line starting with `version`, an `=`, and a
double-quoted value, optionally followed by a comment:

    version = "0.4.1"
    version="0.4.1"   # bumped by release

Exactly one such line must exist. Two are ambiguous (e.g. a
`[dependencies.foo]` table with its own `version`) and the file is left alone
rather than guessing which one is the package version.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from cratepub.core.result import Err, Ok, Result
from cratepub.platform.files import atomic_write_bytes
from cratepub.release.errors import ReleaseError
from cratepub.release.semver import SemanticVersion


_VERSION_LINE_RE = re.compile(rb'(version[ \t]*=[ \t]*")([^"]*)("[ \t]*(?:#.*)?)')


@dataclass(frozen=True, slots=True)
class ManifestState:
    path: Path
    lines: tuple[bytes, ...]
    index: int
    current_value: str

    def render(self, version: SemanticVersion) -> bytes:
        """Full manifest bytes with only the version value replaced."""
        line = self.lines[self.index]
        body, eol = _split_eol(line)
        m = _VERSION_LINE_RE.fullmatch(body)
        # load_manifest only records an index whose line matches.
        assert m is not None
        new_body = m.group(1) + str(version).encode("ascii") + m.group(3)
        lines = list(self.lines)
        lines[self.index] = new_body + eol
        return b"".join(lines)


def _split_eol(line: bytes) -> tuple[bytes, bytes]:
    if line.endswith(b"\r\n"):
        return (line[:-2], b"\r\n")
    if line.endswith((b"\n", b"\r")):
        return (line[:-1], line[-1:])
    return (line, b"")


def load_manifest(path: Path) -> Result[ManifestState, ReleaseError]:
    try:
        raw = path.read_bytes()
    except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
        return Err(
            ReleaseError(
                kind="manifest_not_found",
                message=f"manifest not found: {path}",
            )
        )
    except OSError as e:
        return Err(
            ReleaseError(
                kind="manifest_io",
                message=f"failed to read {path.name}: {e}",
                hint=str(path),
            )
        )

    lines = tuple(raw.splitlines(keepends=True))
    matches: list[int] = []
    for i, line in enumerate(lines):
        body, _ = _split_eol(line)
        if _VERSION_LINE_RE.fullmatch(body):
            matches.append(i)

    if not matches:
        return Err(
            ReleaseError(
                kind="no_version_field",
                message=f'no `version = "..."` line in {path.name}',
                hint=str(path),
            )
        )

    if len(matches) > 1:
        numbers = ", ".join(str(i + 1) for i in matches)
        return Err(
            ReleaseError(
                kind="ambiguous_manifest",
                message=f"{len(matches)} version lines in {path.name} (lines {numbers})",
                hint="Keep a single top-level `version = ...` line.",
            )
        )

    index = matches[0]
    m = _VERSION_LINE_RE.fullmatch(_split_eol(lines[index])[0])
    assert m is not None
    value = m.group(2).decode("utf-8", errors="replace")
    return Ok(ManifestState(path=path, lines=lines, index=index, current_value=value))


def read_version(manifest_path: Path) -> Result[str, ReleaseError]:
    """Raw (unvalidated) version value declared by the manifest."""
    return load_manifest(manifest_path).map(lambda state: state.current_value)


def rewrite_version(manifest_path: Path, version: SemanticVersion) -> Result[bool, ReleaseError]:
    """Set the manifest version to `version`.

    Returns Ok(True) if the file changed, Ok(False) if it already declared
    `version`. On any error the file on disk is untouched.
    """
    loaded = load_manifest(manifest_path)
    if isinstance(loaded, Err):
        return loaded
    state = loaded.value

    out = state.render(version)
    if out == b"".join(state.lines):
        return Ok(False)

    try:
        atomic_write_bytes(manifest_path, out)
    except OSError as e:
        return Err(
            ReleaseError(
                kind="manifest_io",
                message=f"failed to write {manifest_path.name}: {e}",
                hint=str(manifest_path),
            )
        )

    return Ok(True)
