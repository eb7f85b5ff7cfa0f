from __future__ import annotations

import re
from dataclasses import dataclass

from cratepub.core.result import Err, Ok, Result
from cratepub.release.errors import ReleaseError


# Three dot-separated integers, nothing else: no "v" prefix, no pre-release or
# build metadata. Leading zeros are accepted and parsed as integers.
_VERSION_RE = re.compile(r"(\d+)\.(\d+)\.(\d+)", re.ASCII)


@dataclass(frozen=True, slots=True, order=True)
class SemanticVersion:
    major: int
    minor: int
    patch: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


def parse_version(raw: str) -> SemanticVersion | None:
    m = _VERSION_RE.fullmatch(raw)
    if m is None:
        return None
    return SemanticVersion(int(m.group(1)), int(m.group(2)), int(m.group(3)))


def validate(current_raw: str, target_raw: str) -> Result[SemanticVersion, ReleaseError]:
    """Accept `target_raw` only if it is strictly newer than `current_raw`.

    Pure: no I/O. A malformed current version means the manifest itself is
    broken and is reported, never replaced by a default.
    """
    target = parse_version(target_raw)
    if target is None:
        return Err(
            ReleaseError(
                kind="malformed_version",
                message=f"invalid target version: {target_raw!r}",
                hint="Expected MAJOR.MINOR.PATCH, e.g. 1.4.0",
            )
        )

    current = parse_version(current_raw)
    if current is None:
        return Err(
            ReleaseError(
                kind="malformed_version",
                message=f"invalid current version in manifest: {current_raw!r}",
                hint="Fix the manifest version field by hand, then retry.",
            )
        )

    if target <= current:
        return Err(
            ReleaseError(
                kind="version_not_advancing",
                message=f"target version {target} is not greater than current version {current}",
            )
        )

    return Ok(target)
