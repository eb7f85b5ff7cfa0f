"""Release stages and their orchestration.

- semver: version parsing and the strict-increase check
- manifest: single-field rewrite of the crate manifest
- gate: external build/test command
- vcs: commit, push and tag
- registry: `cargo publish`
- orchestrator: sequencing and the run state machine
"""

from __future__ import annotations
