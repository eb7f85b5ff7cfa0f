from __future__ import annotations

# Local git operations (add, commit, tag, rev-parse)
GIT_TIMEOUT_SECONDS = 30.0

# Network-bound git operations (push, ls-remote)
GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0
