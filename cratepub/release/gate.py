from __future__ import annotations

from pathlib import Path

from cratepub.core.result import Err, Ok, Result
from cratepub.output.console import ConsoleProtocol, Style
from cratepub.platform.process import run as run_process
from cratepub.release.errors import ReleaseError
from cratepub.release.model import GateReport

# Lines of failing test output kept in the error hint.
_HINT_TAIL_LINES = 20


class CommandGate:
    """Build/test gate backed by an external command (`cargo test` by default).

    Only the exit status matters; output is kept for the failure hint.
    """

    def __init__(
        self,
        *,
        project_root: Path,
        command: tuple[str, ...],
        timeout_seconds: float,
        console: ConsoleProtocol,
    ) -> None:
        self.project_root = project_root
        self.command = command
        self.timeout_seconds = timeout_seconds
        self._console = console

    def run(self) -> Result[GateReport, ReleaseError]:
        self._console.print(" ".join(self.command), Style.DIM)
        result = run_process(
            list(self.command),
            cwd=self.project_root,
            timeout=self.timeout_seconds,
        )
        if isinstance(result, Err):
            e = result.error
            tail = "\n".join(e.output.splitlines()[-_HINT_TAIL_LINES:])
            reason = "timed out" if e.timed_out else f"failed (exit {e.returncode})"
            return Err(
                ReleaseError(
                    kind="gate_failed",
                    message=f"{' '.join(self.command)} {reason}",
                    hint=tail or None,
                )
            )
        return Ok(GateReport(command=self.command, passed=True))
