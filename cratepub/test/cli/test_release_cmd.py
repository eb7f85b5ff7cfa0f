from __future__ import annotations

import sys
from pathlib import Path
from typing import get_args

import pytest
import typer
from typer.testing import CliRunner

from cratepub import __version__
from cratepub.cli.app import app
from cratepub.cli.commands.release_common import _EXIT_CODES, release_error_code
from cratepub.cli.context import CLIContext, build_context, read_credentials
from cratepub.core.config import GateConfig, RegistryConfig, ReleaseConfig
from cratepub.core.errors import ErrorCode
from cratepub.output.console import MockConsole
from cratepub.release.errors import ReleaseErrorKind

MANIFEST = b'[package]\nname = "blackscholes"\nversion = "0.4.1"\n'


def _ctx(tmp_path: Path, *, gate_exit: int = 0) -> CLIContext:
    (tmp_path / "Cargo.toml").write_bytes(MANIFEST)
    return CLIContext(
        config=ReleaseConfig(
            project_root=tmp_path,
            gate=GateConfig(
                command=(sys.executable, "-c", f"import sys; sys.exit({gate_exit})"),
                timeout_seconds=30.0,
            ),
        ),
        console=MockConsole(),
    )


def _patch_context(monkeypatch: pytest.MonkeyPatch, ctx: CLIContext) -> None:
    import cratepub.cli.commands.release_cmd as release_cmd

    monkeypatch.setattr(release_cmd, "build_context", lambda _project: ctx)


def test_release_dry_run_changes_nothing(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import cratepub.cli.commands.release_cmd as release_cmd

    ctx = _ctx(tmp_path)
    _patch_context(monkeypatch, ctx)

    release_cmd.release("0.4.2", dry_run=True, project=None)

    assert (tmp_path / "Cargo.toml").read_bytes() == MANIFEST
    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.stages() == ["validating", "done"]


def test_release_rejects_non_advancing_version(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    import cratepub.cli.commands.release_cmd as release_cmd

    _patch_context(monkeypatch, _ctx(tmp_path))

    with pytest.raises(typer.Exit) as exc:
        release_cmd.release("0.4.1", dry_run=False, project=None)

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)


def test_release_gate_failure_exits_with_build_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    import cratepub.cli.commands.release_cmd as release_cmd

    _patch_context(monkeypatch, _ctx(tmp_path, gate_exit=1))

    with pytest.raises(typer.Exit) as exc:
        release_cmd.release("0.4.2", dry_run=False, project=None)

    assert exc.value.exit_code == int(ErrorCode.BUILD_ERROR)
    assert (tmp_path / "Cargo.toml").read_bytes() == MANIFEST


def test_publish_requires_recorded_version(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    import cratepub.cli.commands.release_cmd as release_cmd

    _patch_context(monkeypatch, _ctx(tmp_path))

    with pytest.raises(typer.Exit) as exc:
        release_cmd.publish("0.4.2", project=None)

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)


def test_validate_accepts_next_version(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import cratepub.cli.commands.release_cmd as release_cmd

    ctx = _ctx(tmp_path)
    _patch_context(monkeypatch, ctx)

    release_cmd.check_version("0.5.0", project=None)

    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.find("0.5.0 can be released")


def test_validate_missing_manifest_is_io_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    import cratepub.cli.commands.release_cmd as release_cmd

    _patch_context(monkeypatch, _ctx(tmp_path))
    (tmp_path / "Cargo.toml").unlink()

    with pytest.raises(typer.Exit) as exc:
        release_cmd.check_version("0.5.0", project=None)

    assert exc.value.exit_code == int(ErrorCode.IO_ERROR)


def test_current_prints_manifest_version(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    import cratepub.cli.commands.release_cmd as release_cmd

    _patch_context(monkeypatch, _ctx(tmp_path))

    release_cmd.current(project=None)

    assert capsys.readouterr().out == "0.4.1\n"


def test_build_context_missing_project(tmp_path: Path) -> None:
    with pytest.raises(typer.Exit) as exc:
        build_context(tmp_path / "nope")

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)


def test_build_context_invalid_config(tmp_path: Path) -> None:
    (tmp_path / "cratepub.toml").write_text("[git\n", encoding="utf-8")

    with pytest.raises(typer.Exit) as exc:
        build_context(tmp_path)

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)


def test_build_context_reads_project_config(tmp_path: Path) -> None:
    (tmp_path / "cratepub.toml").write_text('[git]\nbranch = "release"\n', encoding="utf-8")

    ctx = build_context(tmp_path)

    assert ctx.config.project_root == tmp_path.resolve()
    assert ctx.config.git.branch == "release"


def test_read_credentials_uses_configured_variable(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("MY_REGISTRY_TOKEN", "abc")
    config = ReleaseConfig(
        project_root=tmp_path, registry=RegistryConfig(token_env="MY_REGISTRY_TOKEN")
    )

    assert read_credentials(config).token == "abc"


def test_read_credentials_missing_variable_is_empty(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.delenv("CARGO_REGISTRY_TOKEN", raising=False)

    assert read_credentials(ReleaseConfig(project_root=tmp_path)).is_empty


def test_every_error_kind_has_exit_code() -> None:
    assert set(_EXIT_CODES) == set(get_args(ReleaseErrorKind))
    assert ErrorCode.OK not in _EXIT_CODES.values()


def test_exit_codes_by_concern() -> None:
    assert release_error_code("network_error") == ErrorCode.NETWORK_ERROR
    assert release_error_code("push_rejected") == ErrorCode.VCS_ERROR
    assert release_error_code("version_conflict") == ErrorCode.REGISTRY_ERROR
    assert release_error_code("ambiguous_manifest") == ErrorCode.IO_ERROR


def test_version_flag() -> None:
    result = CliRunner().invoke(app, ["--version"])

    assert result.exit_code == 0
    assert result.output.strip() == __version__
