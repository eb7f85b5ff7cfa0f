from __future__ import annotations

from pathlib import Path

import pytest

from cratepub.core.result import Err, Ok
from cratepub.release.manifest import load_manifest, read_version, rewrite_version
from cratepub.release.semver import SemanticVersion


CARGO_TOML = (
    b"[package]\r\n"
    b'name = "blackscholes"\r\n'
    b'version = "0.4.1"\r\n'
    b'edition = "2021"   \r\n'
    b"\r\n"
    b"[dependencies]\r\n"
    b'serde = { version = "1.0", features = ["derive"] }\r\n'
    b'num-traits = "0.2"'
)


def _write(tmp_path: Path, content: bytes) -> Path:
    path = tmp_path / "Cargo.toml"
    path.write_bytes(content)
    return path


def test_read_version(tmp_path: Path) -> None:
    path = _write(tmp_path, CARGO_TOML)
    assert read_version(path) == Ok("0.4.1")


def test_rewrite_changes_only_the_version_value(tmp_path: Path) -> None:
    path = _write(tmp_path, CARGO_TOML)

    result = rewrite_version(path, SemanticVersion(0, 4, 2))

    assert result == Ok(True)
    assert path.read_bytes() == CARGO_TOML.replace(b'version = "0.4.1"', b'version = "0.4.2"')


def test_rewrite_is_idempotent(tmp_path: Path) -> None:
    path = _write(tmp_path, CARGO_TOML)

    assert rewrite_version(path, SemanticVersion(1, 0, 0)) == Ok(True)
    first = path.read_bytes()
    assert rewrite_version(path, SemanticVersion(1, 0, 0)) == Ok(False)

    assert path.read_bytes() == first


def test_rewrite_preserves_spacing_and_comment(tmp_path: Path) -> None:
    path = _write(tmp_path, b'[package]\nversion="0.1.0"  # managed by release\n')

    assert rewrite_version(path, SemanticVersion(0, 2, 0)) == Ok(True)

    assert path.read_bytes() == b'[package]\nversion="0.2.0"  # managed by release\n'


def test_load_manifest_state(tmp_path: Path) -> None:
    path = _write(tmp_path, CARGO_TOML)

    result = load_manifest(path)

    assert isinstance(result, Ok)
    state = result.value
    assert state.index == 2
    assert state.current_value == "0.4.1"
    assert b"".join(state.lines) == CARGO_TOML


def test_missing_manifest(tmp_path: Path) -> None:
    result = rewrite_version(tmp_path / "Cargo.toml", SemanticVersion(1, 0, 0))

    assert isinstance(result, Err)
    assert result.error.kind == "manifest_not_found"


@pytest.mark.parametrize(
    "content",
    [
        b'[package]\nname = "x"\n',
        b'[package]\n  version = "0.1.0"\n',
        b"[package]\nversion = '0.1.0'\n",
        b'[package]\nversions = "0.1.0"\n',
    ],
)
def test_no_version_field(tmp_path: Path, content: bytes) -> None:
    path = _write(tmp_path, content)

    result = rewrite_version(path, SemanticVersion(1, 0, 0))

    assert isinstance(result, Err)
    assert result.error.kind == "no_version_field"
    assert path.read_bytes() == content


def test_ambiguous_manifest_is_left_untouched(tmp_path: Path) -> None:
    content = (
        b'[package]\nname = "x"\nversion = "0.1.0"\n\n'
        b'[dependencies.serde]\nversion = "1.0.0"\n'
    )
    path = _write(tmp_path, content)

    result = rewrite_version(path, SemanticVersion(0, 2, 0))

    assert isinstance(result, Err)
    assert result.error.kind == "ambiguous_manifest"
    assert "lines 3, 6" in result.error.message
    assert path.read_bytes() == content
    assert list(tmp_path.glob(".Cargo.toml.*.tmp")) == []


def test_ambiguous_manifest_blocks_read(tmp_path: Path) -> None:
    path = _write(tmp_path, b'version = "1.0.0"\nversion = "1.0.0"\n')

    result = read_version(path)

    assert isinstance(result, Err)
    assert result.error.kind == "ambiguous_manifest"


def test_write_failure_is_reported(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import cratepub.release.manifest as manifest_mod

    path = _write(tmp_path, CARGO_TOML)

    def fail_write(_path: Path, _content: bytes) -> None:
        raise OSError("disk full")

    monkeypatch.setattr(manifest_mod, "atomic_write_bytes", fail_write)

    result = rewrite_version(path, SemanticVersion(0, 4, 2))

    assert isinstance(result, Err)
    assert result.error.kind == "manifest_io"
    assert path.read_bytes() == CARGO_TOML
