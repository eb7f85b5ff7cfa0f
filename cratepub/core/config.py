"""Typed release configuration.

Configuration lives in an optional `cratepub.toml` next to the crate manifest.
Everything has a default taken from the publish workflow this tool replaces,
so a plain Cargo project needs no config file at all.

Credentials are never part of this file: only the *name* of the environment
variable holding the registry token is configured here.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import (
    StrDict,
    as_str_dict,
    get_positive_float,
    get_str,
    get_str_list,
    get_table,
)

__all__ = [
    "CONFIG_FILE_NAME",
    "ConfigError",
    "GateConfig",
    "GitConfig",
    "RegistryConfig",
    "ReleaseConfig",
    "load_config",
    "load_project_config",
]

CONFIG_FILE_NAME = "cratepub.toml"

DEFAULT_MANIFEST = "Cargo.toml"
DEFAULT_REMOTE = "origin"
DEFAULT_BRANCH = "main"
DEFAULT_TAG_PREFIX = "version/"
DEFAULT_AUTHOR_NAME = "GitHub Action"
DEFAULT_AUTHOR_EMAIL = "action@github.com"
DEFAULT_GATE_COMMAND = ("cargo", "test", "--verbose")
DEFAULT_GATE_TIMEOUT_SECONDS = 30 * 60.0
DEFAULT_TOKEN_ENV = "CARGO_REGISTRY_TOKEN"
DEFAULT_PUBLISH_TIMEOUT_SECONDS = 10 * 60.0


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class GitConfig:
    """Where the release commit and tag go, and who authors them."""

    remote: str = DEFAULT_REMOTE
    branch: str = DEFAULT_BRANCH
    tag_prefix: str = DEFAULT_TAG_PREFIX
    author_name: str = DEFAULT_AUTHOR_NAME
    author_email: str = DEFAULT_AUTHOR_EMAIL


@dataclass(frozen=True, slots=True)
class GateConfig:
    """The external build/test command that must pass before publishing."""

    command: tuple[str, ...] = DEFAULT_GATE_COMMAND
    timeout_seconds: float = DEFAULT_GATE_TIMEOUT_SECONDS


@dataclass(frozen=True, slots=True)
class RegistryConfig:
    token_env: str = DEFAULT_TOKEN_ENV
    timeout_seconds: float = DEFAULT_PUBLISH_TIMEOUT_SECONDS


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    """Main configuration container, scoped to one orchestrator invocation."""

    project_root: Path
    manifest: str = DEFAULT_MANIFEST
    git: GitConfig = field(default_factory=GitConfig)
    gate: GateConfig = field(default_factory=GateConfig)
    registry: RegistryConfig = field(default_factory=RegistryConfig)

    @property
    def manifest_path(self) -> Path:
        return self.project_root / self.manifest

    @classmethod
    def from_dict(cls, project_root: Path, data: Mapping[str, object]) -> ReleaseConfig:
        """Create config from a parsed TOML mapping."""
        git: StrDict = get_table(data, "git")
        gate: StrDict = get_table(data, "gate")
        registry: StrDict = get_table(data, "registry")

        return cls(
            project_root=project_root,
            manifest=get_str(data, "manifest") or DEFAULT_MANIFEST,
            git=GitConfig(
                remote=get_str(git, "remote") or DEFAULT_REMOTE,
                branch=get_str(git, "branch") or DEFAULT_BRANCH,
                tag_prefix=get_str(git, "tag_prefix") or DEFAULT_TAG_PREFIX,
                author_name=get_str(git, "author_name") or DEFAULT_AUTHOR_NAME,
                author_email=get_str(git, "author_email") or DEFAULT_AUTHOR_EMAIL,
            ),
            gate=GateConfig(
                command=get_str_list(gate, "command") or DEFAULT_GATE_COMMAND,
                timeout_seconds=get_positive_float(gate, "timeout_seconds")
                or DEFAULT_GATE_TIMEOUT_SECONDS,
            ),
            registry=RegistryConfig(
                token_env=get_str(registry, "token_env") or DEFAULT_TOKEN_ENV,
                timeout_seconds=get_positive_float(registry, "timeout_seconds")
                or DEFAULT_PUBLISH_TIMEOUT_SECONDS,
            ),
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path, *, project_root: Path) -> Result[ReleaseConfig, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to the cratepub.toml file
        project_root: Directory holding the crate manifest

    Returns:
        Ok(ReleaseConfig) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(ReleaseConfig.from_dict(project_root, result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_project_config(project_root: Path) -> Result[ReleaseConfig, ConfigError]:
    """Load `<project_root>/cratepub.toml`, or defaults when there is none."""
    path = project_root / CONFIG_FILE_NAME
    if not path.exists():
        return Ok(ReleaseConfig(project_root=project_root))
    return load_config(path, project_root=project_root)
