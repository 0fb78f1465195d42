"""Typed deployment configuration (``deploy.toml``).

Every key is optional. The defaults reproduce the Tectonic deployment
pipeline, so a repository without a ``deploy.toml`` deploys exactly like the
Azure Pipelines definition in ``dist/azure-deployment.yml``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_bool, get_str, get_str_list, get_table

__all__ = [
    "ArchConfig",
    "ArtifactsConfig",
    "BookConfig",
    "ConfigError",
    "ContinuousConfig",
    "CrankoConfig",
    "DeployConfig",
    "GitConfig",
    "CONFIG_FILE_NAME",
    "load_config",
    "load_config_or_default",
]

CONFIG_FILE_NAME = "deploy.toml"

DEFAULT_TOPLEVEL_PROJECT = "tectonic"
DEFAULT_CRANKO_FETCH_URL = "https://pkgw.github.io/cranko/fetch-latest.sh"
DEFAULT_BOOK_REPO_URL = "https://github.com/tectonic-typesetting/book.git"
DEFAULT_ARTIFACT_PATTERNS = ("binary-*/*", "appimage/*")


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class GitConfig:
    """Identity and refs used by the git steps."""

    user_email: str = "notifications@github.com"
    user_name: str = "Tectonic CI"
    release_branch: str = "release"
    # Relative to the pipeline workspace.
    release_bundle: str = "git-release/release.bundle"
    remote: str = "origin"


@dataclass(frozen=True, slots=True)
class CrankoConfig:
    install: bool = True
    fetch_url: str = DEFAULT_CRANKO_FETCH_URL


@dataclass(frozen=True, slots=True)
class BookConfig:
    """Where the rendered book lives and where it is force-pushed.

    ``tree`` is relative to the pipeline workspace, ``push_script`` to the
    repository root.
    """

    tree: str = "book"
    repo_url: str = DEFAULT_BOOK_REPO_URL
    message: str = "docs mdbook"
    push_script: str = "dist/force-push-tree.sh"


@dataclass(frozen=True, slots=True)
class ContinuousConfig:
    tag: str = "continuous"
    name: str = "Continuous Deployment"


@dataclass(frozen=True, slots=True)
class ArtifactsConfig:
    # Glob patterns relative to the pipeline workspace.
    patterns: tuple[str, ...] = DEFAULT_ARTIFACT_PATTERNS


@dataclass(frozen=True, slots=True)
class ArchConfig:
    deploy_script: str = "dist/arch/deploy.sh"


# Slotted dataclasses do not keep field defaults as class attributes.
_GIT = GitConfig()
_BOOK = BookConfig()
_CONTINUOUS = ContinuousConfig()
_ARCH = ArchConfig()


@dataclass(frozen=True, slots=True)
class DeployConfig:
    """Main configuration container."""

    toplevel: str = DEFAULT_TOPLEVEL_PROJECT
    git: GitConfig = field(default_factory=GitConfig)
    cranko: CrankoConfig = field(default_factory=CrankoConfig)
    book: BookConfig = field(default_factory=BookConfig)
    continuous: ContinuousConfig = field(default_factory=ContinuousConfig)
    artifacts: ArtifactsConfig = field(default_factory=ArtifactsConfig)
    arch: ArchConfig = field(default_factory=ArchConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> DeployConfig:
        """Create DeployConfig from a mapping (parsed TOML).

        Raises:
            ValueError: If ``artifacts.patterns`` is present but malformed.
        """
        project: StrDict = get_table(data, "project") or {}
        git: StrDict = get_table(data, "git") or {}
        cranko: StrDict = get_table(data, "cranko") or {}
        book: StrDict = get_table(data, "book") or {}
        continuous: StrDict = get_table(data, "continuous") or {}
        artifacts: StrDict = get_table(data, "artifacts") or {}
        arch: StrDict = get_table(data, "arch") or {}

        patterns = DEFAULT_ARTIFACT_PATTERNS
        if "patterns" in artifacts:
            parsed = get_str_list(artifacts, "patterns")
            if parsed is None:
                raise ValueError("artifacts.patterns must be a list of non-empty strings")
            patterns = parsed

        install = get_bool(cranko, "install")

        return cls(
            toplevel=get_str(project, "toplevel") or DEFAULT_TOPLEVEL_PROJECT,
            git=GitConfig(
                user_email=get_str(git, "user_email") or _GIT.user_email,
                user_name=get_str(git, "user_name") or _GIT.user_name,
                release_branch=get_str(git, "release_branch") or _GIT.release_branch,
                release_bundle=get_str(git, "release_bundle") or _GIT.release_bundle,
                remote=get_str(git, "remote") or _GIT.remote,
            ),
            cranko=CrankoConfig(
                install=True if install is None else install,
                fetch_url=get_str(cranko, "fetch_url") or DEFAULT_CRANKO_FETCH_URL,
            ),
            book=BookConfig(
                tree=get_str(book, "tree") or _BOOK.tree,
                repo_url=get_str(book, "repo_url") or DEFAULT_BOOK_REPO_URL,
                message=get_str(book, "message") or _BOOK.message,
                push_script=get_str(book, "push_script") or _BOOK.push_script,
            ),
            continuous=ContinuousConfig(
                tag=get_str(continuous, "tag") or _CONTINUOUS.tag,
                name=get_str(continuous, "name") or _CONTINUOUS.name,
            ),
            artifacts=ArtifactsConfig(patterns=patterns),
            arch=ArchConfig(
                deploy_script=get_str(arch, "deploy_script") or _ARCH.deploy_script,
            ),
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        data_obj: object = tomllib.loads(path.read_bytes().decode("utf-8"))
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def load_config(path: Path) -> Result[DeployConfig, ConfigError]:
    """Load and parse ``deploy.toml``.

    Args:
        path: Path to the config file

    Returns:
        Ok(DeployConfig) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(DeployConfig.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_config_or_default(path: Path) -> Result[DeployConfig, ConfigError]:
    """Like load_config, but a missing file yields the default config."""
    if not path.exists():
        return Ok(DeployConfig())
    return load_config(path)
