"""Configuration loading and validation for git-report.

A report is described by a single config file, YAML or TOML::

    output: report.db
    repositories:
      - name: api
        path: ../api
    filters:
      since: "2024-01-01"
      authors: [alice@example.com]
      branch: main
    components:
      - name: API
        paths: ["api:src/api/**", "api:cmd/*.go"]

Sources are merged in priority order (lowest to highest):
    1. Defaults (defined on the dataclasses below)
    2. The config file
    3. Environment variables (GIT_REPORT_* prefix)
    4. Explicit overrides (typically CLI flags)

Example:
    >>> config = load_config(Path("report.yaml"), output="out.db")
    >>> config.output
    'out.db'
"""

from __future__ import annotations

import datetime as dt
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from .exceptions import ConfigFileError, InvalidConfigError, InvalidPathError
from .logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path("report.yaml")
DEFAULT_OUTPUT = "report.db"

# Separates the repository name from the glob in a component path entry.
PATTERN_SEPARATOR = ":"

# Environment variable -> (section, field); section "" is the top level.
_ENV_OVERRIDES = {
    "GIT_REPORT_OUTPUT": ("", "output"),
    "GIT_REPORT_SINCE": ("filters", "since"),
    "GIT_REPORT_UNTIL": ("filters", "until"),
    "GIT_REPORT_BRANCH": ("filters", "branch"),
}


@dataclass(frozen=True)
class RepositoryConfig:
    path: str
    name: str


@dataclass(frozen=True)
class FilterConfig:
    """Arguments forwarded to git log. Empty values are not passed."""

    since: str = ""
    until: str = ""
    authors: tuple[str, ...] = ()
    branch: str = ""


@dataclass(frozen=True)
class ComponentConfig:
    """A named component; each path is ``"<repository_name>:<glob>"``."""

    name: str
    paths: tuple[str, ...] = ()


@dataclass(frozen=True)
class ReportConfig:
    """Complete, already-parsed report configuration.

    Attributes:
        output: SQLite file to (re)create
        repositories: Repositories to ingest, in order
        filters: git log filters applied to every repository
        components: Components to aggregate contributions for
    """

    output: str = DEFAULT_OUTPUT
    repositories: tuple[RepositoryConfig, ...] = ()
    filters: FilterConfig = field(default_factory=FilterConfig)
    components: tuple[ComponentConfig, ...] = ()

    def __post_init__(self) -> None:
        if not self.output or not self.output.strip():
            object.__setattr__(self, "output", DEFAULT_OUTPUT)

    @property
    def output_path(self) -> Path:
        return Path(self.output)


def load_config(config_file: Optional[Path] = None, **overrides: Any) -> ReportConfig:
    """Load a report configuration file and apply overrides.

    Args:
        config_file: Path to a ``.yaml``/``.yml`` or ``.toml`` file
            (defaults to ``report.yaml`` in the working directory)
        **overrides: Top-level keys to replace (``output``); ``None``
            values are ignored

    Returns:
        ReportConfig instance (not yet validated, see validate_config)

    Raises:
        ConfigFileError: If the file is missing or cannot be parsed
        InvalidConfigError: If a value has the wrong shape
    """
    path = Path(config_file) if config_file is not None else DEFAULT_CONFIG_PATH
    if not path.is_file():
        raise ConfigFileError(path, "file not found")

    try:
        if path.suffix.lower() == ".toml":
            raw = _load_toml_file(path)
        else:
            raw = _load_yaml_file(path)
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigFileError(path, str(e))
    except yaml.YAMLError as e:
        raise ConfigFileError(path, f"invalid YAML: {e}")
    except ValueError as e:
        # tomllib.TOMLDecodeError subclasses ValueError
        raise ConfigFileError(path, f"invalid TOML: {e}")

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise InvalidConfigError("<root>", type(raw).__name__, "expected a mapping")

    merged = dict(raw)
    _apply_env_vars(merged)
    merged.update({k: v for k, v in overrides.items() if v is not None})

    config = build_config(merged)
    logger.debug(
        "Loaded %s: %d repositories, %d components",
        path,
        len(config.repositories),
        len(config.components),
    )
    return config


def build_config(data: dict[str, Any]) -> ReportConfig:
    """Build a ReportConfig from a plain mapping (already merged)."""
    data = dict(data)
    if "output_path" in data and "output" not in data:
        data["output"] = data.pop("output_path")

    unknown = set(data) - {"output", "repositories", "filters", "components"}
    if unknown:
        raise InvalidConfigError(", ".join(sorted(unknown)), "", "unknown configuration key")

    output = _as_str(data.get("output"), "output") or DEFAULT_OUTPUT

    repositories = tuple(
        RepositoryConfig(
            path=_as_str(entry.get("path"), f"repositories[{i}].path"),
            name=_as_str(entry.get("name"), f"repositories[{i}].name"),
        )
        for i, entry in enumerate(_as_mapping_list(data.get("repositories"), "repositories"))
    )

    raw_filters = data.get("filters") or {}
    if not isinstance(raw_filters, dict):
        raise InvalidConfigError("filters", raw_filters, "expected a mapping")
    filters = FilterConfig(
        since=_as_str(raw_filters.get("since"), "filters.since"),
        until=_as_str(raw_filters.get("until"), "filters.until"),
        authors=_as_str_tuple(raw_filters.get("authors"), "filters.authors"),
        branch=_as_str(raw_filters.get("branch"), "filters.branch"),
    )

    components = tuple(
        ComponentConfig(
            name=_as_str(entry.get("name"), f"components[{i}].name"),
            paths=_as_str_tuple(entry.get("paths"), f"components[{i}].paths"),
        )
        for i, entry in enumerate(_as_mapping_list(data.get("components"), "components"))
    )

    return ReportConfig(
        output=output,
        repositories=repositories,
        filters=filters,
        components=components,
    )


def validate_config(config: ReportConfig) -> None:
    """Check that a configuration can be run.

    Raises:
        InvalidConfigError: Missing repositories, names or duplicates
        InvalidPathError: A repository path is not a git working tree
    """
    if not config.repositories:
        raise InvalidConfigError("repositories", "[]", "no repositories specified")

    seen_repos: set[str] = set()
    for repo in config.repositories:
        if not repo.name:
            raise InvalidConfigError("repositories.name", repo.path, "repository name is required")
        if not repo.path:
            raise InvalidConfigError("repositories.path", repo.name, "repository path is required")
        if repo.name in seen_repos:
            raise InvalidConfigError("repositories.name", repo.name, "duplicate repository name")
        seen_repos.add(repo.name)
        if not (Path(repo.path) / ".git").exists():
            raise InvalidPathError(Path(repo.path), "not a git repository")

    seen_components: set[str] = set()
    for component in config.components:
        if not component.name:
            raise InvalidConfigError("components.name", "", "component name is required")
        if component.name in seen_components:
            raise InvalidConfigError("components.name", component.name, "duplicate component name")
        seen_components.add(component.name)

        for entry in component.paths:
            repo_name, sep, _ = entry.partition(PATTERN_SEPARATOR)
            if not sep:
                logger.warning(
                    "Component %s: entry %r has no '<repository>:' prefix and will be ignored",
                    component.name,
                    entry,
                )
            elif repo_name not in seen_repos:
                logger.warning(
                    "Component %s: repository %r is not configured", component.name, repo_name
                )


def _apply_env_vars(merged: dict[str, Any]) -> None:
    """Overlay GIT_REPORT_* environment variables onto ``merged`` in place."""
    for env_key, (section, name) in _ENV_OVERRIDES.items():
        value = os.environ.get(env_key)
        if value is None:
            continue
        if not section:
            merged[name] = value
            continue
        target = merged.get(section)
        if not isinstance(target, dict):
            target = {}
        target = dict(target)
        target[name] = value
        merged[section] = target


def _as_str(value: Any, key: str) -> str:
    if value is None:
        return ""
    # YAML and TOML both turn unquoted dates into date objects
    if isinstance(value, (dt.date, dt.datetime)):
        return value.isoformat()
    if isinstance(value, bool):
        raise InvalidConfigError(key, value, "expected a string")
    if isinstance(value, (str, int, float)):
        return str(value)
    raise InvalidConfigError(key, value, "expected a string")


def _as_str_tuple(value: Any, key: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise InvalidConfigError(key, value, "expected a list of strings")
    return tuple(_as_str(item, f"{key}[{i}]") for i, item in enumerate(value))


def _as_mapping_list(value: Any, key: str) -> list[dict[str, Any]]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, dict) for item in value):
        raise InvalidConfigError(key, value, "expected a list of mappings")
    return value


def _load_yaml_file(path: Path) -> Any:
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f)


def _load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict.

    Raises:
        ConfigFileError: If tomllib/tomli is not available
    """
    try:
        # Python 3.11+ has tomllib in stdlib
        import tomllib
    except ModuleNotFoundError:
        try:
            import tomli as tomllib  # type: ignore
        except ImportError:
            raise ConfigFileError(
                path,
                "TOML support requires Python 3.11+ or the 'tomli' package",
            )

    with open(path, "rb") as f:
        return tomllib.load(f)
