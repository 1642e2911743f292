"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for assemblist:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.assemblist/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Global config** -- A single :class:`~assemblist.models.GlobalConfig`
  JSON file storing user-wide defaults (output format, handler allow/deny
  lists, tar long-file mode, encoding).
* **Project config** -- ``assemblist.yaml`` (or ``assemblist.json``) next
  to the project, holding the ``project`` metadata and assembler options.
  See :func:`load_project_config`.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, the project file, and global config into the
  effective :class:`~assemblist.models.AssemblerConfig`.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from assemblist.exceptions import ConfigError
from assemblist.models import AssemblerConfig, GlobalConfig

_APP_NAME = "assemblist"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAMES = ("assemblist.yaml", "assemblist.yml", "assemblist.json")

_TRUTHY = {"1", "true", "yes", "on"}

# AssemblerConfig fields that hold directories and are resolved against the
# project file's location when given as relative paths.
_PATH_FIELDS = (
    "descriptor_source_directory",
    "output_directory",
    "working_directory",
    "temporary_root_directory",
    "site_directory",
)


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/assemblist/`` (default
    ``~/.config/assemblist/``). On macOS/Windows: ``~/.assemblist/``.

    Returns:
        Absolute path to the configuration directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/assemblist/`` (default
    ``~/.local/share/assemblist/``). On macOS/Windows: ``~/.assemblist/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is removed.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def _global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the XDG config directory.

    Returns:
        The deserialised :class:`~assemblist.models.GlobalConfig`, or a
        default instance when the file does not exist.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    _atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Project-local config ---


def find_project_config(directory: Optional[Path] = None) -> Optional[Path]:
    """Return the first project config file found in *directory* (default: cwd)."""
    base = directory or Path.cwd()
    for name in _PROJECT_CONFIG_FILENAMES:
        candidate = base / name
        if candidate.is_file():
            return candidate
    return None


def load_project_config(path: Path) -> dict[str, Any]:
    """Load a project-local configuration file.

    The file holds :class:`~assemblist.models.AssemblerConfig` fields at the
    top level with the project metadata under ``project``::

        project:
          group_id: org.example
          artifact_id: demo
          version: 1.0.0
        descriptors: [src/assembly/dist.xml]
        formats: [zip, tar.gz]

    Args:
        path: Path to an ``assemblist.yaml`` or ``assemblist.json`` file.

    Returns:
        The parsed mapping.

    Raises:
        ConfigError: If the file cannot be read or is not a mapping.
    """
    try:
        text = path.read_text(encoding="utf-8")
        if path.suffix == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Invalid project config at {path}: expected a mapping, "
            f"got {type(data).__name__}"
        )
    return data


def _env_overrides() -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    final_name = os.environ.get("ASSEMBLIST_FINAL_NAME")
    if final_name:
        overrides["final_name"] = final_name
    output_dir = os.environ.get("ASSEMBLIST_OUTPUT_DIR")
    if output_dir:
        overrides["output_directory"] = output_dir
    dry_run = os.environ.get("ASSEMBLIST_DRY_RUN")
    if dry_run:
        overrides["dry_run"] = dry_run.strip().lower() in _TRUTHY
    return overrides


# --- Precedence resolution ---


def resolve_config(
    project_dir: Optional[Path] = None,
    cli_overrides: Optional[dict[str, Any]] = None,
) -> tuple[GlobalConfig, AssemblerConfig]:
    """Resolve the effective assembler configuration.

    Precedence (high to low):
        1. CLI flags (``cli_overrides``; ``None`` values are ignored)
        2. Environment variables (``ASSEMBLIST_FINAL_NAME``,
           ``ASSEMBLIST_OUTPUT_DIR``, ``ASSEMBLIST_DRY_RUN``)
        3. Project config (``./assemblist.yaml`` or ``./assemblist.json``)
        4. User config (``~/.config/assemblist/config.json``)
        5. Defaults

    Relative directory options and the project ``basedir`` are resolved
    against the directory holding the project file.

    Args:
        project_dir: Directory to look for the project file in (default: cwd).
        cli_overrides: AssemblerConfig fields supplied on the command line.

    Returns:
        A tuple of ``(global_config, assembler_config)``.

    Raises:
        ConfigError: If no project metadata is available or the merged
            configuration fails validation.
    """
    global_cfg = load_global_config()
    base_dir = (project_dir or Path.cwd()).resolve()

    # 5 + 4. Defaults and user-wide settings
    merged: dict[str, Any] = {
        "tar_long_file_mode": global_cfg.tar_long_file_mode,
        "encoding": global_cfg.encoding,
        "ignore_dir_format_extensions": global_cfg.ignore_dir_format_extensions,
    }

    # 3. Project file
    project_file = find_project_config(base_dir)
    if project_file is not None:
        merged.update(load_project_config(project_file))

    # 2. Environment
    merged.update(_env_overrides())

    # 1. CLI flags
    for key, value in (cli_overrides or {}).items():
        if value is not None:
            merged[key] = value

    project = merged.get("project")
    if not isinstance(project, dict):
        where = project_file or base_dir
        raise ConfigError(
            f"No project metadata found in {where}. "
            f"Create an assemblist.yaml with a 'project' section."
        )
    project = dict(project)
    basedir = Path(project.get("basedir") or base_dir)
    project["basedir"] = basedir if basedir.is_absolute() else base_dir / basedir
    merged["project"] = project

    for field in _PATH_FIELDS:
        value = merged.get(field)
        if value is not None and not Path(value).is_absolute():
            merged[field] = project["basedir"] / value

    try:
        config = AssemblerConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid assembler configuration: {exc}") from exc
    return global_cfg, config
