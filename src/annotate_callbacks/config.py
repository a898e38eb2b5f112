"""Project configuration loader for annotate-callbacks.

Reads ``annotate-callbacks.toml`` from the project root and exposes every
setting as a simple attribute, so the model directory is never a
hard-coded constant::

    [annotate]
    model_dir = "app/models"
    source_ext = ".rb"
    manifest = "callbacks.json"
    filter_internal = true

Usage::

    from annotate_callbacks.config import load_config

    cfg = load_config()
    cfg.model_dir     # Path, resolved against the project root
    cfg.manifest      # Path
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

CONFIG_FILENAME = "annotate-callbacks.toml"

DEFAULT_MODEL_DIR = "app/models"
DEFAULT_SOURCE_EXT = ".rb"
DEFAULT_MANIFEST = "callbacks.json"


@dataclass
class ProjectConfig:
    """Parsed project configuration with computed paths."""

    # Root directory (where annotate-callbacks.toml lives)
    root: Path

    model_dir: Path = field(default_factory=lambda: Path(DEFAULT_MODEL_DIR))
    source_ext: str = DEFAULT_SOURCE_EXT
    manifest: Path = field(default_factory=lambda: Path(DEFAULT_MANIFEST))
    filter_internal: bool = True

    @classmethod
    def defaults(cls, root: Path) -> ProjectConfig:
        """Config used when no file exists: defaults resolved under *root*."""
        return cls(
            root=root,
            model_dir=_resolve(root, DEFAULT_MODEL_DIR),
            manifest=_resolve(root, DEFAULT_MANIFEST),
        )


def _resolve(root: Path, rel: str) -> Path:
    """Resolve a path relative to project root."""
    p = Path(rel)
    if p.is_absolute():
        return p
    return root / p


def _find_root(start: Path | None = None) -> Path:
    """Walk up from *start* (or cwd) to find annotate-callbacks.toml.

    Like ``git`` locating ``.git/``, the search starts at the current
    working directory rather than the installed package.
    """
    if start is not None:
        return start
    candidate = Path.cwd().resolve()
    while candidate != candidate.parent:
        if (candidate / CONFIG_FILENAME).exists():
            return candidate
        candidate = candidate.parent
    raise FileNotFoundError(
        f"Could not find {CONFIG_FILENAME} in any parent of the current directory. "
        "Run from within a project that contains it, or pass --model-dir."
    )


def _get_str(section: dict, key: str, default: str) -> str:
    value = section.get(key, default)
    if not isinstance(value, str):
        raise ValueError(f"[annotate] {key} must be a string, got {type(value).__name__}")
    return value


def load_config(root: Path | None = None) -> ProjectConfig:
    """Load annotate-callbacks.toml.

    Args:
        root: Project root directory.  Auto-detected if ``None``.

    Raises:
        FileNotFoundError: no config file was found.
        ValueError: a setting has the wrong type.
    """
    root = _find_root(root)
    toml_path = root / CONFIG_FILENAME
    if not toml_path.exists():
        raise FileNotFoundError(f"Config not found: {toml_path}")

    with open(toml_path, "rb") as f:
        raw = tomllib.load(f)

    section = raw.get("annotate", {})
    if not isinstance(section, dict):
        raise ValueError("[annotate] must be a table")

    source_ext = _get_str(section, "source_ext", DEFAULT_SOURCE_EXT)
    if not source_ext.startswith("."):
        source_ext = "." + source_ext

    filter_internal = section.get("filter_internal", True)
    if not isinstance(filter_internal, bool):
        raise ValueError("[annotate] filter_internal must be true or false")

    return ProjectConfig(
        root=root,
        model_dir=_resolve(root, _get_str(section, "model_dir", DEFAULT_MODEL_DIR)),
        source_ext=source_ext,
        manifest=_resolve(root, _get_str(section, "manifest", DEFAULT_MANIFEST)),
        filter_internal=filter_internal,
    )
