"""Shared CLI utilities for annotate-callbacks commands.

Provides common Typer options, config-loading helpers, and standardised
output / error helpers so that every command gets consistent option
handling, error reporting, and JSON output without boilerplate.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.logging import RichHandler

from annotate_callbacks.batch import BatchResult
from annotate_callbacks.config import ProjectConfig, load_config

logger = logging.getLogger(__name__)

# Re-usable Typer options
ModelDirOption: Path | None = typer.Option(
    None,
    "--model-dir",
    "-d",
    help="Directory of model files (default: [annotate] model_dir from annotate-callbacks.toml).",
)
ExtOption: str | None = typer.Option(
    None, "--ext", help="Source file extension to process (default: .rb)."
)
FilesOption: list[Path] | None = typer.Option(
    None, "--files", help="Process specific files instead of scanning the model directory."
)
JsonOption: bool = typer.Option(False, "--json", help="Output results as JSON")
StrictOption: bool = typer.Option(False, "--strict", help="Exit with code 1 if any file errored")
VerboseOption: bool = typer.Option(False, "--verbose", "-v", help="Log each file's status")


def get_config(model_dir: Path | None = None, *, json_mode: bool = False) -> ProjectConfig:
    """Load the project config, applying a ``--model-dir`` override.

    Without a config file the defaults are used, as long as a model
    directory was given explicitly.
    """
    try:
        cfg = load_config()
    except FileNotFoundError as e:
        if model_dir is None:
            error_exit(str(e), json_mode=json_mode)
        cfg = ProjectConfig.defaults(Path.cwd())
    except (ValueError, OSError) as e:
        error_exit(f"Invalid config: {e}", json_mode=json_mode)
    if model_dir is not None:
        cfg.model_dir = model_dir
    return cfg


# ---------------------------------------------------------------------------
# Standardised output helpers
# ---------------------------------------------------------------------------

_err_console = Console(stderr=True)


def error_exit(msg: str, *, json_mode: bool = False, code: int = 1) -> NoReturn:
    """Print *msg* as an error and ``raise typer.Exit(code)``."""
    if json_mode:
        print(json.dumps({"error": msg}, indent=2))
    else:
        _err_console.print(f"[red bold]error:[/red bold] {msg}")
    raise typer.Exit(code=code)


def json_print(data: dict[str, Any] | list[Any]) -> None:
    """Print *data* as pretty-printed JSON to stdout."""
    print(json.dumps(data, indent=2))


def setup_logging(verbose: bool) -> None:
    """Route package logging to stderr through Rich.

    Warnings (per-file failures) are always shown; ``--verbose`` adds one
    debug line per processed file.
    """
    pkg_logger = logging.getLogger("annotate_callbacks")
    pkg_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if not any(isinstance(h, RichHandler) for h in pkg_logger.handlers):
        pkg_logger.addHandler(
            RichHandler(console=_err_console, show_time=False, show_path=False)
        )


def rel_display_path(filepath: Path, base_dir: Path | None = None) -> str:
    """Return a display-friendly relative path for a source file.

    Falls back to the path as given if it is not under *base_dir*.
    """
    if base_dir is not None:
        try:
            return str(Path(filepath).resolve().relative_to(Path(base_dir).resolve()))
        except ValueError:
            pass
    return str(filepath)


def iter_sources(directory: Path, ext: str = ".rb") -> list[Path]:
    """Return all source files under *directory*, recursively, sorted by path."""
    return sorted(p for p in directory.rglob(f"*{ext}") if p.is_file())


def select_sources(
    cfg: ProjectConfig, files: list[Path] | None, *, json_mode: bool = False
) -> list[Path]:
    """Resolve the file list for a batch: ``--files`` or a model-dir scan."""
    if files:
        selected = []
        for f in files:
            if f.suffix == cfg.source_ext:
                selected.append(f)
            else:
                logger.warning("%s: skipped, extension is not %s", f, cfg.source_ext)
        return sorted(selected)
    if not cfg.model_dir.is_dir():
        error_exit(f"Model directory not found: {cfg.model_dir}", json_mode=json_mode)
    return iter_sources(cfg.model_dir, cfg.source_ext)


# ---------------------------------------------------------------------------
# Batch summary
# ---------------------------------------------------------------------------


def print_batch_summary(
    result: BatchResult,
    headline: str,
    *,
    base_dir: Path | None = None,
    console: Console | None = None,
) -> None:
    """Print a batch result: headline files, a status table, and errors.

    *headline* is the status whose files are listed first (``annotated``
    or ``removed``).
    """
    from rich.table import Table
    from rich.text import Text

    out = console or Console()

    changed = result[headline]
    out.print(f"{headline.capitalize()}: {len(changed)} file(s)")
    for f in changed:
        out.print(
            f"  {rel_display_path(f, base_dir)}", highlight=False, markup=False, soft_wrap=True
        )

    table = Table(title="Summary", show_lines=False, pad_edge=False)
    table.add_column("Status", style="bold")
    table.add_column("Files", justify="right")
    for status, count in result.counts().items():
        style = "red" if status == "error" and count else ""
        table.add_row(status, Text(str(count), style=style))
    out.print()
    out.print(table)

    if result.errors:
        out.print()
        out.print(Text(f"Errors: {len(result.errors)}", style="red bold"))
        for e in result.errors:
            out.print(
                f"  {rel_display_path(Path(e['file']), base_dir)}: {e['error']}",
                highlight=False,
                markup=False,
                soft_wrap=True,
            )
