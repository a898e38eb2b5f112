"""annotate.py - Write or refresh callback annotation blocks in model files.

Reads callback records from the JSON manifest, then inserts a
``# == Callbacks ==`` block above each model's class/module declaration.
Files whose block is already current are left untouched.
"""

from __future__ import annotations

import logging
from pathlib import Path

import typer

from annotate_callbacks.annotation import STATUS_ANNOTATED
from annotate_callbacks.batch import annotate_all
from annotate_callbacks.cli import (
    ExtOption,
    FilesOption,
    JsonOption,
    ModelDirOption,
    StrictOption,
    VerboseOption,
    error_exit,
    get_config,
    json_print,
    print_batch_summary,
    select_sources,
    setup_logging,
)
from annotate_callbacks.manifest import load_manifest

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="Annotate model files with their callback declarations.",
    rich_markup_mode="rich",
    epilog="""\
[bold]Examples:[/bold]

annotate-callbacks annotate                              Annotate every model in model_dir

annotate-callbacks annotate --manifest tmp/cb.json       Use a different manifest

annotate-callbacks annotate --files app/models/user.rb   Annotate specific files only

annotate-callbacks annotate --json                       Machine-readable JSON output

[dim]Per-file failures are reported but never stop the run; pass --strict
to turn them into a non-zero exit code.[/dim]""",
)


@app.callback(invoke_without_command=True)
def main(
    model_dir: Path | None = ModelDirOption,
    manifest: Path | None = typer.Option(
        None, "--manifest", "-m", help="Callback manifest JSON (default: from config)."
    ),
    ext: str | None = ExtOption,
    files: list[Path] | None = FilesOption,
    filter_internal: bool | None = typer.Option(
        None,
        "--filter-internal/--no-filter-internal",
        help="Drop framework-internal callbacks (default: from config).",
    ),
    json_output: bool = JsonOption,
    strict: bool = StrictOption,
    verbose: bool = VerboseOption,
) -> None:
    """Annotate model files with callback summaries."""
    setup_logging(verbose)
    cfg = get_config(model_dir, json_mode=json_output)
    if ext is not None:
        cfg.source_ext = ext if ext.startswith(".") else f".{ext}"
    if manifest is not None:
        cfg.manifest = manifest
    if filter_internal is not None:
        cfg.filter_internal = filter_internal

    try:
        source = load_manifest(cfg.manifest, cfg.root, drop_internal=cfg.filter_internal)
    except FileNotFoundError:
        error_exit(f"Manifest not found: {cfg.manifest}", json_mode=json_output)
    except (ValueError, OSError) as e:
        error_exit(str(e), json_mode=json_output)

    for listed in source.paths():
        if not listed.is_file():
            logger.warning("%s: listed in manifest but not found", listed)

    sources = select_sources(cfg, files, json_mode=json_output)
    result = annotate_all(sources, source)

    if json_output:
        json_print(result.to_dict())
    else:
        print_batch_summary(result, STATUS_ANNOTATED, base_dir=cfg.root)

    if strict and result.has_errors:
        raise typer.Exit(code=1)
