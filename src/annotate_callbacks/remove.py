"""remove.py - Strip callback annotation blocks from model files."""

from __future__ import annotations

from pathlib import Path

import typer

from annotate_callbacks.annotation import STATUS_REMOVED
from annotate_callbacks.batch import remove_all
from annotate_callbacks.cli import (
    ExtOption,
    FilesOption,
    JsonOption,
    ModelDirOption,
    StrictOption,
    VerboseOption,
    get_config,
    json_print,
    print_batch_summary,
    select_sources,
    setup_logging,
)

app = typer.Typer(
    help="Remove callback annotation blocks from model files.",
    rich_markup_mode="rich",
    epilog="""\
[bold]Examples:[/bold]

annotate-callbacks remove                                Remove blocks from every model

annotate-callbacks remove --model-dir lib/models         Scan another directory

annotate-callbacks remove --json                         Machine-readable JSON output

[dim]No manifest is needed: any block between the '# == Callbacks ==' and
'# == End Callbacks ==' markers is removed.[/dim]""",
)


@app.callback(invoke_without_command=True)
def main(
    model_dir: Path | None = ModelDirOption,
    ext: str | None = ExtOption,
    files: list[Path] | None = FilesOption,
    json_output: bool = JsonOption,
    strict: bool = StrictOption,
    verbose: bool = VerboseOption,
) -> None:
    """Remove callback annotations from model files."""
    setup_logging(verbose)
    cfg = get_config(model_dir, json_mode=json_output)
    if ext is not None:
        cfg.source_ext = ext if ext.startswith(".") else f".{ext}"

    result = remove_all(select_sources(cfg, files, json_mode=json_output))

    if json_output:
        json_print(result.to_dict())
    else:
        print_batch_summary(result, STATUS_REMOVED, base_dir=cfg.root)

    if strict and result.has_errors:
        raise typer.Exit(code=1)
