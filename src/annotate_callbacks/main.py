"""main.py – Umbrella CLI entry point for annotate-callbacks.

Imports and registers each command module's ``main`` as a flat
``app.command()`` entry, so ``annotate-callbacks annotate`` and
``annotate-callbacks remove`` take their options directly.
"""

import importlib

import typer

app = typer.Typer(
    help="Maintain callback summary comments in model source files.",
    rich_markup_mode="rich",
    no_args_is_help=True,
    epilog="""\
[bold]Typical workflow:[/bold]
  annotate-callbacks annotate      Write/refresh blocks from callbacks.json
  annotate-callbacks remove        Strip every block again

[dim]Settings are read from annotate-callbacks.toml in the project root.
Run 'annotate-callbacks <cmd> --help' for details.[/dim]""",
)

# ---------------------------------------------------------------------------
# Subcommand registry
# ---------------------------------------------------------------------------

_COMMANDS: list[tuple[str, str, str]] = [
    ("annotate", "annotate_callbacks.annotate", "Annotate callbacks in model files."),
    ("remove", "annotate_callbacks.remove", "Remove callback annotations from model files."),
]

for _name, _module, _help in _COMMANDS:
    _mod = importlib.import_module(_module)
    _epilog = getattr(_mod.app.info, "epilog", None)
    if not isinstance(_epilog, str):
        _epilog = None
    app.command(name=_name, help=_help, epilog=_epilog)(_mod.main)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
