from __future__ import annotations

import os
from pathlib import Path

import typer

from relkit import __version__
from relkit.cli.commands.classify_cmd import classify
from relkit.cli.commands.latest_cmd import latest
from relkit.cli.commands.package_cmd import package
from relkit.cli.commands.pipeline_cmd import pipeline
from relkit.cli.commands.publish_cmd import publish
from relkit.cli.commands.release_cmd import release
from relkit.cli.commands.summary_cmd import summary
from relkit.cli.context import CONFIG_ENV, DRY_RUN_ENV, ROOT_ENV
from relkit.core.errors import ErrorCode


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands, in pipeline order
app.command()(classify)
app.command()(package)
app.command()(publish)
app.command()(release)
app.command()(latest)
app.command()(summary)
app.command()(pipeline)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
    root: Path | None = typer.Option(
        None,
        "--root",
        help="Repository root (default: current directory)",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        help="Config file (default: <root>/relkit.toml, defaults when absent)",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Use in-memory storage and release host; nothing is uploaded.",
    ),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    if root is not None:
        try:
            resolved = root.expanduser().resolve()
        except OSError as e:
            typer.echo(f"error: invalid --root: {e}", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))
        if not resolved.is_dir():
            typer.echo(f"error: --root '{resolved}' is not a directory", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))
        os.environ[ROOT_ENV] = str(resolved)

    if config is not None:
        os.environ[CONFIG_ENV] = str(config.expanduser())

    if dry_run:
        os.environ[DRY_RUN_ENV] = "1"


def main() -> None:
    app()
