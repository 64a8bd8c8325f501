"""Typer-based CLI for rendezvous meeting queries."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import typer

from . import __version__
from ._backend import get_backend_info
from ._io import read_kingdom, run

app = typer.Typer(
    help="Count the cities where travelers from every queried city can meet.",
    no_args_is_help=True,
)

_LOG_FORMAT = "%(levelname)s: %(message)s"


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"rendezvous v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    )
):
    """Rendezvous: simultaneous-meeting queries on a forest of cities."""
    pass


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format=_LOG_FORMAT,
    )


def _fail(message: str) -> None:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(code=1)


@app.command("solve")
def solve(
    input_path: Optional[Path] = typer.Argument(
        None, exists=True, dir_okay=False, help="Problem file; reads stdin when omitted."
    ),
    output_path: Optional[Path] = typer.Option(
        None, "--output", "-o", dir_okay=False, help="Answer file; writes stdout when omitted."
    ),
    backend: str = typer.Option("best", "--backend", "-b", help="Climbing backend: best, python, cpu."),
    pairing: str = typer.Option("anchored", "--pairing", help="Pair folding: anchored or all."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress at INFO level."),
):
    """Answer every query of a problem, one answer per line."""
    _configure_logging(verbose)

    try:
        if input_path is None:
            source = sys.stdin
        else:
            source = input_path.open("r", encoding="utf-8")
        try:
            if output_path is None:
                run(source, sys.stdout, backend=backend, pairing=pairing)
            else:
                with output_path.open("w", encoding="utf-8") as sink:
                    n_answered = run(source, sink, backend=backend, pairing=pairing)
                typer.echo(f"Wrote {n_answered} answers to {output_path}", err=True)
        finally:
            if input_path is not None:
                source.close()
    except (ValueError, TypeError) as e:
        _fail(str(e))


@app.command("stats")
def stats(
    input_path: Optional[Path] = typer.Argument(
        None, exists=True, dir_okay=False, help="Problem file; reads stdin when omitted."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress at INFO level."),
):
    """Print statistics about the forest of open roads."""
    _configure_logging(verbose)

    try:
        if input_path is None:
            forest, queries = read_kingdom(sys.stdin)
        else:
            with input_path.open("r", encoding="utf-8") as source:
                forest, queries = read_kingdom(source)
    except (ValueError, TypeError) as e:
        _fail(str(e))

    info = forest.statistics()
    typer.echo(f"Cities:        {info['n_cities']}")
    typer.echo(f"Open roads:    {info['n_links']}")
    typer.echo(f"Trees:         {info['n_trees']}")
    typer.echo(f"Largest tree:  {info['largest_tree']}")
    typer.echo(f"Max depth:     {info['max_depth']}")
    typer.echo(f"Queries:       {len(queries)}")
    typer.echo(f"Backend:       {get_backend_info()['best_backend']}")
