"""attl CLI Main Entry Point

Usage:
    attl page.tpl                  # Render a template to stdout
    attl -                         # Render a template read from stdin
    attl page.tpl -o page.html     # Render to a file
    attl page.tpl --disasm         # Show the compiled bytecode
    attl page.tpl --ast            # Show the parsed element tree as JSON
    attl --version                 # Show version
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer

from attl._version import __version__
from attl.ast.node import dump_json
from attl.cli.utils import exit_with_error, resolve_settings, setup_logging
from attl.compiler.renderer import Renderer
from attl.errors import AttlError, SourceError
from attl.pipeline import Pipeline, read_file

typer_app = typer.Typer(add_completion=False)


def read_source(source: Optional[Path]) -> str:
    """Read the template from `source`, or stdin when it is None or '-'."""
    if source is None or str(source) == "-":
        try:
            return typer.get_text_stream("stdin").read()
        except UnicodeDecodeError as exc:
            raise SourceError("<stdin>", f"not valid UTF-8 at byte {exc.start}") from exc
    return read_file(str(source))


@typer_app.command()
def cli(
    source: Optional[Path] = typer.Argument(
        None, help="Template file. Reads stdin when omitted or '-'."
    ),
    output: Optional[Path] = typer.Option(
        None, "-o", "--output", help="Write the result to a file instead of stdout."
    ),
    config: Optional[Path] = typer.Option(
        None, "-c", "--config", help="Settings file (defaults to ./attl.yaml)."
    ),
    max_depth: Optional[int] = typer.Option(
        None, "--max-depth", min=1, help="Maximum attribute expansion depth."
    ),
    disasm: bool = typer.Option(
        False, "--disasm", help="Print the compiled bytecode instead of running it."
    ),
    show_ast: bool = typer.Option(
        False, "--ast", help="Print the parsed element tree as JSON."
    ),
    strict: bool = typer.Option(
        False, "--strict", help="Exit with status 1 if any attribute is redefined."
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose output."),
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
) -> None:
    """Attribute Template Language - render a template.

    \b
    Examples:
        attl page.tpl               Render page.tpl to stdout
        attl page.tpl -o out.html   Render page.tpl to out.html
        attl page.tpl --disasm      Show compiled bytecode
    """
    if version:
        typer.echo(f"attl {__version__}")
        raise typer.Exit()

    setup_logging(verbose)

    try:
        settings = resolve_settings(config, max_depth)
        text = read_source(source)
        pipeline = Pipeline(settings)

        if show_ast:
            typer.echo(dump_json(pipeline.parse(text)).decode("utf-8"))
            raise typer.Exit()

        result = pipeline.compile(text)
        if disasm:
            typer.echo(Renderer().render(result.program), nl=False)
        else:
            rendered = pipeline.execute(result.program)
            if output is not None:
                output.parent.mkdir(parents=True, exist_ok=True)
                output.write_text(rendered, encoding="utf-8")
            else:
                typer.echo(rendered, nl=False)
    except (AttlError, FileNotFoundError) as exc:
        exit_with_error(str(exc))

    if strict and result.errors:
        raise typer.Exit(code=1)


def app(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI."""
    typer_app(args=argv)


if __name__ == "__main__":
    app()
