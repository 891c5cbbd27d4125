#!/usr/bin/env python3
from pathlib import Path
from typing import Tuple

import click

from dts2externs.frontend import DeclNode
from dts2externs.lang.typescript import TypeScriptFrontEnd
from dts2externs.logger import setup_logging
from dts2externs.walker import classify


def _describe(frontend: TypeScriptFrontEnd, node: DeclNode, depth: int) -> str:
    cls = classify(frontend, node)
    label = "structured" if cls.structured else "simple"
    if cls.recurse:
        label += ", recurse"
    flags = f" [{node.flags!r}]" if node.flags else ""
    type_text = ""
    if node.symbol is not None:
        type_text = f" : {frontend.type_to_string(frontend.get_type_of_symbol(node.symbol))}"
    return f"{'  ' * depth}{node.kind.value} {node.name or '-'}{type_text}{flags} ({label})"


def _dump(frontend: TypeScriptFrontEnd, node: DeclNode, depth: int = 0) -> None:
    click.echo(_describe(frontend, node, depth))
    for child in node.children:
        _dump(frontend, child, depth + 1)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument(
    "sources",
    nargs=-1,
    required=True,
    type=click.Path(
        exists=True, file_okay=True, dir_okay=False, readable=True, path_type=Path
    ),
)
@click.option(
    "--debug/--no-debug",
    default=False,
    help="Enable debug logging.",
)
def main(sources: Tuple[Path, ...], debug: bool) -> None:
    """
    Print the declaration tree of SOURCES with the classification the
    externs walker assigns to every node.
    """
    setup_logging(debug)

    frontend = TypeScriptFrontEnd()
    for source_file in frontend.create_program([str(s) for s in sources]):
        marker = "d.ts" if source_file.is_declaration_file else "ts"
        if source_file.has_no_default_lib:
            marker += ", no-default-lib"
        click.echo(f"== {source_file.file_name} ({marker})")
        for statement in source_file.statements:
            _dump(frontend, statement, 1)


if __name__ == "__main__":
    main()
