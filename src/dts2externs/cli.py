import os
import tempfile
from pathlib import Path
from typing import List, Optional, Tuple

import click
from pydantic import ValidationError

from dts2externs.generator import generate
from dts2externs.logger import logger, setup_logging
from dts2externs.settings import OutputStyle, load_settings


def _stdin_to_temp_file() -> str:
    """Copy stdin into a temporary `.d.ts` file and return its path."""
    text = click.get_text_stream("stdin").read()
    with tempfile.NamedTemporaryFile(
        "w", suffix=".d.ts", encoding="utf-8", delete=False
    ) as fp:
        fp.write(text)
    return fp.name


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument(
    "files",
    nargs=-1,
    type=click.Path(
        exists=True, file_okay=True, dir_okay=False, readable=True, allow_dash=True
    ),
)
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    default=None,
    help="Write externs to this file (default: stdout).",
)
@click.option(
    "-s",
    "--style",
    type=click.Choice([s.value for s in OutputStyle], case_sensitive=False),
    default=None,
    help="Output style for classes, interfaces, namespaces and objects [default: obj].",
)
@click.option(
    "-c", "--add-console", is_flag=True, help="Add a `console` class to the output."
)
@click.option(
    "-k", "--keep-comments", is_flag=True, help="Keep documentation comments."
)
@click.option("-l", "--list", "list_files", is_flag=True, help="List parsed files.")
@click.option(
    "-a", "--allow-ts", is_flag=True, help="Also process .ts (non-declaration) files."
)
@click.option(
    "-p",
    "--parse-all",
    is_flag=True,
    help="Process non-exported declarations too (use with --allow-ts).",
)
@click.option(
    "--debug/--no-debug",
    default=None,
    help="Enable debug logging of skipped files and type overwrites.",
)
def main(
    files: Tuple[str, ...],
    output: Optional[Path],
    style: Optional[str],
    add_console: bool,
    keep_comments: bool,
    list_files: bool,
    allow_ts: bool,
    parse_all: bool,
    debug: Optional[bool],
) -> None:
    """
    Generate Closure Compiler externs from TypeScript declaration FILES.
    Reads stdin when no FILE (or a single `-`) is given.
    """
    if "-" in files and len(files) > 1:
        raise click.UsageError("`-` (stdin) cannot be combined with FILE arguments.")

    # options left unset fall back to DTS2EXTERNS_* environment variables
    overrides = {
        name: True
        for name, value in (
            ("add_console", add_console),
            ("keep_comments", keep_comments),
            ("list_files", list_files),
            ("allow_ts", allow_ts),
            ("parse_all", parse_all),
        )
        if value
    }
    if style is not None:
        overrides["style"] = style.lower()
    if debug is not None:
        overrides["debug"] = debug

    try:
        settings = load_settings(**overrides)
    except ValidationError as ex:
        raise click.UsageError(str(ex)) from ex

    setup_logging(settings.debug)

    temp_file: Optional[str] = None
    file_names: List[str] = list(files)
    if not files or file_names == ["-"]:
        temp_file = _stdin_to_temp_file()
        file_names = [temp_file]

    try:
        text = generate(file_names, settings)
    finally:
        if temp_file is not None:
            try:
                os.unlink(temp_file)
            except OSError as ex:
                logger.warning("Cannot remove temporary file", path=temp_file, error=str(ex))

    if output is None:
        click.echo(text, nl=False)
    else:
        output.write_text(text, encoding="utf-8")


if __name__ == "__main__":
    main()
