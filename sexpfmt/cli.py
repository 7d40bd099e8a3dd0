"""
Formats Scheme, Lisp and other S-expression sources.
Without paths, it formats stdin to stdout; otherwise it formats or checks files in place.
"""

from __future__ import annotations

from pathlib import Path

import click
from .config import ConfigError, FormatterConfig, build_config
from .exceptions import ParseError
from .filesystem import expand_paths
from .formatter import FormatFileError, check_file, format_file, format_source

__all__ = ["cli"]


@click.command()
@click.version_option()
@click.argument("paths", nargs=-1)
@click.option("-c", "--check", is_flag=True, help="Check if files are formatted correctly.")
@click.option("-i", "--ignore", multiple=True, help="Ignore a glob pattern (repeatable).")
@click.option("-v", "--verbose", is_flag=True, help="Be verbose.")
@click.option("--indent-width", type=int, help="Number of spaces per indentation level")
def cli(
    paths: tuple[str, ...],
    check: bool = False,
    ignore: tuple[str, ...] = (),
    verbose: bool = False,
    indent_width: int | None = None,
):
    """
    Entry point for formatting or checking S-expression source files.

    Args:
        paths: Paths or glob patterns of files to format or check.
        check: Report unformatted files instead of rewriting them.
        ignore: Additional glob patterns of paths to skip.
        verbose: Report every processed file.
        indent_width: Override for the number of spaces per indentation level.

    Returns:
        None.

    Raises:
        click.UsageError: If `--check` is used without paths.
        click.BadParameter: If configuration values are invalid.
        click.ClickException: If stdin cannot be parsed or any file fails.

    Examples:
        sexpfmt "src/**/*.scm" --ignore "src/vendor" --check
    """
    if check and not paths:
        raise click.UsageError("cannot check stdin")

    base_dir = Path.cwd().resolve()
    try:
        config = build_config(base_dir, ignore=ignore, indent_width=indent_width)
    except ConfigError as error:
        raise click.BadParameter(str(error)) from error

    if not paths:
        _format_stdin(config)
    elif check:
        _check_paths(expand_paths(paths, config.ignore, base_dir), config, verbose)
    else:
        _format_paths(expand_paths(paths, config.ignore, base_dir), config, verbose)


def _format_stdin(config: FormatterConfig):
    with click.open_file("-", encoding="utf-8") as stream:
        source = stream.read()
    try:
        formatted = format_source(source, config)
    except ParseError as error:
        raise click.ClickException(error.describe(source)) from error
    click.echo(formatted, nl=False)


def _check_paths(paths: list[Path], config: FormatterConfig, verbose: bool):
    error_count = 0

    for path in paths:
        try:
            formatted = check_file(path, config)
        except FormatFileError as error:
            _report("ERROR", "red", path, str(error))
            error_count += 1
            continue

        if not formatted:
            _report("FAIL", "yellow", path)
            error_count += 1
        elif verbose:
            _report("OK", "green", path)

    if error_count:
        raise click.ClickException(f"{error_count} / {len(paths)} file(s) failed")


def _format_paths(paths: list[Path], config: FormatterConfig, verbose: bool):
    error_count = 0

    for path in paths:
        try:
            format_file(path, config)
        except FormatFileError as error:
            _report("ERROR", "red", path, str(error))
            error_count += 1
            continue

        if verbose:
            _report("FORMAT", "blue", path)

    if error_count:
        raise click.ClickException(f"{error_count} / {len(paths)} file(s) failed to format")


def _report(status: str, color: str, path: Path, detail: str | None = None):
    fields = [click.style(status, fg=color), str(path)]
    if detail is not None:
        fields.append(detail)
    click.echo("\t".join(fields), err=True)


if __name__ == "__main__":
    cli()
